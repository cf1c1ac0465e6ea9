"""/v1/stock - stock ledger"""

from fastapi import APIRouter, Depends, Query, status

from inventory_ledger.api.dependencies import get_stock_service
from inventory_ledger.api.v1.schemas import (
    ExpiringStockListResponse,
    ExpiringStockResponse,
    RestockRequest,
    StockCountsResponse,
    StockCreateRequest,
    StockListResponse,
    StockResponse,
    StockUpdateRequest,
)
from inventory_ledger.services.stock_service import StockService

router = APIRouter()


@router.post("/stock", response_model=StockResponse, status_code=status.HTTP_201_CREATED)
def create_stock_item(
    request_body: StockCreateRequest,
    service: StockService = Depends(get_stock_service),
):
    item = service.create_item(**request_body.model_dump())
    return StockResponse.model_validate(item)


@router.get("/stock", response_model=StockListResponse)
def list_stock(
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    return StockListResponse(
        user_id=user_id,
        items=[StockResponse.model_validate(i) for i in service.list_items(user_id)],
    )


@router.get("/stock/low", response_model=StockListResponse)
def list_low_stock(
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    """Items at or below their low-stock threshold"""
    return StockListResponse(
        user_id=user_id,
        items=[StockResponse.model_validate(i) for i in service.low_stock(user_id)],
    )


@router.get("/stock/expiring", response_model=ExpiringStockListResponse)
def list_expiring_stock(
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    """Items expiring within the warning window, soonest first"""
    return ExpiringStockListResponse(
        user_id=user_id,
        items=[ExpiringStockResponse.model_validate(i) for i in service.expiring_soon(user_id)],
    )


@router.get("/stock/counts", response_model=StockCountsResponse)
def stock_counts(
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    counts = service.counts(user_id)
    return StockCountsResponse(
        user_id=user_id,
        total=counts.total,
        low_stock=counts.low_stock,
        expiring_soon=counts.expiring_soon,
    )


@router.get("/stock/{product_id}", response_model=StockResponse)
def get_stock_item(
    product_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    return StockResponse.model_validate(service.get_item(product_id, user_id))


@router.put("/stock/{product_id}", response_model=StockResponse)
def update_stock_item(
    product_id: int,
    request_body: StockUpdateRequest,
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    item = service.update_item(product_id, user_id, request_body.to_domain())
    return StockResponse.model_validate(item)


@router.post("/stock/{product_id}/restock", response_model=StockResponse)
def restock_item(
    product_id: int,
    request_body: RestockRequest,
    service: StockService = Depends(get_stock_service),
):
    item = service.restock(product_id, request_body.user_id, request_body.number_of_items)
    return StockResponse.model_validate(item)


@router.delete("/stock/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_stock_item(
    product_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: StockService = Depends(get_stock_service),
):
    """Refused with 409 while credit lines or sales reference the item"""
    service.delete_item(product_id, user_id)
