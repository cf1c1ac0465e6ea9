"""/v1/orders - purchase orders"""

from fastapi import APIRouter, Depends, Query, status

from inventory_ledger.api.dependencies import get_order_service
from inventory_ledger.api.v1.schemas import (
    CountResponse,
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderUpdateRequest,
)
from inventory_ledger.services.order_service import OrderService

router = APIRouter()


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    request_body: OrderCreateRequest,
    service: OrderService = Depends(get_order_service),
):
    order = service.create_order(**request_body.model_dump())
    return OrderResponse.model_validate(order)


@router.get("/orders", response_model=OrderListResponse)
def list_orders(
    user_id: int = Query(..., description="Owner identifier"),
    service: OrderService = Depends(get_order_service),
):
    return OrderListResponse(
        user_id=user_id,
        orders=[OrderResponse.model_validate(o) for o in service.list_orders(user_id)],
    )


@router.get("/orders/count", response_model=CountResponse)
def count_orders(
    user_id: int = Query(..., description="Owner identifier"),
    service: OrderService = Depends(get_order_service),
):
    return CountResponse(user_id=user_id, count=service.count_orders(user_id))


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.model_validate(service.get_order(order_id, user_id))


@router.put("/orders/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: int,
    request_body: OrderUpdateRequest,
    user_id: int = Query(..., description="Owner identifier"),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_order(order_id, user_id, **request_body.model_dump())
    return OrderResponse.model_validate(order)


@router.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: OrderService = Depends(get_order_service),
):
    service.delete_order(order_id, user_id)
