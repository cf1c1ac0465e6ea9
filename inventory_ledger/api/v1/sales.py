"""/v1/sales - cash sales"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from inventory_ledger.api.dependencies import get_sale_service
from inventory_ledger.api.v1.schemas import SaleCreateRequest, SaleListResponse, SaleResponse, SalesStatsResponse
from inventory_ledger.services.sale_service import SaleService

router = APIRouter()


@router.post("/sales", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def record_sale(
    request_body: SaleCreateRequest,
    service: SaleService = Depends(get_sale_service),
):
    """Record a sale and take its items out of stock"""
    sale = service.record_sale(
        request_body.user_id,
        [i.to_domain() for i in request_body.items],
        customer_id=request_body.customer_id,
        discount=request_body.discount,
        sale_date=request_body.sale_date,
        payment_status=request_body.payment_status,
    )
    return SaleResponse.model_validate(sale)


@router.get("/sales", response_model=SaleListResponse)
def list_sales(
    user_id: int = Query(..., description="Owner identifier"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    show_archived: bool = Query(False),
    service: SaleService = Depends(get_sale_service),
):
    sales = service.list_sales(user_id, start_date=start_date, end_date=end_date, show_archived=show_archived)
    return SaleListResponse(user_id=user_id, sales=[SaleResponse.model_validate(s) for s in sales])


@router.get("/sales/stats", response_model=SalesStatsResponse)
def sales_stats(
    user_id: int = Query(..., description="Owner identifier"),
    service: SaleService = Depends(get_sale_service),
):
    """Count and revenue totals over non-archived sales"""
    stats = service.stats(user_id)
    return SalesStatsResponse(
        user_id=user_id,
        total_sales=stats.total_sales,
        total_revenue=stats.total_revenue,
        total_discount=stats.total_discount,
        net_revenue=stats.net_revenue,
    )


@router.get("/sales/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: SaleService = Depends(get_sale_service),
):
    return SaleResponse.model_validate(service.get_sale(sale_id, user_id))


@router.post("/sales/{sale_id}/archive", response_model=SaleResponse)
def archive_sale(
    sale_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: SaleService = Depends(get_sale_service),
):
    return SaleResponse.model_validate(service.archive(sale_id, user_id))


@router.post("/sales/{sale_id}/unarchive", response_model=SaleResponse)
def unarchive_sale(
    sale_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: SaleService = Depends(get_sale_service),
):
    return SaleResponse.model_validate(service.unarchive(sale_id, user_id))
