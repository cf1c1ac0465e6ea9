"""/v1/suppliers - suppliers of stock and orders"""

from fastapi import APIRouter, Depends, Query, status

from inventory_ledger.api.dependencies import get_supplier_service
from inventory_ledger.api.v1.schemas import (
    CountResponse,
    SupplierCreateRequest,
    SupplierListResponse,
    SupplierResponse,
    SupplierUpdateRequest,
)
from inventory_ledger.services.supplier_service import SupplierService

router = APIRouter()


@router.post("/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    request_body: SupplierCreateRequest,
    service: SupplierService = Depends(get_supplier_service),
):
    """Name, license number, phone and email are all required and unique per owner"""
    supplier = service.create_supplier(**request_body.model_dump())
    return SupplierResponse.model_validate(supplier)


@router.get("/suppliers", response_model=SupplierListResponse)
def list_suppliers(
    user_id: int = Query(..., description="Owner identifier"),
    service: SupplierService = Depends(get_supplier_service),
):
    return SupplierListResponse(
        user_id=user_id,
        suppliers=[SupplierResponse.model_validate(s) for s in service.list_suppliers(user_id)],
    )


@router.get("/suppliers/count", response_model=CountResponse)
def count_suppliers(
    user_id: int = Query(..., description="Owner identifier"),
    service: SupplierService = Depends(get_supplier_service),
):
    return CountResponse(user_id=user_id, count=service.count_suppliers(user_id))


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
def get_supplier(
    supplier_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: SupplierService = Depends(get_supplier_service),
):
    return SupplierResponse.model_validate(service.get_supplier(supplier_id, user_id))


@router.put("/suppliers/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    request_body: SupplierUpdateRequest,
    user_id: int = Query(..., description="Owner identifier"),
    service: SupplierService = Depends(get_supplier_service),
):
    supplier = service.update_supplier(supplier_id, user_id, **request_body.model_dump())
    return SupplierResponse.model_validate(supplier)


@router.delete("/suppliers/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(
    supplier_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: SupplierService = Depends(get_supplier_service),
):
    """Refused with 409 while stock items or orders reference the supplier"""
    service.delete_supplier(supplier_id, user_id)
