"""/v1/customers - customer records"""

from fastapi import APIRouter, Depends, Query, status

from inventory_ledger.api.dependencies import get_customer_service
from inventory_ledger.api.v1.schemas import (
    CreditAccountResponse,
    CreditScoreResponse,
    CustomerCreateRequest,
    CustomerListResponse,
    CustomerPurchasesResponse,
    CustomerResponse,
    CustomerUpdateRequest,
    SaleResponse,
)
from inventory_ledger.services.customer_service import CustomerService

router = APIRouter()


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    request_body: CustomerCreateRequest,
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.create_customer(**request_body.model_dump())
    return CustomerResponse.model_validate(customer)


@router.get("/customers", response_model=CustomerListResponse)
def list_customers(
    user_id: int = Query(..., description="Owner identifier"),
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerListResponse(
        user_id=user_id,
        customers=[CustomerResponse.model_validate(c) for c in service.list_customers(user_id)],
    )


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.model_validate(service.get_customer(customer_id, user_id))


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    request_body: CustomerUpdateRequest,
    user_id: int = Query(..., description="Owner identifier"),
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.update_customer(customer_id, user_id, request_body.to_domain())
    return CustomerResponse.model_validate(customer)


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CustomerService = Depends(get_customer_service),
):
    """Delete a customer with their credit accounts and sales"""
    service.delete_customer(customer_id, user_id)


@router.get("/customers/{customer_id}/purchases", response_model=CustomerPurchasesResponse)
def get_purchase_history(
    customer_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CustomerService = Depends(get_customer_service),
):
    history = service.purchases(customer_id, user_id)
    return CustomerPurchasesResponse(
        customer_id=history.customer_id,
        customer_name=history.customer_name,
        sales=[SaleResponse.model_validate(s) for s in history.sales],
        credits=[CreditAccountResponse.model_validate(v) for v in history.credits],
    )


@router.get("/customers/{customer_id}/credit-score", response_model=CreditScoreResponse)
def get_credit_score(
    customer_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CustomerService = Depends(get_customer_service),
):
    return CreditScoreResponse(customer_id=customer_id, credit_score=service.credit_score(customer_id, user_id))
