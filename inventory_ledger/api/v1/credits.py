"""/v1/credits - credit accounts and their payment journal"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from inventory_ledger.api.dependencies import get_credit_service, get_reporting
from inventory_ledger.api.v1.schemas import (
    CreditAccountResponse,
    CreditCreatedResponse,
    CreditCreateRequest,
    CreditListResponse,
    CreditStatusResponse,
    CreditUpdateRequest,
    PaymentHistoryResponse,
    PaymentReceiptResponse,
    PaymentRequest,
    PaymentResponse,
)
from inventory_ledger.infrastructure.database.session import get_db
from inventory_ledger.services.credit_service import CreditService
from inventory_ledger.services.reporting import CreditReportingService

router = APIRouter()


@router.post("/credits", response_model=CreditCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_credit(
    request_body: CreditCreateRequest,
    service: CreditService = Depends(get_credit_service),
):
    """
    Open a credit account for a customer.

    Flow:
    1. Validate customer, products, rate and initial payment
    2. Insert the account and line item snapshots
    3. Take every line out of stock (fails with 409 if short)
    4. Journal the initial payment, if any
    """
    created = service.create_credit(request_body.to_domain())
    return CreditCreatedResponse.model_validate(created)


@router.get("/credits", response_model=CreditListResponse)
def list_credits(
    user_id: int = Query(..., description="Owner identifier"),
    show_archived: bool = Query(False),
    customer_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
):
    """List an owner's credit accounts, newest first"""
    views = reporting.list_accounts(db, user_id, show_archived=show_archived, customer_id=customer_id)
    return CreditListResponse(
        user_id=user_id,
        credits=[CreditAccountResponse.model_validate(v) for v in views],
    )


@router.get("/credits/{credit_id}", response_model=CreditAccountResponse)
def get_credit(
    credit_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
):
    """Account with line items, payment and interest totals, and overdue days"""
    return CreditAccountResponse.model_validate(reporting.get_account_view(db, credit_id, user_id))


@router.put("/credits/{credit_id}", response_model=CreditAccountResponse)
def update_credit(
    credit_id: int,
    request_body: CreditUpdateRequest,
    user_id: int = Query(..., description="Owner identifier"),
    service: CreditService = Depends(get_credit_service),
):
    view = service.update_credit(credit_id, user_id, request_body.to_domain())
    return CreditAccountResponse.model_validate(view)


@router.delete("/credits/{credit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_credit(
    credit_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CreditService = Depends(get_credit_service),
):
    """Delete an account with its line items, payments and interest records"""
    service.delete_credit(credit_id, user_id)


@router.post("/credits/{credit_id}/archive", response_model=CreditStatusResponse)
def archive_credit(
    credit_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CreditService = Depends(get_credit_service),
):
    return CreditStatusResponse(credit_id=credit_id, status=service.archive(credit_id, user_id))


@router.post("/credits/{credit_id}/unarchive", response_model=CreditStatusResponse)
def unarchive_credit(
    credit_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: CreditService = Depends(get_credit_service),
):
    return CreditStatusResponse(credit_id=credit_id, status=service.unarchive(credit_id, user_id))


@router.post("/credits/{credit_id}/payments", response_model=PaymentReceiptResponse)
def record_payment(
    credit_id: int,
    request_body: PaymentRequest,
    service: CreditService = Depends(get_credit_service),
):
    """Append a payment; returns the account's paid, remaining and interest totals"""
    receipt = service.record_payment(
        credit_id,
        request_body.user_id,
        request_body.payment_amount,
        payment_date=request_body.payment_date,
        payment_notes=request_body.payment_notes,
    )
    return PaymentReceiptResponse.model_validate(receipt)


@router.get("/credits/{credit_id}/payments", response_model=PaymentHistoryResponse)
def get_payment_history(
    credit_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
):
    """Payments newest first"""
    entries = reporting.payment_history(db, credit_id, user_id)
    return PaymentHistoryResponse(
        credit_id=credit_id,
        payments=[PaymentResponse.model_validate(e) for e in entries],
    )
