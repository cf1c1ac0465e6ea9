"""Interest accrual, history and calculation endpoints"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from inventory_ledger.api.dependencies import get_interest_service, get_reporting
from inventory_ledger.api.v1.schemas import (
    BatchResponse,
    CalculationItem,
    CalculationsResponse,
    DateRangeRequest,
    DateRangeResponse,
    InterestAccrualRequest,
    InterestAccrualResponse,
    InterestHistoryResponse,
    MonthlyBatchRequest,
)
from inventory_ledger.domain.models import AccrualMode
from inventory_ledger.infrastructure.database.session import get_db
from inventory_ledger.services.interest_service import InterestService
from inventory_ledger.services.reporting import CreditReportingService

router = APIRouter()


@router.post("/credits/{credit_id}/interest", response_model=InterestAccrualResponse)
def accrue_interest(
    credit_id: int,
    request_body: InterestAccrualRequest,
    service: InterestService = Depends(get_interest_service),
):
    """
    Charge interest for a number of days on the current balance.

    interest = remaining x rate / 100 x days / 30
    """
    result = service.accrue(
        AccrualMode.MANUAL_DAYS,
        credit_id=credit_id,
        user_id=request_body.user_id,
        days=request_body.days,
    )
    return InterestAccrualResponse.model_validate(result)


@router.post("/credits/{credit_id}/interest/date-range", response_model=DateRangeResponse)
def accrue_interest_for_date_range(
    credit_id: int,
    request_body: DateRangeRequest,
    service: InterestService = Depends(get_interest_service),
):
    """
    Charge simple annual interest on the principal between two dates.

    Start defaults to the credit date and end to today.
    """
    result = service.accrue(
        AccrualMode.DATE_RANGE,
        credit_id=credit_id,
        user_id=request_body.user_id,
        start_date=request_body.start_date,
        end_date=request_body.end_date,
    )
    return DateRangeResponse.from_domain(result)


@router.get("/credits/{credit_id}/interest/history", response_model=InterestHistoryResponse)
def get_interest_history(
    credit_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
):
    """Calculations newest first with the payments made up to each"""
    return InterestHistoryResponse.model_validate(reporting.interest_history(db, credit_id, user_id))


@router.delete("/credits/{credit_id}/interest/{calculation_id}", response_model=InterestHistoryResponse)
def delete_interest_calculation(
    credit_id: int,
    calculation_id: int,
    user_id: int = Query(..., description="Owner identifier"),
    service: InterestService = Depends(get_interest_service),
):
    """Remove one calculation; returns the recomputed history"""
    history = service.delete_calculation(credit_id, user_id, calculation_id)
    return InterestHistoryResponse.model_validate(history)


@router.post("/interest/monthly-batch", response_model=BatchResponse)
def run_monthly_batch(
    request_body: MonthlyBatchRequest,
    service: InterestService = Depends(get_interest_service),
):
    """Accrue interest on every open account not charged for a month"""
    result = service.accrue(AccrualMode.MONTHLY_BATCH, user_id=request_body.user_id)
    return BatchResponse.model_validate(result)


@router.get("/interest/calculations", response_model=CalculationsResponse)
def list_interest_calculations(
    user_id: int = Query(..., description="Owner identifier"),
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
):
    records = reporting.all_calculations(db, user_id)
    return CalculationsResponse(
        user_id=user_id,
        calculations=[CalculationItem.model_validate(r) for r in records],
    )
