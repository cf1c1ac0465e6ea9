"""Interest accrual engine: manual, monthly-batch and date-range accruals"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import (
    DomainException,
    MissingFieldsError,
    NotFoundOrUnauthorized,
    ValidationError,
)
from inventory_ledger.domain.interest import is_month_elapsed, prorated_interest, simple_interest
from inventory_ledger.domain.models import (
    AccountOutcome,
    AccrualMode,
    AccrualResult,
    BatchResult,
    CreditStatus,
    DateRangeAccrual,
    InterestHistory,
    InterestMethod,
)
from inventory_ledger.infrastructure.database.models import CreditAccount
from inventory_ledger.infrastructure.database.repositories import CreditRepository, InterestRepository
from inventory_ledger.infrastructure.database.session import atomic
from inventory_ledger.infrastructure.observability.logging import log_interest_accrued, log_interest_batch
from inventory_ledger.infrastructure.observability.metrics import record_interest
from inventory_ledger.services.credit_service import apply_balances
from inventory_ledger.services.reporting import CreditReportingService
from inventory_ledger.utils.date_utils import SystemClock, days_between, month_name

logger = logging.getLogger(__name__)


class InterestService:
    """Computes interest, records calculations and keeps account totals in step"""

    def __init__(self, db: Session, reporting: CreditReportingService, clock=None):
        self.db = db
        self.reporting = reporting
        self.clock = clock or SystemClock()
        self.credit_repo = CreditRepository(db)
        self.interest_repo = InterestRepository(db)

    def accrue(
        self,
        mode: Union[AccrualMode, str],
        credit_id: Optional[int] = None,
        user_id: Optional[int] = None,
        days: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Union[AccrualResult, DateRangeAccrual, BatchResult]:
        """
        Single entry point for every accrual trigger.

        Modes:
            manual-days: credit_id, user_id and days required
            monthly-batch: user_id optional, scopes the batch to one owner
            date-range: credit_id and user_id required, dates optional
        """
        try:
            mode = AccrualMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown accrual mode: {mode}")

        if mode == AccrualMode.MONTHLY_BATCH:
            return self.run_monthly_batch(user_id=user_id)

        missing = [name for name, value in (("credit_id", credit_id), ("user_id", user_id)) if value is None]
        if missing:
            raise MissingFieldsError(*missing)

        if mode == AccrualMode.DATE_RANGE:
            return self.accrue_date_range(credit_id, user_id, start_date=start_date, end_date=end_date)
        return self.accrue_for_days(credit_id, user_id, days)

    def accrue_for_days(
        self,
        credit_id: int,
        user_id: int,
        days: Optional[int],
        trigger: str = AccrualMode.MANUAL_DAYS.value,
    ) -> AccrualResult:
        """
        Charge prorated interest on the current remaining balance.

        interest = remaining x rate / 100 x days / 30, rounded half-up to cents.
        The record keeps the pre-accrual remaining balance; the account's
        last_interest_calculation moves to today.

        Example:
            remaining 300, rate 10, 30 days -> interest 30.00, remaining 330.00
        """
        if days is None:
            raise MissingFieldsError("days")
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ValidationError("Days must be a positive whole number")

        today = self.clock.today()
        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            if account.status == CreditStatus.ARCHIVED.value:
                raise ValidationError("Cannot accrue interest on an archived credit")

            remaining_before = Decimal(account.remaining_amount)
            if remaining_before <= 0:
                raise ValidationError("Credit has no outstanding balance")

            interest = prorated_interest(remaining_before, Decimal(account.interest_rate), days)
            record = self.interest_repo.add_calculation(
                account.id,
                calculation_date=today,
                principal_amount=account.credit_amount,
                remaining_balance=remaining_before,
                interest_rate=account.interest_rate,
                interest_amount=interest,
                duration_days=days,
                month_name=month_name(today),
                year=today.year,
                method=InterestMethod.PRORATED_30.value,
            )
            account.last_interest_calculation = today
            apply_balances(self.credit_repo, account, self.clock.now())

            result = AccrualResult(
                credit_id=account.id,
                calculation_id=record.id,
                days=days,
                interest_amount=interest,
                remaining_before=remaining_before,
                updated_balance=Decimal(account.remaining_amount),
            )

        self.reporting.invalidate_account(user_id, credit_id)
        record_interest(InterestMethod.PRORATED_30.value, trigger, interest)
        log_interest_accrued(credit_id, InterestMethod.PRORATED_30.value, days, interest, result.updated_balance)
        return result

    def accrue_date_range(
        self,
        credit_id: int,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> DateRangeAccrual:
        """
        Charge simple annual interest on the principal up to end_date.

        interest = principal x rate x (days / 365) / 100, where days always run
        from the credit date to end_date; start_date (default: the credit date)
        only bounds the reported window. end_date defaults to today. The record
        is dated end_date and keeps the outstanding amount after this interest;
        last_interest_calculation moves forward to end_date.
        """
        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            start = start_date or account.credit_date
            end = end_date or self.clock.today()
            if end < start:
                raise ValidationError("End date cannot be before start date")
            if end < account.credit_date:
                raise ValidationError("End date cannot be before the credit date")

            duration_days = days_between(account.credit_date, end)
            principal = Decimal(account.credit_amount)
            interest = simple_interest(principal, Decimal(account.interest_rate), duration_days)
            total_paid = self.credit_repo.payment_total(account.id, up_to=end)
            outstanding = principal + interest - total_paid

            record = self.interest_repo.add_calculation(
                account.id,
                calculation_date=end,
                principal_amount=principal,
                remaining_balance=outstanding,
                interest_rate=account.interest_rate,
                interest_amount=interest,
                duration_days=duration_days,
                month_name=month_name(end),
                year=end.year,
                method=InterestMethod.SIMPLE_365.value,
            )
            if account.last_interest_calculation is None or account.last_interest_calculation < end:
                account.last_interest_calculation = end
            apply_balances(self.credit_repo, account, self.clock.now())

            result = DateRangeAccrual(
                credit_id=account.id,
                calculation_id=record.id,
                customer_name=account.customer.customer_name if account.customer else None,
                credit_amount=principal,
                interest_rate=Decimal(account.interest_rate),
                start_date=start,
                end_date=end,
                duration_days=duration_days,
                total_paid=total_paid,
                interest_amount=interest,
                outstanding=outstanding,
            )

        self.reporting.invalidate_account(user_id, credit_id)
        record_interest(InterestMethod.SIMPLE_365.value, AccrualMode.DATE_RANGE.value, interest)
        log_interest_accrued(credit_id, InterestMethod.SIMPLE_365.value, duration_days, interest, outstanding)
        return result

    def run_monthly_batch(self, user_id: Optional[int] = None) -> BatchResult:
        """
        Accrue interest on every open account not charged for a calendar month.

        Each account runs in its own transaction; a failure is recorded in
        the result and the batch moves on.
        """
        start_time = time.time()
        today = self.clock.today()
        result = BatchResult(run_date=today)

        candidates = [
            (a.id, a.user_id, self._accrual_base_date(a))
            for a in self.credit_repo.list_open()
            if (user_id is None or a.user_id == user_id) and Decimal(a.remaining_amount) > 0
        ]

        for credit_id, owner_id, base_date in candidates:
            if not is_month_elapsed(base_date, today):
                continue

            days = days_between(base_date, today)
            try:
                accrual = self.accrue_for_days(credit_id, owner_id, days, trigger=AccrualMode.MONTHLY_BATCH.value)
            except DomainException as e:
                logger.warning(f"Monthly interest failed for credit {credit_id}: {e}", extra={"credit_id": credit_id})
                result.outcomes.append(AccountOutcome(credit_id=credit_id, success=False, days=days, error=str(e)))
                continue

            result.outcomes.append(
                AccountOutcome(
                    credit_id=credit_id,
                    success=True,
                    days=days,
                    interest_amount=accrual.interest_amount,
                    updated_balance=accrual.updated_balance,
                )
            )

        log_interest_batch(AccrualMode.MONTHLY_BATCH.value, result, (time.time() - start_time) * 1000)
        return result

    def delete_calculation(self, credit_id: int, user_id: int, calculation_id: int) -> InterestHistory:
        """
        Remove one interest record and recompute the account from what is left.

        total_interest = sum of surviving records,
        remaining = credit_amount - payments + total_interest.
        """
        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            record = self.interest_repo.get_for_account(calculation_id, account.id)
            if record is None:
                raise NotFoundOrUnauthorized("Interest calculation not found")

            self.interest_repo.delete(record)
            account.last_interest_calculation = self._latest_calculation_date(account.id)
            apply_balances(self.credit_repo, account, self.clock.now())

        self.reporting.invalidate_account(user_id, credit_id)
        logger.info(
            f"Interest calculation {calculation_id} deleted",
            extra={"user_id": user_id, "credit_id": credit_id, "calculation_id": calculation_id},
        )
        return self.reporting.interest_history(self.db, credit_id, user_id)

    def _lock_account(self, credit_id: int, user_id: int) -> CreditAccount:
        account = self.credit_repo.get_for_owner(credit_id, user_id, for_update=True)
        if account is None:
            raise NotFoundOrUnauthorized("Credit record not found")
        return account

    def _latest_calculation_date(self, credit_id: int) -> Optional[date]:
        dates = [r.calculation_date for r in self.interest_repo.list_for_account(credit_id)]
        return max(dates) if dates else None

    @staticmethod
    def _accrual_base_date(account: CreditAccount) -> date:
        if account.last_interest_calculation is not None:
            return account.last_interest_calculation
        created = account.created_at
        return created.date() if created is not None else account.credit_date
