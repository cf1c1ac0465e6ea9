"""Daily interest scheduler.

APScheduler background job that accrues interest on every open credit account
not charged within the accrual interval. Fires once a day at a configurable
wall-clock time; run_once() performs a single pass synchronously.
"""

import logging
import time
from datetime import date
from typing import Callable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from pytz import timezone
from sqlalchemy.orm import Session

from inventory_ledger.domain.models import AccountOutcome, BatchResult, DueAccount
from inventory_ledger.infrastructure.database.repositories import CreditRepository
from inventory_ledger.infrastructure.database.session import Database
from inventory_ledger.infrastructure.observability.logging import log_interest_batch
from inventory_ledger.infrastructure.observability.metrics import (
    scheduler_account_failures_counter,
    scheduler_run_duration_histogram,
    scheduler_runs_counter,
)
from inventory_ledger.services.interest_service import InterestService
from inventory_ledger.services.reporting import CreditReportingService
from inventory_ledger.utils.date_utils import SystemClock

logger = logging.getLogger(__name__)

SCHEDULED_TRIGGER = "scheduled"

DueAccountsQuery = Callable[[Session, date, int], List[DueAccount]]


def default_due_accounts(db: Session, today: date, interval_days: int) -> List[DueAccount]:
    return CreditRepository(db).find_due_for_interest(today, interval_days)


class InterestScheduler:
    """Recurring interest accrual over all owners' accounts"""

    def __init__(
        self,
        database: Database,
        reporting: CreditReportingService,
        clock=None,
        due_accounts: Optional[DueAccountsQuery] = None,
        hour: int = 0,
        minute: int = 0,
        timezone_name: str = "UTC",
        interval_days: int = 30,
        enabled: bool = True,
    ):
        """Initialize scheduler.

        Args:
            database: Storage handle; each account is accrued in its own session.
            reporting: Shared reporting service whose cache is invalidated.
            clock: Source of "today"; SystemClock when omitted.
            due_accounts: Query selecting accounts to accrue.
            hour, minute: Daily fire time.
            timezone_name: Timezone for the fire time.
            interval_days: Minimum days between two accruals on an account.
            enabled: Whether start() schedules the job.
        """
        self.database = database
        self.reporting = reporting
        self.clock = clock or SystemClock()
        self.due_accounts = due_accounts or default_due_accounts
        self.hour = hour
        self.minute = minute
        self.tz = timezone(timezone_name)
        self.interval_days = interval_days
        self.enabled = enabled

        self._scheduler: Optional[BackgroundScheduler] = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        """Start the scheduler."""
        if not self.enabled:
            logger.info("InterestScheduler is disabled, skipping start")
            return

        if self._is_running:
            logger.warning("InterestScheduler already running")
            return

        scheduler = BackgroundScheduler(timezone=self.tz)
        self._scheduler = scheduler

        scheduler.add_job(
            self.run_once,
            CronTrigger(hour=self.hour, minute=self.minute, timezone=self.tz),
            id="daily_interest_accrual",
            replace_existing=True,
            name="Daily Interest Accrual",
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        self._is_running = True
        logger.info(f"InterestScheduler started with timezone {self.tz} (daily at {self.hour:02d}:{self.minute:02d})")

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self._scheduler and self._is_running:
            self._scheduler.shutdown(wait=True)
            self._is_running = False
            logger.info("InterestScheduler stopped")

    def run_once(self) -> BatchResult:
        """Accrue interest on every due account; failures never abort the pass"""
        start_time = time.time()
        today = self.clock.today()
        result = BatchResult(run_date=today)
        scheduler_runs_counter.inc()

        with self.database.session() as db:
            due = self.due_accounts(db, today, self.interval_days)

        logger.info(f"Found {len(due)} credit accounts due for interest", extra={"run_date": today.isoformat()})

        for account in due:
            if account.days_since_last_calc <= 0:
                logger.debug(f"Credit {account.credit_id} already accrued today, skipping")
                continue
            result.outcomes.append(self._accrue_account(account))

        duration = time.time() - start_time
        scheduler_run_duration_histogram.observe(duration)
        log_interest_batch(SCHEDULED_TRIGGER, result, duration * 1000)
        return result

    def _accrue_account(self, account: DueAccount) -> AccountOutcome:
        with self.database.session() as db:
            service = InterestService(db, self.reporting, clock=self.clock)
            try:
                accrual = service.accrue_for_days(
                    account.credit_id,
                    account.user_id,
                    account.days_since_last_calc,
                    trigger=SCHEDULED_TRIGGER,
                )
            except Exception as e:
                scheduler_account_failures_counter.inc()
                logger.error(
                    f"Scheduled interest failed for credit {account.credit_id}: {e}",
                    extra={"credit_id": account.credit_id},
                    exc_info=True,
                )
                return AccountOutcome(
                    credit_id=account.credit_id,
                    success=False,
                    days=account.days_since_last_calc,
                    error=str(e),
                )

        return AccountOutcome(
            credit_id=account.credit_id,
            success=True,
            days=accrual.days,
            interest_amount=accrual.interest_amount,
            updated_balance=accrual.updated_balance,
        )
