"""Read views over credit accounts, fronted by a TTL cache"""

import logging
from decimal import Decimal
from typing import Hashable, List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import NotFoundOrUnauthorized
from inventory_ledger.domain.interest import ZERO, overdue_days, round_money
from inventory_ledger.domain.models import (
    CreditAccountView,
    InterestHistory,
    InterestRecordView,
    LineItemView,
    PaymentEntry,
)
from inventory_ledger.infrastructure.database.models import CreditAccount, InterestCalculation
from inventory_ledger.infrastructure.database.repositories import (
    CreditRepository,
    InterestRepository,
    PaymentRepository,
)
from inventory_ledger.utils.cache import TTLCache
from inventory_ledger.utils.date_utils import SystemClock

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"

# Cache keys are tuples: (kind, user_id, ...)
ACCOUNT_SCOPED = ("account", "payments", "interest")
OWNER_SCOPED = ("list", "calculations")


class CreditReportingService:
    """
    Assembles account, payment and interest views.

    One instance is shared by every request and by the interest scheduler so
    that the cache it owns sees all invalidations.
    A view built while an invalidation runs is returned but not cached.
    """

    def __init__(self, cache: TTLCache, clock=None):
        self.cache = cache
        self.clock = clock or SystemClock()

    def get_account_view(self, db: Session, credit_id: int, user_id: int) -> CreditAccountView:
        key = ("account", user_id, credit_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        generation = self.cache.generation

        account = CreditRepository(db).get_for_owner(credit_id, user_id)
        if account is None:
            raise NotFoundOrUnauthorized("Credit record not found")

        view = self._build_view(db, account)
        self.cache.set(key, view, generation=generation)
        return view

    def list_accounts(
        self,
        db: Session,
        user_id: int,
        show_archived: bool = False,
        customer_id: Optional[int] = None,
    ) -> List[CreditAccountView]:
        key = ("list", user_id, show_archived, customer_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        generation = self.cache.generation

        credit_repo = CreditRepository(db)
        accounts = credit_repo.list_for_owner(user_id, show_archived=show_archived, customer_id=customer_id)
        paid_totals = credit_repo.payment_totals(a.id for a in accounts)
        views = [self._build_view(db, a, paid_total=paid_totals.get(a.id, ZERO)) for a in accounts]

        self.cache.set(key, views, generation=generation)
        return views

    def payment_history(self, db: Session, credit_id: int, user_id: int) -> List[PaymentEntry]:
        key = ("payments", user_id, credit_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        generation = self.cache.generation

        self._require_account(db, credit_id, user_id)
        payments = PaymentRepository(db).list_for_account(credit_id)
        entries = [
            PaymentEntry(
                payment_id=p.id,
                payment_date=p.payment_date,
                payment_amount=Decimal(p.payment_amount),
                payment_notes=p.payment_notes or "",
                user_id=p.user_id,
            )
            for p in payments
        ]

        self.cache.set(key, entries, generation=generation)
        return entries

    def interest_history(self, db: Session, credit_id: int, user_id: int) -> InterestHistory:
        """Calculations newest first, each with the payments made up to its date"""
        key = ("interest", user_id, credit_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        generation = self.cache.generation

        account = self._require_account(db, credit_id, user_id)
        credit_repo = CreditRepository(db)
        records = InterestRepository(db).list_for_account(credit_id)

        history = [
            _record_view(r, credit_repo.payment_total(credit_id, up_to=r.calculation_date))
            for r in records
        ]
        history_view = InterestHistory(
            credit_id=account.id,
            customer_name=account.customer.customer_name if account.customer else None,
            credit_amount=Decimal(account.credit_amount),
            remaining_amount=Decimal(account.remaining_amount),
            history=history,
            total_interest=round_money(sum((h.interest_amount for h in history), ZERO)),
        )

        self.cache.set(key, history_view, generation=generation)
        return history_view

    def all_calculations(self, db: Session, user_id: int) -> List[InterestRecordView]:
        """Every interest calculation across an owner's accounts"""
        key = ("calculations", user_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        generation = self.cache.generation

        credit_repo = CreditRepository(db)
        views = [
            _record_view(r, credit_repo.payment_total(r.credit_id, up_to=r.calculation_date))
            for r in InterestRepository(db).list_for_owner(user_id)
        ]

        self.cache.set(key, views, generation=generation)
        return views

    def invalidate_account(self, user_id: int, credit_id: int) -> None:
        """Drop every cached view that could include this account"""

        def affected(key: Hashable) -> bool:
            kind, owner = key[0], key[1]
            if owner != user_id:
                return False
            return kind in OWNER_SCOPED or (kind in ACCOUNT_SCOPED and key[2] == credit_id)

        dropped = self.cache.invalidate(affected)
        logger.debug(f"Invalidated {dropped} cached views for credit {credit_id}")

    def invalidate_owner(self, user_id: int) -> None:
        """Drop every cached view of one owner, e.g. after a product or customer rename"""
        dropped = self.cache.invalidate(lambda key: key[1] == user_id)
        logger.debug(f"Invalidated {dropped} cached views for user {user_id}")

    def _require_account(self, db: Session, credit_id: int, user_id: int) -> CreditAccount:
        account = CreditRepository(db).get_for_owner(credit_id, user_id)
        if account is None:
            raise NotFoundOrUnauthorized("Credit record not found")
        return account

    def _build_view(self, db: Session, account: CreditAccount, paid_total: Optional[Decimal] = None) -> CreditAccountView:
        if paid_total is None:
            paid_total = CreditRepository(db).payment_total(account.id)

        products = [
            LineItemView(
                product_id=item.product_id,
                product_name=item.product.product_name if item.product else UNKNOWN_PRODUCT,
                number_of_items=item.number_of_items,
                quantity_unit=item.quantity_unit,
                price_per_unit=Decimal(item.price_per_unit),
                total_price=round_money(Decimal(item.price_per_unit) * item.number_of_items),
            )
            for item in account.line_items
        ]

        today = self.clock.today()
        return CreditAccountView(
            credit_id=account.id,
            user_id=account.user_id,
            customer_id=account.customer_id,
            customer_name=account.customer.customer_name if account.customer else None,
            credit_amount=Decimal(account.credit_amount),
            paid_amount=Decimal(paid_total),
            remaining_amount=Decimal(account.remaining_amount),
            total_interest_amount=Decimal(account.total_interest_amount or 0),
            interest_rate=Decimal(account.interest_rate),
            credit_date=account.credit_date,
            due_date=account.due_date,
            status=account.status,
            notes=account.notes or "",
            products=products,
            total_items=sum(p.number_of_items for p in products),
            created_at=account.created_at,
            last_interest_calculation=account.last_interest_calculation,
            duration_days=(today - account.credit_date).days,
            overdue_days=overdue_days(account.due_date, today),
        )


def _record_view(record: InterestCalculation, payment_amount: Decimal) -> InterestRecordView:
    return InterestRecordView(
        calculation_id=record.id,
        calculation_date=record.calculation_date,
        principal_amount=Decimal(record.principal_amount),
        payment_amount=Decimal(payment_amount),
        remaining_balance=Decimal(record.remaining_balance),
        duration_days=record.duration_days or 0,
        interest_rate=Decimal(record.interest_rate),
        interest_amount=Decimal(record.interest_amount),
        month_name=record.month_name,
        year=record.year,
        method=record.method,
        credit_id=record.credit_id,
    )
