"""Credit account lifecycle: open, pay, edit, archive and delete"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import (
    InsufficientStockError,
    InvalidProductError,
    MissingFieldsError,
    NotFoundOrUnauthorized,
    ValidationError,
)
from inventory_ledger.domain.interest import ZERO, derive_status, remaining_balance, restored_status, round_money
from inventory_ledger.domain.inventory import InventoryReservation
from inventory_ledger.domain.models import (
    CreditAccountView,
    CreditCreated,
    CreditStatus,
    CreditUpdate,
    LineItemInput,
    NewCreditAccount,
    PaymentEntry,
    PaymentReceipt,
)
from inventory_ledger.infrastructure.database.models import CreditAccount
from inventory_ledger.infrastructure.database.repositories import (
    CreditRepository,
    CustomerRepository,
    PaymentRepository,
    StockRepository,
)
from inventory_ledger.infrastructure.database.session import atomic
from inventory_ledger.infrastructure.observability.logging import log_credit_created, log_payment
from inventory_ledger.infrastructure.observability.metrics import (
    credit_accounts_created_counter,
    insufficient_stock_counter,
    record_payment as record_payment_metric,
)
from inventory_ledger.services.reporting import CreditReportingService
from inventory_ledger.utils.date_utils import SystemClock

logger = logging.getLogger(__name__)

INITIAL_PAYMENT_NOTE = "Initial payment on credit creation"
MAX_INTEREST_RATE = Decimal("999.99")


def apply_balances(credit_repo: CreditRepository, account: CreditAccount, now) -> None:
    """
    Recompute an account's totals from its journal and interest records.

    paid = sum of payments, interest = sum of calculations,
    remaining = credit_amount + interest - paid. Status follows the balances
    unless the account is archived.
    """
    paid = credit_repo.payment_total(account.id)
    interest = credit_repo.interest_total(account.id)
    remaining = remaining_balance(Decimal(account.credit_amount), paid, interest)

    account.paid_amount = paid
    account.total_interest_amount = interest
    account.remaining_amount = remaining
    if account.status != CreditStatus.ARCHIVED.value:
        account.status = derive_status(remaining, account.credit_amount).value
    account.updated_at = now


def validate_line_items(products: Optional[List[LineItemInput]]) -> None:
    if not products:
        raise MissingFieldsError("products")

    for line in products:
        if line.product_id is None:
            raise MissingFieldsError("product_id")
        if line.number_of_items is None or line.number_of_items <= 0:
            raise InvalidProductError(f"Invalid number of items for product ID {line.product_id}")
        if line.price_per_unit is None or line.price_per_unit <= 0:
            raise InvalidProductError(f"Invalid price per unit for product ID {line.product_id}")


def validate_interest_rate(rate) -> Decimal:
    """Rate as a Decimal percent, within what the interest_rate column stores"""
    rate = Decimal(rate)
    if rate < 0:
        raise ValidationError("Interest rate cannot be negative")
    if rate > MAX_INTEREST_RATE:
        raise ValidationError(f"Interest rate cannot exceed {MAX_INTEREST_RATE}")
    return rate


class CreditService:
    """Mutating operations on credit accounts, one transaction each"""

    def __init__(
        self,
        db: Session,
        reporting: CreditReportingService,
        clock=None,
        inventory: Optional[InventoryReservation] = None,
    ):
        self.db = db
        self.reporting = reporting
        self.clock = clock or SystemClock()
        self.inventory = inventory or StockRepository(db)
        self.credit_repo = CreditRepository(db)
        self.payment_repo = PaymentRepository(db)

    def create_credit(self, new_credit: NewCreditAccount) -> CreditCreated:
        """
        Open a credit account and take its products out of stock.

        Steps, all inside one transaction:
        1. credit_amount = sum(number_of_items x price_per_unit)
        2. Insert the account and its line item snapshots
        3. Reserve stock for every line (row-locked)
        4. Journal the initial payment when one is given

        Raises:
            MissingFieldsError, InvalidProductError, ValidationError: bad input
            NotFoundOrUnauthorized: customer not owned by user
            ProductNotFoundError, InsufficientStockError: stock problems
        """
        missing = [
            name
            for name, value in (
                ("customer_id", new_credit.customer_id),
                ("user_id", new_credit.user_id),
                ("interest_rate", new_credit.interest_rate),
            )
            if value is None
        ]
        if missing:
            raise MissingFieldsError(*missing)
        validate_line_items(new_credit.products)

        interest_rate = validate_interest_rate(new_credit.interest_rate)
        partial_payment = Decimal(new_credit.partial_payment or 0)
        if partial_payment < 0:
            raise ValidationError("Partial payment cannot be negative")

        credit_amount = round_money(sum((line.total_price for line in new_credit.products), ZERO))
        total_items = sum(line.number_of_items for line in new_credit.products)
        today = self.clock.today()
        credit_date = new_credit.credit_date or today

        try:
            with atomic(self.db):
                customer = CustomerRepository(self.db).get_for_owner(new_credit.customer_id, new_credit.user_id)
                if customer is None:
                    raise NotFoundOrUnauthorized("Customer not found")

                remaining = remaining_balance(credit_amount, partial_payment, ZERO)
                account = self.credit_repo.create_account(
                    user_id=new_credit.user_id,
                    customer_id=customer.id,
                    credit_amount=credit_amount,
                    interest_rate=interest_rate,
                    credit_date=credit_date,
                    due_date=new_credit.due_date,
                    paid_amount=partial_payment,
                    remaining_amount=remaining,
                    total_interest_amount=ZERO,
                    status=derive_status(remaining, credit_amount).value,
                    notes=new_credit.notes or "",
                    created_at=self.clock.now(),
                )

                for line in new_credit.products:
                    self.credit_repo.add_line_item(account, line)
                    self.inventory.reserve(new_credit.user_id, line.product_id, line.number_of_items)

                if partial_payment > 0:
                    self.payment_repo.add_payment(
                        credit_id=account.id,
                        user_id=new_credit.user_id,
                        payment_amount=partial_payment,
                        payment_date=today,
                        payment_notes=INITIAL_PAYMENT_NOTE,
                    )

                apply_balances(self.credit_repo, account, self.clock.now())
                created = CreditCreated(
                    credit_id=account.id,
                    credit_amount=credit_amount,
                    total_items=total_items,
                    paid_amount=Decimal(account.paid_amount),
                    remaining_amount=Decimal(account.remaining_amount),
                    total_interest_amount=Decimal(account.total_interest_amount),
                    credit_date=credit_date,
                    status=account.status,
                )
        except InsufficientStockError:
            insufficient_stock_counter.inc()
            raise

        self.reporting.invalidate_account(new_credit.user_id, created.credit_id)
        credit_accounts_created_counter.inc()
        log_credit_created(new_credit.user_id, created.credit_id, credit_amount, total_items, created.paid_amount)
        return created

    def record_payment(
        self,
        credit_id: int,
        user_id: int,
        payment_amount: Decimal,
        payment_date=None,
        payment_notes: str = "",
    ) -> PaymentReceipt:
        """Append a payment to the journal and refresh the account's balances"""
        if payment_amount is None:
            raise MissingFieldsError("payment_amount")
        payment_amount = Decimal(payment_amount)
        if payment_amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            payment = self.payment_repo.add_payment(
                credit_id=account.id,
                user_id=user_id,
                payment_amount=payment_amount,
                payment_date=payment_date or self.clock.today(),
                payment_notes=payment_notes or "",
            )
            apply_balances(self.credit_repo, account, self.clock.now())

            receipt = PaymentReceipt(
                credit_id=account.id,
                paid_amount=Decimal(account.paid_amount),
                remaining_amount=Decimal(account.remaining_amount),
                total_interest_amount=Decimal(account.total_interest_amount),
                status=account.status,
                credit_date=account.credit_date,
                payment=PaymentEntry(
                    payment_id=payment.id,
                    payment_date=payment.payment_date,
                    payment_amount=payment_amount,
                    payment_notes=payment.payment_notes,
                    user_id=user_id,
                ),
            )

        self.reporting.invalidate_account(user_id, credit_id)
        record_payment_metric(payment_amount)
        log_payment(user_id, credit_id, payment_amount, receipt.remaining_amount, receipt.status)
        return receipt

    def update_credit(self, credit_id: int, user_id: int, changes: CreditUpdate) -> CreditAccountView:
        """
        Edit an account's details.

        Replacing products recomputes credit_amount from the new lines; stock
        levels are left as they are. An explicit status wins over the derived one.
        """
        if changes.products is not None:
            validate_line_items(changes.products)
        if changes.interest_rate is not None:
            validate_interest_rate(changes.interest_rate)

        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)

            if changes.customer_id is not None and changes.customer_id != account.customer_id:
                if CustomerRepository(self.db).get_for_owner(changes.customer_id, user_id) is None:
                    raise NotFoundOrUnauthorized("Customer not found")
                account.customer_id = changes.customer_id
            if changes.interest_rate is not None:
                account.interest_rate = Decimal(changes.interest_rate)
            if changes.notes is not None:
                account.notes = changes.notes
            if changes.due_date is not None:
                account.due_date = changes.due_date
            if changes.products is not None:
                self.credit_repo.replace_line_items(account, changes.products)
                account.credit_amount = round_money(sum((line.total_price for line in changes.products), ZERO))

            apply_balances(self.credit_repo, account, self.clock.now())
            if changes.status is not None:
                account.status = CreditStatus(changes.status).value

        self.reporting.invalidate_account(user_id, credit_id)
        logger.info(f"Credit {credit_id} updated", extra={"user_id": user_id, "credit_id": credit_id})
        return self.reporting.get_account_view(self.db, credit_id, user_id)

    def archive(self, credit_id: int, user_id: int) -> str:
        """Hide an account from default listings and from interest accrual"""
        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            account.status = CreditStatus.ARCHIVED.value
            account.updated_at = self.clock.now()

        self.reporting.invalidate_account(user_id, credit_id)
        logger.info(f"Credit {credit_id} archived", extra={"user_id": user_id, "credit_id": credit_id})
        return CreditStatus.ARCHIVED.value

    def unarchive(self, credit_id: int, user_id: int) -> str:
        """Restore an archived account to the status its payments against the principal imply"""
        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            apply_balances(self.credit_repo, account, self.clock.now())
            status = restored_status(Decimal(account.paid_amount), Decimal(account.credit_amount)).value
            account.status = status

        self.reporting.invalidate_account(user_id, credit_id)
        logger.info(f"Credit {credit_id} unarchived", extra={"user_id": user_id, "credit_id": credit_id})
        return status

    def delete_credit(self, credit_id: int, user_id: int) -> None:
        """Delete an account with its line items, payments and interest records"""
        with atomic(self.db):
            account = self._lock_account(credit_id, user_id)
            self.credit_repo.delete(account)

        self.reporting.invalidate_account(user_id, credit_id)
        logger.info(f"Credit {credit_id} deleted", extra={"user_id": user_id, "credit_id": credit_id})

    def _lock_account(self, credit_id: int, user_id: int) -> CreditAccount:
        account = self.credit_repo.get_for_owner(credit_id, user_id, for_update=True)
        if account is None:
            raise NotFoundOrUnauthorized("Credit record not found")
        return account
