"""Interest and balance arithmetic for credit accounts

Two accrual formulas coexist and are kept apart on purpose:

- prorated_interest: monthly rate prorated over 30-day months, applied to the
  running balance. Used by manual, monthly-batch and scheduled accruals.
- simple_interest: annual simple interest over actual days / 365, applied to
  the principal. Used by the date-range breakdown.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from inventory_ledger.domain.models import CreditStatus
from inventory_ledger.utils.date_utils import add_months

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def prorated_interest(balance: Decimal, rate: Decimal, days: int) -> Decimal:
    """
    Interest on a running balance for `days` at a monthly `rate` percent.

    interest = balance x rate / 100 x days / 30

    Example:
        balance 1000, rate 12, 30 days -> 120.00
    """
    raw = Decimal(balance) * Decimal(rate) * Decimal(days) / Decimal(100 * 30)
    return round_money(raw)


def simple_interest(principal: Decimal, rate: Decimal, duration_days: int) -> Decimal:
    """
    Simple interest on the principal at an annual `rate` percent.

    interest = principal x rate x (duration_days / 365) / 100

    Example:
        principal 1000, rate 12, 365 days -> 120.00
        principal 1000, rate 12, 30 days  -> 9.86
    """
    raw = Decimal(principal) * Decimal(rate) * Decimal(duration_days) / Decimal(365 * 100)
    return round_money(raw)


def remaining_balance(credit_amount: Decimal, total_paid: Decimal, total_interest: Decimal) -> Decimal:
    """Outstanding balance; may be negative after an overpayment"""
    return round_money(Decimal(credit_amount) + Decimal(total_interest) - Decimal(total_paid))


def derive_status(remaining: Decimal, credit_amount: Decimal) -> CreditStatus:
    """
    Status implied by the balance of a non-archived account.

    Paid once nothing is owed, Partially Paid while the balance is below the
    principal, Pending otherwise (including when interest has pushed the
    balance above the principal).
    """
    if remaining <= ZERO:
        return CreditStatus.PAID
    if remaining < Decimal(credit_amount):
        return CreditStatus.PARTIALLY_PAID
    return CreditStatus.PENDING


def restored_status(paid: Decimal, credit_amount: Decimal) -> CreditStatus:
    """Status an unarchived account returns to, from payments against the principal"""
    if paid >= Decimal(credit_amount):
        return CreditStatus.PAID
    if paid > ZERO:
        return CreditStatus.PARTIALLY_PAID
    return CreditStatus.PENDING


def is_month_elapsed(last_calculation: date, today: date) -> bool:
    """True once at least one calendar month has passed since last_calculation"""
    return add_months(last_calculation, 1) <= today


def overdue_days(due_date: Optional[date], today: date) -> Optional[int]:
    """Days past due; 0 if not yet due, None when there is no due date"""
    if due_date is None:
        return None
    return max(0, (today - due_date).days)
