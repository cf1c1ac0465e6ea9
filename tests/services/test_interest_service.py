"""Service tests for the interest accrual engine"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from inventory_ledger.domain.exceptions import MissingFieldsError, NotFoundOrUnauthorized, ValidationError
from inventory_ledger.domain.models import (
    AccrualMode,
    AccrualResult,
    BatchResult,
    CreditStatus,
    DateRangeAccrual,
    InterestMethod,
    LineItemInput,
    NewCreditAccount,
)
from inventory_ledger.infrastructure.database.models import CreditAccount, InterestCalculation

OWNER_ID = 1


@pytest.fixture
def open_credit(credit_service, customer, product):
    """Open a 1000.00 account at 12% (10 items @ 100)"""

    def _open(credit_date=None, interest_rate="12", partial_payment=Decimal("0")):
        return credit_service.create_credit(
            NewCreditAccount(
                customer_id=customer.id,
                user_id=OWNER_ID,
                products=[LineItemInput(product_id=product.id, number_of_items=10, price_per_unit=Decimal("100"))],
                interest_rate=Decimal(interest_rate),
                partial_payment=partial_payment,
                credit_date=credit_date,
            )
        )

    return _open


def test_accrue_for_days_records_calculation(interest_service, open_credit, db, clock):
    created = open_credit()

    result = interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)

    assert result.interest_amount == Decimal("120.00")
    assert result.remaining_before == Decimal("1000.00")
    assert result.updated_balance == Decimal("1120.00")

    record = db.get(InterestCalculation, result.calculation_id)
    assert record.calculation_date == clock.today()
    assert record.remaining_balance == Decimal("1000.00")
    assert record.principal_amount == Decimal("1000.00")
    assert record.duration_days == 30
    assert record.month_name == "March"
    assert record.year == 2024
    assert record.method == InterestMethod.PRORATED_30.value

    account = db.get(CreditAccount, created.credit_id)
    db.refresh(account)
    assert account.total_interest_amount == Decimal("120.00")
    assert account.last_interest_calculation == clock.today()


def test_accrual_compounds_on_running_balance(interest_service, open_credit):
    created = open_credit()

    interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)
    second = interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)

    # 1120 x 12% for a month
    assert second.interest_amount == Decimal("134.40")
    assert second.updated_balance == Decimal("1254.40")


@pytest.mark.parametrize("days", [0, -5])
def test_days_must_be_positive(interest_service, open_credit, days):
    created = open_credit()

    with pytest.raises(ValidationError):
        interest_service.accrue_for_days(created.credit_id, OWNER_ID, days)


def test_days_are_required(interest_service, open_credit):
    created = open_credit()

    with pytest.raises(MissingFieldsError):
        interest_service.accrue_for_days(created.credit_id, OWNER_ID, None)


def test_no_accrual_on_archived_credit(interest_service, credit_service, open_credit):
    created = open_credit()
    credit_service.archive(created.credit_id, OWNER_ID)

    with pytest.raises(ValidationError):
        interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)


def test_no_accrual_without_outstanding_balance(interest_service, open_credit):
    created = open_credit(partial_payment=Decimal("1000"))

    with pytest.raises(ValidationError):
        interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)


def test_accrual_requires_owner(interest_service, open_credit):
    created = open_credit()

    with pytest.raises(NotFoundOrUnauthorized):
        interest_service.accrue_for_days(created.credit_id, 99, 30)


def test_date_range_full_year(interest_service, open_credit, clock, db):
    created = open_credit(credit_date=clock.today() - timedelta(days=365))

    result = interest_service.accrue_date_range(created.credit_id, OWNER_ID)

    assert result.start_date == date(2023, 3, 16)
    assert result.end_date == clock.today()
    assert result.duration_days == 365
    assert result.interest_amount == Decimal("120.00")
    assert result.outstanding == Decimal("1120.00")

    account = db.get(CreditAccount, created.credit_id)
    db.refresh(account)
    assert account.last_interest_calculation == clock.today()


def test_date_range_counts_days_from_credit_date(interest_service, open_credit, clock):
    """A later start date narrows the window but not the days charged"""
    created = open_credit(credit_date=clock.today() - timedelta(days=365))

    result = interest_service.accrue_date_range(
        created.credit_id, OWNER_ID, start_date=clock.today() - timedelta(days=30), end_date=clock.today()
    )

    assert result.start_date == date(2024, 2, 14)
    assert result.duration_days == 365
    assert result.interest_amount == Decimal("120.00")


def test_date_range_thirty_days(interest_service, open_credit, db):
    created = open_credit(credit_date=date(2024, 1, 1))

    result = interest_service.accrue_date_range(created.credit_id, OWNER_ID, end_date=date(2024, 1, 31))

    assert result.duration_days == 30
    assert result.interest_amount == Decimal("9.86")

    record = db.get(InterestCalculation, result.calculation_id)
    assert record.calculation_date == date(2024, 1, 31)
    assert record.method == InterestMethod.SIMPLE_365.value
    assert record.remaining_balance == Decimal("1009.86")


def test_date_range_counts_payments_up_to_end(interest_service, credit_service, open_credit):
    created = open_credit(credit_date=date(2024, 1, 1))
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("300"), payment_date=date(2024, 2, 1))
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("900"), payment_date=date(2024, 3, 10))

    result = interest_service.accrue_date_range(created.credit_id, OWNER_ID, end_date=date(2024, 2, 15))

    assert result.total_paid == Decimal("300.00")


def test_date_range_outstanding_display_is_clamped(interest_service, credit_service, open_credit):
    created = open_credit(credit_date=date(2024, 1, 1))
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("1500"), payment_date=date(2024, 1, 5))

    result = interest_service.accrue_date_range(created.credit_id, OWNER_ID, end_date=date(2024, 1, 31))

    assert result.outstanding < 0
    assert result.current_outstanding == Decimal("0")


def test_date_range_rejects_reversed_dates(interest_service, open_credit):
    created = open_credit(credit_date=date(2024, 1, 1))

    with pytest.raises(ValidationError):
        interest_service.accrue_date_range(
            created.credit_id, OWNER_ID, start_date=date(2024, 2, 1), end_date=date(2024, 1, 15)
        )


def test_date_range_rejects_end_before_credit_date(interest_service, open_credit):
    created = open_credit(credit_date=date(2024, 3, 1))

    with pytest.raises(ValidationError):
        interest_service.accrue_date_range(
            created.credit_id, OWNER_ID, start_date=date(2024, 1, 1), end_date=date(2024, 2, 1)
        )


def test_monthly_batch_skips_account_after_date_range(interest_service, open_credit, clock):
    created = open_credit()
    clock.advance(40)
    interest_service.accrue_date_range(created.credit_id, OWNER_ID)

    assert interest_service.run_monthly_batch().outcomes == []


def test_delete_calculation_recomputes_totals(interest_service, credit_service, open_credit, db):
    created = open_credit()
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("200"))
    first = interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)  # 800 -> 96.00
    second = interest_service.accrue_for_days(created.credit_id, OWNER_ID, 15)  # 896 -> 53.76

    account = db.get(CreditAccount, created.credit_id)
    db.refresh(account)
    total_before = Decimal(account.total_interest_amount)

    history = interest_service.delete_calculation(created.credit_id, OWNER_ID, first.calculation_id)

    db.refresh(account)
    assert Decimal(account.total_interest_amount) == total_before - first.interest_amount
    assert Decimal(account.remaining_amount) == Decimal("1000") - Decimal("200") + second.interest_amount
    assert [h.calculation_id for h in history.history] == [second.calculation_id]
    assert history.total_interest == second.interest_amount


def test_delete_last_calculation_resets_last_accrual_date(interest_service, open_credit, db):
    created = open_credit()
    only = interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)

    interest_service.delete_calculation(created.credit_id, OWNER_ID, only.calculation_id)

    account = db.get(CreditAccount, created.credit_id)
    db.refresh(account)
    assert account.last_interest_calculation is None
    assert Decimal(account.remaining_amount) == Decimal("1000.00")
    assert account.status == CreditStatus.PENDING.value


def test_delete_unknown_calculation(interest_service, open_credit):
    created = open_credit()

    with pytest.raises(NotFoundOrUnauthorized):
        interest_service.delete_calculation(created.credit_id, OWNER_ID, 12345)


def test_monthly_batch_accrues_once_per_month(interest_service, open_credit, clock):
    created = open_credit()

    first_run = interest_service.run_monthly_batch()
    assert first_run.outcomes == []  # Opened today

    clock.advance(31)  # 2024-04-15
    second_run = interest_service.run_monthly_batch()
    assert second_run.succeeded == 1
    outcome = second_run.outcomes[0]
    assert outcome.credit_id == created.credit_id
    assert outcome.days == 31
    assert outcome.interest_amount == Decimal("124.00")

    third_run = interest_service.run_monthly_batch()
    assert third_run.outcomes == []


def test_monthly_batch_skips_archived_and_paid(interest_service, credit_service, open_credit, clock):
    archived = open_credit()
    credit_service.archive(archived.credit_id, OWNER_ID)
    open_credit(partial_payment=Decimal("1000"))

    clock.advance(40)
    result = interest_service.run_monthly_batch()

    assert result.outcomes == []


def test_monthly_batch_scoped_to_owner(interest_service, open_credit, clock):
    open_credit()
    clock.advance(40)

    assert interest_service.run_monthly_batch(user_id=99).outcomes == []
    assert interest_service.run_monthly_batch(user_id=OWNER_ID).succeeded == 1


def test_accrue_dispatches_on_mode(interest_service, open_credit, clock):
    created = open_credit(credit_date=date(2024, 1, 1))

    assert isinstance(
        interest_service.accrue(AccrualMode.MANUAL_DAYS, credit_id=created.credit_id, user_id=OWNER_ID, days=5),
        AccrualResult,
    )
    assert isinstance(
        interest_service.accrue("date-range", credit_id=created.credit_id, user_id=OWNER_ID),
        DateRangeAccrual,
    )
    assert isinstance(interest_service.accrue(AccrualMode.MONTHLY_BATCH), BatchResult)


def test_accrue_rejects_unknown_mode(interest_service):
    with pytest.raises(ValidationError):
        interest_service.accrue("weekly", credit_id=1, user_id=OWNER_ID)


def test_accrue_requires_account_for_single_modes(interest_service):
    with pytest.raises(MissingFieldsError):
        interest_service.accrue(AccrualMode.MANUAL_DAYS, user_id=OWNER_ID, days=30)
