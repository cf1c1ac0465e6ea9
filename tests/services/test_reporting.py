"""Tests for credit read views and their cache"""

from datetime import date
from decimal import Decimal

import pytest

from inventory_ledger.domain.exceptions import NotFoundOrUnauthorized
from inventory_ledger.domain.models import LineItemInput, NewCreditAccount
from inventory_ledger.infrastructure.database.models import Customer
from inventory_ledger.services.credit_service import CreditService
from inventory_ledger.services.reporting import UNKNOWN_PRODUCT

OWNER_ID = 1


def open_credit(credit_service, customer, product, items=5, **kwargs):
    return credit_service.create_credit(
        NewCreditAccount(
            customer_id=customer.id,
            user_id=OWNER_ID,
            products=[LineItemInput(product_id=product.id, number_of_items=items, price_per_unit=Decimal("100"), quantity_unit="bags")],
            interest_rate=Decimal("10"),
            **kwargs,
        )
    )


def test_account_view(reporting, credit_service, customer, product, db):
    created = open_credit(
        credit_service, customer, product, credit_date=date(2024, 3, 1), due_date=date(2024, 3, 10)
    )
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("120"))

    view = reporting.get_account_view(db, created.credit_id, OWNER_ID)

    assert view.customer_name == "Asha Traders"
    assert view.credit_amount == Decimal("500.00")
    assert view.paid_amount == Decimal("120.00")
    assert view.remaining_amount == Decimal("380.00")
    assert view.total_items == 5
    assert view.duration_days == 14
    assert view.overdue_days == 5
    assert view.products[0].product_name == "Rice 5kg"
    assert view.products[0].quantity_unit == "bags"
    assert view.products[0].total_price == Decimal("500.00")


def test_account_view_without_due_date(reporting, credit_service, customer, product, db):
    created = open_credit(credit_service, customer, product)

    view = reporting.get_account_view(db, created.credit_id, OWNER_ID)

    assert view.overdue_days is None
    assert view.paid_amount == Decimal("0")


def test_not_yet_due_is_zero_overdue(reporting, credit_service, customer, product, db):
    created = open_credit(credit_service, customer, product, due_date=date(2024, 4, 1))

    assert reporting.get_account_view(db, created.credit_id, OWNER_ID).overdue_days == 0


def test_missing_product_shows_placeholder_name(reporting, credit_service, customer, product, db):
    created = open_credit(credit_service, customer, product)
    db.delete(product)
    db.commit()

    view = reporting.get_account_view(db, created.credit_id, OWNER_ID)

    assert view.products[0].product_name == UNKNOWN_PRODUCT


def test_account_view_scoped_to_owner(reporting, credit_service, customer, product, db):
    created = open_credit(credit_service, customer, product)

    with pytest.raises(NotFoundOrUnauthorized):
        reporting.get_account_view(db, created.credit_id, 2)


def test_list_newest_first_with_customer_filter(reporting, credit_service, customer, product, db):
    other = Customer(user_id=OWNER_ID, customer_name="Bala Stores")
    db.add(other)
    db.commit()

    first = open_credit(credit_service, customer, product, items=2)
    credit_service.clock.advance(1)
    second = open_credit(credit_service, other, product, items=3)

    assert [v.credit_id for v in reporting.list_accounts(db, OWNER_ID)] == [second.credit_id, first.credit_id]
    assert [v.credit_id for v in reporting.list_accounts(db, OWNER_ID, customer_id=customer.id)] == [first.credit_id]


def test_payment_history_newest_first(reporting, credit_service, customer, product, db):
    created = open_credit(credit_service, customer, product)
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("10"), payment_date=date(2024, 3, 1))
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("20"), payment_date=date(2024, 3, 10))

    history = reporting.payment_history(db, created.credit_id, OWNER_ID)

    assert [p.payment_amount for p in history] == [Decimal("20.00"), Decimal("10.00")]


def test_interest_history_includes_payments_to_date(reporting, credit_service, interest_service, customer, product, db):
    created = open_credit(credit_service, customer, product)
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("100"), payment_date=date(2024, 3, 1))
    interest_service.accrue_for_days(created.credit_id, OWNER_ID, 30)
    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("50"), payment_date=date(2024, 3, 20))

    history = reporting.interest_history(db, created.credit_id, OWNER_ID)

    assert len(history.history) == 1
    assert history.history[0].payment_amount == Decimal("100.00")
    assert history.total_interest == Decimal("40.00")


def test_all_calculations_for_owner(reporting, credit_service, interest_service, customer, product, db):
    first = open_credit(credit_service, customer, product, items=2)
    second = open_credit(credit_service, customer, product, items=3)
    interest_service.accrue_for_days(first.credit_id, OWNER_ID, 30)
    interest_service.accrue_for_days(second.credit_id, OWNER_ID, 30)

    calculations = reporting.all_calculations(db, OWNER_ID)

    assert {c.credit_id for c in calculations} == {first.credit_id, second.credit_id}
    assert reporting.all_calculations(db, 2) == []


def test_views_are_cached_until_invalidated(reporting, credit_service, customer, product, db):
    created = open_credit(credit_service, customer, product)

    first = reporting.get_account_view(db, created.credit_id, OWNER_ID)
    assert reporting.get_account_view(db, created.credit_id, OWNER_ID) is first

    credit_service.record_payment(created.credit_id, OWNER_ID, Decimal("100"))

    refreshed = reporting.get_account_view(db, created.credit_id, OWNER_ID)
    assert refreshed is not first
    assert refreshed.paid_amount == Decimal("100.00")


def test_view_built_across_a_concurrent_payment_is_not_cached(
    reporting, credit_service, customer, product, database, clock, db, monkeypatch
):
    created = open_credit(credit_service, customer, product)
    build_view = reporting._build_view

    def build_then_pay_elsewhere(*args, **kwargs):
        view = build_view(*args, **kwargs)
        with database.session() as other:
            CreditService(other, reporting, clock=clock).record_payment(created.credit_id, OWNER_ID, Decimal("200"))
        return view

    monkeypatch.setattr(reporting, "_build_view", build_then_pay_elsewhere)
    assert reporting.get_account_view(db, created.credit_id, OWNER_ID).remaining_amount == Decimal("500.00")
    monkeypatch.undo()

    db.expire_all()
    assert reporting.get_account_view(db, created.credit_id, OWNER_ID).remaining_amount == Decimal("300.00")
