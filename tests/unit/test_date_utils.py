"""Unit tests for date helpers and clocks"""

from datetime import date

from inventory_ledger.utils.date_utils import FixedClock, add_months, days_between, month_name


def test_add_months_same_day():
    assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)


def test_add_months_across_year():
    assert add_months(date(2023, 11, 30), 3) == date(2024, 2, 29)


def test_add_months_clamps_day():
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)


def test_days_between():
    assert days_between(date(2024, 1, 1), date(2024, 1, 31)) == 30
    assert days_between(date(2024, 1, 31), date(2024, 1, 1)) == -30


def test_month_name():
    assert month_name(date(2024, 3, 1)) == "March"


def test_fixed_clock_advance():
    clock = FixedClock(date(2024, 1, 30))
    clock.advance(3)

    assert clock.today() == date(2024, 2, 2)
    assert clock.now().date() == date(2024, 2, 2)
