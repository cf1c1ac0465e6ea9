"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone


class SystemClock:
    """Wall clock used by services and the scheduler"""

    def today(self) -> date:
        return date.today()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a given day; advance() moves it forward"""

    def __init__(self, today: date):
        self._today = today

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return datetime(self._today.year, self._today.month, self._today.day, 12, 0, tzinfo=timezone.utc)

    def advance(self, days: int) -> None:
        self._today = date.fromordinal(self._today.toordinal() + days)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end precedes start)"""
    return (end - start).days


def add_months(from_date: date, months: int) -> date:
    """Same day-of-month `months` later, clamped to the month's last day"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_name(value: date) -> str:
    return calendar.month_name[value.month]
