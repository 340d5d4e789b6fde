"""Date arithmetic for billing cycles, recurring schedules and trends."""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Union

from dateutil.relativedelta import relativedelta

from household_ledger.models.base import ensure_utc
from household_ledger.models.ledger import Frequency


DateLike = Union[date, datetime]

PERIOD_STEPS = {
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
}


def as_date(value: DateLike) -> date:
    """Drop the time part of a datetime (the UTC day for aware values)."""
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_date(value), time.min, tzinfo=timezone.utc)


def end_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_date(value), time.max, tzinfo=timezone.utc)


def add_period(value: date, frequency: Frequency) -> date:
    """Advance one period; month-end days clamp (Jan 31 + 1 month = Feb 28/29)."""
    return value + PERIOD_STEPS[Frequency(frequency)]


def clamped_day(year: int, month: int, day: int) -> date:
    """The given day of a month, clamped to the month's last day."""
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def month_bounds(value: DateLike) -> tuple[datetime, datetime]:
    """First and last instant of the month containing `value`."""
    first = as_date(value).replace(day=1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    return start_of_day(first), end_of_day(last)


def week_start(value: DateLike) -> date:
    """Sunday on or before `value`."""
    d = as_date(value)
    return d - timedelta(days=(d.weekday() + 1) % 7)


def month_key(value: DateLike) -> str:
    return as_date(value).strftime("%Y-%m")


def window(start: DateLike, end: DateLike) -> tuple[datetime, datetime]:
    """Aware UTC bounds; plain dates cover whole days."""
    start_at = ensure_utc(start) if isinstance(start, datetime) else start_of_day(start)
    end_at = ensure_utc(end) if isinstance(end, datetime) else end_of_day(end)
    return start_at, end_at
