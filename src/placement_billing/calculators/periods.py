"""Civil-calendar month arithmetic.

All dates are calendar dates taken at UTC midnight. Nothing here consults the
local timezone, so day counts cannot drift across DST changes.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timezone


class InvalidPeriodError(Exception):
    """Raised when a (year, month) billing period is malformed."""

    def __init__(self, year: object, month: object, reason: str | None = None):
        self.year = year
        self.month = month
        self.reason = reason
        msg = f"Invalid billing period {year}/{month}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


@dataclass(frozen=True)
class MonthPeriod:
    """First day, last day and length of one calendar month."""

    year: int
    month: int
    start: date
    end: date
    days: int

    @classmethod
    def of(cls, year: int, month: int) -> MonthPeriod:
        start, end = month_bounds(year, month)
        return cls(year=year, month=month, start=start, end=end, days=end.day)

    @property
    def label(self) -> str:
        return f"{self.year}/{self.month:02d}"


def validate_period(year: object, month: object, min_year: int, max_year: int) -> None:
    """Reject a (year, month) pair outside the administrative range."""
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidPeriodError(year, month, "year must be an integer")
    if isinstance(month, bool) or not isinstance(month, int):
        raise InvalidPeriodError(year, month, "month must be an integer")
    if month < 1 or month > 12:
        raise InvalidPeriodError(year, month, "month must be between 1 and 12")
    if year < min_year or year > max_year:
        raise InvalidPeriodError(
            year, month, f"year must be between {min_year} and {max_year}"
        )


def days_in_month(year: int, month: int) -> int:
    """Number of days in the month (28-31)."""
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of the month."""
    if month < 1 or month > 12:
        raise InvalidPeriodError(year, month, "month must be between 1 and 12")
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def inclusive_day_count(start: date, end: date) -> int:
    """Days from start to end counting both endpoints; 0 if end precedes start."""
    if end < start:
        return 0
    return (end - start).days + 1


def months_between(start: date, target: date) -> int:
    """Whole calendar months from start's month to target's month.

    Day of month is ignored: 2022-01-31 to 2022-02-01 is one month.
    """
    return (target.year - start.year) * 12 + (target.month - start.month)


def as_utc_date(value: date | datetime) -> date:
    """Normalise a date or datetime to its UTC calendar date.

    Naive datetimes are taken to already be in UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value
