"""Tests for civil-calendar month arithmetic."""

from datetime import date, datetime, timedelta, timezone

import pytest

from placement_billing.calculators.periods import (
    InvalidPeriodError,
    MonthPeriod,
    as_utc_date,
    days_in_month,
    inclusive_day_count,
    month_bounds,
    months_between,
    validate_period,
)


class TestMonthBounds:
    """Test first/last day and month length."""

    @pytest.mark.parametrize(
        "year, month, expected_end, expected_days",
        [
            (2024, 1, date(2024, 1, 31), 31),
            (2024, 2, date(2024, 2, 29), 29),  # leap year
            (2023, 2, date(2023, 2, 28), 28),
            (2100, 2, date(2100, 2, 28), 28),  # century, not leap
            (2024, 4, date(2024, 4, 30), 30),
            (2024, 12, date(2024, 12, 31), 31),
        ],
    )
    def test_month_bounds(self, year, month, expected_end, expected_days):
        start, end = month_bounds(year, month)
        assert start == date(year, month, 1)
        assert end == expected_end
        assert days_in_month(year, month) == expected_days

    def test_month_period(self):
        period = MonthPeriod.of(2024, 5)
        assert period.start == date(2024, 5, 1)
        assert period.end == date(2024, 5, 31)
        assert period.days == 31
        assert period.label == "2024/05"

    def test_month_bounds_rejects_bad_month(self):
        with pytest.raises(InvalidPeriodError):
            month_bounds(2024, 13)


class TestDayCounts:
    """Test inclusive day counting."""

    def test_same_day_counts_once(self):
        assert inclusive_day_count(date(2024, 5, 15), date(2024, 5, 15)) == 1

    def test_inclusive_of_both_endpoints(self):
        assert inclusive_day_count(date(2024, 5, 15), date(2024, 5, 31)) == 17

    def test_end_before_start_is_zero(self):
        assert inclusive_day_count(date(2024, 5, 2), date(2024, 5, 1)) == 0

    def test_across_dst_change(self):
        """March 2024 contains the US/EU DST switch; the count is still 31."""
        assert inclusive_day_count(date(2024, 3, 1), date(2024, 3, 31)) == 31


class TestMonthsBetween:
    """Test whole calendar month differences."""

    def test_same_month(self):
        assert months_between(date(2024, 5, 15), date(2024, 5, 1)) == 0

    def test_day_of_month_ignored(self):
        assert months_between(date(2022, 1, 31), date(2022, 2, 1)) == 1

    def test_across_years(self):
        assert months_between(date(2022, 1, 1), date(2023, 6, 1)) == 17

    def test_negative_when_target_earlier(self):
        assert months_between(date(2024, 6, 1), date(2024, 5, 1)) == -1


class TestUtcDates:
    """Test UTC normalisation."""

    def test_plain_date_unchanged(self):
        assert as_utc_date(date(2024, 5, 1)) == date(2024, 5, 1)

    def test_naive_datetime_taken_as_utc(self):
        assert as_utc_date(datetime(2024, 5, 31, 23, 30)) == date(2024, 5, 31)

    def test_aware_datetime_converted(self):
        taipei = timezone(timedelta(hours=8))
        # 2024-06-01 07:00 in UTC+8 is still 2024-05-31 in UTC
        assert as_utc_date(datetime(2024, 6, 1, 7, 0, tzinfo=taipei)) == date(2024, 5, 31)


class TestValidatePeriod:
    """Test administrative range validation."""

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_month_out_of_range(self, month):
        with pytest.raises(InvalidPeriodError) as exc_info:
            validate_period(2024, month, 2000, 2100)
        assert exc_info.value.month == month

    @pytest.mark.parametrize("year", [1999, 2101])
    def test_year_out_of_range(self, year):
        with pytest.raises(InvalidPeriodError):
            validate_period(year, 5, 2000, 2100)

    @pytest.mark.parametrize("year, month", [("2024", 5), (2024, 5.0), (True, 5)])
    def test_non_integers_rejected(self, year, month):
        with pytest.raises(InvalidPeriodError):
            validate_period(year, month, 2000, 2100)

    def test_boundaries_accepted(self):
        validate_period(2000, 1, 2000, 2100)
        validate_period(2100, 12, 2000, 2100)
