"""
Tests for the business day calculator.
2025-01-06 is a Monday.
"""
import pytest
from datetime import date, datetime, timezone

from services.business_days import (
    US_HOLIDAYS,
    add_business_days,
    business_days_between,
    is_business_day,
    is_older_than_business_days,
    subtract_business_days,
)

MONDAY = date(2025, 1, 6)
FRIDAY = date(2025, 1, 10)
SATURDAY = date(2025, 1, 11)


class TestIsBusinessDay:
    """Weekday and holiday checks."""

    def test_weekdays_are_business_days(self):
        """Monday through Friday count."""
        assert is_business_day(MONDAY) is True
        assert is_business_day(FRIDAY) is True

    def test_weekend_is_not_business_day(self):
        """Saturday and Sunday never count."""
        assert is_business_day(SATURDAY) is False
        assert is_business_day(date(2025, 1, 12)) is False

    def test_holiday_excluded_only_when_given(self):
        """A holiday is skipped only with a holiday set."""
        new_year = date(2025, 1, 1)
        assert is_business_day(new_year) is True
        assert is_business_day(new_year, US_HOLIDAYS) is False


class TestBusinessDaysBetween:
    """Start inclusive, end exclusive counting."""

    def test_full_week_is_five(self):
        """Monday to next Monday is 5 business days."""
        assert business_days_between(MONDAY, date(2025, 1, 13)) == 5

    def test_friday_to_monday_is_one(self):
        """The weekend in between does not count."""
        assert business_days_between(FRIDAY, date(2025, 1, 13)) == 1

    def test_same_day_is_zero(self):
        assert business_days_between(MONDAY, MONDAY) == 0

    def test_reversed_range_is_zero(self):
        """start after end gives 0."""
        assert business_days_between(FRIDAY, MONDAY) == 0

    def test_missing_bound_is_zero(self):
        assert business_days_between(None, MONDAY) == 0
        assert business_days_between(MONDAY, None) == 0

    def test_holidays_reduce_count(self):
        """New Year's Day is skipped when holidays apply."""
        start = date(2024, 12, 30)
        end = date(2025, 1, 6)
        assert business_days_between(start, end) == 5
        assert business_days_between(start, end, US_HOLIDAYS) == 4


class TestIsOlderThanBusinessDays:
    """Staleness checks with an injected today."""

    def test_missing_timestamp_is_not_stale(self):
        assert is_older_than_business_days(None, 2, today=FRIDAY) is False

    def test_three_business_days_exceeds_two(self):
        """Monday to Thursday is 3 business days, more than 2."""
        assert is_older_than_business_days(MONDAY, 2, today=date(2025, 1, 9)) is True

    def test_exactly_threshold_is_not_stale(self):
        """Monday to Wednesday is exactly 2, not more than 2."""
        assert is_older_than_business_days(MONDAY, 2, today=date(2025, 1, 8)) is False

    def test_weekend_does_not_age_a_case(self):
        """Updated Friday, checked Monday: only 1 business day."""
        assert is_older_than_business_days(FRIDAY, 2, today=date(2025, 1, 13)) is False

    def test_accepts_datetime_and_iso_string(self):
        """Timestamps can be datetimes or ISO strings."""
        updated = datetime(2025, 1, 6, 15, 30, tzinfo=timezone.utc)
        assert is_older_than_business_days(updated, 2, today=date(2025, 1, 9)) is True
        assert is_older_than_business_days("2025-01-06T15:30:00Z", 2, today=date(2025, 1, 9)) is True

    def test_threshold_is_honored(self):
        """A larger threshold keeps the same case fresh."""
        assert is_older_than_business_days(MONDAY, 5, today=date(2025, 1, 9)) is False


class TestAddSubtractBusinessDays:
    """Calendar moves that skip weekends."""

    def test_add_over_weekend(self):
        """Friday + 1 business day is Monday."""
        assert add_business_days(FRIDAY, 1) == date(2025, 1, 13)

    def test_subtract_over_weekend(self):
        """Monday - 1 business day is Friday."""
        assert subtract_business_days(date(2025, 1, 13), 1) == FRIDAY

    def test_add_skips_holiday(self):
        """Dec 31 2024 + 1 lands on Jan 2 when New Year's Day is a holiday."""
        assert add_business_days(date(2024, 12, 31), 1, US_HOLIDAYS) == date(2025, 1, 2)

    @pytest.mark.parametrize("days", [0, -3])
    def test_non_positive_days_returns_start(self, days):
        assert add_business_days(MONDAY, days) == MONDAY
        assert subtract_business_days(MONDAY, days) == MONDAY
