"""
Withdrawal Support - Business Day Calculator

Counts elapsed business days (Monday-Friday) between two dates. The default
calendar only skips weekends; a fixed US holiday set can be excluded as well,
either explicitly per call or globally with EXCLUDE_US_HOLIDAYS.

Pure functions, no I/O. "today" is injectable so staleness checks are testable.
"""

import logging
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, Optional, Union

from services.withdrawal_config import EXCLUDE_US_HOLIDAYS

logger = logging.getLogger(__name__)

# Fixed-date US holidays observed by the operations team
US_HOLIDAYS: FrozenSet[date] = frozenset({
    date(2025, 1, 1),    # New Year's Day
    date(2025, 7, 4),    # Independence Day
    date(2025, 12, 25),  # Christmas
    date(2026, 1, 1),
    date(2026, 7, 4),
    date(2026, 12, 25),
})

NO_HOLIDAYS: FrozenSet[date] = frozenset()

DateLike = Union[date, datetime, str]


def default_holidays() -> FrozenSet[date]:
    """Holiday calendar selected by configuration."""
    return US_HOLIDAYS if EXCLUDE_US_HOLIDAYS else NO_HOLIDAYS


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()


def is_business_day(day: date, holidays: Optional[Iterable[date]] = None) -> bool:
    """True for Monday-Friday dates that are not in the holiday set."""
    if day.weekday() >= 5:
        return False
    if holidays and day in holidays:
        return False
    return True


def business_days_between(
    start: Optional[date],
    end: Optional[date],
    holidays: Optional[Iterable[date]] = None,
) -> int:
    """
    Count business days from start (inclusive) to end (exclusive).

    Returns 0 when either bound is missing or start >= end.
    """
    if start is None or end is None:
        return 0
    if start >= end:
        return 0

    holiday_set = frozenset(holidays) if holidays else NO_HOLIDAYS
    count = 0
    current = start
    while current < end:
        if is_business_day(current, holiday_set):
            count += 1
        current += timedelta(days=1)
    return count


def is_older_than_business_days(
    timestamp: Optional[DateLike],
    threshold_days: int,
    today: Optional[date] = None,
    holidays: Optional[Iterable[date]] = None,
) -> bool:
    """
    True iff more than threshold_days business days have elapsed since timestamp.

    A missing timestamp is never stale.
    """
    if timestamp is None:
        return False

    target = _to_date(timestamp)
    reference = today or date.today()
    if holidays is None:
        holidays = default_holidays()

    elapsed = business_days_between(target, reference, holidays)
    logger.debug(
        "Business days since %s (today %s): %d, threshold: %d",
        target, reference, elapsed, threshold_days
    )
    return elapsed > threshold_days


def add_business_days(start: Optional[date], days: int, holidays: Optional[Iterable[date]] = None) -> Optional[date]:
    """Move forward by the given number of business days."""
    if start is None or days <= 0:
        return start

    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if is_business_day(current, holidays):
            added += 1
    return current


def subtract_business_days(start: Optional[date], days: int, holidays: Optional[Iterable[date]] = None) -> Optional[date]:
    """Move backward by the given number of business days."""
    if start is None or days <= 0:
        return start

    current = start
    removed = 0
    while removed < days:
        current -= timedelta(days=1)
        if is_business_day(current, holidays):
            removed += 1
    return current
