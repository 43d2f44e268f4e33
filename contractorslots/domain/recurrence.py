"""
Day-of-week lookup and matching of dated / yearly exceptions.
"""

from datetime import date
from typing import Iterable, Optional

from .models import AvailabilityException, DayOfWeek, ExceptionType

_WEEKDAYS = list(DayOfWeek)


def day_of_week_of(day: date) -> DayOfWeek:
    """Return the day of week of a calendar date (no timezone involved)."""
    return _WEEKDAYS[day.weekday()]


def matches_recurring_exception(day: date, exception: AvailabilityException) -> bool:
    """
    Check if a date matches a recurring exception's month and day, any year.

    A Feb 29 exception only matches in leap years.
    """
    if exception.type is not ExceptionType.RECURRING:
        return False
    return day.month == exception.recurring_month and day.day == exception.recurring_day


def matches_exception(day: date, exception: AvailabilityException) -> bool:
    """Check if an exception of either type applies to a date."""
    if exception.type is ExceptionType.ONE_OFF:
        return exception.date == day
    return matches_recurring_exception(day, exception)


def select_exception(
    day: date,
    exceptions: Iterable[AvailabilityException]
) -> Optional[AvailabilityException]:
    """
    Pick the single exception that applies to a date.

    A ONE_OFF exception dated that day wins over any RECURRING match.
    Within one type the first exception in input order wins.
    """
    recurring_match: Optional[AvailabilityException] = None

    for exception in exceptions:
        if exception.type is ExceptionType.ONE_OFF:
            if exception.date == day:
                return exception
        elif recurring_match is None and matches_recurring_exception(day, exception):
            recurring_match = exception

    return recurring_match
