"""
Conversion between a contractor's local civil time and absolute UTC instants.

DST policy:
- A local time inside a spring-forward gap does not exist. It is shifted
  forward by the size of the gap (02:30 in a 02:00 -> 03:00 gap becomes
  03:30 on the new offset).
- A local time inside a fall-back overlap exists twice. The earlier
  instant, on the offset in effect before the transition, is used.
"""

from datetime import date, datetime
from typing import NamedTuple, Union

import pendulum
from pendulum import Date, DateTime
from pendulum.tz.exceptions import AmbiguousTime, InvalidTimezone, NonExistingTime

from .exceptions import InvalidTimezoneError
from .models import MINUTES_PER_DAY, as_date, format_time, parse_time

TimeOfDay = Union[str, int]


class LocalDateTime(NamedTuple):
    """A calendar date and ``HH:mm`` time in some timezone."""
    date: Date
    time: str


def is_valid_iana_zone(zone: str) -> bool:
    """Check a timezone name against pendulum's timezone database."""
    if not isinstance(zone, str) or not zone.strip():
        return False

    try:
        pendulum.timezone(zone)
    except (InvalidTimezone, ValueError, KeyError, OSError):
        return False

    return True


def ensure_valid_zone(zone: str) -> str:
    """Return the zone unchanged or raise InvalidTimezoneError."""
    if not is_valid_iana_zone(zone):
        raise InvalidTimezoneError(f"Unknown IANA timezone: {zone!r}")
    return zone


def _minutes(time_of_day: TimeOfDay) -> int:
    return time_of_day if isinstance(time_of_day, int) else parse_time(time_of_day, allow_end_of_day=True)


def _create_local(day: Date, minutes: int, zone: str, **kwargs) -> DateTime:
    # 24:00 closes a day and is the next midnight
    if minutes >= MINUTES_PER_DAY:
        day = day.add(days=minutes // MINUTES_PER_DAY)
        minutes %= MINUTES_PER_DAY
    return pendulum.datetime(
        day.year, day.month, day.day,
        minutes // 60, minutes % 60,
        tz=zone,
        **kwargs,
    )


def local_to_utc(day: Union[str, date], time_of_day: TimeOfDay, zone: str) -> DateTime:
    """
    Resolve a local date and time in ``zone`` to a UTC instant.

    Args:
        day: Calendar date (``YYYY-MM-DD`` or a date object)
        time_of_day: ``HH:mm`` string or minutes since midnight
        zone: IANA timezone identifier

    Returns:
        Pendulum DateTime in UTC
    """
    day = as_date(day)
    minutes = _minutes(time_of_day)
    ensure_valid_zone(zone)

    try:
        local = _create_local(day, minutes, zone, raise_on_unknown_times=True)
    except NonExistingTime:
        local = _create_local(day, minutes, zone, fold=1)
    except AmbiguousTime:
        local = _create_local(day, minutes, zone, fold=0)

    return local.in_timezone("UTC")


def utc_to_local(instant: datetime, zone: str) -> LocalDateTime:
    """
    Express an absolute instant as local date and ``HH:mm`` time in ``zone``.

    Naive datetimes are read as UTC.
    """
    ensure_valid_zone(zone)
    local = pendulum.instance(instant, tz="UTC").in_timezone(zone)
    return LocalDateTime(date=local.date(), time=format_time(local.hour * 60 + local.minute))


def is_nonexistent_local_time(day: Union[str, date], time_of_day: TimeOfDay, zone: str) -> bool:
    """Check whether a local time falls into a spring-forward gap."""
    day = as_date(day)
    ensure_valid_zone(zone)

    try:
        _create_local(day, _minutes(time_of_day), zone, raise_on_unknown_times=True)
    except NonExistingTime:
        return True
    except AmbiguousTime:
        return False

    return False


def offset_hours_for(zone: str, day: Union[str, date]) -> float:
    """
    Signed UTC offset in hours in effect at local noon of ``day``.

    Display only; slot math always goes through ``local_to_utc``.
    """
    day = as_date(day)
    ensure_valid_zone(zone)
    return _create_local(day, 12 * 60, zone).offset_hours
