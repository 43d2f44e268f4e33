"""
Domain models for contractor availability and generated slots.

All times of day are local civil times of the contractor, written as
``HH:mm`` and stored as minutes since midnight. Intervals are half-open
``[start, end)`` and never cross midnight.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import pendulum
from pendulum import Date, DateTime

from .exceptions import (
    AvailabilityValidationError,
    InvalidTimeRangeError,
    OverlappingIntervalsError,
)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60
END_OF_DAY = "24:00"
ALLOWED_GRANULARITIES = (15, 30, 60)
DEFAULT_GRANULARITY_MINUTES = 30
MAX_REASON_LENGTH = 200


def parse_time(value: str, allow_end_of_day: bool = False) -> int:
    """
    Convert an ``HH:mm`` string to minutes since midnight.

    ``24:00`` is only accepted with ``allow_end_of_day``, for interval ends.
    """
    if allow_end_of_day and value == END_OF_DAY:
        return MINUTES_PER_DAY

    match = TIME_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise InvalidTimeRangeError(
            f"Time must be in HH:mm format (e.g. 08:00), got {value!r}"
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    """Convert minutes since midnight back to ``HH:mm``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def as_date(value: Union[str, date]) -> Date:
    """
    Normalise a ``YYYY-MM-DD`` string or any date object to a pendulum Date.

    Raises:
        AvailabilityValidationError: If the value is not a calendar date
    """
    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except (TypeError, ValueError) as exc:
        raise AvailabilityValidationError(
            f"Date must be in YYYY-MM-DD format, got {value!r}"
        ) from exc


class DayOfWeek(str, Enum):
    """Days of the week, ordered Monday first like ``date.weekday()``."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class ExceptionType(str, Enum):
    """Kinds of date-specific overrides."""
    ONE_OFF = "ONE_OFF"
    RECURRING = "RECURRING"


@dataclass(frozen=True, order=True)
class TimeInterval:
    """
    Represents an immutable same-day time interval ``[start, end)``.

    Invariant: start must be before end.
    """
    start_minutes: int
    end_minutes: int

    def __post_init__(self):
        if not 0 <= self.start_minutes < self.end_minutes <= MINUTES_PER_DAY:
            raise InvalidTimeRangeError(
                f"Start time {format_time(self.start_minutes)} must be before "
                f"end time {format_time(self.end_minutes)}"
            )

    @classmethod
    def parse(cls, start_time: str, end_time: str) -> "TimeInterval":
        """Build an interval from two ``HH:mm`` strings."""
        return cls(parse_time(start_time), parse_time(end_time, allow_end_of_day=True))

    @property
    def start_time(self) -> str:
        return format_time(self.start_minutes)

    @property
    def end_time(self) -> str:
        return format_time(self.end_minutes)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another (touching is not overlap)."""
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def contains(self, other: "TimeInterval") -> bool:
        """Check if another interval lies completely inside this one."""
        return self.start_minutes <= other.start_minutes and other.end_minutes <= self.end_minutes

    def intersect(self, other: "TimeInterval") -> "TimeInterval | None":
        """
        Calculate the intersection of two intervals.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeInterval(
            max(self.start_minutes, other.start_minutes),
            min(self.end_minutes, other.end_minutes),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"start_time": self.start_time, "end_time": self.end_time}

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


def ensure_disjoint(intervals: Sequence[TimeInterval], context: str) -> None:
    """Raise if any two intervals of the same day overlap."""
    ordered = sorted(intervals)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.overlaps(current):
            raise OverlappingIntervalsError(
                f"Intervals {previous} and {current} of {context} must not overlap"
            )


@dataclass
class WeeklyRule:
    """Recurring availability for one day of the week."""
    day_of_week: DayOfWeek
    intervals: List[TimeInterval]
    id: Optional[str] = None
    contractor_profile_id: Optional[str] = None

    def __post_init__(self):
        self.day_of_week = DayOfWeek(self.day_of_week)
        if not self.intervals:
            raise AvailabilityValidationError(
                f"Weekly rule for {self.day_of_week.value} needs at least one interval"
            )
        self.intervals = sorted(self.intervals)
        ensure_disjoint(self.intervals, f"weekly rule {self.day_of_week.value}")


@dataclass
class AvailabilityException:
    """
    Date-specific override of the weekly rule.

    ``ONE_OFF`` exceptions carry a ``date``; ``RECURRING`` ones carry a
    month and day that repeat every year. When the exception is not a
    full-day closure its ``custom_intervals`` replace the weekly intervals.
    """
    type: ExceptionType
    is_full_day_closure: bool
    custom_intervals: List[TimeInterval] = field(default_factory=list)
    date: Optional[Date] = None
    recurring_month: Optional[int] = None
    recurring_day: Optional[int] = None
    reason: Optional[str] = None
    id: Optional[str] = None
    contractor_profile_id: Optional[str] = None

    def __post_init__(self):
        self.type = ExceptionType(self.type)

        if self.type is ExceptionType.ONE_OFF:
            if self.date is None or self.recurring_month is not None or self.recurring_day is not None:
                raise AvailabilityValidationError(
                    "ONE_OFF exceptions need a date and no recurring month/day"
                )
            self.date = as_date(self.date)
        else:
            if self.date is not None or self.recurring_month is None or self.recurring_day is None:
                raise AvailabilityValidationError(
                    "RECURRING exceptions need a recurring month and day and no date"
                )
            _validate_month_day(self.recurring_month, self.recurring_day)

        if self.is_full_day_closure:
            if self.custom_intervals:
                raise AvailabilityValidationError(
                    "Full-day closures cannot define custom intervals"
                )
        else:
            if not self.custom_intervals:
                raise AvailabilityValidationError(
                    "Exceptions that are not full-day closures need custom intervals"
                )
            self.custom_intervals = sorted(self.custom_intervals)
            ensure_disjoint(self.custom_intervals, "exception")

        if self.reason is not None and len(self.reason) > MAX_REASON_LENGTH:
            raise AvailabilityValidationError(
                f"Reason must be at most {MAX_REASON_LENGTH} characters"
            )

    def describe_date(self) -> str:
        """Human readable date or yearly pattern."""
        if self.type is ExceptionType.ONE_OFF:
            return self.date.to_date_string()
        return f"every {self.recurring_month:02d}-{self.recurring_day:02d}"


def _validate_month_day(month: int, day: int) -> None:
    # 2000 is a leap year so Feb 29 is accepted
    try:
        pendulum.date(2000, month, day)
    except (TypeError, ValueError) as exc:
        raise AvailabilityValidationError(
            f"Invalid recurring month/day: {month}/{day}"
        ) from exc


@dataclass
class Blockout:
    """Manual unavailability carved out of an otherwise open day."""
    date: Date
    interval: TimeInterval
    reason: Optional[str] = None
    id: Optional[str] = None
    contractor_profile_id: Optional[str] = None

    def __post_init__(self):
        self.date = as_date(self.date)
        if self.reason is not None and len(self.reason) > MAX_REASON_LENGTH:
            raise AvailabilityValidationError(
                f"Reason must be at most {MAX_REASON_LENGTH} characters"
            )


@dataclass
class Booking:
    """Confirmed reservation owned by the booking subsystem (read only here)."""
    date: Date
    interval: TimeInterval
    id: Optional[str] = None
    contractor_profile_id: Optional[str] = None

    def __post_init__(self):
        self.date = as_date(self.date)


@dataclass
class ScheduleConfig:
    """Timezone and slot granularity of a contractor."""
    timezone: str
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES

    def __post_init__(self):
        if self.granularity_minutes not in ALLOWED_GRANULARITIES:
            raise AvailabilityValidationError(
                f"Granularity must be one of {ALLOWED_GRANULARITIES}, "
                f"got {self.granularity_minutes}"
            )


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""
    start_date: Date
    end_date: Date

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise AvailabilityValidationError(
                f"End date {self.end_date} must not be before start date {self.start_date}"
            )

    def length_in_days(self) -> int:
        """Number of days between start and end (0 for a single day)."""
        return self.start_date.diff(self.end_date).in_days()

    def days(self) -> Iterator[Date]:
        current = self.start_date
        while current <= self.end_date:
            yield current
            current = current.add(days=1)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class AvailabilitySnapshot:
    """Everything one slot generation call reads, fetched up front."""
    weekly_rules: List[WeeklyRule] = field(default_factory=list)
    exceptions: List[AvailabilityException] = field(default_factory=list)
    blockouts: List[Blockout] = field(default_factory=list)
    bookings: List[Booking] = field(default_factory=list)


@dataclass(frozen=True)
class AvailableSlot:
    """
    Represents a bookable slot in both local and UTC time.
    """
    date: Date
    start_time: str
    end_time: str
    start_time_utc: DateTime
    end_time_utc: DateTime
    duration_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.to_date_string(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "start_time_utc": self.start_time_utc.to_iso8601_string(),
            "end_time_utc": self.end_time_utc.to_iso8601_string(),
            "duration_minutes": self.duration_minutes,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:mm - HH:mm (N min)
        """
        weekday = self.date.format("dddd")
        return (
            f"{weekday}, {self.date.to_date_string()} | "
            f"{self.start_time} - {self.end_time} ({self.duration_minutes} min)"
        )


@dataclass
class SlotGenerationResult:
    """Slots for one request plus the context needed to interpret them."""
    slots: List[AvailableSlot]
    timezone: str
    generated_at: DateTime
    total: int = field(init=False)

    def __post_init__(self):
        self.total = len(self.slots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slots": [slot.to_dict() for slot in self.slots],
            "timezone": self.timezone,
            "total": self.total,
            "generated_at": self.generated_at.to_iso8601_string(),
        }
