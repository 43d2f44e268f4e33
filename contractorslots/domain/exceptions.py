"""
Domain-specific exception hierarchy for contractor availability.
"""

from __future__ import annotations

from typing import Sequence


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class AvailabilityValidationError(AvailabilityError, ValueError):
    """Raised when input data is malformed. Nothing is fetched or written."""


class InvalidTimeRangeError(AvailabilityValidationError):
    """Raised when an interval is empty, inverted or not in HH:mm format."""


class OverlappingIntervalsError(AvailabilityValidationError):
    """Raised when intervals of the same day overlap."""


class InvalidTimezoneError(AvailabilityValidationError):
    """Raised when a timezone name is not in the IANA database."""


class DateRangeTooLargeError(AvailabilityValidationError):
    """Raised when a slot request spans more days than allowed."""


class DuplicateWeeklyRuleError(AvailabilityValidationError):
    """Raised when a contractor already has a rule for that day of week."""


class InvalidInputError(AvailabilityValidationError):
    """Raised when a request payload fails schema validation."""


class OwnershipError(AvailabilityError):
    """Raised when the caller does not own the contractor profile."""


class BookingConflictError(AvailabilityError):
    """Raised when a blockout would cover a confirmed booking."""

    def __init__(self, message: str, bookings: Sequence[object] = ()) -> None:
        super().__init__(message)
        self.bookings = list(bookings)


class NotFoundError(AvailabilityError):
    """Raised when a referenced record does not exist."""


class ContractorNotFoundError(NotFoundError):
    """Raised when the contractor profile does not exist."""


class WeeklyRuleNotFoundError(NotFoundError):
    """Raised when a weekly rule id is unknown."""


class ExceptionNotFoundError(NotFoundError):
    """Raised when an availability exception id is unknown."""


class BlockoutNotFoundError(NotFoundError):
    """Raised when a blockout id is unknown."""


class ScheduleNotConfiguredError(AvailabilityError):
    """Raised when a contractor has no timezone/granularity configured."""


class DataSourceError(AvailabilityError):
    """Raised when availability data cannot be fetched."""
