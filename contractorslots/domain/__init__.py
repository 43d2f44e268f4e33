"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    AvailabilityException,
    AvailabilitySnapshot,
    AvailableSlot,
    Blockout,
    Booking,
    DateRange,
    DayOfWeek,
    ExceptionType,
    ScheduleConfig,
    SlotGenerationResult,
    TimeInterval,
    WeeklyRule,
)
from .slot_generator import SlotGenerator

__all__ = [
    "AvailabilityException",
    "AvailabilitySnapshot",
    "AvailableSlot",
    "Blockout",
    "Booking",
    "DateRange",
    "DayOfWeek",
    "ExceptionType",
    "ScheduleConfig",
    "SlotGenerationResult",
    "SlotGenerator",
    "TimeInterval",
    "WeeklyRule",
]
