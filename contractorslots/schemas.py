"""
Input validation for availability payloads using Pydantic.

Schemas check shape and format. Semantic rules (non-overlapping intervals,
exception type/date consistency, known timezones) are enforced by the
domain models the schemas convert into.
"""

import datetime
from typing import Any, List, Literal, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .domain.exceptions import InvalidInputError
from .domain.models import (
    END_OF_DAY,
    MAX_REASON_LENGTH,
    TIME_PATTERN,
    AvailabilityException,
    Blockout,
    Booking,
    DayOfWeek,
    ExceptionType,
    ScheduleConfig,
    TimeInterval,
    WeeklyRule,
)
from .domain.timezones import ensure_valid_zone

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_payload(schema: Type[SchemaT], data: Any) -> SchemaT:
    """
    Validate a payload (mapping or schema instance) against a schema.

    Raises:
        InvalidInputError: With every field error in one message
    """
    if isinstance(data, schema):
        return data

    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidInputError(f"Invalid {schema.__name__}: {details}") from exc


def _check_time_format(value: str, allow_end_of_day: bool = False) -> str:
    if allow_end_of_day and value == END_OF_DAY:
        return value
    if not TIME_PATTERN.match(value):
        raise ValueError(f"Time must be in HH:mm format (e.g. 08:00), got {value!r}")
    return value


def _check_time_order(start_time: str, end_time: str) -> None:
    # zero-padded HH:mm strings sort chronologically
    if start_time >= end_time:
        raise ValueError("start_time must be before end_time")


class _Schema(BaseModel):
    model_config = ConfigDict(extra="forbid")


class TimeIntervalIn(_Schema):
    """Time interval in HH:mm format."""
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_format(cls, value: str, info: ValidationInfo) -> str:
        """Times must look like 08:00; an end time may also be 24:00."""
        return _check_time_format(value, allow_end_of_day=info.field_name == "end_time")

    @model_validator(mode="after")
    def validate_order(self) -> "TimeIntervalIn":
        """Ensure the interval opens before it closes."""
        _check_time_order(self.start_time, self.end_time)
        return self

    def to_interval(self) -> TimeInterval:
        return TimeInterval.parse(self.start_time, self.end_time)


class ScheduleSettings(_Schema):
    """Create or update a contractor's schedule configuration."""
    timezone: str = Field(min_length=1, max_length=64)
    slot_granularity_minutes: Literal[15, 30, 60] = 30

    def to_model(self) -> ScheduleConfig:
        return ScheduleConfig(
            timezone=ensure_valid_zone(self.timezone),
            granularity_minutes=self.slot_granularity_minutes,
        )


class WeeklyRuleCreate(_Schema):
    """Weekly rule for a single day."""
    day_of_week: DayOfWeek
    intervals: List[TimeIntervalIn] = Field(min_length=1)

    def to_model(self, contractor_profile_id: Optional[str] = None) -> WeeklyRule:
        return WeeklyRule(
            day_of_week=self.day_of_week,
            intervals=[interval.to_interval() for interval in self.intervals],
            contractor_profile_id=contractor_profile_id,
        )


class WeeklyRuleUpdate(_Schema):
    """Replacement intervals for an existing weekly rule."""
    intervals: List[TimeIntervalIn] = Field(min_length=1)


class ExceptionCreate(_Schema):
    """Date-specific override, either one-off or yearly."""
    type: ExceptionType
    date: Optional[datetime.date] = None
    recurring_month: Optional[int] = Field(default=None, ge=1, le=12)
    recurring_day: Optional[int] = Field(default=None, ge=1, le=31)
    is_full_day_closure: bool = False
    custom_intervals: List[TimeIntervalIn] = Field(default_factory=list)
    reason: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)

    def to_model(self, contractor_profile_id: Optional[str] = None) -> AvailabilityException:
        return AvailabilityException(
            type=self.type,
            is_full_day_closure=self.is_full_day_closure,
            custom_intervals=[interval.to_interval() for interval in self.custom_intervals],
            date=self.date,
            recurring_month=self.recurring_month,
            recurring_day=self.recurring_day,
            reason=self.reason,
            contractor_profile_id=contractor_profile_id,
        )


class ExceptionUpdate(_Schema):
    """
    Partial update of an exception.

    The type and its date fields cannot change; delete and recreate instead.
    """
    is_full_day_closure: Optional[bool] = None
    custom_intervals: Optional[List[TimeIntervalIn]] = None
    reason: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)

    @field_validator("is_full_day_closure", "custom_intervals")
    @classmethod
    def reject_null(cls, value):
        """Omit a field to keep it; only ``reason`` can be cleared with null."""
        if value is None:
            raise ValueError("must not be null")
        return value


class BlockoutCreate(_Schema):
    """Manual blockout on one date."""
    date: datetime.date
    start_time: str
    end_time: str
    reason: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_format(cls, value: str, info: ValidationInfo) -> str:
        return _check_time_format(value, allow_end_of_day=info.field_name == "end_time")

    @model_validator(mode="after")
    def validate_interval(self) -> "BlockoutCreate":
        _check_time_order(self.start_time, self.end_time)
        return self

    def to_model(self, contractor_profile_id: Optional[str] = None) -> Blockout:
        return Blockout(
            date=self.date,
            interval=TimeInterval.parse(self.start_time, self.end_time),
            reason=self.reason,
            contractor_profile_id=contractor_profile_id,
        )


class BookingIn(_Schema):
    """Confirmed booking as delivered by the booking subsystem."""
    date: datetime.date
    start_time: str
    end_time: str
    id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_format(cls, value: str, info: ValidationInfo) -> str:
        return _check_time_format(value, allow_end_of_day=info.field_name == "end_time")

    @model_validator(mode="after")
    def validate_interval(self) -> "BookingIn":
        _check_time_order(self.start_time, self.end_time)
        return self

    def to_model(self, contractor_profile_id: Optional[str] = None) -> Booking:
        return Booking(
            date=self.date,
            interval=TimeInterval.parse(self.start_time, self.end_time),
            id=self.id,
            contractor_profile_id=contractor_profile_id,
        )


class SlotQuery(_Schema):
    """Parameters of a slot generation request."""
    start_date: datetime.date
    end_date: datetime.date
    service_duration_minutes: Optional[PositiveInt] = None

    @model_validator(mode="after")
    def validate_order(self) -> "SlotQuery":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self
