"""
Application service for contractor availability.

The service validates requests, checks ownership of the contractor profile
for every mutation, fetches availability data through injected
collaborators and delegates the actual slot calculation to the
domain-level ``SlotGenerator``. Collaborators are plain protocols so the
persistence layer can be swapped or stubbed in tests.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import date
from typing import (
    Any,
    AsyncContextManager,
    Awaitable,
    Callable,
    List,
    Optional,
    Protocol,
    TypeVar,
    Union,
)

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    AvailabilityError,
    AvailabilityValidationError,
    BlockoutNotFoundError,
    BookingConflictError,
    ContractorNotFoundError,
    DataSourceError,
    DateRangeTooLargeError,
    DuplicateWeeklyRuleError,
    ExceptionNotFoundError,
    OwnershipError,
    ScheduleNotConfiguredError,
    WeeklyRuleNotFoundError,
)
from ..domain.models import (
    AvailabilityException,
    AvailabilitySnapshot,
    Blockout,
    Booking,
    DateRange,
    DayOfWeek,
    ScheduleConfig,
    SlotGenerationResult,
    TimeInterval,
    WeeklyRule,
    as_date,
)
from ..domain.slot_generator import SlotGenerator
from ..schemas import (
    BlockoutCreate,
    ExceptionCreate,
    ExceptionUpdate,
    ScheduleSettings,
    SlotQuery,
    WeeklyRuleCreate,
    WeeklyRuleUpdate,
    validate_payload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RANGE_DAYS = 8 * 7
_DAY_ORDER = list(DayOfWeek)


class AvailabilityDataSource(Protocol):
    """Read access the slot generation needs. All reads are independent."""

    async def get_weekly_rules(self, contractor_profile_id: str) -> List[WeeklyRule]:
        """Return the contractor's weekly rules."""

    async def get_exceptions(
        self, contractor_profile_id: str, date_range: DateRange
    ) -> List[AvailabilityException]:
        """Return exceptions that can apply inside the range."""

    async def get_blockouts(
        self, contractor_profile_id: str, date_range: DateRange
    ) -> List[Blockout]:
        """Return blockouts dated inside the range."""

    async def get_confirmed_bookings(
        self, contractor_profile_id: str, date_range: DateRange
    ) -> List[Booking]:
        """Return confirmed bookings dated inside the range."""

    async def get_contractor_timezone_and_granularity(
        self, contractor_profile_id: str
    ) -> Optional[ScheduleConfig]:
        """
        Return the schedule configuration, or None if none is stored.

        Raises ContractorNotFoundError for unknown contractors.
        """


class AvailabilityRepository(Protocol):
    """Write access and record lookups for availability data."""

    async def get_contractor_owner_id(self, contractor_profile_id: str) -> Optional[str]:
        """Return the user id owning the profile, or None if it does not exist."""

    async def save_schedule_config(
        self, contractor_profile_id: str, config: ScheduleConfig
    ) -> ScheduleConfig: ...

    async def add_weekly_rule(self, rule: WeeklyRule) -> WeeklyRule: ...

    async def get_weekly_rule(self, rule_id: str) -> Optional[WeeklyRule]: ...

    async def replace_weekly_rule(self, rule: WeeklyRule) -> WeeklyRule: ...

    async def delete_weekly_rule(self, rule_id: str) -> None: ...

    async def add_exception(self, exception: AvailabilityException) -> AvailabilityException: ...

    async def get_exception(self, exception_id: str) -> Optional[AvailabilityException]: ...

    async def replace_exception(self, exception: AvailabilityException) -> AvailabilityException: ...

    async def delete_exception(self, exception_id: str) -> None: ...

    async def add_blockout(self, blockout: Blockout) -> Blockout: ...

    async def get_blockout(self, blockout_id: str) -> Optional[Blockout]: ...

    async def delete_blockout(self, blockout_id: str) -> None: ...

    def contractor_lock(self, contractor_profile_id: str) -> AsyncContextManager[None]:
        """Serialise writes for one contractor until the block exits."""


@dataclasses.dataclass(frozen=True)
class AvailabilitySettings:
    """Tunable limits of the availability service."""
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS


class AvailabilityService:
    """
    Orchestrates validation, ownership checks, data retrieval and slot generation.

    Reads are public. Every mutation takes the caller's user id and fails
    with ``OwnershipError`` before touching data when the caller does not
    own the contractor profile.
    """

    def __init__(
        self,
        data_source: AvailabilityDataSource,
        repository: AvailabilityRepository,
        settings: Optional[AvailabilitySettings] = None,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._data_source = data_source
        self._repository = repository
        self._settings = settings or AvailabilitySettings()
        self._clock = clock or (lambda: pendulum.now("UTC"))

    # ========== Slot generation ==========

    async def generate_slots(
        self,
        contractor_profile_id: str,
        start_date: Union[str, date],
        end_date: Union[str, date],
        service_duration_minutes: Optional[int] = None,
    ) -> SlotGenerationResult:
        """
        Validate the request, load availability data and compute slots.

        Raises:
            AvailabilityValidationError: Bad dates, duration or a range over the cap
            ContractorNotFoundError: Unknown contractor
            ScheduleNotConfiguredError: Contractor has no timezone/granularity
            DataSourceError: Any data fetch failed; no partial result is returned
        """
        query = validate_payload(
            SlotQuery,
            {
                "start_date": start_date,
                "end_date": end_date,
                "service_duration_minutes": service_duration_minutes,
            },
        )
        date_range = DateRange(as_date(query.start_date), as_date(query.end_date))
        self._ensure_range_within_cap(date_range)

        config = await self._load_schedule_config(contractor_profile_id)
        snapshot = await self._load_snapshot(contractor_profile_id, date_range)

        generator = SlotGenerator(config.timezone, config.granularity_minutes)
        slots = generator.generate_slots(
            date_range.start_date,
            date_range.end_date,
            snapshot,
            service_duration_minutes=query.service_duration_minutes,
        )

        logger.info(
            "Generated %d slots for contractor %s (%s to %s)",
            len(slots), contractor_profile_id, date_range.start_date, date_range.end_date,
        )
        return SlotGenerationResult(
            slots=slots,
            timezone=config.timezone,
            generated_at=self._clock(),
        )

    async def is_available(
        self,
        contractor_profile_id: str,
        day: Union[str, date],
        start_time: str,
        end_time: str,
    ) -> bool:
        """
        Check whether the contractor is free for the whole local interval.

        Used by booking flows to validate a requested reservation.
        """
        day = as_date(day)
        requested = TimeInterval.parse(start_time, end_time)
        date_range = DateRange(day, day)

        config = await self._load_schedule_config(contractor_profile_id)
        snapshot = await self._load_snapshot(contractor_profile_id, date_range)

        generator = SlotGenerator(config.timezone, config.granularity_minutes)
        return any(
            span.contains(requested)
            for span in generator.free_intervals_for_date(day, snapshot)
        )

    # ========== Schedule ==========

    async def get_schedule(self, contractor_profile_id: str) -> ScheduleConfig:
        return await self._load_schedule_config(contractor_profile_id)

    async def save_schedule(
        self, user_id: str, contractor_profile_id: str, data: Any
    ) -> ScheduleConfig:
        """Create or replace the contractor's timezone and granularity."""
        config = validate_payload(ScheduleSettings, data).to_model()
        await self._ensure_owner(user_id, contractor_profile_id)

        saved = await self._repository.save_schedule_config(contractor_profile_id, config)
        logger.info(
            "Schedule for contractor %s set to %s / %d min",
            contractor_profile_id, saved.timezone, saved.granularity_minutes,
        )
        return saved

    # ========== Weekly Rules ==========

    async def list_weekly_rules(self, contractor_profile_id: str) -> List[WeeklyRule]:
        rules = await self._data_source.get_weekly_rules(contractor_profile_id)
        return sorted(rules, key=lambda rule: _DAY_ORDER.index(rule.day_of_week))

    async def create_weekly_rule(
        self, user_id: str, contractor_profile_id: str, data: Any
    ) -> WeeklyRule:
        """
        Create the weekly rule for one day of week.

        Raises:
            DuplicateWeeklyRuleError: If that day already has a rule
        """
        rule = validate_payload(WeeklyRuleCreate, data).to_model(contractor_profile_id)
        await self._ensure_owner(user_id, contractor_profile_id)

        async with self._repository.contractor_lock(contractor_profile_id):
            existing = await self._data_source.get_weekly_rules(contractor_profile_id)
            if any(other.day_of_week == rule.day_of_week for other in existing):
                raise DuplicateWeeklyRuleError(
                    f"A weekly rule for {rule.day_of_week.value} already exists"
                )
            return await self._repository.add_weekly_rule(rule)

    async def update_weekly_rule(self, user_id: str, rule_id: str, data: Any) -> WeeklyRule:
        """Replace the intervals of an existing weekly rule."""
        update = validate_payload(WeeklyRuleUpdate, data)
        rule = await self._require(
            self._repository.get_weekly_rule(rule_id),
            WeeklyRuleNotFoundError(f"Weekly rule {rule_id} not found"),
        )
        await self._ensure_owner(user_id, rule.contractor_profile_id)

        updated = dataclasses.replace(
            rule, intervals=[interval.to_interval() for interval in update.intervals]
        )
        return await self._repository.replace_weekly_rule(updated)

    async def delete_weekly_rule(self, user_id: str, rule_id: str) -> None:
        rule = await self._require(
            self._repository.get_weekly_rule(rule_id),
            WeeklyRuleNotFoundError(f"Weekly rule {rule_id} not found"),
        )
        await self._ensure_owner(user_id, rule.contractor_profile_id)
        await self._repository.delete_weekly_rule(rule_id)

    # ========== Exceptions ==========

    async def list_exceptions(
        self,
        contractor_profile_id: str,
        start_date: Optional[Union[str, date]] = None,
        end_date: Optional[Union[str, date]] = None,
    ) -> List[AvailabilityException]:
        date_range = self._listing_range(start_date, end_date)
        return await self._data_source.get_exceptions(contractor_profile_id, date_range)

    async def create_exception(
        self, user_id: str, contractor_profile_id: str, data: Any
    ) -> AvailabilityException:
        exception = validate_payload(ExceptionCreate, data).to_model(contractor_profile_id)
        await self._ensure_owner(user_id, contractor_profile_id)
        return await self._repository.add_exception(exception)

    async def update_exception(
        self, user_id: str, exception_id: str, data: Any
    ) -> AvailabilityException:
        """
        Update closure flag, custom intervals or reason of an exception.

        Switching to a full-day closure clears the custom intervals.
        """
        update = validate_payload(ExceptionUpdate, data)
        exception = await self._require(
            self._repository.get_exception(exception_id),
            ExceptionNotFoundError(f"Exception {exception_id} not found"),
        )
        await self._ensure_owner(user_id, exception.contractor_profile_id)

        changes = update.model_dump(exclude_unset=True)
        if "custom_intervals" in changes:
            changes["custom_intervals"] = [
                interval.to_interval() for interval in update.custom_intervals or []
            ]
        if changes.get("is_full_day_closure"):
            changes["custom_intervals"] = []

        updated = dataclasses.replace(exception, **changes)
        return await self._repository.replace_exception(updated)

    async def delete_exception(self, user_id: str, exception_id: str) -> None:
        exception = await self._require(
            self._repository.get_exception(exception_id),
            ExceptionNotFoundError(f"Exception {exception_id} not found"),
        )
        await self._ensure_owner(user_id, exception.contractor_profile_id)
        await self._repository.delete_exception(exception_id)

    # ========== Blockouts ==========

    async def list_blockouts(
        self,
        contractor_profile_id: str,
        start_date: Optional[Union[str, date]] = None,
        end_date: Optional[Union[str, date]] = None,
    ) -> List[Blockout]:
        date_range = self._listing_range(start_date, end_date)
        return await self._data_source.get_blockouts(contractor_profile_id, date_range)

    async def create_blockout(
        self, user_id: str, contractor_profile_id: str, data: Any
    ) -> Blockout:
        """
        Create a blockout unless it overlaps a confirmed booking.

        The booking check runs once up front and again under the
        contractor lock right before the write, so a booking committed in
        between is still detected.

        Raises:
            BookingConflictError: If any confirmed booking overlaps the blockout
        """
        blockout = validate_payload(BlockoutCreate, data).to_model(contractor_profile_id)
        await self._ensure_owner(user_id, contractor_profile_id)

        await self._ensure_no_booking_conflict(blockout)
        async with self._repository.contractor_lock(contractor_profile_id):
            await self._ensure_no_booking_conflict(blockout)
            created = await self._repository.add_blockout(blockout)

        logger.info(
            "Blockout %s created for contractor %s on %s %s",
            created.id, contractor_profile_id, created.date, created.interval,
        )
        return created

    async def delete_blockout(self, user_id: str, blockout_id: str) -> None:
        blockout = await self._require(
            self._repository.get_blockout(blockout_id),
            BlockoutNotFoundError(f"Blockout {blockout_id} not found"),
        )
        await self._ensure_owner(user_id, blockout.contractor_profile_id)
        await self._repository.delete_blockout(blockout_id)

    # ========== Helpers ==========

    def _ensure_range_within_cap(self, date_range: DateRange) -> None:
        max_days = self._settings.max_range_days
        if date_range.length_in_days() > max_days:
            raise DateRangeTooLargeError(
                f"Date range of {date_range.length_in_days()} days exceeds "
                f"the maximum of {max_days} days"
            )

    @staticmethod
    def _listing_range(
        start_date: Optional[Union[str, date]],
        end_date: Optional[Union[str, date]],
    ) -> Optional[DateRange]:
        if start_date is None and end_date is None:
            return None
        if start_date is None or end_date is None:
            raise AvailabilityValidationError("Provide both start_date and end_date, or neither")
        return DateRange(as_date(start_date), as_date(end_date))

    async def _ensure_owner(self, user_id: str, contractor_profile_id: Optional[str]) -> None:
        owner_id = await self._repository.get_contractor_owner_id(contractor_profile_id)
        if owner_id is None:
            raise ContractorNotFoundError(f"Contractor {contractor_profile_id} not found")
        if owner_id != user_id:
            logger.warning(
                "User %s tried to modify availability of contractor %s",
                user_id, contractor_profile_id,
            )
            raise OwnershipError(
                f"User {user_id} does not own contractor profile {contractor_profile_id}"
            )

    async def _ensure_no_booking_conflict(self, blockout: Blockout) -> None:
        day = DateRange(blockout.date, blockout.date)
        bookings = await self._fetch(
            self._data_source.get_confirmed_bookings(blockout.contractor_profile_id, day)
        )
        conflicts = [
            booking for booking in bookings
            if booking.date == blockout.date and booking.interval.overlaps(blockout.interval)
        ]
        if conflicts:
            logger.warning(
                "Blockout %s %s for contractor %s overlaps %d confirmed booking(s)",
                blockout.date, blockout.interval, blockout.contractor_profile_id, len(conflicts),
            )
            raise BookingConflictError(
                "Cannot block a time range that has confirmed bookings",
                bookings=conflicts,
            )

    async def _load_schedule_config(self, contractor_profile_id: str) -> ScheduleConfig:
        config = await self._fetch(
            self._data_source.get_contractor_timezone_and_granularity(contractor_profile_id)
        )
        if config is None:
            raise ScheduleNotConfiguredError(
                f"Contractor {contractor_profile_id} has no timezone/granularity configured"
            )
        return config

    async def _load_snapshot(
        self, contractor_profile_id: str, date_range: DateRange
    ) -> AvailabilitySnapshot:
        """Fetch the four independent data sets concurrently and join them."""
        weekly_rules, exceptions, blockouts, bookings = await self._fetch(
            asyncio.gather(
                self._data_source.get_weekly_rules(contractor_profile_id),
                self._data_source.get_exceptions(contractor_profile_id, date_range),
                self._data_source.get_blockouts(contractor_profile_id, date_range),
                self._data_source.get_confirmed_bookings(contractor_profile_id, date_range),
            )
        )
        return AvailabilitySnapshot(
            weekly_rules=list(weekly_rules),
            exceptions=list(exceptions),
            blockouts=list(blockouts),
            bookings=list(bookings),
        )

    @staticmethod
    async def _fetch(awaitable: Awaitable[T]) -> T:
        """Await a data source call, wrapping infrastructure failures."""
        try:
            return await awaitable
        except AvailabilityError:
            raise
        except Exception as exc:
            logger.error("Availability data fetch failed: %s", exc)
            raise DataSourceError(f"Failed to fetch availability data: {exc}") from exc

    @staticmethod
    async def _require(awaitable: Awaitable[Optional[T]], missing: Exception) -> T:
        record = await awaitable
        if record is None:
            raise missing
        return record
