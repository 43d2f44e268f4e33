"""
Core business logic for generating bookable slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). Everything the algorithm needs arrives in an
``AvailabilitySnapshot``.
"""

import logging
from datetime import date
from typing import Dict, Iterator, List, Optional, Union

from pendulum import Date

from .exceptions import AvailabilityValidationError, DuplicateWeeklyRuleError
from .intervals import merge_intervals, subtract_all
from .models import (
    ALLOWED_GRANULARITIES,
    AvailabilitySnapshot,
    AvailableSlot,
    DateRange,
    DayOfWeek,
    TimeInterval,
    WeeklyRule,
    as_date,
)
from .recurrence import day_of_week_of, select_exception
from .timezones import ensure_valid_zone, is_nonexistent_local_time, local_to_utc

logger = logging.getLogger(__name__)


class SlotGenerator:
    """
    Generates available slots for one contractor from a snapshot of their data.

    Algorithm, per calendar day in ascending order:
    1. Take the weekly rule intervals for the day of week
    2. Apply the matching exception (closure empties the day, custom
       intervals replace the weekly ones)
    3. Subtract blockouts of that date
    4. Subtract confirmed bookings of that date
    5. Merge into maximal spans and cut them into granularity-sized chunks
    6. With a service duration, emit a window of that length at every
       granularity step that fits in the span instead
    7. Attach UTC instants (end = start + duration), dropping slots that
       start in a DST gap
    """

    def __init__(self, timezone: str, granularity_minutes: int):
        if granularity_minutes not in ALLOWED_GRANULARITIES:
            raise AvailabilityValidationError(
                f"Granularity must be one of {ALLOWED_GRANULARITIES}, got {granularity_minutes}"
            )
        self.timezone = ensure_valid_zone(timezone)
        self.granularity_minutes = granularity_minutes

    def generate_slots(
        self,
        start_date: Union[str, date],
        end_date: Union[str, date],
        snapshot: AvailabilitySnapshot,
        service_duration_minutes: Optional[int] = None
    ) -> List[AvailableSlot]:
        """
        Generate all available slots in an inclusive date range.

        Args:
            start_date: First calendar day
            end_date: Last calendar day
            snapshot: Weekly rules, exceptions, blockouts and bookings
            service_duration_minutes: Optional length every slot must offer

        Returns:
            Slots ordered by date, then local start time
        """
        date_range = DateRange(as_date(start_date), as_date(end_date))
        self._validate_duration(service_duration_minutes)
        rules_by_day = self._index_weekly_rules(snapshot.weekly_rules)

        slots: List[AvailableSlot] = []
        for day in date_range.days():
            slots.extend(
                self._slots_for_day(day, snapshot, rules_by_day, service_duration_minutes)
            )

        logger.debug(
            "Generated %d slots between %s and %s",
            len(slots), date_range.start_date, date_range.end_date,
        )
        return slots

    def generate_slots_for_date(
        self,
        day: Union[str, date],
        snapshot: AvailabilitySnapshot,
        service_duration_minutes: Optional[int] = None
    ) -> List[AvailableSlot]:
        """Generate available slots for a single date."""
        return self.generate_slots(day, day, snapshot, service_duration_minutes)

    def free_intervals_for_date(
        self,
        day: Union[str, date],
        snapshot: AvailabilitySnapshot
    ) -> List[TimeInterval]:
        """
        Open local time on a date after exceptions, blockouts and bookings.

        Returns maximal non-overlapping spans in ascending order.
        """
        rules_by_day = self._index_weekly_rules(snapshot.weekly_rules)
        return self._free_intervals(as_date(day), snapshot, rules_by_day)

    def _slots_for_day(
        self,
        day: Date,
        snapshot: AvailabilitySnapshot,
        rules_by_day: Dict[DayOfWeek, WeeklyRule],
        service_duration_minutes: Optional[int]
    ) -> List[AvailableSlot]:
        slots: List[AvailableSlot] = []

        for span in self._free_intervals(day, snapshot, rules_by_day):
            for window in self._slice(span, service_duration_minutes):
                if is_nonexistent_local_time(day, window.start_minutes, self.timezone):
                    logger.debug("Skipping %s %s: start falls in a DST gap", day, window)
                    continue
                slots.append(self._to_slot(day, window))

        return slots

    def _free_intervals(
        self,
        day: Date,
        snapshot: AvailabilitySnapshot,
        rules_by_day: Dict[DayOfWeek, WeeklyRule]
    ) -> List[TimeInterval]:
        exception = select_exception(day, snapshot.exceptions)

        if exception is not None:
            if exception.is_full_day_closure:
                logger.debug("%s closed by exception %s", day, exception.id or exception.describe_date())
                return []
            base = list(exception.custom_intervals)
        else:
            rule = rules_by_day.get(day_of_week_of(day))
            if rule is None:
                return []
            base = list(rule.intervals)

        cuts = [blockout.interval for blockout in snapshot.blockouts if blockout.date == day]
        cuts.extend(booking.interval for booking in snapshot.bookings if booking.date == day)

        return merge_intervals(subtract_all(base, cuts))

    def _slice(
        self,
        span: TimeInterval,
        service_duration_minutes: Optional[int]
    ) -> Iterator[TimeInterval]:
        """
        Cut a span into windows starting every ``granularity`` minutes.

        Without a service duration the windows are the granularity chunks
        themselves; a trailing partial chunk is dropped.
        """
        length = service_duration_minutes or self.granularity_minutes
        start = span.start_minutes

        while start + length <= span.end_minutes:
            yield TimeInterval(start, start + length)
            start += self.granularity_minutes

    def _to_slot(self, day: Date, window: TimeInterval) -> AvailableSlot:
        start_utc = local_to_utc(day, window.start_minutes, self.timezone)
        # the UTC span always equals the slot duration, even across a DST transition
        return AvailableSlot(
            date=day,
            start_time=window.start_time,
            end_time=window.end_time,
            start_time_utc=start_utc,
            end_time_utc=start_utc.add(minutes=window.duration_minutes()),
            duration_minutes=window.duration_minutes(),
        )

    @staticmethod
    def _validate_duration(service_duration_minutes: Optional[int]) -> None:
        if service_duration_minutes is None:
            return
        if isinstance(service_duration_minutes, bool) or not isinstance(service_duration_minutes, int):
            raise AvailabilityValidationError("Service duration must be a whole number of minutes")
        if service_duration_minutes <= 0:
            raise AvailabilityValidationError(
                f"Service duration must be greater than zero, got {service_duration_minutes}"
            )

    @staticmethod
    def _index_weekly_rules(rules: List[WeeklyRule]) -> Dict[DayOfWeek, WeeklyRule]:
        indexed: Dict[DayOfWeek, WeeklyRule] = {}
        for rule in rules:
            if rule.day_of_week in indexed:
                raise DuplicateWeeklyRuleError(
                    f"More than one weekly rule for {rule.day_of_week.value}"
                )
            indexed[rule.day_of_week] = rule
        return indexed
