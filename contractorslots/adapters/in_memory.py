"""
In-process availability store.

Implements both the read collaborators used for slot generation and the
repository used for mutations. Useful for tests, the CLI and as a
reference for real persistence adapters.
"""

from __future__ import annotations

import asyncio
import dataclasses
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, TypeVar

from ..domain.exceptions import ContractorNotFoundError
from ..domain.models import (
    AvailabilityException,
    Blockout,
    Booking,
    DateRange,
    ExceptionType,
    ScheduleConfig,
    WeeklyRule,
)

RecordT = TypeVar("RecordT", WeeklyRule, AvailabilityException, Blockout, Booking)


@dataclasses.dataclass
class _ContractorRecord:
    owner_user_id: str
    schedule: Optional[ScheduleConfig] = None


class InMemoryAvailabilityRepository:
    """
    Dictionary-backed store for contractors and their availability records.

    Each contractor gets its own ``asyncio.Lock`` so writes that must
    re-check state (blockout vs. booking) are serialised per contractor.
    """

    def __init__(self) -> None:
        self._contractors: Dict[str, _ContractorRecord] = {}
        self._weekly_rules: Dict[str, WeeklyRule] = {}
        self._exceptions: Dict[str, AvailabilityException] = {}
        self._blockouts: Dict[str, Blockout] = {}
        self._bookings: Dict[str, Booking] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # ========== Seeding ==========

    def register_contractor(
        self,
        contractor_profile_id: str,
        owner_user_id: str,
        schedule: Optional[ScheduleConfig] = None,
    ) -> None:
        """Add a contractor profile owned by ``owner_user_id``."""
        self._contractors[contractor_profile_id] = _ContractorRecord(owner_user_id, schedule)

    def seed(self, record: RecordT) -> RecordT:
        """Store a record synchronously, assigning an id if it has none."""
        record = self._with_id(record)
        self._table_for(record)[record.id] = record
        return record

    def add_booking(self, booking: Booking) -> Booking:
        """Store a confirmed booking coming from the booking subsystem."""
        return self.seed(booking)

    # ========== Read collaborators ==========

    async def get_contractor_timezone_and_granularity(
        self, contractor_profile_id: str
    ) -> Optional[ScheduleConfig]:
        return self._contractor(contractor_profile_id).schedule

    async def get_weekly_rules(self, contractor_profile_id: str) -> List[WeeklyRule]:
        return self._owned_by(self._weekly_rules, contractor_profile_id)

    async def get_exceptions(
        self, contractor_profile_id: str, date_range: Optional[DateRange] = None
    ) -> List[AvailabilityException]:
        exceptions = self._owned_by(self._exceptions, contractor_profile_id)
        if date_range is None:
            return exceptions
        # recurring exceptions may hit any year, so only dated ones are filtered
        return [
            exception for exception in exceptions
            if exception.type is ExceptionType.RECURRING or date_range.contains(exception.date)
        ]

    async def get_blockouts(
        self, contractor_profile_id: str, date_range: Optional[DateRange] = None
    ) -> List[Blockout]:
        return self._in_range(self._owned_by(self._blockouts, contractor_profile_id), date_range)

    async def get_confirmed_bookings(
        self, contractor_profile_id: str, date_range: Optional[DateRange] = None
    ) -> List[Booking]:
        return self._in_range(self._owned_by(self._bookings, contractor_profile_id), date_range)

    # ========== Repository ==========

    async def get_contractor_owner_id(self, contractor_profile_id: str) -> Optional[str]:
        record = self._contractors.get(contractor_profile_id)
        return record.owner_user_id if record else None

    async def save_schedule_config(
        self, contractor_profile_id: str, config: ScheduleConfig
    ) -> ScheduleConfig:
        self._contractor(contractor_profile_id).schedule = config
        return config

    async def add_weekly_rule(self, rule: WeeklyRule) -> WeeklyRule:
        return self.seed(rule)

    async def get_weekly_rule(self, rule_id: str) -> Optional[WeeklyRule]:
        return self._weekly_rules.get(rule_id)

    async def replace_weekly_rule(self, rule: WeeklyRule) -> WeeklyRule:
        self._weekly_rules[rule.id] = rule
        return rule

    async def delete_weekly_rule(self, rule_id: str) -> None:
        self._weekly_rules.pop(rule_id, None)

    async def add_exception(self, exception: AvailabilityException) -> AvailabilityException:
        return self.seed(exception)

    async def get_exception(self, exception_id: str) -> Optional[AvailabilityException]:
        return self._exceptions.get(exception_id)

    async def replace_exception(self, exception: AvailabilityException) -> AvailabilityException:
        self._exceptions[exception.id] = exception
        return exception

    async def delete_exception(self, exception_id: str) -> None:
        self._exceptions.pop(exception_id, None)

    async def add_blockout(self, blockout: Blockout) -> Blockout:
        return self.seed(blockout)

    async def get_blockout(self, blockout_id: str) -> Optional[Blockout]:
        return self._blockouts.get(blockout_id)

    async def delete_blockout(self, blockout_id: str) -> None:
        self._blockouts.pop(blockout_id, None)

    @asynccontextmanager
    async def contractor_lock(self, contractor_profile_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(contractor_profile_id, asyncio.Lock())
        async with lock:
            yield

    # ========== Helpers ==========

    def _contractor(self, contractor_profile_id: str) -> _ContractorRecord:
        record = self._contractors.get(contractor_profile_id)
        if record is None:
            raise ContractorNotFoundError(f"Contractor {contractor_profile_id} not found")
        return record

    def _table_for(self, record: RecordT) -> Dict[str, RecordT]:
        tables = {
            WeeklyRule: self._weekly_rules,
            AvailabilityException: self._exceptions,
            Blockout: self._blockouts,
            Booking: self._bookings,
        }
        return tables[type(record)]

    @staticmethod
    def _with_id(record: RecordT) -> RecordT:
        if record.id is not None:
            return record
        return dataclasses.replace(record, id=str(uuid.uuid4()))

    @staticmethod
    def _owned_by(records: Dict[str, RecordT], contractor_profile_id: str) -> List[RecordT]:
        return [
            record for record in records.values()
            if record.contractor_profile_id == contractor_profile_id
        ]

    @staticmethod
    def _in_range(records: List[RecordT], date_range: Optional[DateRange]) -> List[RecordT]:
        if date_range is None:
            return records
        return [record for record in records if date_range.contains(record.date)]
