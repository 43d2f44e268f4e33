"""
Load contractor availability fixtures from YAML or JSON files.

The file holds a ``contractors`` list; every entry is validated with the
same schemas the service uses for incoming payloads::

    contractors:
      - id: contractor-1
        owner_user_id: user-1
        schedule:
          timezone: America/Mexico_City
          slot_granularity_minutes: 30
        weekly_rules:
          - day_of_week: MONDAY
            intervals:
              - {start_time: "08:00", end_time: "12:00"}
        exceptions: []
        blockouts: []
        bookings:
          - {date: 2024-11-25, start_time: "09:00", end_time: "09:30"}

Times must be quoted: YAML 1.1 reads an unquoted ``12:00`` as a number.
"""

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..domain.exceptions import DuplicateWeeklyRuleError
from ..schemas import (
    BlockoutCreate,
    BookingIn,
    ExceptionCreate,
    ScheduleSettings,
    WeeklyRuleCreate,
    validate_payload,
)
from .in_memory import InMemoryAvailabilityRepository

logger = logging.getLogger(__name__)


class ContractorFixture(BaseModel):
    """One contractor and all of their availability data."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    owner_user_id: str = Field(min_length=1)
    schedule: Optional[ScheduleSettings] = None
    weekly_rules: List[WeeklyRuleCreate] = Field(default_factory=list)
    exceptions: List[ExceptionCreate] = Field(default_factory=list)
    blockouts: List[BlockoutCreate] = Field(default_factory=list)
    bookings: List[BookingIn] = Field(default_factory=list)


class FixtureFile(BaseModel):
    """Root of a fixture file."""
    model_config = ConfigDict(extra="forbid")

    contractors: List[ContractorFixture] = Field(default_factory=list)


def _ensure_one_rule_per_day(contractor: ContractorFixture) -> None:
    seen = set()
    for rule in contractor.weekly_rules:
        if rule.day_of_week in seen:
            raise DuplicateWeeklyRuleError(
                f"Contractor {contractor.id} has more than one weekly rule for {rule.day_of_week.value}"
            )
        seen.add(rule.day_of_week)


def populate_repository(
    fixture: FixtureFile,
    repository: Optional[InMemoryAvailabilityRepository] = None,
) -> InMemoryAvailabilityRepository:
    """Copy validated fixture data into an in-memory repository."""
    repository = repository or InMemoryAvailabilityRepository()

    for contractor in fixture.contractors:
        _ensure_one_rule_per_day(contractor)
        schedule = contractor.schedule.to_model() if contractor.schedule else None
        repository.register_contractor(contractor.id, contractor.owner_user_id, schedule)

        for rule in contractor.weekly_rules:
            repository.seed(rule.to_model(contractor.id))
        for exception in contractor.exceptions:
            repository.seed(exception.to_model(contractor.id))
        for blockout in contractor.blockouts:
            repository.seed(blockout.to_model(contractor.id))
        for booking in contractor.bookings:
            repository.add_booking(booking.to_model(contractor.id))

    return repository


def load_fixture(path: Path) -> InMemoryAvailabilityRepository:
    """
    Load a fixture file into a fresh in-memory repository.

    Args:
        path: YAML or JSON file

    Returns:
        Populated InMemoryAvailabilityRepository

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or fails validation
        DuplicateWeeklyRuleError: If a contractor has two rules for one day
    """
    if not path.exists():
        raise FileNotFoundError(f"Fixture file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Fixture file must contain a mapping at the root level.")

    fixture = validate_payload(FixtureFile, data)
    repository = populate_repository(fixture)

    logger.info("Loaded %d contractor(s) from %s", len(fixture.contractors), path)
    return repository
