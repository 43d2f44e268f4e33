"""
Tests for loading availability fixtures into the in-memory repository.
"""

import asyncio
from pathlib import Path

import pytest

from contractorslots.adapters.fixture_loader import load_fixture
from contractorslots.domain.exceptions import (
    AvailabilityValidationError,
    DuplicateWeeklyRuleError,
    InvalidInputError,
)
from contractorslots.domain.models import DayOfWeek, ExceptionType
from contractorslots.services.availability_service import AvailabilityService

EXAMPLE_FIXTURE = Path(__file__).parent.parent / "availability.example.yaml"


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "availability.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadFixture:

    def test_example_fixture(self):
        repository = load_fixture(EXAMPLE_FIXTURE)

        schedule = asyncio.run(repository.get_contractor_timezone_and_granularity("contractor-1"))
        rules = asyncio.run(repository.get_weekly_rules("contractor-1"))
        exceptions = asyncio.run(repository.get_exceptions("contractor-1"))

        assert schedule.timezone == "America/Mexico_City"
        assert {rule.day_of_week for rule in rules} == {
            DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY, DayOfWeek.FRIDAY
        }
        assert [exception.type for exception in exceptions] == [ExceptionType.RECURRING, ExceptionType.ONE_OFF]
        assert asyncio.run(repository.get_contractor_owner_id("contractor-1")) == "user-1"

    def test_example_fixture_slots(self):
        """Monday loses a booking and a blockout, Wednesday is shortened, Friday is untouched."""
        repository = load_fixture(EXAMPLE_FIXTURE)
        service = AvailabilityService(repository, repository)

        result = asyncio.run(service.generate_slots("contractor-1", "2024-11-25", "2024-12-01"))

        per_day = {}
        for slot in result.slots:
            per_day[slot.date.to_date_string()] = per_day.get(slot.date.to_date_string(), 0) + 1
        assert per_day == {"2024-11-25": 14, "2024-11-27": 2, "2024-11-29": 8}

    def test_contractor_without_schedule(self, tmp_path):
        repository = load_fixture(_write(tmp_path, "contractors:\n  - id: c2\n    owner_user_id: u2\n"))

        assert asyncio.run(repository.get_contractor_timezone_and_granularity("c2")) is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_fixture(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_fixture(_write(tmp_path, "contractors: [unclosed\n"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            load_fixture(_write(tmp_path, "- a\n- b\n"))

    def test_schema_errors(self, tmp_path):
        text = (
            "contractors:\n"
            "  - id: c1\n"
            "    owner_user_id: u1\n"
            "    weekly_rules:\n"
            "      - day_of_week: MONDAY\n"
            "        intervals:\n"
            "          - {start_time: \"12:00\", end_time: \"08:00\"}\n"
        )

        with pytest.raises(InvalidInputError, match="weekly_rules"):
            load_fixture(_write(tmp_path, text))

    def test_duplicate_weekly_rules_rejected(self, tmp_path):
        text = (
            "contractors:\n"
            "  - id: c1\n"
            "    owner_user_id: u1\n"
            "    weekly_rules:\n"
            "      - day_of_week: MONDAY\n"
            "        intervals:\n"
            "          - {start_time: \"08:00\", end_time: \"12:00\"}\n"
            "      - day_of_week: MONDAY\n"
            "        intervals:\n"
            "          - {start_time: \"14:00\", end_time: \"18:00\"}\n"
        )

        with pytest.raises(DuplicateWeeklyRuleError, match="MONDAY"):
            load_fixture(_write(tmp_path, text))

    def test_overlapping_intervals_rejected(self, tmp_path):
        text = (
            "contractors:\n"
            "  - id: c1\n"
            "    owner_user_id: u1\n"
            "    weekly_rules:\n"
            "      - day_of_week: MONDAY\n"
            "        intervals:\n"
            "          - {start_time: \"08:00\", end_time: \"12:00\"}\n"
            "          - {start_time: \"11:00\", end_time: \"13:00\"}\n"
        )

        with pytest.raises(AvailabilityValidationError, match="overlap"):
            load_fixture(_write(tmp_path, text))
