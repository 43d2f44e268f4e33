"""
Tests for local time <-> UTC conversion, including DST transitions.

America/Mexico_City observed DST for the last time in 2022:
spring forward 2022-04-03 02:00 -> 03:00, fall back 2022-10-30 02:00 -> 01:00.
"""

import pendulum
import pytest

from contractorslots.domain.exceptions import InvalidTimezoneError
from contractorslots.domain.timezones import (
    LocalDateTime,
    ensure_valid_zone,
    is_nonexistent_local_time,
    is_valid_iana_zone,
    local_to_utc,
    offset_hours_for,
    utc_to_local,
)

MEXICO_CITY = "America/Mexico_City"


class TestLocalToUtc:

    def test_standard_time(self):
        utc = local_to_utc("2022-03-28", "08:00", MEXICO_CITY)

        assert utc == pendulum.datetime(2022, 3, 28, 14, 0, tz="UTC")
        assert utc.timezone_name == "UTC"

    def test_daylight_time(self):
        utc = local_to_utc("2022-04-04", "08:00", MEXICO_CITY)

        assert utc == pendulum.datetime(2022, 4, 4, 13, 0, tz="UTC")

    def test_minutes_since_midnight(self):
        assert local_to_utc(pendulum.date(2022, 3, 28), 8 * 60, MEXICO_CITY) == local_to_utc(
            "2022-03-28", "08:00", MEXICO_CITY
        )

    def test_nonexistent_time_shifts_forward(self):
        """02:30 does not exist on the spring-forward day; it resolves to 03:30 CDT."""
        utc = local_to_utc("2022-04-03", "02:30", MEXICO_CITY)

        assert utc == pendulum.datetime(2022, 4, 3, 8, 30, tz="UTC")

    def test_ambiguous_time_uses_earlier_instant(self):
        """01:30 happens twice on the fall-back day; the CDT occurrence is used."""
        utc = local_to_utc("2022-10-30", "01:30", MEXICO_CITY)

        assert utc == pendulum.datetime(2022, 10, 30, 6, 30, tz="UTC")

    def test_end_of_day_is_next_midnight(self):
        utc = local_to_utc("2022-03-28", 24 * 60, MEXICO_CITY)

        assert utc == pendulum.datetime(2022, 3, 29, 6, 0, tz="UTC")
        assert local_to_utc("2022-03-28", "24:00", MEXICO_CITY) == utc

    def test_invalid_zone(self):
        with pytest.raises(InvalidTimezoneError):
            local_to_utc("2022-03-28", "08:00", "Mars/Olympus_Mons")


class TestUtcToLocal:

    def test_converts_to_local_date_and_time(self):
        local = utc_to_local(pendulum.datetime(2022, 3, 28, 14, 0, tz="UTC"), MEXICO_CITY)

        assert local == LocalDateTime(pendulum.date(2022, 3, 28), "08:00")

    def test_crosses_date_boundary(self):
        local = utc_to_local(pendulum.datetime(2024, 11, 26, 3, 15, tz="UTC"), MEXICO_CITY)

        assert local.date == pendulum.date(2024, 11, 25)
        assert local.time == "21:15"

    def test_round_trip_across_dst(self):
        """Every Monday at 08:00 New York time survives a round trip across both transitions."""
        zone = "America/New_York"
        monday = pendulum.date(2024, 1, 1)

        for _ in range(52):
            utc = local_to_utc(monday, "08:00", zone)
            assert utc_to_local(utc, zone) == LocalDateTime(monday, "08:00")
            monday = monday.add(weeks=1)


class TestZoneHelpers:

    def test_valid_zones(self):
        assert is_valid_iana_zone(MEXICO_CITY)
        assert is_valid_iana_zone("UTC")
        assert ensure_valid_zone("Europe/Berlin") == "Europe/Berlin"

    @pytest.mark.parametrize("zone", ["", "   ", "Not/AZone", "Mexico City"])
    def test_invalid_zones(self, zone):
        assert not is_valid_iana_zone(zone)

        with pytest.raises(InvalidTimezoneError):
            ensure_valid_zone(zone)

    def test_nonexistent_local_time(self):
        assert is_nonexistent_local_time("2022-04-03", "02:00", MEXICO_CITY)
        assert is_nonexistent_local_time("2022-04-03", "02:30", MEXICO_CITY)
        assert not is_nonexistent_local_time("2022-04-03", "03:00", MEXICO_CITY)
        assert not is_nonexistent_local_time("2022-10-30", "01:30", MEXICO_CITY)

    def test_offset_hours(self):
        assert offset_hours_for(MEXICO_CITY, "2022-03-28") == -6
        assert offset_hours_for(MEXICO_CITY, "2022-04-04") == -5
        assert offset_hours_for(MEXICO_CITY, "2024-07-01") == -6
