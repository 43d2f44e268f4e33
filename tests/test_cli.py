"""
Tests for the command line interface.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from contractorslots import __version__
from contractorslots.cli.app import app

EXAMPLE_FIXTURE = Path(__file__).parent.parent / "availability.example.yaml"

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(f"data_file: {EXAMPLE_FIXTURE.resolve()}\n", encoding="utf-8")
    return path


def test_slots_json(config_file):
    result = runner.invoke(
        app,
        ["slots", "contractor-1", "--start", "2024-11-25", "--end", "2024-12-01",
         "--config", str(config_file), "--json"],
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["total"] == 24
    assert data["timezone"] == "America/Mexico_City"
    assert data["slots"][0]["start_time"] == "08:00"
    assert data["slots"][0]["start_time_utc"].startswith("2024-11-25T14:00:00")


def test_slots_table_with_duration(config_file):
    result = runner.invoke(
        app,
        ["slots", "contractor-1", "--start", "2024-11-29", "--end", "2024-11-29",
         "--duration", "60", "--config", str(config_file)],
    )

    assert result.exit_code == 0
    assert "7 available slot(s)" in result.stdout


def test_slots_data_option_overrides_config(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("data_file: missing.yaml\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["slots", "contractor-1", "--start", "2024-11-25", "--end", "2024-11-25",
         "--config", str(config_path), "--data", str(EXAMPLE_FIXTURE), "--json"],
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout)["total"] == 14


def test_slots_range_too_large(config_file):
    result = runner.invoke(
        app,
        ["slots", "contractor-1", "--start", "2024-01-01", "--end", "2024-03-31",
         "--config", str(config_file)],
    )

    assert result.exit_code == 1
    assert "exceeds the maximum" in result.stdout


def test_slots_missing_fixture(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("data_file: missing.yaml\n", encoding="utf-8")

    result = runner.invoke(app, ["slots", "contractor-1", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_check(config_file):
    free = runner.invoke(
        app, ["check", "contractor-1", "2024-11-25", "08:00", "09:00", "--config", str(config_file)]
    )
    booked = runner.invoke(
        app, ["check", "contractor-1", "2024-11-25", "09:00", "09:30", "--config", str(config_file)]
    )

    assert free.exit_code == 0
    assert "Available" in free.stdout
    assert booked.exit_code == 2
    assert "Not available" in booked.stdout


def test_timezone():
    result = runner.invoke(app, ["timezone", "America/Mexico_City", "--date", "2022-04-04"])

    assert result.exit_code == 0
    assert "-5 h" in result.stdout


def test_timezone_invalid():
    result = runner.invoke(app, ["timezone", "Not/AZone"])

    assert result.exit_code == 1
    assert "Unknown IANA timezone" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout
