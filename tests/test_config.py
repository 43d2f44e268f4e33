"""
Tests for YAML configuration loading.
"""

from pathlib import Path

import pytest

from contractorslots.config import AppConfig


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestAppConfig:

    def test_defaults(self):
        config = AppConfig()

        assert config.timezone == "America/Mexico_City"
        assert config.defaults.granularity_minutes == 30
        assert config.defaults.service_duration_minutes is None
        assert config.availability_settings().max_range_days == 56

    def test_load_from_yaml(self, tmp_path):
        path = _write(
            tmp_path,
            "timezone: Europe/Berlin\n"
            "defaults:\n"
            "  granularity_minutes: 15\n"
            "  service_duration_minutes: 45\n"
            "limits:\n"
            "  max_range_weeks: 2\n"
            "data_file: data/availability.yaml\n"
            "log_level: debug\n",
        )

        config = AppConfig.load_from_yaml(path)

        assert config.timezone == "Europe/Berlin"
        assert config.defaults.granularity_minutes == 15
        assert config.defaults.service_duration_minutes == 45
        assert config.availability_settings().max_range_days == 14
        assert config.log_level == "DEBUG"
        assert config.resolve_data_file(path) == tmp_path / "data" / "availability.yaml"

    def test_empty_file_uses_defaults(self, tmp_path):
        assert AppConfig.load_from_yaml(_write(tmp_path, "")) == AppConfig()

    def test_absolute_data_file_kept(self, tmp_path):
        data_file = tmp_path / "elsewhere.yaml"
        config = AppConfig(data_file=data_file)

        assert config.resolve_data_file(tmp_path / "config.yaml") == data_file
        assert AppConfig().resolve_data_file(None) == Path("availability.yaml")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.example.yaml"):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    @pytest.mark.parametrize(
        "text",
        [
            "timezone: Not/AZone\n",
            "defaults:\n  granularity_minutes: 45\n",
            "defaults:\n  service_duration_minutes: 0\n",
            "limits:\n  max_range_weeks: 0\n",
            "log_level: LOUD\n",
            "- just\n- a list\n",
            "timezone: [unclosed\n",
        ],
    )
    def test_invalid_config(self, tmp_path, text):
        with pytest.raises(ValueError):
            AppConfig.load_from_yaml(_write(tmp_path, text))
