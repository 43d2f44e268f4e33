"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.models import ALLOWED_GRANULARITIES, DEFAULT_GRANULARITY_MINUTES
from .domain.timezones import is_valid_iana_zone
from .services.availability_service import AvailabilitySettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class DefaultsConfig(BaseModel):
    """Default settings for slot requests."""
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES
    service_duration_minutes: Optional[int] = None

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Granularity must be one of the supported slot sizes."""
        if value not in ALLOWED_GRANULARITIES:
            raise ValueError(f"granularity_minutes must be one of {ALLOWED_GRANULARITIES}, got {value}")
        return value

    @field_validator("service_duration_minutes")
    @classmethod
    def validate_duration(cls, value: Optional[int]) -> Optional[int]:
        """Ensure service duration is positive."""
        if value is not None and value <= 0:
            raise ValueError("service_duration_minutes must be greater than zero")
        return value


class LimitsConfig(BaseModel):
    """Bounds on request sizes."""
    max_range_weeks: int = Field(default=8, ge=1, le=52)


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Mexico_City"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    data_file: Path = Path("availability.yaml")
    log_level: LogLevel = "WARNING"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Only IANA timezone names are accepted."""
        if not is_valid_iana_zone(value):
            raise ValueError(f"Unknown IANA timezone: {value!r}")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value

    def availability_settings(self) -> AvailabilitySettings:
        """Limits handed to the availability service."""
        return AvailabilitySettings(max_range_days=self.limits.max_range_weeks * 7)

    def resolve_data_file(self, config_path: Optional[Path] = None) -> Path:
        """Resolve ``data_file`` relative to the config file location."""
        if self.data_file.is_absolute() or config_path is None:
            return self.data_file
        return config_path.parent / self.data_file

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
