"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.slot_calculator import AvailabilityCalculator

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class SlotSettings(BaseModel):
    """Rules used when computing bookable slots."""
    step_minutes: int = 30
    occupied_block_minutes: int = 30
    pending_grace_minutes: int = 5
    exclude_breaks: bool = False
    use_booked_duration: bool = False

    @field_validator("step_minutes", "occupied_block_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure slot lengths are positive."""
        if value <= 0:
            raise ValueError("slot lengths must be greater than zero")
        return value

    @field_validator("pending_grace_minutes")
    @classmethod
    def validate_grace(cls, value: int) -> int:
        if value < 0:
            raise ValueError("pending_grace_minutes cannot be negative")
        return value

    def build_calculator(self) -> AvailabilityCalculator:
        return AvailabilityCalculator(
            step_minutes=self.step_minutes,
            occupied_block_minutes=self.occupied_block_minutes,
            exclude_breaks=self.exclude_breaks,
            use_booked_duration=self.use_booked_duration,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Sao_Paulo"
    data_file: Optional[Path] = None
    log_level: str = "WARNING"
    default_service_duration: int = 30
    slots: SlotSettings = Field(default_factory=SlotSettings)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject unknown IANA timezone names."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value}")
        return level

    @field_validator("default_service_duration")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure the default service duration is positive."""
        if value <= 0:
            raise ValueError("default_service_duration must be greater than zero")
        return value

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

        config = cls(**data)
        # Relative data paths are resolved against the config file location
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file
        return config

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppConfig":
        """
        Load an explicit config file, else the default one if present.

        Falls back to built-in defaults when no default config file exists.
        """
        if config_path is not None:
            return cls.load_from_yaml(config_path)

        default_path = get_default_config_path()
        if default_path.exists():
            return cls.load_from_yaml(default_path)
        return cls()


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
