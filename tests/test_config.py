"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from salonslots.config import AppConfig, SlotSettings


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        """Test the built-in defaults."""
        config = AppConfig()

        assert config.timezone == "America/Sao_Paulo"
        assert config.log_level == "WARNING"
        assert config.slots.step_minutes == 30
        assert config.slots.occupied_block_minutes == 30
        assert config.slots.pending_grace_minutes == 5
        assert not config.slots.exclude_breaks

    def test_load_from_yaml(self, tmp_path):
        """Test loading a YAML file with a relative data path."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "timezone: Europe/Lisbon\n"
            "data_file: salon.json\n"
            "log_level: debug\n"
            "slots:\n"
            "  exclude_breaks: true\n"
            "  occupied_block_minutes: 60\n",
            encoding="utf-8",
        )

        config = AppConfig.load_from_yaml(config_path)

        assert config.timezone == "Europe/Lisbon"
        assert config.log_level == "DEBUG"
        assert config.data_file == tmp_path / "salon.json"
        assert config.slots.exclude_breaks
        calculator = config.slots.build_calculator()
        assert calculator.exclude_breaks
        assert calculator.occupied_block_minutes == 60

    def test_missing_file_raises(self, tmp_path):
        """Test that an explicit missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_load_without_default_file(self, tmp_path, monkeypatch):
        """Test that defaults are used when no config file exists."""
        monkeypatch.setattr("salonslots.config.get_default_config_path", lambda: tmp_path / "absent.yaml")

        assert AppConfig.load() == AppConfig()

    def test_invalid_yaml(self, tmp_path):
        """Test that broken YAML raises ValueError."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("timezone: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_path)

    def test_root_must_be_mapping(self, tmp_path):
        """Test that a YAML list is rejected."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_path)

    def test_unknown_timezone(self):
        """Test timezone validation."""
        with pytest.raises(ValidationError):
            AppConfig(timezone="Mars/Olympus_Mons")

    def test_invalid_log_level(self):
        """Test log level validation."""
        with pytest.raises(ValidationError):
            AppConfig(log_level="LOUD")

    def test_absolute_data_file_kept(self, tmp_path):
        """Test that absolute data paths are not rewritten."""
        absolute = Path("/srv/salon/data.json")
        config_path = tmp_path / "config.yaml"
        config_path.write_text(f"data_file: {absolute}\n", encoding="utf-8")

        assert AppConfig.load_from_yaml(config_path).data_file == absolute


class TestSlotSettings:
    """Tests for SlotSettings."""

    @pytest.mark.parametrize("field", ["step_minutes", "occupied_block_minutes"])
    def test_non_positive_lengths_rejected(self, field):
        """Test that slot lengths must be positive."""
        with pytest.raises(ValidationError):
            SlotSettings(**{field: 0})

    def test_negative_grace_rejected(self):
        """Test that the pending grace period cannot be negative."""
        with pytest.raises(ValidationError):
            SlotSettings(pending_grace_minutes=-1)
