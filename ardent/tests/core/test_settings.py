"""Tests for settings and configuration loading."""

import json
import logging

import pytest
from pydantic import ValidationError

from ardent.core.settings.settings import (
    ArdentSettings,
    configure,
    configure_logging,
    get_settings,
    load_settings_file,
    reload_settings,
)


class TestArdentSettings:
    """Test ArdentSettings defaults and validators."""

    def test_defaults(self):
        """Test default values."""
        settings = ArdentSettings()

        assert settings.log_level == "INFO"
        assert settings.locale == "en"
        assert settings.hash_algorithm == "sha256"
        assert settings.purge_suffixes == ["_confirmation"]
        assert settings.purge_reserved_keys == ["_method", "_token"]
        assert settings.throw_on_validation is False
        assert settings.throw_on_find is False

    def test_environment_prefix(self, monkeypatch):
        """Test values are read from ARDENT_ variables."""
        monkeypatch.setenv("ARDENT_LOCALE", "pt-BR")
        monkeypatch.setenv("ARDENT_THROW_ON_FIND", "true")

        settings = ArdentSettings()

        assert settings.locale == "pt_br"
        assert settings.throw_on_find is True

    def test_log_level_normalised(self):
        """Test log levels are upper-cased."""
        assert ArdentSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            ArdentSettings(log_level="CHATTY")

    def test_invalid_hash_algorithm(self):
        """Test digests outside the supported set are rejected."""
        with pytest.raises(ValidationError):
            ArdentSettings(hash_algorithm="md5")

    def test_non_positive_iterations(self):
        """Test iteration counts must be positive."""
        with pytest.raises(ValidationError):
            ArdentSettings(hash_iterations=0)


class TestSettingsLoading:
    """Test global settings access and file loading."""

    def test_configure_replaces_global(self):
        """Test configure installs new global settings."""
        settings = configure(locale="pt_br")

        assert get_settings() is settings
        assert get_settings().locale == "pt_br"

    def test_reload_settings(self, monkeypatch):
        """Test reload drops configured values."""
        configure(throw_on_validation=True)

        settings = reload_settings()

        assert settings.throw_on_validation is False

    def test_load_yaml_file_with_section(self, tmp_path):
        """Test YAML files with an ardent section."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("ardent:\n  locale: pt_br\n  throw_on_validation: true\n")

        settings = load_settings_file(config_file)

        assert settings.locale == "pt_br"
        assert settings.throw_on_validation is True
        assert get_settings() is settings

    def test_load_json_file_with_overrides(self, tmp_path):
        """Test JSON files and keyword overrides."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"locale": "pt_br", "hash_iterations": 5}))

        settings = load_settings_file(config_file, hash_iterations=10)

        assert settings.locale == "pt_br"
        assert settings.hash_iterations == 10

    def test_config_file_environment_variable(self, tmp_path, monkeypatch):
        """Test ARDENT_CONFIG_FILE is honoured on first access."""
        config_file = tmp_path / "ardent.yml"
        config_file.write_text("purge_reserved_keys: [_method, _token, _csrf]\n")
        monkeypatch.setenv("ARDENT_CONFIG_FILE", str(config_file))

        settings = reload_settings()

        assert "_csrf" in settings.purge_reserved_keys


class TestConfigureLogging:
    """Test configure_logging."""

    def test_sets_package_logger_level(self):
        """Test the ardent logger level is applied."""
        logger = logging.getLogger("ardent")
        previous = logger.level
        try:
            configure_logging("debug")
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)

    def test_uses_settings_level(self):
        """Test the settings' level is the default."""
        logger = logging.getLogger("ardent")
        previous = logger.level
        configure(log_level="WARNING")
        try:
            configure_logging()
            assert logger.level == logging.WARNING
        finally:
            logger.setLevel(previous)

    def test_invalid_level(self):
        """Test unknown levels are rejected."""
        with pytest.raises(ValueError):
            configure_logging("chatty")
