"""Settings and configuration management.

This module provides configuration for ardent with environment variable
handling, configuration file loading and validation. Every value can be set
through an ``ARDENT_`` prefixed environment variable or a YAML/JSON file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class ArdentSettings(BaseSettings):
    """Base settings for ardent.

    Attributes:
        log_level: Level applied by configure_logging()
        locale: Message catalog used for validation messages
        hash_algorithm: Digest used by the PBKDF2 password hasher
        hash_iterations: PBKDF2 iteration count
        hash_salt_bytes: Random salt length in bytes
        purge_suffixes: Attribute suffixes purged before saving
        purge_reserved_keys: Reserved form keys purged before saving
        throw_on_validation: Default for models that do not declare it
        throw_on_find: Default for models that do not declare it
    """

    log_level: str = Field(default="INFO")
    locale: str = Field(default="en")

    hash_algorithm: str = Field(default="sha256")
    hash_iterations: int = Field(default=260000)
    hash_salt_bytes: int = Field(default=16)

    # "_method" simulates HTTP verbs in forms, "_token" carries the CSRF token
    purge_suffixes: List[str] = Field(default_factory=lambda: ["_confirmation"])
    purge_reserved_keys: List[str] = Field(default_factory=lambda: ["_method", "_token"])

    throw_on_validation: bool = Field(default=False)
    throw_on_find: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="ARDENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {VALID_LOG_LEVELS}")
        return v.upper()

    @field_validator('hash_algorithm')
    @classmethod
    def validate_hash_algorithm(cls, v):
        """Only digests PBKDF2 accepts are allowed."""
        if v.lower() not in ('sha1', 'sha256', 'sha512'):
            raise ValueError("Hash algorithm must be one of: sha1, sha256, sha512")
        return v.lower()

    @field_validator('hash_iterations', 'hash_salt_bytes')
    @classmethod
    def validate_positive_integers(cls, v):
        """Validate positive integer fields."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator('locale')
    @classmethod
    def validate_locale(cls, v):
        """Normalise locale names such as ``pt-BR`` to ``pt_br``."""
        return v.replace('-', '_').lower()


_settings: Optional[ArdentSettings] = None


def load_settings_file(config_file: Path, **overrides: Any) -> ArdentSettings:
    """Load settings from a YAML or JSON file.

    Values from the file take precedence over the environment; keyword
    overrides take precedence over both.

    Args:
        config_file: Path to a ``.yml``, ``.yaml`` or ``.json`` file
        **overrides: Explicit setting values

    Returns:
        The loaded settings, also installed as the global settings
    """
    global _settings

    config_file = Path(config_file)
    with open(config_file, 'r') as f:
        if config_file.suffix.lower() in ['.yml', '.yaml']:
            config_data = yaml.safe_load(f) or {}
        else:
            config_data = json.load(f)

    # Files may nest everything under an "ardent" section
    if 'ardent' in config_data and isinstance(config_data['ardent'], dict):
        config_data = config_data['ardent']

    _settings = ArdentSettings(**{**config_data, **overrides})
    logger.info(f"Loaded ardent settings from {config_file}")
    return _settings


def get_settings() -> ArdentSettings:
    """Get the global settings, loading them on first use.

    ``ARDENT_CONFIG_FILE`` points to an optional configuration file.

    Returns:
        Global settings instance
    """
    global _settings
    if _settings is None:
        config_file = os.getenv('ARDENT_CONFIG_FILE')
        if config_file and Path(config_file).exists():
            return load_settings_file(Path(config_file))
        _settings = ArdentSettings()
    return _settings


def configure(**values: Any) -> ArdentSettings:
    """Replace the global settings with explicit values.

    Args:
        **values: Setting values

    Returns:
        The new global settings
    """
    global _settings
    _settings = ArdentSettings(**values)
    return _settings


def reload_settings() -> ArdentSettings:
    """Drop cached settings and reload them from the environment."""
    global _settings
    _settings = None
    return get_settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply a log level to the ardent logger hierarchy.

    Args:
        level: Level name; defaults to the settings' log_level
    """
    level = (level or get_settings().log_level).upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"Log level must be one of: {VALID_LOG_LEVELS}")
    logging.getLogger('ardent').setLevel(getattr(logging, level))
