"""Configuration for ardent."""

from ardent.core.settings.settings import (
    ArdentSettings,
    configure,
    configure_logging,
    get_settings,
    load_settings_file,
    reload_settings,
)

__all__ = [
    "ArdentSettings",
    "configure",
    "configure_logging",
    "get_settings",
    "load_settings_file",
    "reload_settings",
]
