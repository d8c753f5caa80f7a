"""projectbot configuration module."""

from projectbot.config.credentials import (
    Credentials,
    load_credentials,
    resolve_credentials,
    save_credentials,
)
from projectbot.config.settings import Settings, get_settings, reset_settings_cache, settings

__all__ = [
    "settings",
    "Settings",
    "get_settings",
    "reset_settings_cache",
    "Credentials",
    "load_credentials",
    "save_credentials",
    "resolve_credentials",
]
