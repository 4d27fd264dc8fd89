"""ShipVault Configuration Module

Unified access to configuration models and settings management:
- Settings: Main configuration facade
- Loader functions: get_config, load_settings, reload_config, update_and_save_config
- Domain models: App, Logging, Provider and Cache settings
"""

from __future__ import annotations

from .loader import (
    get_config,
    load_settings,
    reload_config,
    reset_config,
    update_and_save_config,
)
from .models import (
    AppSettings,
    CacheSettings,
    LoggingSettings,
    ProviderSettings,
    Settings,
)

__all__ = [
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "ProviderSettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
    "update_and_save_config",
]
