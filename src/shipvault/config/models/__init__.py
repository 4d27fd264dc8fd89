"""Configuration domain models."""

from __future__ import annotations

from .app_settings import AppSettings, LoggingSettings
from .cache_settings import CacheSettings
from .provider_settings import ProviderSettings
from .settings import Settings

__all__ = [
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "ProviderSettings",
    "Settings",
]
