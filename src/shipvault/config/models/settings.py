"""ShipVault Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shipvault.config.models.app_settings import AppSettings, LoggingSettings
from shipvault.config.models.cache_settings import CacheSettings
from shipvault.config.models.provider_settings import ProviderSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Values come from (highest priority first) constructor arguments,
    ``SHIPVAULT_``-prefixed environment variables with ``__`` as the
    nesting delimiter, and field defaults. ``from_toml_file`` feeds the
    TOML content in as constructor arguments.

    Example:
        SHIPVAULT_PROVIDER__API_KEYS=key-a,key-b
        SHIPVAULT_CACHE__TTL_HOURS=48
    """

    model_config = SettingsConfigDict(
        env_prefix="SHIPVAULT_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from a TOML file.

        Fields the file leaves out fall back to environment variables, then
        to defaults.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file.

        API keys are written to the file; logs only ever see the masked repr.
        """
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode="json", exclude_none=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)

        logger.debug("Saved settings to %s", file_path)


__all__ = ["Settings"]
