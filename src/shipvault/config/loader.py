"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for Settings instance
- Configuration update and save operations
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from dotenv import load_dotenv
from pydantic import ValidationError

from shipvault.config.models.settings import Settings
from shipvault.shared.errors import (
    ApplicationError,
    ErrorCode,
    ErrorContext,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.toml")


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking pattern to ensure thread-safety
    while minimizing lock overhead.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance (thread-safe).

        Returns:
            The global Settings instance, loading it if necessary.
        """
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance from configuration files.

        Returns:
            The reloaded Settings instance.
        """
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance

    def reset(self) -> None:
        """Drop the cached instance so the next access reloads it."""
        with self._lock:
            self._instance = None

    def update_and_save_config(
        self,
        updater: Callable[[Settings], None],
        config_path: Path | str = DEFAULT_CONFIG_PATH,
    ) -> Settings:
        """Update configuration, validate, save to file, and reload global cache.

        The updater works on a deep copy; the global instance is only
        replaced once the modified copy validates and is written.

        Args:
            updater: Callable that modifies Settings object in-place
            config_path: Path to save the configuration file

        Returns:
            The validated, saved Settings instance

        Raises:
            ApplicationError: If validation fails or save operation fails
        """
        config_path = Path(config_path)

        with self._lock:
            try:
                current = self.get_config()
                updated = current.model_copy(deep=True)
                updater(updated)

                # Assignments on a copy bypass validation; re-validate the whole tree
                validated = Settings.model_validate(updated.model_dump())
                validated.to_toml_file(config_path)

                self._instance = validated
                logger.info(
                    "Configuration updated and saved successfully to %s", config_path
                )
                return validated

            except (ValidationError, ValueError, TypeError, OSError) as e:
                logger.exception("Failed to update and save configuration")
                raise ApplicationError(
                    code=ErrorCode.CONFIG_INVALID,
                    message=f"Configuration update failed: {e}",
                    context=ErrorContext(
                        operation="update_and_save_config",
                        additional_data={"config_path": str(config_path)},
                    ),
                    original_error=e,
                ) from e


def _load_env_file(env_file: Path = Path(".env")) -> None:
    """Load environment variables from a .env file when one exists.

    Variables already present in the process environment win.
    """
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from TOML configuration file or environment.

    Args:
        config_path: Optional path to TOML configuration file. If None, tries
            the default locations, then falls back to environment variables.

    Returns:
        Settings instance loaded from the specified source

    Raises:
        ApplicationError: If the configuration is invalid or the explicit
            config file does not exist
    """
    _load_env_file()

    context = ErrorContext(
        operation="load_settings",
        additional_data={"config_path": str(config_path) if config_path else ""},
    )
    try:
        if config_path:
            return Settings.from_toml_file(config_path)

        default_config_paths = [
            DEFAULT_CONFIG_PATH,
            Path("config.toml"),
            Path.home() / ".shipvault" / "config.toml",
        ]
        for candidate in default_config_paths:
            if candidate.exists():
                return Settings.from_toml_file(candidate)

        return Settings()

    except FileNotFoundError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIG_MISSING,
            message=str(e),
            context=context,
            original_error=e,
        ) from e
    except ValidationError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIG_INVALID,
            message=f"Invalid configuration: {e.error_count()} error(s)",
            context=context,
            original_error=e,
        ) from e


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config(config_path)


def reset_config() -> None:
    """Forget the global settings instance."""
    _loader.reset()


def update_and_save_config(
    updater: Callable[[Settings], None],
    config_path: Path | str = DEFAULT_CONFIG_PATH,
) -> Settings:
    """Update configuration, validate, save to file, and reload global cache.

    Args:
        updater: Callable that modifies Settings object in-place
        config_path: Path to save the configuration file

    Returns:
        The saved Settings instance
    """
    return _loader.update_and_save_config(updater, config_path)


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
    "update_and_save_config",
]
