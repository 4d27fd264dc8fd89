"""Application and logging configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppSettings(BaseModel):
    """Application configuration."""

    name: str = Field(default="ShipVault", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")


class LoggingSettings(BaseModel):
    """Logging configuration.

    Console output goes through rich; ``file`` adds a JSON-lines log.
    """

    level: str = Field(default="INFO", description="Logging level")
    file: str | None = Field(default=None, description="JSON log file path")
    console_output: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            msg = f"level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}"
            raise ValueError(msg)
        return level


__all__ = ["AppSettings", "LoggingSettings"]
