"""
CLI Context Management Module

Global CLI state shared by every Typer command, held in a ContextVar:
- log_level: Logging level (enum-based)
- json_output: JSON output mode
- config_path: Explicit configuration file, if any
"""

from __future__ import annotations

import contextvars
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        verbose: Verbosity level (0 = normal, 1+ = verbose)
        log_level: Logging level
        json_output: Whether to output in JSON format
        config_path: Configuration file given with --config
    """

    verbose: int = Field(default=0, ge=0)
    log_level: LogLevel = Field(default=LogLevel.WARNING)
    json_output: bool = Field(default=False)
    config_path: Path | None = Field(default=None)

    def get_effective_log_level(self) -> str:
        """Log level after applying the verbose override."""
        if self.verbose > 0:
            return LogLevel.DEBUG.value
        return self.log_level.value


_cli_context: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "shipvault_cli_context", default=None
)


def get_cli_context() -> CliContext:
    """Return the current CLI context, or defaults outside a CLI run."""
    return _cli_context.get() or CliContext()


def set_cli_context(context: CliContext) -> None:
    _cli_context.set(context)


def clear_cli_context() -> None:
    _cli_context.set(None)


__all__ = [
    "CliContext",
    "LogLevel",
    "clear_cli_context",
    "get_cli_context",
    "set_cli_context",
]
