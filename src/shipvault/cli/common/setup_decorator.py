"""Command setup and error handling decorator.

Every command handler receives loaded Settings as its first argument,
runs with logging configured from the CLI context, and returns an exit
code. Exceptions are turned into an error message and an exit code at
this single boundary.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from shipvault.cli.common.context import get_cli_context
from shipvault.cli.common.error_handler import handle_cli_error
from shipvault.config import Settings, get_config, reload_config
from shipvault.shared.logging import setup_structured_logger

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., int])

EXIT_SUCCESS = 0


def load_cli_settings() -> Settings:
    """Load settings from --config when given, else from the default locations."""
    context = get_cli_context()
    if context.config_path is not None:
        return reload_config(context.config_path)
    return get_config()


def configure_logging(settings: Settings) -> None:
    context = get_cli_context()
    setup_structured_logger(
        name="shipvault",
        level=context.get_effective_log_level(),
        log_file=settings.logging.file,
        use_rich_console=settings.logging.console_output,
    )


def setup_handler(command_name: str) -> Callable[[F], Callable[..., int]]:
    """Decorator wiring settings, logging and error handling into a handler.

    Args:
        command_name: Command name used in error output (e.g. "cache list")

    Example:
        >>> @setup_handler("rate")
        ... def handle_rate_command(settings, origin, destination, ...):
        ...     ...
        ...     return EXIT_SUCCESS
    """

    def decorator(func: F) -> Callable[..., int]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            json_output = get_cli_context().json_output
            try:
                settings = load_cli_settings()
                configure_logging(settings)
                logger.debug("Running command %s", command_name)
                return func(settings, *args, **kwargs)
            except Exception as e:  # noqa: BLE001
                # Command boundary: every failure becomes a message and an exit code
                return handle_cli_error(e, command_name, json_output=json_output)

        return wrapper

    return decorator


__all__ = ["EXIT_SUCCESS", "configure_logging", "load_cli_settings", "setup_handler"]
