"""
CLI Error Handling Utilities

Maps exceptions raised by commands to CliError, logs them, and prints them
as rich console text or as the JSON envelope.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape

from shipvault.cli.json_formatter import format_json_output, write_json_output
from shipvault.shared.errors import (
    CliError,
    DomainError,
    ErrorCode,
    LookupFailedError,
    ShipVaultError,
)

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def handle_cli_error(
    error: Exception,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Handle CLI errors with consistent formatting and logging.

    Args:
        error: The exception that occurred
        command: The CLI command being executed
        json_output: Whether to output JSON format

    Returns:
        Exit code for the CLI command
    """
    cli_error = _map_error_to_cli_error(error, command)
    _log_error(error, command, cli_error)
    _output_error(cli_error, error, command, json_output=json_output)
    return cli_error.exit_code


def _map_error_to_cli_error(error: Exception, command: str) -> CliError:
    if isinstance(error, CliError):
        return error

    if isinstance(error, LookupFailedError):
        return CliError(
            ErrorCode.CLI_COMMAND_FAILED,
            f"{error.user_message} ({error.kind.value})",
            command=command,
            original_error=error,
        )

    if isinstance(error, DomainError):
        return CliError(
            ErrorCode.CLI_INVALID_ARGUMENTS,
            f"Invalid input: {error.message}",
            command=command,
            original_error=error,
            exit_code=EXIT_USAGE,
        )

    if isinstance(error, ShipVaultError):
        return CliError(
            ErrorCode.CLI_COMMAND_FAILED,
            f"{error.code.value}: {error.message}",
            command=command,
            original_error=error,
        )

    if isinstance(error, KeyboardInterrupt):
        return CliError(
            ErrorCode.CLI_COMMAND_FAILED,
            "Command interrupted by user",
            command=command,
            original_error=error,
            exit_code=EXIT_INTERRUPTED,
        )

    return CliError(
        ErrorCode.CLI_COMMAND_FAILED,
        f"Unexpected error: {error}",
        command=command,
        original_error=error,
    )


def _log_error(error: Exception, command: str, cli_error: CliError) -> None:
    context: dict[str, Any] = {
        "command": command,
        "error_type": type(error).__name__,
        "error_code": cli_error.code.value,
    }
    if isinstance(error, (ShipVaultError, KeyboardInterrupt)):
        logger.warning(
            "CLI error in %s: %s", command, cli_error.message, extra={"context": context}
        )
    else:
        logger.exception(
            "CLI error in %s: %s", command, cli_error.message, extra={"context": context}
        )


def _output_error(
    cli_error: CliError,
    error: Exception,
    command: str,
    *,
    json_output: bool,
) -> None:
    if json_output:
        data: dict[str, Any] = {
            "error_code": cli_error.code.value,
            "error_type": type(error).__name__,
            "exit_code": cli_error.exit_code,
        }
        if isinstance(error, ShipVaultError):
            data["error"] = error.to_dict()
        write_json_output(
            format_json_output(
                success=False,
                command=command,
                data=data,
                errors=[cli_error.message],
            )
        )
    else:
        Console(file=sys.stderr).print(f"[red]Error:[/red] {escape(cli_error.message)}")


__all__ = ["handle_cli_error"]
