"""Settings command handlers for the ShipVault CLI."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from shipvault.cli.common.context import get_cli_context
from shipvault.cli.common.setup_decorator import EXIT_SUCCESS, setup_handler
from shipvault.cli.json_formatter import format_json_output, write_json_output
from shipvault.config import Settings, update_and_save_config
from shipvault.config.loader import DEFAULT_CONFIG_PATH
from shipvault.services.provider.credential_pool import Credential
from shipvault.shared.errors import CliError, ErrorCode, ErrorContext


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for name, value in data.items():
        path = f"{prefix}{name}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{path}."))
        else:
            flat[path] = value
    return flat


def masked_settings(settings: Settings) -> dict[str, Any]:
    """Settings as JSON-ready dict with API keys masked."""
    data = settings.model_dump(mode="json")
    data["provider"]["api_keys"] = [
        Credential(secret, ordinal).masked
        for ordinal, secret in enumerate(settings.provider.api_keys)
    ]
    return data


@setup_handler("settings show")
def handle_settings_show(settings: Settings) -> int:
    data = masked_settings(settings)
    if get_cli_context().json_output:
        write_json_output(format_json_output(True, "settings show", data=data))
        return EXIT_SUCCESS

    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in _flatten(data).items():
        table.add_row(key, ", ".join(value) if isinstance(value, list) else str(value))
    Console().print(table)
    return EXIT_SUCCESS


def _resolve_target(settings: Settings, dotted_key: str) -> tuple[BaseModel, str]:
    *parents, field_name = dotted_key.split(".")
    target: Any = settings
    for part in parents:
        target = getattr(target, part, None)
    if not parents or not isinstance(target, BaseModel) or field_name not in type(target).model_fields:
        raise CliError(
            ErrorCode.CLI_INVALID_ARGUMENTS,
            f"Unknown setting: {dotted_key}",
            context=ErrorContext(operation="settings_set", additional_data={"key": dotted_key}),
            command="settings set",
            exit_code=2,
        )
    return target, field_name


def parse_setting_value(current: Any, raw: str) -> Any:
    """Turn a command-line string into a value for an existing field.

    Lists are given comma-separated; everything else is left to the
    model's validation.
    """
    if isinstance(current, list):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw


@setup_handler("settings set")
def handle_settings_set(settings: Settings, dotted_key: str, raw_value: str) -> int:
    """Update one setting and write the configuration file.

    Example:
        shipvault settings set cache.ttl_hours 48
    """
    target, field_name = _resolve_target(settings, dotted_key)
    value = parse_setting_value(getattr(target, field_name), raw_value)
    config_path = get_cli_context().config_path or DEFAULT_CONFIG_PATH

    def updater(updated: Settings) -> None:
        section, name = _resolve_target(updated, dotted_key)
        setattr(section, name, value)

    saved = update_and_save_config(updater, config_path)
    shown = _flatten(masked_settings(saved))[dotted_key]

    if get_cli_context().json_output:
        write_json_output(
            format_json_output(
                True,
                "settings set",
                data={"key": dotted_key, "value": shown, "config_path": str(config_path)},
            )
        )
    else:
        Console().print(f"[green]{dotted_key} = {shown}[/green] (saved to {config_path})")
    return EXIT_SUCCESS
