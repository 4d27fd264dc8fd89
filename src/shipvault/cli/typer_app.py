"""
ShipVault Typer CLI Application

Command-line access to cached shipping rate and location lookups plus
administration of the local cache and configuration file.
"""

from __future__ import annotations

import typer

from shipvault import __version__
from shipvault.cli.cache_handler import (
    handle_cache_clear,
    handle_cache_delete,
    handle_cache_info,
    handle_cache_list,
    handle_cache_purge,
)
from shipvault.cli.common.context import CliContext, LogLevel, set_cli_context
from shipvault.cli.common.options import (
    ConfigOption,
    JsonOutputOption,
    LogLevelOption,
    VerboseOption,
    VersionOption,
)
from shipvault.cli.rate_handler import handle_rate_command
from shipvault.cli.reference_handler import handle_reference_command
from shipvault.cli.settings_handler import handle_settings_set, handle_settings_show
from shipvault.core.cache_keys import ReferenceType
from shipvault.services.cache_models import CacheCategory


def _exit_with(code: int) -> None:
    if code:
        raise typer.Exit(code)


app = typer.Typer(
    name="shipvault",
    help="Cached shipping rate and location lookups.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    invoke_without_command=True,
)
cache_app = typer.Typer(help="Inspect and maintain the local response cache.", no_args_is_help=True)
settings_app = typer.Typer(help="Show or change configuration.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")
app.add_typer(settings_app, name="settings")


@app.callback()
def main(
    verbose: VerboseOption = 0,
    log_level: LogLevelOption = LogLevel.WARNING,
    json_output: JsonOutputOption = False,
    config: ConfigOption = None,
    version: VersionOption = False,
) -> None:
    """Set up the CLI context shared by every command."""
    if version:
        typer.echo(f"shipvault {__version__}")
        raise typer.Exit
    set_cli_context(
        CliContext(
            verbose=verbose,
            log_level=log_level,
            json_output=json_output,
            config_path=config,
        )
    )


@app.command("rate")
def rate_command(
    origin: str = typer.Argument(..., help="Origin location id"),
    destination: str = typer.Argument(..., help="Destination location id"),
    weight: int = typer.Argument(..., help="Package weight in grams", min=1),
    courier: list[str] | None = typer.Option(
        None,
        "--courier",
        "-k",
        help="Courier code; repeat for several. Omit to query every default courier.",
    ),
    price_tier: str | None = typer.Option(
        None, "--price", help="Price tier: lowest, highest or all"
    ),
) -> None:
    """
    Look up shipping costs between two locations.

    Examples:
        shipvault rate 607 114 1200 --courier jne

        shipvault --json rate 607 114 1300
    """
    _exit_with(handle_rate_command(origin, destination, weight, courier or [], price_tier))


@app.command("reference")
def reference_command(
    reference_type: ReferenceType = typer.Argument(..., help="Geography level"),
    parent: str | None = typer.Option(
        None,
        "--parent",
        "-p",
        help="Parent id (province for cities, city for districts, district for subdistricts)",
    ),
) -> None:
    """List provinces, cities, districts or subdistricts."""
    _exit_with(handle_reference_command(reference_type, parent))


@cache_app.command("list")
def cache_list_command(
    category: CacheCategory = typer.Argument(CacheCategory.SHIPPING_RATE),
    include_expired: bool = typer.Option(
        True, "--include-expired/--active-only", help="Show expired entries too"
    ),
) -> None:
    """List cached entries of one category."""
    _exit_with(handle_cache_list(category, include_expired))


@cache_app.command("purge")
def cache_purge_command(
    category: CacheCategory | None = typer.Argument(None),
) -> None:
    """Remove expired entries."""
    _exit_with(handle_cache_purge(category))


@cache_app.command("delete")
def cache_delete_command(
    category: CacheCategory = typer.Argument(...),
    key: str = typer.Argument(..., help="Cache key, e.g. 607_114_1000_jne"),
) -> None:
    """Delete one cached entry."""
    _exit_with(handle_cache_delete(category, key))


@cache_app.command("clear")
def cache_clear_command(
    category: CacheCategory | None = typer.Argument(None),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Remove every cached entry (or every entry of one category)."""
    if not yes:
        scope = category.value if category else "all categories"
        typer.confirm(f"Clear cached entries of {scope}?", abort=True)
    _exit_with(handle_cache_clear(category))


@cache_app.command("info")
def cache_info_command(
    category: CacheCategory | None = typer.Argument(None),
) -> None:
    """Show entry counts and TTLs."""
    _exit_with(handle_cache_info(category))


@settings_app.command("show")
def settings_show_command() -> None:
    """Show the effective settings (API keys masked)."""
    _exit_with(handle_settings_show())


@settings_app.command("set")
def settings_set_command(
    key: str = typer.Argument(..., help="Dotted setting name, e.g. cache.ttl_hours"),
    value: str = typer.Argument(..., help="New value; lists are comma-separated"),
) -> None:
    """Change one setting and save it to the configuration file."""
    _exit_with(handle_settings_set(key, value))


if __name__ == "__main__":
    app()
