"""Cache administration handlers for the ShipVault CLI.

These work on the SQLite store directly and never contact the provider,
so they run without API keys.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.table import Table

from shipvault.cli.common.context import get_cli_context
from shipvault.cli.common.setup_decorator import EXIT_SUCCESS, setup_handler
from shipvault.cli.json_formatter import format_json_output, write_json_output
from shipvault.config import Settings
from shipvault.services.cache_models import CacheCategory
from shipvault.services.sqlite_cache import SQLiteCacheDB

logger = logging.getLogger(__name__)


def _open_cache(settings: Settings) -> SQLiteCacheDB:
    return SQLiteCacheDB.from_settings(settings.cache)


def _emit(command: str, data: object, message: str) -> None:
    if get_cli_context().json_output:
        write_json_output(format_json_output(True, command, data=data))
    else:
        Console().print(message)


@setup_handler("cache list")
def handle_cache_list(
    settings: Settings,
    category: CacheCategory,
    include_expired: bool = True,
) -> int:
    """Print the entries of one category, newest first."""
    with _open_cache(settings) as cache:
        entries = cache.list_by_category(category, include_expired=include_expired)
        now = cache.clock()

    summaries = [entry.summary(now) for entry in entries]
    if get_cli_context().json_output:
        write_json_output(
            format_json_output(
                True,
                "cache list",
                data={"category": category.value, "total": len(summaries), "entries": summaries},
            )
        )
        return EXIT_SUCCESS

    console = Console()
    if not summaries:
        console.print(f"[yellow]No cached {category.value} entries.[/yellow]")
        return EXIT_SUCCESS

    table = Table(title=f"Cache: {category.value}")
    table.add_column("Key", style="cyan")
    table.add_column("Created")
    table.add_column("Expires")
    table.add_column("Hits", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    for summary in summaries:
        table.add_row(
            summary["cache_key"],
            summary["created_at"],
            summary["expires_at"],
            str(summary["hit_count"]),
            str(summary["payload_size"]),
            "[red]expired[/red]" if summary["is_expired"] else "[green]active[/green]",
        )
    console.print(table)
    return EXIT_SUCCESS


@setup_handler("cache purge")
def handle_cache_purge(settings: Settings, category: CacheCategory | None = None) -> int:
    """Remove expired entries."""
    with _open_cache(settings) as cache:
        removed = cache.delete_expired(category)

    scope = category.value if category else "all categories"
    _emit(
        "cache purge",
        {"removed": removed, "category": category.value if category else None},
        f"[green]Removed {removed} expired entries from {scope}.[/green]",
    )
    return EXIT_SUCCESS


@setup_handler("cache delete")
def handle_cache_delete(settings: Settings, category: CacheCategory, key: str) -> int:
    """Delete one entry by key."""
    with _open_cache(settings) as cache:
        deleted = cache.delete_key(category, key)

    message = (
        f"[green]Deleted {key}.[/green]"
        if deleted
        else f"[yellow]No {category.value} entry named {key}.[/yellow]"
    )
    _emit("cache delete", {"deleted": deleted, "category": category.value, "key": key}, message)
    return EXIT_SUCCESS


@setup_handler("cache clear")
def handle_cache_clear(settings: Settings, category: CacheCategory | None = None) -> int:
    """Remove every entry of a category, or everything."""
    with _open_cache(settings) as cache:
        removed = cache.clear(category)

    scope = category.value if category else "all categories"
    _emit(
        "cache clear",
        {"removed": removed, "category": category.value if category else None},
        f"[green]Removed {removed} entries from {scope}.[/green]",
    )
    return EXIT_SUCCESS


@setup_handler("cache info")
def handle_cache_info(settings: Settings, category: CacheCategory | None = None) -> int:
    """Print entry counts and TTL configuration."""
    with _open_cache(settings) as cache:
        info = cache.get_cache_info(category)

    info["ttl_hours"] = {
        item.value: settings.cache.ttl_hours_for(item) for item in CacheCategory
    }
    if get_cli_context().json_output:
        write_json_output(format_json_output(True, "cache info", data=info))
        return EXIT_SUCCESS

    table = Table(title="Cache Info", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field in ("db_path", "total", "active", "expired", "total_size_bytes"):
        table.add_row(field, str(info[field]))
    for name, hours in info["ttl_hours"].items():
        table.add_row(f"ttl.{name}", f"{hours} h")
    Console().print(table)
    return EXIT_SUCCESS
