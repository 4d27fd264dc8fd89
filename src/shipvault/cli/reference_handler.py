"""Reference data command handler for the ShipVault CLI."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.table import Table

from shipvault.cli.common.context import get_cli_context
from shipvault.cli.common.setup_decorator import EXIT_SUCCESS, setup_handler
from shipvault.cli.json_formatter import format_json_output, write_json_output
from shipvault.config import Settings
from shipvault.core.cache_keys import ReferenceType
from shipvault.services.gateway import ShippingGateway
from shipvault.services.reference_lookup import ReferenceLookupResult


async def _lookup(
    settings: Settings,
    reference_type: ReferenceType,
    parent_id: str | None,
) -> ReferenceLookupResult:
    async with ShippingGateway.from_settings(settings) as gateway:
        return await gateway.lookup_reference(reference_type, parent_id)


@setup_handler("reference")
def handle_reference_command(
    settings: Settings,
    reference_type: ReferenceType,
    parent_id: str | None = None,
) -> int:
    """List provinces, or the cities/districts/subdistricts of a parent."""
    result = asyncio.run(_lookup(settings, reference_type, parent_id))

    if get_cli_context().json_output:
        write_json_output(format_json_output(True, "reference", data=result.to_dict()))
        return EXIT_SUCCESS

    console = Console()
    if not result.items:
        console.print(f"[yellow]No {reference_type.value} found.[/yellow]")
        return EXIT_SUCCESS

    table = Table(title=reference_type.value.capitalize())
    columns = list(result.items[0])
    for column in columns:
        table.add_column(column)
    for item in result.items:
        table.add_row(*(item.get(column) or "" for column in columns))
    console.print(table)
    console.print("[dim]Served from cache[/dim]" if result.cached else "[dim]Fetched from provider[/dim]")
    return EXIT_SUCCESS
