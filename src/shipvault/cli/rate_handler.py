"""Rate command handler for the ShipVault CLI."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from shipvault.cli.common.context import get_cli_context
from shipvault.cli.common.setup_decorator import EXIT_SUCCESS, setup_handler
from shipvault.cli.json_formatter import format_json_output, write_json_output
from shipvault.config import Settings
from shipvault.core.weight_bucket import WeightInfo
from shipvault.services.gateway import ShippingGateway
from shipvault.services.provider.provider_models import CourierRate
from shipvault.services.rate_lookup import AllCouriersResult, RateLookupResult

logger = logging.getLogger(__name__)


async def _lookup(
    settings: Settings,
    origin: str,
    destination: str,
    weight: int,
    couriers: Sequence[str],
    price_tier: str | None,
) -> RateLookupResult | AllCouriersResult:
    async with ShippingGateway.from_settings(settings) as gateway:
        if len(couriers) == 1:
            return await gateway.lookup_rate(
                origin, destination, weight, couriers[0], price_tier
            )
        return await gateway.lookup_all_couriers(
            origin, destination, weight, couriers or None, price_tier
        )


@setup_handler("rate")
def handle_rate_command(
    settings: Settings,
    origin: str,
    destination: str,
    weight: int,
    couriers: Sequence[str],
    price_tier: str | None = None,
) -> int:
    """Look up shipping rates and print them.

    One courier gives a single-courier lookup; several (or none, meaning
    the configured defaults) give a merged all-courier lookup.
    """
    result = asyncio.run(
        _lookup(settings, origin, destination, weight, couriers, price_tier)
    )

    if get_cli_context().json_output:
        write_json_output(format_json_output(True, "rate", data=result.to_dict()))
        return EXIT_SUCCESS

    failed = result.failed_couriers if isinstance(result, AllCouriersResult) else {}
    print_rates(Console(), result.rates, result.weight_info, result.cached, failed)
    return EXIT_SUCCESS


def print_rates(
    console: Console,
    rates: Sequence[CourierRate],
    weight_info: WeightInfo,
    cached: bool,
    failed_couriers: dict[str, str] | None = None,
) -> None:
    if not rates:
        console.print("[yellow]No services available for this route.[/yellow]")
    else:
        table = Table(title="Shipping Rates")
        table.add_column("Courier", style="cyan")
        table.add_column("Service", style="green")
        table.add_column("Description")
        table.add_column("Cost", justify="right", style="bold")
        table.add_column("ETD")
        for rate in rates:
            table.add_row(
                rate.courier_name or rate.courier_code.upper(),
                rate.service,
                rate.description,
                f"{rate.cost:,}",
                rate.etd,
            )
        console.print(table)

    console.print(f"[dim]{weight_info.explanation}[/dim]")
    console.print("[dim]Served from cache[/dim]" if cached else "[dim]Fetched from provider[/dim]")
    for courier, kind in (failed_couriers or {}).items():
        console.print(f"[yellow]{courier}: unavailable ({kind})[/yellow]")
