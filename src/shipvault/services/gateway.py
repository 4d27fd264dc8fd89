"""Shipping gateway facade.

Wires the cache store, the provider client and both lookup services from
one Settings object so callers (the CLI, a web handler) deal with a single
object and a single shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from shipvault.config.models.settings import Settings
from shipvault.core.cache_keys import ReferenceType
from shipvault.core.statistics import StatisticsCollector
from shipvault.services.cache_models import CacheCategory, CacheEntry
from shipvault.services.provider.provider_client import ProviderClient
from shipvault.services.rate_lookup import (
    AllCouriersResult,
    RateLookupResult,
    RateLookupService,
    RateRequest,
)
from shipvault.services.reference_lookup import (
    ReferenceLookupResult,
    ReferenceLookupService,
)
from shipvault.services.sqlite_cache import SQLiteCacheDB

logger = logging.getLogger(__name__)


class ShippingGateway:
    """Entry point for rate and reference lookups.

    Args:
        cache: TTL cache store
        client: Provider client
        settings: Settings the services read their defaults from

    Example:
        >>> async with ShippingGateway.from_settings(get_config()) as gateway:
        ...     result = await gateway.lookup_rate("607", "114", 1200, "jne")
    """

    def __init__(
        self,
        cache: SQLiteCacheDB,
        client: ProviderClient,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache
        self.client = client
        self.rates = RateLookupService(
            cache,
            client,
            self.settings.cache,
            default_couriers=self.settings.provider.default_couriers,
            default_price_tier=self.settings.provider.default_price_tier,
        )
        self.references = ReferenceLookupService(cache, client, self.settings.cache)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        statistics: StatisticsCollector | None = None,
    ) -> ShippingGateway:
        """Build the cache store and provider client described by settings.

        Both share one statistics collector.

        Raises:
            InfrastructureError: If the cache database cannot be opened
        """
        statistics = statistics or StatisticsCollector()
        cache = SQLiteCacheDB.from_settings(settings.cache, statistics)
        client = ProviderClient.from_settings(settings.provider, statistics=statistics)
        logger.debug("Shipping gateway ready: %r, cache=%s", client.pool, cache.db_path)
        return cls(cache, client, settings)

    @property
    def statistics(self) -> StatisticsCollector:
        return self.cache.statistics

    async def lookup_rate(
        self,
        origin_id: str,
        destination_id: str,
        weight_grams: int,
        courier: str,
        price_tier: str | None = None,
    ) -> RateLookupResult:
        request = RateRequest(origin_id, destination_id, weight_grams, courier, price_tier)
        return await self.rates.lookup_rate(request)

    async def lookup_all_couriers(
        self,
        origin_id: str,
        destination_id: str,
        weight_grams: int,
        couriers: Sequence[str] | None = None,
        price_tier: str | None = None,
    ) -> AllCouriersResult:
        return await self.rates.lookup_all_couriers(
            origin_id, destination_id, weight_grams, couriers, price_tier
        )

    async def lookup_reference(
        self,
        reference_type: ReferenceType | str,
        parent_id: str | int | None = None,
    ) -> ReferenceLookupResult:
        return await self.references.lookup_reference(reference_type, parent_id)

    async def list_cached(
        self, category: CacheCategory, *, include_expired: bool = True
    ) -> list[CacheEntry]:
        return await asyncio.to_thread(
            self.cache.list_by_category, category, include_expired=include_expired
        )

    async def purge_expired(self, category: CacheCategory | None = None) -> int:
        return await asyncio.to_thread(self.cache.delete_expired, category)

    async def cache_info(self) -> dict[str, Any]:
        return await asyncio.to_thread(self.cache.get_cache_info)

    async def aclose(self) -> None:
        """Close the provider session and the cache connection."""
        try:
            await self.client.close()
        finally:
            self.cache.close()

    async def __aenter__(self) -> ShippingGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
