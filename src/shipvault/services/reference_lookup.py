"""Administrative geography lookups (provinces down to subdistricts).

Same read-through pattern as rate lookups, with one cache category per
geography level and much longer TTLs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import orjson

from shipvault.config.models.cache_settings import CacheSettings
from shipvault.core.cache_keys import ReferenceType, build_reference_cache_key
from shipvault.services.cache_models import CacheCategory
from shipvault.services.provider.provider_client import ProviderClient
from shipvault.services.provider.provider_models import normalize_reference_response
from shipvault.shared.constants import ProviderEndpoints
from shipvault.shared.errors import (
    ErrorContext,
    ReferenceLookupError,
    ShipVaultError,
)
from shipvault.shared.logging import log_operation_error
from shipvault.shared.protocols import CacheStoreProtocol

logger = logging.getLogger(__name__)

_CATEGORIES: dict[ReferenceType, CacheCategory] = {
    ReferenceType.PROVINCES: CacheCategory.ADDRESS_PROVINCE,
    ReferenceType.CITIES: CacheCategory.ADDRESS_CITY,
    ReferenceType.DISTRICTS: CacheCategory.ADDRESS_DISTRICT,
    ReferenceType.SUBDISTRICTS: CacheCategory.ADDRESS_SUBDISTRICT,
}

_ENDPOINTS: dict[ReferenceType, str] = {
    ReferenceType.PROVINCES: ProviderEndpoints.PROVINCES,
    ReferenceType.CITIES: ProviderEndpoints.CITIES,
    ReferenceType.DISTRICTS: ProviderEndpoints.DISTRICTS,
    ReferenceType.SUBDISTRICTS: ProviderEndpoints.SUBDISTRICTS,
}


def category_for(reference_type: ReferenceType) -> CacheCategory:
    return _CATEGORIES[reference_type]


@dataclass(frozen=True)
class ReferenceLookupResult:
    """Location records of one geography level."""

    reference_type: ReferenceType
    items: list[dict[str, str | None]]
    cached: bool
    cache_key: str
    parent_id: str | None = None
    cached_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.reference_type.value,
            "parent_id": self.parent_id,
            "cached": self.cached,
            "cache_key": self.cache_key,
            "cached_at": self.cached_at.isoformat() if self.cached_at else None,
            "total_results": len(self.items),
            "items": self.items,
        }


class ReferenceLookupService:
    """Cached provinces/cities/districts/subdistricts lookups."""

    def __init__(
        self,
        cache: CacheStoreProtocol,
        client: ProviderClient,
        cache_settings: CacheSettings | None = None,
    ) -> None:
        self.cache = cache
        self.client = client
        self.cache_settings = cache_settings or CacheSettings()

    async def lookup_reference(
        self,
        reference_type: ReferenceType | str,
        parent_id: str | int | None = None,
    ) -> ReferenceLookupResult:
        """Return the locations of one level, from cache when possible.

        Args:
            reference_type: provinces, cities, districts or subdistricts
            parent_id: Province id for cities, city id for districts,
                district id for subdistricts

        Returns:
            ReferenceLookupResult

        Raises:
            InvalidRequestError: Unknown type, or missing parent id for a scoped type
            ReferenceLookupError: When the provider could not produce the list
        """
        key = build_reference_cache_key(reference_type, parent_id)
        ref_type = ReferenceType(reference_type)
        parent = str(parent_id).strip() if ref_type.requires_parent else None
        category = category_for(ref_type)

        entry = await asyncio.to_thread(self.cache.get, category, key)
        if entry is not None:
            try:
                items = entry.decode()["items"]
            except (orjson.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning("Ignoring unreadable cache entry %s: %s", key, e)
            else:
                logger.debug("Reference lookup %s served from cache", key)
                return ReferenceLookupResult(
                    reference_type=ref_type,
                    items=items,
                    cached=True,
                    cache_key=key,
                    parent_id=parent,
                    cached_at=entry.created_at,
                )

        endpoint = _ENDPOINTS[ref_type].format(parent_id=parent)
        context = ErrorContext(
            operation="lookup_reference",
            additional_data={"cache_key": key, "endpoint": endpoint},
        )
        try:
            response = await self.client.request(endpoint, method="GET")
            items = normalize_reference_response(
                response.body, ref_type, parent_id=parent, endpoint=endpoint
            )
        except ShipVaultError as e:
            error = ReferenceLookupError(
                f"Reference lookup failed for {key}: {e.message}",
                kind=e.code,
                context=context,
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation="lookup_reference")
            raise error from e

        if items:
            payload = orjson.dumps(
                {"type": ref_type.value, "parent_id": parent, "items": items}
            )
            await asyncio.to_thread(
                self.cache.set,
                category,
                key,
                payload,
                self.cache_settings.ttl_seconds_for(category),
            )
        else:
            logger.debug("Not caching empty reference result for %s", key)

        return ReferenceLookupResult(
            reference_type=ref_type,
            items=items,
            cached=False,
            cache_key=key,
            parent_id=parent,
        )
