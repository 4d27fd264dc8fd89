"""ShipVault services: cache store, provider client and lookup services."""

from shipvault.services.cache_models import CacheCategory, CacheEntry
from shipvault.services.gateway import ShippingGateway
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

__all__ = [
    "AllCouriersResult",
    "CacheCategory",
    "CacheEntry",
    "RateLookupResult",
    "RateLookupService",
    "RateRequest",
    "ReferenceLookupResult",
    "ReferenceLookupService",
    "SQLiteCacheDB",
    "ShippingGateway",
]
