"""
ShipVault Constants Module

Centralized constants for HTTP handling, the shipping provider and the cache.
"""

from .cache import CacheCategory, CacheDefaults, CacheTTL
from .http_codes import ContentTypes, HTTPHeaders, HTTPStatusCodes
from .provider import (
    Couriers,
    PriceTiers,
    ProviderEndpoints,
    ResponseMarkers,
    WeightRules,
)

__all__ = [
    "CacheCategory",
    "CacheDefaults",
    "CacheTTL",
    "ContentTypes",
    "Couriers",
    "HTTPHeaders",
    "HTTPStatusCodes",
    "PriceTiers",
    "ProviderEndpoints",
    "ResponseMarkers",
    "WeightRules",
]
