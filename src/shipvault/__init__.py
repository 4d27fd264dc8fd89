"""
ShipVault - Resilient Shipping Rate Lookup

Shipping cost and administrative geography lookups against a rate-limited
carrier aggregation API, backed by a weight-bucketed TTL cache.
"""

__version__ = "0.1.0"
__author__ = "ShipVault Team"

from .core import billable_weight_kg, build_rate_cache_key, build_reference_cache_key

__all__ = [
    "billable_weight_kg",
    "build_rate_cache_key",
    "build_reference_cache_key",
]
