"""Core domain logic: weight bucketing, cache keys and lookup statistics."""

from .cache_keys import ReferenceType, build_rate_cache_key, build_reference_cache_key
from .statistics import StatisticsCollector
from .weight_bucket import (
    WeightInfo,
    billable_weight_grams,
    billable_weight_kg,
    describe_weight,
)

__all__ = [
    "ReferenceType",
    "StatisticsCollector",
    "WeightInfo",
    "billable_weight_grams",
    "billable_weight_kg",
    "build_rate_cache_key",
    "build_reference_cache_key",
    "describe_weight",
]
