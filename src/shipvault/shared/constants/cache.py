"""Cache Configuration Constants.

TTL defaults and bounds for the provider response cache.
"""

from __future__ import annotations

from enum import Enum


class CacheTTL:
    """Default TTLs in hours."""

    SHIPPING_RATE_HOURS = 720  # 30 days
    PROVINCE_HOURS = 24 * 30 * 6  # 6 months
    CITY_HOURS = 720
    DISTRICT_HOURS = 720
    SUBDISTRICT_HOURS = 720

    MIN_HOURS = 1
    MAX_HOURS = 8760  # 1 year

    DEFAULT_MAX_AGE_DAYS = 60
    MIN_MAX_AGE_DAYS = 1
    MAX_MAX_AGE_DAYS = 365


class CacheDefaults:
    """SQLite cache defaults."""

    DB_FILENAME = "provider_cache.db"
    TABLE_NAME = "provider_cache"
    # Timestamps are stored in this fixed-width format so string order is time order
    TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class CacheCategory(str, Enum):
    """Namespaces of the provider cache. Keys are unique within a category."""

    SHIPPING_RATE = "shipping_rate"
    ADDRESS_PROVINCE = "address_province"
    ADDRESS_CITY = "address_city"
    ADDRESS_DISTRICT = "address_district"
    ADDRESS_SUBDISTRICT = "address_subdistrict"
