"""Cache configuration model.

TTLs per cache category plus housekeeping options for the SQLite store.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from shipvault.shared.constants import CacheCategory, CacheDefaults, CacheTTL

_SECONDS_PER_HOUR = 3600


def _ttl_field(default: int, description: str) -> int:
    return Field(  # type: ignore[no-any-return]
        default=default,
        ge=CacheTTL.MIN_HOURS,
        le=CacheTTL.MAX_HOURS,
        description=description,
    )


class CacheSettings(BaseModel):
    """Cache configuration.

    All TTLs are in hours and bounded to between 1 hour and 1 year.
    Shipping rates are additionally capped by ``max_age_days``.
    """

    ttl_hours: int = _ttl_field(
        CacheTTL.SHIPPING_RATE_HOURS, "Shipping rate time-to-live in hours"
    )
    max_age_days: int = Field(
        default=CacheTTL.DEFAULT_MAX_AGE_DAYS,
        ge=CacheTTL.MIN_MAX_AGE_DAYS,
        le=CacheTTL.MAX_MAX_AGE_DAYS,
        description="Upper bound on shipping rate age in days",
    )
    auto_cleanup_expired: bool = Field(
        default=True,
        description="Purge expired entries when the cache store opens",
    )

    province_ttl_hours: int = _ttl_field(
        CacheTTL.PROVINCE_HOURS, "Province list time-to-live in hours"
    )
    city_ttl_hours: int = _ttl_field(
        CacheTTL.CITY_HOURS, "City list time-to-live in hours"
    )
    district_ttl_hours: int = _ttl_field(
        CacheTTL.DISTRICT_HOURS, "District list time-to-live in hours"
    )
    subdistrict_ttl_hours: int = _ttl_field(
        CacheTTL.SUBDISTRICT_HOURS, "Subdistrict list time-to-live in hours"
    )

    db_path: Path = Field(
        default=Path(".shipvault") / CacheDefaults.DB_FILENAME,
        description="SQLite cache database file",
    )

    def ttl_hours_for(self, category: CacheCategory | str) -> int:
        """Effective TTL in hours for a cache category."""
        category = CacheCategory(category)
        if category is CacheCategory.SHIPPING_RATE:
            return min(self.ttl_hours, self.max_age_days * 24)
        return {
            CacheCategory.ADDRESS_PROVINCE: self.province_ttl_hours,
            CacheCategory.ADDRESS_CITY: self.city_ttl_hours,
            CacheCategory.ADDRESS_DISTRICT: self.district_ttl_hours,
            CacheCategory.ADDRESS_SUBDISTRICT: self.subdistrict_ttl_hours,
        }[category]

    def ttl_seconds_for(self, category: CacheCategory | str) -> int:
        """Effective TTL in seconds for a cache category."""
        return self.ttl_hours_for(category) * _SECONDS_PER_HOUR


__all__ = ["CacheSettings"]
