"""Cache entry Dataclass models.

This module defines the dataclass for provider cache entries, providing
type safety and validation for cached shipping rates and reference data.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import orjson

from shipvault.shared.constants import CacheCategory

# Explicitly export for mypy
__all__ = ["CacheCategory", "CacheEntry"]


@dataclass
class CacheEntry:
    """Provider cache entry domain model.

    Attributes:
        cache_key: Composite key (e.g., "607_114_1000_jne" or "cities_5")
        category: Cache category the key lives in
        payload: Normalized response serialized as JSON bytes
        created_at: When the entry was written (UTC)
        expires_at: When the entry stops being served (UTC)
        hit_count: Number of reads that returned this entry
        last_accessed_at: Last read timestamp (None if never read)

    Example:
        >>> now = datetime.now(timezone.utc)
        >>> entry = CacheEntry(
        ...     cache_key="607_114_1000_jne",
        ...     category=CacheCategory.SHIPPING_RATE,
        ...     payload=b"[]",
        ...     created_at=now,
        ...     expires_at=now + timedelta(hours=720),
        ... )
    """

    cache_key: str
    category: CacheCategory
    payload: bytes
    created_at: datetime
    expires_at: datetime

    hit_count: int = 0
    last_accessed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate CacheEntry fields after initialization.

        Raises:
            ValueError: If validation fails for any field

        Note:
            - cache_key must be non-empty after stripping whitespace
            - timestamps must be timezone-aware
            - expires_at must be strictly after created_at
            - hit_count must be non-negative
        """
        if not self.cache_key or not self.cache_key.strip():
            msg = "cache_key must be non-empty"
            raise ValueError(msg)
        self.cache_key = self.cache_key.strip()

        self.category = CacheCategory(self.category)

        if not isinstance(self.payload, bytes):
            msg = f"payload must be bytes, got {type(self.payload).__name__}"
            raise TypeError(msg)

        for name in ("created_at", "expires_at"):
            value = getattr(self, name)
            if value.tzinfo is None:
                msg = f"{name} must be timezone-aware"
                raise ValueError(msg)

        if self.expires_at <= self.created_at:
            msg = f"expires_at ({self.expires_at}) must be after created_at ({self.created_at})"
            raise ValueError(msg)

        if self.hit_count < 0:
            msg = f"hit_count must be non-negative, got {self.hit_count}"
            raise ValueError(msg)

    @property
    def payload_size(self) -> int:
        return len(self.payload)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the entry is past its expiry.

        An entry is expired once ``expires_at <= now``.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            True if the entry must be treated as absent
        """
        if now is None:
            now = datetime.now(timezone.utc)
        return self.expires_at <= now

    def age_days(self, now: datetime | None = None) -> int:
        """Whole days since the entry was written."""
        if now is None:
            now = datetime.now(timezone.utc)
        return max(0, (now - self.created_at).days)

    def decode(self) -> Any:
        """Deserialize the payload.

        Raises:
            orjson.JSONDecodeError: If the payload is not valid JSON
        """
        return orjson.loads(self.payload)

    def summary(self, now: datetime | None = None) -> dict[str, Any]:
        """Admin listing view of the entry (payload omitted)."""
        return {
            "cache_key": self.cache_key,
            "category": self.category.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "hit_count": self.hit_count,
            "last_accessed_at": (
                self.last_accessed_at.isoformat() if self.last_accessed_at else None
            ),
            "payload_size": self.payload_size,
            "age_days": self.age_days(now),
            "is_expired": self.is_expired(now),
        }
