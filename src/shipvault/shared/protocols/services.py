"""Service protocols for dependency inversion.

The lookup services depend on these interfaces rather than on the SQLite
store, so another key-value backend can be swapped in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from shipvault.services.cache_models import CacheCategory, CacheEntry


class CacheStoreProtocol(Protocol):
    """Protocol for the TTL cache store.

    Implementations must treat an entry with ``expires_at <= now`` as
    absent, and must not raise from ``get`` or ``set``: backend failures
    are reported as a miss and as ``False`` respectively.

    Example:
        >>> from shipvault.services.sqlite_cache import SQLiteCacheDB
        >>> store: CacheStoreProtocol = SQLiteCacheDB("cache.db")
    """

    def get(self, category: CacheCategory, key: str) -> CacheEntry | None:
        """Return the live entry for a key, or None."""

    def set(
        self,
        category: CacheCategory,
        key: str,
        payload: bytes,
        ttl_seconds: int,
    ) -> bool:
        """Overwrite the entry for a key; return whether it was written."""

    def list_by_category(
        self,
        category: CacheCategory,
        *,
        include_expired: bool = True,
    ) -> list[CacheEntry]:
        """List entries of one category."""

    def delete_expired(self, category: CacheCategory | None = None) -> int:
        """Remove expired entries; return how many were removed."""

    def delete_key(self, category: CacheCategory, key: str) -> bool:
        """Remove one entry; return whether it existed."""
