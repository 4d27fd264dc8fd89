"""Update operations for SQLite cache.

This module provides delete and purge operations for cache management.
"""

from __future__ import annotations

import logging

from shipvault.services.cache_models import CacheCategory
from shipvault.services.sqlite_cache.operations.base import (
    TABLE,
    BaseOperation,
    format_timestamp,
)

logger = logging.getLogger(__name__)


class UpdateOperations(BaseOperation):
    """Delete/purge operations for cache management."""

    def delete(self, category: CacheCategory, key: str) -> bool:
        """Delete cache entry by key.

        Args:
            category: Cache category
            key: Cache key identifier

        Returns:
            True if deleted, False if not found
        """
        self._validate_connection()

        _, key_hash = self._generate_cache_key_hash(key)
        category = CacheCategory(category)

        cursor = self.conn.execute(
            f"DELETE FROM {TABLE} WHERE key_hash = ? AND category = ?",
            (key_hash, category.value),
        )
        deleted = cursor.rowcount > 0

        if deleted:
            logger.debug(
                "Cache deleted: key=%s (hash=%s...), category=%s",
                key[:50],
                key_hash[:16],
                category.value,
            )
        return deleted

    def purge_expired(self, category: CacheCategory | None = None) -> int:
        """Purge entries whose expiry has passed.

        Args:
            category: Restrict to one category (None for all)

        Returns:
            Number of purged entries
        """
        self._validate_connection()

        now = format_timestamp(self.clock())
        if category is None:
            cursor = self.conn.execute(
                f"DELETE FROM {TABLE} WHERE expires_at <= ?", (now,)
            )
        else:
            cursor = self.conn.execute(
                f"DELETE FROM {TABLE} WHERE category = ? AND expires_at <= ?",
                (CacheCategory(category).value, now),
            )

        purged_count = cursor.rowcount
        if purged_count > 0:
            logger.info("Purged %d expired cache entries", purged_count)
        return purged_count

    def clear(self, category: CacheCategory | None = None) -> int:
        """Clear cache entries regardless of expiry.

        Args:
            category: Category to clear (None for all categories)

        Returns:
            Number of cleared entries
        """
        self._validate_connection()

        if category is not None:
            category = CacheCategory(category)
            cursor = self.conn.execute(
                f"DELETE FROM {TABLE} WHERE category = ?", (category.value,)
            )
            logger.info("Cleared cache for category: %s", category.value)
        else:
            cursor = self.conn.execute(f"DELETE FROM {TABLE}")
            logger.info("Cleared all cache entries")

        return cursor.rowcount
