"""Insert operations for SQLite cache.

This module provides insert operations for storing cached data.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from shipvault.services.cache_models import CacheCategory, CacheEntry
from shipvault.services.sqlite_cache.operations.base import (
    TABLE,
    BaseOperation,
    format_timestamp,
)

logger = logging.getLogger(__name__)


class InsertOperations(BaseOperation):
    """Insert operations for cache storage."""

    def insert(
        self,
        category: CacheCategory,
        key: str,
        payload: bytes,
        ttl_seconds: int,
    ) -> CacheEntry:
        """Write an entry, replacing any previous one for the same key.

        The replacement is a whole-row overwrite: hit_count restarts at 0
        and created_at is the write time.

        Args:
            category: Cache category
            key: Cache key identifier
            payload: Serialized JSON bytes
            ttl_seconds: Time-to-live in seconds (positive)

        Returns:
            The entry as written

        Raises:
            ValueError: If the TTL is not positive or the key is empty
            sqlite3.Error: If the write fails
        """
        self._validate_connection()

        if ttl_seconds <= 0:
            msg = f"ttl_seconds must be positive, got {ttl_seconds}"
            raise ValueError(msg)

        _, key_hash = self._generate_cache_key_hash(key)
        created_at = self.clock()
        entry = CacheEntry(
            cache_key=key,
            category=category,
            payload=payload,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
        )

        insert_sql = f"""
        INSERT OR REPLACE INTO {TABLE} (
            cache_key, key_hash, category, payload,
            created_at, expires_at, hit_count, last_accessed_at, payload_size
        ) VALUES (?, ?, ?, ?, ?, ?, 0, NULL, ?)
        """
        self.conn.execute(
            insert_sql,
            (
                entry.cache_key,
                key_hash,
                entry.category.value,
                entry.payload,
                format_timestamp(entry.created_at),
                format_timestamp(entry.expires_at),
                entry.payload_size,
            ),
        )
        self.statistics.record_cache_write()

        logger.debug(
            "Cache inserted: key=%s (hash=%s...), category=%s, size=%d bytes, ttl=%ds",
            key[:50],
            key_hash[:16],
            entry.category.value,
            entry.payload_size,
            ttl_seconds,
        )
        return entry
