"""Query operations for SQLite cache.

This module provides query operations for retrieving cached data.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any

from shipvault.services.cache_models import CacheCategory, CacheEntry
from shipvault.services.sqlite_cache.operations.base import (
    TABLE,
    BaseOperation,
    format_timestamp,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "cache_key, category, payload, created_at, expires_at, "
    "hit_count, last_accessed_at"
)


def _build_cache_entry_from_row(row: tuple[Any, ...]) -> CacheEntry | None:
    """Build CacheEntry from a database row.

    Args:
        row: Row selected with the entry columns

    Returns:
        CacheEntry instance or None if the row is malformed
    """
    (
        cache_key,
        category,
        payload,
        created_at_str,
        expires_at_str,
        hit_count,
        last_accessed_at_str,
    ) = row
    try:
        return CacheEntry(
            cache_key=cache_key,
            category=CacheCategory(category),
            payload=bytes(payload),
            created_at=parse_timestamp(created_at_str),  # type: ignore[arg-type]
            expires_at=parse_timestamp(expires_at_str),  # type: ignore[arg-type]
            hit_count=hit_count or 0,
            last_accessed_at=parse_timestamp(last_accessed_at_str),
        )
    except (ValueError, TypeError) as e:
        logger.warning(
            "Failed to reconstruct CacheEntry for key %s: %s",
            str(cache_key)[:50],
            str(e),
        )
        return None


class QueryOperations(BaseOperation):
    """Query operations for cache retrieval."""

    def get(self, category: CacheCategory, key: str) -> CacheEntry | None:
        """Retrieve a live entry from cache.

        Expiry is evaluated against the clock at read time: an entry with
        ``expires_at <= now`` is reported as absent even if it is still
        stored.

        Args:
            category: Cache category
            key: Cache key identifier

        Returns:
            CacheEntry if found and not expired, None otherwise

        Raises:
            sqlite3.Error: If the select fails
        """
        self._validate_connection()

        _, key_hash = self._generate_cache_key_hash(key)
        category = CacheCategory(category)

        sql = f"""
        SELECT {_ENTRY_COLUMNS}
        FROM {TABLE}
        WHERE key_hash = ? AND category = ?
        """
        row = self.conn.execute(sql, (key_hash, category.value)).fetchone()

        if row is None:
            self.statistics.record_cache_miss(category.value)
            return None

        entry = _build_cache_entry_from_row(row)
        if entry is None:
            self.statistics.record_cache_miss(category.value)
            return None

        now = self.clock()
        if entry.is_expired(now):
            logger.debug("Cache entry expired for key: %s", key[:50])
            self.statistics.record_cache_miss(category.value)
            return None

        if self._update_access_stats(key_hash, category, now):
            entry.hit_count += 1
            entry.last_accessed_at = now

        self.statistics.record_cache_hit(category.value)

        logger.debug(
            "Cache hit: key=%s (hash=%s...), category=%s",
            key[:50],
            key_hash[:16],
            category.value,
        )
        return entry

    def _update_access_stats(
        self, key_hash: str, category: CacheCategory, now: datetime
    ) -> bool:
        """Increment hit_count and stamp last_accessed_at.

        Advisory only: a failure here must not turn a hit into an error.

        Returns:
            True if the row was updated
        """
        update_sql = f"""
        UPDATE {TABLE}
        SET hit_count = hit_count + 1,
            last_accessed_at = ?
        WHERE key_hash = ? AND category = ?
        """
        try:
            cursor = self.conn.execute(
                update_sql, (format_timestamp(now), key_hash, category.value)
            )
        except sqlite3.Error as e:
            logger.debug("Failed to update access stats: %s", str(e))
            return False
        return cursor.rowcount > 0

    def list_by_category(
        self,
        category: CacheCategory,
        *,
        include_expired: bool = True,
    ) -> list[CacheEntry]:
        """List entries of one category, newest first.

        Args:
            category: Cache category
            include_expired: Also return entries past their expiry

        Returns:
            Entries of the category
        """
        self._validate_connection()
        category = CacheCategory(category)

        sql = f"SELECT {_ENTRY_COLUMNS} FROM {TABLE} WHERE category = ?"
        params: tuple[Any, ...] = (category.value,)
        if not include_expired:
            sql += " AND expires_at > ?"
            params = (*params, format_timestamp(self.clock()))
        sql += " ORDER BY created_at DESC"

        entries = []
        for row in self.conn.execute(sql, params).fetchall():
            entry = _build_cache_entry_from_row(row)
            if entry is not None:
                entries.append(entry)
        return entries

    def count_entries(self, category: CacheCategory | None = None) -> dict[str, int]:
        """Count total, active and expired entries.

        Args:
            category: Restrict to one category (None for all)

        Returns:
            Dictionary with total, active, expired and total_size_bytes
        """
        self._validate_connection()
        now = format_timestamp(self.clock())

        sql = f"""
        SELECT COUNT(*),
               COALESCE(SUM(CASE WHEN expires_at > ? THEN 1 ELSE 0 END), 0),
               COALESCE(SUM(payload_size), 0)
        FROM {TABLE}
        """
        params: tuple[Any, ...] = (now,)
        if category is not None:
            sql += " WHERE category = ?"
            params = (now, CacheCategory(category).value)

        total, active, size = self.conn.execute(sql, params).fetchone()
        return {
            "total": total,
            "active": active,
            "expired": total - active,
            "total_size_bytes": size,
        }
