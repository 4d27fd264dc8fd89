"""SQLite cache database facade.

This module provides the TTL cache store used by the lookup services,
built from modular query/insert/update operations.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from shipvault.core.statistics import StatisticsCollector
from shipvault.services.cache_models import CacheCategory, CacheEntry
from shipvault.services.sqlite_cache.migration.manager import MigrationManager
from shipvault.services.sqlite_cache.operations.base import Clock, utc_now
from shipvault.services.sqlite_cache.operations.insert import InsertOperations
from shipvault.services.sqlite_cache.operations.query import QueryOperations
from shipvault.services.sqlite_cache.operations.update import UpdateOperations
from shipvault.shared.errors import (
    CacheUnavailableError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
)
from shipvault.shared.logging import log_operation_error, log_operation_success

if TYPE_CHECKING:
    from shipvault.config.models.cache_settings import CacheSettings

logger = logging.getLogger(__name__)


class SQLiteCacheDB:
    """SQLite-based provider response cache with a generic key-value layout.

    Rows are opaque JSON payloads keyed by ``(category, key)``. Expiry is a
    read-time predicate: ``get`` never returns an entry whose
    ``expires_at <= now``, whether or not it has been swept yet.

    ``get`` and ``set`` never raise. A broken backend degrades to cache
    misses and skipped writes so lookups keep working against the
    provider. Admin operations (list, delete, purge, clear) raise
    ``CacheUnavailableError`` instead.

    Attributes:
        db_path: Path to SQLite database file
        statistics: Statistics collector for hit/miss tracking
        conn: SQLite database connection

    Example:
        >>> cache = SQLiteCacheDB(Path("cache.db"))
        >>> cache.set(CacheCategory.SHIPPING_RATE, "607_114_1000_jne", b"[]", 3600)
        True
        >>> entry = cache.get(CacheCategory.SHIPPING_RATE, "607_114_1000_jne")
        >>> cache.close()
    """

    def __init__(
        self,
        db_path: Path | str,
        statistics: StatisticsCollector | None = None,
        *,
        clock: Clock | None = None,
        auto_cleanup_expired: bool = True,
    ) -> None:
        """Initialize SQLite cache database.

        Args:
            db_path: Path to SQLite database file
            statistics: Optional statistics collector
            clock: Source of the current UTC time (injectable for tests)
            auto_cleanup_expired: Purge expired rows when the store opens

        Raises:
            InfrastructureError: If database initialization fails
        """
        self.db_path = Path(db_path)
        self.statistics = statistics or StatisticsCollector()
        self.clock = clock or utc_now
        self.auto_cleanup_expired = auto_cleanup_expired
        self.conn: sqlite3.Connection | None = None
        # One connection is shared by worker threads from asyncio.to_thread
        self._lock = threading.RLock()
        self._initialize_db()

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        statistics: StatisticsCollector | None = None,
    ) -> SQLiteCacheDB:
        """Open the store described by cache settings."""
        return cls(
            settings.db_path,
            statistics,
            auto_cleanup_expired=settings.auto_cleanup_expired,
        )

    def _initialize_db(self) -> None:
        """Initialize database with WAL mode and schema.

        Raises:
            InfrastructureError: If database connection or schema creation fails
        """
        context = ErrorContext(
            operation="initialize_db",
            additional_data={"db_path": str(self.db_path)},
        )

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )

            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")

            MigrationManager(self.conn).create_tables()

            self._query_ops = QueryOperations(self.conn, self.statistics, self.clock)
            self._insert_ops = InsertOperations(self.conn, self.statistics, self.clock)
            self._update_ops = UpdateOperations(self.conn, self.statistics, self.clock)

            if self.auto_cleanup_expired:
                purged_count = self._update_ops.purge_expired()
                if purged_count > 0:
                    logger.info(
                        "Purged %d expired cache entries on startup",
                        purged_count,
                    )

            log_operation_success(
                logger=logger,
                operation="initialize_db",
                duration_ms=0,
                context=context.additional_data,
            )

        except (sqlite3.Error, OSError) as e:
            error = InfrastructureError(
                code=ErrorCode.CACHE_UNAVAILABLE,
                message=f"Failed to initialize SQLite cache: {e!s}",
                context=context,
                original_error=e,
            )
            log_operation_error(
                logger=logger,
                error=error,
                operation="initialize_db",
            )
            raise error from e

    def _require_connection(self, operation: str) -> None:
        if self.conn is None:
            raise CacheUnavailableError(
                "Database connection is closed",
                context=ErrorContext(operation=operation),
            )

    def get(self, category: CacheCategory, key: str) -> CacheEntry | None:
        """Retrieve a live entry.

        Args:
            category: Cache category
            key: Cache key identifier

        Returns:
            The entry, or None when it is absent, expired, or the backend failed
        """
        context = ErrorContext(
            operation="cache_get",
            additional_data={"category": category, "cache_key": key},
        )
        try:
            with self._lock:
                self._require_connection("cache_get")
                return self._query_ops.get(category, key)
        except (sqlite3.Error, CacheUnavailableError) as e:
            self.statistics.record_cache_error()
            self.statistics.record_cache_miss(CacheCategory(category).value)
            error = CacheUnavailableError(
                f"Cache read failed, treating as miss: {e!s}",
                context=context,
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation="cache_get")
            return None

    def set(
        self,
        category: CacheCategory,
        key: str,
        payload: bytes,
        ttl_seconds: int,
    ) -> bool:
        """Store an entry with ``expires_at = now + ttl_seconds``.

        Last write wins; the previous row for the key is replaced whole.

        Args:
            category: Cache category
            key: Cache key identifier
            payload: Serialized JSON bytes
            ttl_seconds: Time-to-live in seconds

        Returns:
            True if written, False if the write was rejected or failed
        """
        context = ErrorContext(
            operation="cache_set",
            additional_data={
                "category": category,
                "cache_key": key,
                "ttl_seconds": ttl_seconds,
            },
        )
        try:
            with self._lock:
                self._require_connection("cache_set")
                self._insert_ops.insert(category, key, payload, ttl_seconds)
        except (sqlite3.Error, CacheUnavailableError, ValueError, TypeError) as e:
            self.statistics.record_cache_error()
            error = CacheUnavailableError(
                f"Cache write skipped: {e!s}",
                context=context,
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation="cache_set")
            return False
        return True

    def _run_admin(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        context = ErrorContext(operation=operation)
        try:
            with self._lock:
                self._require_connection(operation)
                return func(*args, **kwargs)
        except sqlite3.Error as e:
            error = CacheUnavailableError(
                f"Cache {operation} failed: {e!s}",
                context=context,
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation=operation)
            raise error from e

    def list_by_category(
        self,
        category: CacheCategory,
        *,
        include_expired: bool = True,
    ) -> list[CacheEntry]:
        """List entries of a category, newest first.

        Raises:
            CacheUnavailableError: If the backend fails
        """
        return self._run_admin(  # type: ignore[no-any-return]
            "list_by_category",
            self._query_ops.list_by_category,
            category,
            include_expired=include_expired,
        )

    def delete_key(self, category: CacheCategory, key: str) -> bool:
        """Delete one entry.

        Returns:
            True if deleted, False if not found

        Raises:
            CacheUnavailableError: If the backend fails
        """
        return self._run_admin(  # type: ignore[no-any-return]
            "delete_key", self._update_ops.delete, category, key
        )

    def delete_expired(self, category: CacheCategory | None = None) -> int:
        """Physically remove entries whose expiry has passed.

        Args:
            category: Restrict to one category (None for all)

        Returns:
            Number of removed entries

        Raises:
            CacheUnavailableError: If the backend fails
        """
        return self._run_admin(  # type: ignore[no-any-return]
            "delete_expired", self._update_ops.purge_expired, category
        )

    def clear(self, category: CacheCategory | None = None) -> int:
        """Remove every entry of a category, or of the whole cache.

        Raises:
            CacheUnavailableError: If the backend fails
        """
        return self._run_admin(  # type: ignore[no-any-return]
            "clear", self._update_ops.clear, category
        )

    def get_cache_info(self, category: CacheCategory | None = None) -> dict[str, Any]:
        """Get cache statistics and metadata.

        Returns:
            Dictionary with:
            - db_path: Path to the database file
            - total: Total number of entries
            - active: Number of non-expired entries
            - expired: Number of expired entries still stored
            - total_size_bytes: Total payload size
            - statistics: Hit/miss counters of this process

        Raises:
            CacheUnavailableError: If the backend fails
        """
        counts = self._run_admin(
            "get_cache_info", self._query_ops.count_entries, category
        )
        return {
            "db_path": str(self.db_path),
            **counts,
            "statistics": self.statistics.get_summary(),
        }

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.debug("Closed SQLite cache connection: %s", self.db_path)

    def __enter__(self) -> SQLiteCacheDB:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
