"""Base operation class for SQLite cache operations.

This module provides shared functionality for all cache operations.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from shipvault.shared.constants import CacheDefaults
from shipvault.shared.errors import CacheUnavailableError, ErrorContext

if TYPE_CHECKING:
    import sqlite3

    from shipvault.core.statistics import StatisticsCollector

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

TABLE = CacheDefaults.TABLE_NAME


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the stored fixed-width UTC format.

    Fixed width keeps lexical order equal to chronological order, so
    expiry comparisons can run in SQL.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(CacheDefaults.TIMESTAMP_FORMAT)


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.strptime(value, CacheDefaults.TIMESTAMP_FORMAT).replace(
        tzinfo=timezone.utc
    )


class BaseOperation:
    """Base class for cache operations with shared functionality."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        statistics: StatisticsCollector,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize base operation.

        Args:
            conn: SQLite database connection
            statistics: Statistics collector for hit/miss tracking
            clock: Source of the current UTC time
        """
        self.conn = conn
        self.statistics = statistics
        self.clock = clock

    def _generate_cache_key_hash(self, key: str) -> tuple[str, str]:
        """Generate cache key hash for indexing.

        Args:
            key: Cache key string

        Returns:
            Tuple of (original_key, key_hash)
        """
        key_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return key, key_hash

    def _validate_connection(self) -> None:
        """Validate database connection is available.

        Raises:
            CacheUnavailableError: If connection is not initialized
        """
        if self.conn is None:
            raise CacheUnavailableError(
                "Database connection not initialized",
                context=ErrorContext(operation="validate_connection"),
            )
