"""Migration manager for SQLite cache.

This module creates and versions the provider cache schema.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class MigrationManager:
    """Database schema migration manager."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize migration manager.

        Args:
            conn: SQLite database connection
        """
        self.conn = conn
        self._current_version = self._get_current_version()

    def get_current_version(self) -> int:
        """Get current schema version.

        Returns:
            Current schema version number (0 for an empty database)
        """
        return self._current_version

    def _get_current_version(self) -> int:
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is None:
            return 0

        cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row and row[0] is not None else 0

    def create_tables(self) -> None:
        """Create database schema (v1).

        Idempotent: existing tables and indexes are left untouched.
        """
        schema_sql = """
        CREATE TABLE IF NOT EXISTS provider_cache (
            id INTEGER PRIMARY KEY AUTOINCREMENT,

            -- Cache key information
            cache_key TEXT NOT NULL,
            key_hash TEXT NOT NULL,
            category TEXT NOT NULL,

            -- Normalized response (JSON bytes)
            payload BLOB NOT NULL,

            -- TTL and metadata (fixed-width UTC timestamps)
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL,

            -- Statistics
            hit_count INTEGER DEFAULT 0 NOT NULL,
            last_accessed_at TEXT,
            payload_size INTEGER DEFAULT 0 NOT NULL,

            -- Constraints
            CHECK (length(cache_key) > 0),
            CHECK (length(key_hash) = 64),
            CHECK (expires_at > created_at),
            UNIQUE (category, key_hash)
        );

        CREATE INDEX IF NOT EXISTS idx_provider_cache_category
            ON provider_cache(category);
        CREATE INDEX IF NOT EXISTS idx_provider_cache_expires_at
            ON provider_cache(expires_at);

        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
        );
        """

        self.conn.executescript(schema_sql)

        self.conn.execute(
            "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        if self._current_version < SCHEMA_VERSION:
            logger.info("Created provider cache schema (v%d)", SCHEMA_VERSION)
        self._current_version = SCHEMA_VERSION
