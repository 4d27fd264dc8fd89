"""SQLite cache migration module."""

from shipvault.services.sqlite_cache.migration.manager import MigrationManager

__all__ = ["MigrationManager"]
