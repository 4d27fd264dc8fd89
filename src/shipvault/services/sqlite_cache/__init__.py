"""SQLite cache module with modular operations.

The store is category-agnostic: every row is an opaque JSON payload under a
``(category, key)`` pair with an absolute expiry timestamp.
"""

from shipvault.services.sqlite_cache.cache_db import SQLiteCacheDB

__all__ = ["SQLiteCacheDB"]
