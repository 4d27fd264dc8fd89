"""SQLite cache operations module.

Separate operation classes for querying, inserting, and updating cache data.
"""

from shipvault.services.sqlite_cache.operations.insert import InsertOperations
from shipvault.services.sqlite_cache.operations.query import QueryOperations
from shipvault.services.sqlite_cache.operations.update import UpdateOperations

__all__ = ["InsertOperations", "QueryOperations", "UpdateOperations"]
