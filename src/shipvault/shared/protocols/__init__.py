"""Protocol interfaces for dependency inversion."""

from shipvault.shared.protocols.services import CacheStoreProtocol

__all__ = ["CacheStoreProtocol"]
