"""ShipVault Shared Module.

This package contains shared constants, protocols, error handling and logging
used across ShipVault.
"""

__all__ = ["constants", "errors", "logging", "protocols"]
