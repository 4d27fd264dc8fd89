"""ShipVault command-line interface."""
