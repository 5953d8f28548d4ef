# shipsync/__init__.py
"""
shipsync: ShipStation / Shopify order reconciliation and customs declarations.

- business logic lives in `shipsync.services`;
- external systems (ShipStation / Shopify) are reached only through the
  protocols in `shipsync.ports`;
- HTTP layer in `shipsync.api`, app factory in `shipsync.main`.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
