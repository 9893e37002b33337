"""Inventory gateway factory.

Provides get_inventory_gateway() / set_inventory_gateway() to swap
implementations, selected by the ``INVENTORY_GATEWAY`` environment variable:
- ``fake`` (default): FakeInventoryGateway for development and testing
- ``shopify``: ShopifyInventoryGateway, configured from ``SHOPIFY_SHOP_DOMAIN``,
  ``SHOPIFY_ACCESS_TOKEN`` and ``SHOPIFY_API_VERSION``
"""

import os

from bundling.gateway.fake_adapter import FakeInventoryGateway
from bundling.gateway.port import AdjustmentReport, GatewayError, InventoryGateway, StockAdjustment

__all__ = [
    "AdjustmentReport",
    "FakeInventoryGateway",
    "GatewayError",
    "InventoryGateway",
    "StockAdjustment",
    "get_inventory_gateway",
    "reset_inventory_gateway",
    "set_inventory_gateway",
]

_current_gateway: InventoryGateway | None = None


def _build_from_env() -> InventoryGateway:
    kind = os.environ.get("INVENTORY_GATEWAY", "fake").lower()
    if kind == "fake":
        return FakeInventoryGateway()
    if kind == "shopify":
        from bundling.gateway.shopify_adapter import ShopifyInventoryGateway
        from bundling.shopify.client import build_client_from_env

        return ShopifyInventoryGateway(build_client_from_env())
    raise ValueError(f"Unknown INVENTORY_GATEWAY '{kind}'")


def get_inventory_gateway() -> InventoryGateway:
    """Return the current inventory gateway. Defaults per INVENTORY_GATEWAY."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_from_env()
    return _current_gateway


def set_inventory_gateway(gateway: InventoryGateway) -> None:
    """Override the active inventory gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_inventory_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
