"""Order source factory.

Provides get_order_source() / set_order_source() to swap implementations,
selected by the ``ORDER_SOURCE`` environment variable:
- ``fake`` (default): FakeOrderSource for development and testing
- ``shopify``: ShopifyOrderSource, configured like the Shopify inventory gateway
"""

import os

from bundling.orders.fake_adapter import FakeOrderSource
from bundling.orders.port import OrderPage, OrderSource, OrderSourceError, SourceOrder

__all__ = [
    "FakeOrderSource",
    "OrderPage",
    "OrderSource",
    "OrderSourceError",
    "SourceOrder",
    "get_order_source",
    "reset_order_source",
    "set_order_source",
]

_current_source: OrderSource | None = None


def _build_from_env() -> OrderSource:
    kind = os.environ.get("ORDER_SOURCE", "fake").lower()
    if kind == "fake":
        return FakeOrderSource()
    if kind == "shopify":
        from bundling.orders.shopify_adapter import ShopifyOrderSource
        from bundling.shopify.client import build_client_from_env

        return ShopifyOrderSource(build_client_from_env())
    raise ValueError(f"Unknown ORDER_SOURCE '{kind}'")


def get_order_source() -> OrderSource:
    """Return the current order source. Defaults per ORDER_SOURCE."""
    global _current_source
    if _current_source is None:
        _current_source = _build_from_env()
    return _current_source


def set_order_source(source: OrderSource) -> None:
    """Override the active order source (useful for tests)."""
    global _current_source
    _current_source = source


def reset_order_source() -> None:
    """Reset to default order source."""
    global _current_source
    _current_source = None
