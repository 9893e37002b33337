"""Inventory gateway port (abstract interface).

Defines the contract the synchronizer uses to talk to the commerce
platform's inventory. Adapters: FakeInventoryGateway (dev/test) and
ShopifyInventoryGateway (Admin GraphQL API).

Every method takes and returns ids as strings. Batching is the caller's
concern; each call is one round trip.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """The platform could not be reached or refused the request."""


@dataclass(frozen=True)
class StockAdjustment:
    """A relative change to one stock item's available quantity at a location."""

    stock_item_id: str
    location_id: str
    delta: int


@dataclass(frozen=True)
class AdjustmentReport:
    """Outcome of one adjustment call."""

    applied: int = 0
    user_errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.user_errors


class InventoryGateway(ABC):
    """Abstract inventory gateway interface."""

    @abstractmethod
    def resolve_variant(self, stock_item_id: str) -> str | None:
        """The variant that owns ``stock_item_id``, or None."""
        ...

    @abstractmethod
    def resolve_stock_items(self, variant_ids: list[str]) -> dict[str, str]:
        """Stock item id per variant. Unresolved variants are omitted."""
        ...

    @abstractmethod
    def read_levels(self, stock_item_ids: list[str], location_id: str) -> dict[str, int]:
        """Available quantity per stock item at the location. Missing levels are omitted."""
        ...

    @abstractmethod
    def adjust_levels(self, changes: list[StockAdjustment], reason: str) -> AdjustmentReport:
        """Apply relative deltas to available quantities."""
        ...
