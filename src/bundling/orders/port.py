"""Order source port (abstract interface).

Where pick lists get their orders and variant descriptions from.
Adapters: FakeOrderSource (dev/test) and ShopifyOrderSource (Admin GraphQL API).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from bundling.picklist.aggregation import OrderLineItem, PickListFilters, VariantDetails


class OrderSourceError(Exception):
    """Orders could not be fetched."""


@dataclass(frozen=True)
class SourceOrder:
    order_id: str
    name: str
    line_items: list[OrderLineItem] = field(default_factory=list)


@dataclass(frozen=True)
class OrderPage:
    orders: list[SourceOrder] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: str | None = None


class OrderSource(ABC):
    """Abstract order source interface."""

    @abstractmethod
    def fetch_orders(self, shop_id: str, filters: PickListFilters, cursor: str | None = None) -> OrderPage:
        """One page of orders matching the status and date filters."""
        ...

    @abstractmethod
    def fetch_variant_details(self, variant_ids: list[str]) -> dict[str, VariantDetails]:
        """Descriptions for variants. Unknown variants are omitted."""
        ...
