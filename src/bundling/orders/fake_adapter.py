"""In-memory order source for development and testing.

Orders are added with ``add_order`` along with their fulfillment status and
creation time; filters are applied in memory and results are paged with
integer-offset cursors.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from bundling.orders.port import OrderPage, OrderSource, OrderSourceError, SourceOrder
from bundling.picklist.aggregation import FulfillmentStatus, OrderLineItem, PickListFilters, VariantDetails


@dataclass(frozen=True)
class _StoredOrder:
    shop_id: str
    order: SourceOrder
    status: FulfillmentStatus
    created_at: datetime


class FakeOrderSource(OrderSource):
    """Configurable fake order source."""

    def __init__(self, page_size: int = 50) -> None:
        self.page_size = page_size
        self.should_succeed: bool = True
        self.failure_reason: str = "Order service unavailable"
        self.calls: list[dict] = []
        self._orders: list[_StoredOrder] = []
        self._variants: dict[str, VariantDetails] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Order service unavailable") -> None:
        """Configure source behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def add_order(
        self,
        shop_id: str,
        order_id: str,
        line_items: list[OrderLineItem],
        name: str | None = None,
        status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED,
        created_at: datetime | None = None,
    ) -> SourceOrder:
        order = SourceOrder(order_id=str(order_id), name=name or f"#{order_id}", line_items=list(line_items))
        self._orders.append(
            _StoredOrder(
                shop_id=str(shop_id),
                order=order,
                status=status,
                created_at=created_at or datetime.now(UTC),
            )
        )
        return order

    def add_variant(self, variant_id: str, product_title: str, variant_title: str, sku: str | None = None) -> None:
        self._variants[str(variant_id)] = VariantDetails(
            product_title=product_title, variant_title=variant_title, sku=sku
        )

    def _matches(self, stored: _StoredOrder, shop_id: str, filters: PickListFilters) -> bool:
        if stored.shop_id != str(shop_id):
            return False
        if stored.status not in (filters.statuses or (FulfillmentStatus.UNFULFILLED,)):
            return False
        if filters.start_date and stored.created_at < filters.start_date:
            return False
        if filters.end_date and stored.created_at > filters.end_date:
            return False
        return True

    def fetch_orders(self, shop_id: str, filters: PickListFilters, cursor: str | None = None) -> OrderPage:
        self.calls.append({"method": "fetch_orders", "shop_id": str(shop_id), "cursor": cursor})
        if not self.should_succeed:
            raise OrderSourceError(self.failure_reason)

        matching = [s.order for s in self._orders if self._matches(s, shop_id, filters)]
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        has_next = end < len(matching)
        return OrderPage(
            orders=matching[start:end],
            has_next_page=has_next,
            end_cursor=str(end) if has_next else None,
        )

    def fetch_variant_details(self, variant_ids: list[str]) -> dict[str, VariantDetails]:
        self.calls.append(
            {"method": "fetch_variant_details", "variant_ids": list(variant_ids), "batch_size": len(variant_ids)}
        )
        if not self.should_succeed:
            raise OrderSourceError(self.failure_reason)
        return {str(v): self._variants[str(v)] for v in variant_ids if str(v) in self._variants}
