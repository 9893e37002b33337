"""Pick list generation over the order source and the bundling repositories."""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from bundling.bundle.bundle import Bundle
from bundling.location.bin_location import BinLocation
from bundling.orders import OrderSource, get_order_source
from bundling.picklist.aggregation import (
    PickListFilters,
    PickListResult,
    SortDirection,
    SortField,
    aggregate_line_items,
    attach_bin_locations,
    expand_bundles,
    sort_items,
    total_quantity,
)

logger = structlog.get_logger(__name__)


class PickListGenerator:
    def __init__(self, order_source: OrderSource | None = None) -> None:
        self._order_source = order_source

    @property
    def order_source(self) -> OrderSource:
        return self._order_source or get_order_source()

    def fetch_orders(self, shop_id, filters: PickListFilters):
        """Every matching order, following pages to the end."""
        allowed = set(filters.order_ids) if filters.order_ids is not None else None
        orders = []
        cursor = None
        while True:
            page = self.order_source.fetch_orders(shop_id, filters, cursor=cursor)
            orders.extend(o for o in page.orders if allowed is None or o.order_id in allowed)
            if not page.has_next_page:
                return orders
            cursor = page.end_cursor

    def generate(
        self,
        shop_id,
        filters: PickListFilters | None = None,
        sort_field: SortField = SortField.BIN_LOCATION,
        sort_direction: SortDirection = SortDirection.ASC,
    ) -> PickListResult:
        filters = filters or PickListFilters()
        orders = self.fetch_orders(shop_id, filters)
        line_items = [item for order in orders for item in order.line_items]

        expandable = current_domain.repository_for(Bundle).find_expandable(
            shop_id, {str(item.variant_id) for item in line_items}
        )
        component_ids = list(
            dict.fromkeys(str(c.variant_id) for bundle in expandable.values() for c in bundle.components)
        )
        details = self.order_source.fetch_variant_details(component_ids) if component_ids else {}

        aggregated = aggregate_line_items(expand_bundles(line_items, expandable, details))
        locations = current_domain.repository_for(BinLocation).lookup(
            shop_id, [str(item.variant_id) for item in aggregated]
        )
        items = sort_items(attach_bin_locations(aggregated, locations), sort_field, sort_direction)

        result = PickListResult(
            items=items,
            order_count=len(orders),
            total_items=total_quantity(items),
            generated_at=datetime.now(UTC),
        )
        logger.info(
            "Pick list generated",
            shop_id=str(shop_id),
            order_count=result.order_count,
            line_count=len(items),
            total_items=result.total_items,
            expanded_bundles=len(expandable),
        )
        return result
