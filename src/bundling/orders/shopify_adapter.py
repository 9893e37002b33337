"""Shopify Admin GraphQL order source."""

import structlog

from bundling.orders.port import OrderPage, OrderSource, OrderSourceError, SourceOrder
from bundling.picklist.aggregation import (
    DEFAULT_VARIANT,
    UNKNOWN_PRODUCT,
    FulfillmentStatus,
    OrderLineItem,
    PickListFilters,
    VariantDetails,
)
from bundling.shopify.client import ShopifyAdminClient, ShopifyAPIError, to_gid

logger = structlog.get_logger(__name__)

ORDERS_PAGE_SIZE = 50
LINE_ITEMS_PER_ORDER = 100
VARIANT_BATCH_SIZE = 50

_STATUS_TERMS = {
    FulfillmentStatus.UNFULFILLED: "fulfillment_status:unfulfilled",
    FulfillmentStatus.PARTIALLY_FULFILLED: "fulfillment_status:partial",
}

ORDERS_QUERY = """
query getOrders($first: Int!, $after: String, $query: String!) {
  orders(first: $first, after: $after, query: $query) {
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      id
      name
      lineItems(first: %d) {
        nodes {
          quantity
          variant {
            id
            title
            sku
            product {
              title
            }
          }
        }
      }
    }
  }
}
""" % LINE_ITEMS_PER_ORDER

VARIANTS_QUERY = """
query getVariants($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on ProductVariant {
      id
      title
      sku
      product {
        title
      }
    }
  }
}
"""


def build_search_query(filters: PickListFilters) -> str:
    """Orders search string for the status and date filters."""
    parts = [_STATUS_TERMS[FulfillmentStatus(s)] for s in filters.statuses or ()]
    if filters.start_date:
        parts.append(f"created_at:>={filters.start_date.isoformat()}")
    if filters.end_date:
        parts.append(f"created_at:<={filters.end_date.isoformat()}")
    return " AND ".join(parts) if parts else _STATUS_TERMS[FulfillmentStatus.UNFULFILLED]


def _line_item(node) -> OrderLineItem | None:
    variant = node.get("variant")
    if not variant:
        return None
    product = variant.get("product") or {}
    return OrderLineItem(
        variant_id=variant["id"],
        product_title=product.get("title") or UNKNOWN_PRODUCT,
        variant_title=variant.get("title") or DEFAULT_VARIANT,
        sku=variant.get("sku"),
        quantity=node.get("quantity", 0),
    )


class ShopifyOrderSource(OrderSource):
    """Order source backed by the Shopify Admin API."""

    def __init__(self, client: ShopifyAdminClient) -> None:
        self.client = client

    def fetch_orders(self, shop_id: str, filters: PickListFilters, cursor: str | None = None) -> OrderPage:
        try:
            data = self.client.execute(
                ORDERS_QUERY,
                {"first": ORDERS_PAGE_SIZE, "after": cursor, "query": build_search_query(filters)},
            )
        except ShopifyAPIError as exc:
            raise OrderSourceError(str(exc)) from exc

        orders_data = data.get("orders")
        if not orders_data:
            return OrderPage()

        orders = []
        for node in orders_data.get("nodes") or []:
            line_items = [
                item for item in (_line_item(li) for li in (node.get("lineItems") or {}).get("nodes") or []) if item
            ]
            orders.append(SourceOrder(order_id=node["id"], name=node.get("name", ""), line_items=line_items))

        page_info = orders_data.get("pageInfo") or {}
        return OrderPage(
            orders=orders,
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
        )

    def fetch_variant_details(self, variant_ids: list[str]) -> dict[str, VariantDetails]:
        requested = {to_gid("ProductVariant", v): str(v) for v in variant_ids}
        ids = list(requested)
        details = {}
        for start in range(0, len(ids), VARIANT_BATCH_SIZE):
            batch = ids[start : start + VARIANT_BATCH_SIZE]
            try:
                data = self.client.execute(VARIANTS_QUERY, {"ids": batch})
            except ShopifyAPIError as exc:
                raise OrderSourceError(str(exc)) from exc

            for node in data.get("nodes") or []:
                if not node or node.get("id") not in requested:
                    continue
                product = node.get("product") or {}
                details[requested[node["id"]]] = VariantDetails(
                    product_title=product.get("title") or UNKNOWN_PRODUCT,
                    variant_title=node.get("title") or DEFAULT_VARIANT,
                    sku=node.get("sku"),
                )
        return details
