"""Shopify Admin GraphQL inventory gateway.

Ids coming in may be numeric or full gids; they are normalized before
querying. Returned maps are keyed by the ids the caller passed in, and ids
returned from Shopify (variant ids, stock item ids) are gids.
"""

import structlog

from bundling.gateway.port import AdjustmentReport, InventoryGateway, StockAdjustment
from bundling.shopify.client import ShopifyAdminClient, to_gid

logger = structlog.get_logger(__name__)

AVAILABLE = "available"

VARIANT_FOR_STOCK_ITEM_QUERY = """
query getVariantFromInventoryItem($id: ID!) {
  inventoryItem(id: $id) {
    variant {
      id
    }
  }
}
"""

STOCK_ITEMS_FOR_VARIANTS_QUERY = """
query getVariantInventoryItems($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on ProductVariant {
      id
      inventoryItem {
        id
      }
    }
  }
}
"""

INVENTORY_LEVELS_QUERY = """
query getInventoryLevels($ids: [ID!]!, $locationId: ID!) {
  nodes(ids: $ids) {
    ... on InventoryItem {
      id
      inventoryLevel(locationId: $locationId) {
        quantities(names: ["available"]) {
          name
          quantity
        }
      }
    }
  }
}
"""

ADJUST_QUANTITIES_MUTATION = """
mutation adjustInventory($input: InventoryAdjustQuantitiesInput!) {
  inventoryAdjustQuantities(input: $input) {
    userErrors {
      field
      message
    }
    inventoryAdjustmentGroup {
      reason
      changes {
        name
        delta
        quantityAfterChange
      }
    }
  }
}
"""


class ShopifyInventoryGateway(InventoryGateway):
    """Inventory gateway backed by the Shopify Admin API."""

    def __init__(self, client: ShopifyAdminClient) -> None:
        self.client = client

    def resolve_variant(self, stock_item_id: str) -> str | None:
        data = self.client.execute(
            VARIANT_FOR_STOCK_ITEM_QUERY,
            {"id": to_gid("InventoryItem", stock_item_id)},
        )
        item = data.get("inventoryItem") or {}
        variant = item.get("variant") or {}
        return variant.get("id")

    def resolve_stock_items(self, variant_ids: list[str]) -> dict[str, str]:
        if not variant_ids:
            return {}
        requested = {to_gid("ProductVariant", v): str(v) for v in variant_ids}
        data = self.client.execute(STOCK_ITEMS_FOR_VARIANTS_QUERY, {"ids": list(requested)})

        resolved = {}
        for node in data.get("nodes") or []:
            if not node or node.get("id") not in requested:
                continue
            item = node.get("inventoryItem") or {}
            if item.get("id"):
                resolved[requested[node["id"]]] = item["id"]
        return resolved

    def read_levels(self, stock_item_ids: list[str], location_id: str) -> dict[str, int]:
        if not stock_item_ids:
            return {}
        requested = {to_gid("InventoryItem", i): str(i) for i in stock_item_ids}
        data = self.client.execute(
            INVENTORY_LEVELS_QUERY,
            {"ids": list(requested), "locationId": to_gid("Location", location_id)},
        )

        levels = {}
        for node in data.get("nodes") or []:
            if not node or node.get("id") not in requested:
                continue
            level = node.get("inventoryLevel") or {}
            available = next((q for q in level.get("quantities") or [] if q.get("name") == AVAILABLE), None)
            if available is not None:
                levels[requested[node["id"]]] = available["quantity"]
        return levels

    def adjust_levels(self, changes: list[StockAdjustment], reason: str) -> AdjustmentReport:
        if not changes:
            return AdjustmentReport()
        data = self.client.execute(
            ADJUST_QUANTITIES_MUTATION,
            {
                "input": {
                    "reason": reason,
                    "name": AVAILABLE,
                    "changes": [
                        {
                            "inventoryItemId": to_gid("InventoryItem", c.stock_item_id),
                            "locationId": to_gid("Location", c.location_id),
                            "delta": c.delta,
                        }
                        for c in changes
                    ],
                }
            },
        )

        result = data.get("inventoryAdjustQuantities") or {}
        user_errors = [e.get("message", str(e)) for e in result.get("userErrors") or []]
        if user_errors:
            logger.error("Inventory adjustment rejected", user_errors=user_errors, change_count=len(changes))
            return AdjustmentReport(applied=0, user_errors=user_errors)
        return AdjustmentReport(applied=len(changes))
