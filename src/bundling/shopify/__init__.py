"""Shopify Admin API access shared by the inventory gateway and order source."""

from bundling.shopify.client import (
    ShopifyAdminClient,
    ShopifyAPIError,
    build_client_from_env,
    canonical_variant_id,
    to_gid,
)

__all__ = ["ShopifyAdminClient", "ShopifyAPIError", "build_client_from_env", "canonical_variant_id", "to_gid"]
