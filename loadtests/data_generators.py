"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the API's Pydantic request schemas and the
inventory webhook wire shapes.
"""

import base64
import json
import random
import uuid
from datetime import UTC, datetime

from faker import Faker

fake = Faker()

PACK_SIZES = (4, 6, 12, 24)


def shop_domain() -> str:
    return f"{fake.slug()}-{uuid.uuid4().hex[:4]}.myshopify.com"


def variant_id() -> str:
    return f"gid://shopify/ProductVariant/{random.randint(10**9, 10**10)}"


def bundle_data(shop_id: str, base_variant_id: str) -> dict:
    """DefineBundleRequest for a same-product pack of the base variant."""
    size = random.choice(PACK_SIZES)
    return {
        "shop_id": shop_id,
        "name": f"{fake.word().title()} {size}-Pack",
        "parent_variant_id": variant_id(),
        "components": [{"variant_id": base_variant_id, "quantity": size}],
        "expand_on_pick": random.random() < 0.3,
    }


def variety_pack_data(shop_id: str, component_ids: list[str]) -> dict:
    return {
        "shop_id": shop_id,
        "name": f"{fake.color_name()} Variety Pack",
        "parent_variant_id": variant_id(),
        "components": [{"variant_id": v, "quantity": random.randint(1, 6)} for v in component_ids],
        "expand_on_pick": True,
    }


def bin_location() -> str:
    return f"{random.choice('ABCDEFGH')}-{random.randint(1, 40):02d}-{random.randint(1, 6)}"


def inventory_payload() -> dict:
    """inventory_levels/update webhook body."""
    return {
        "inventory_item_id": random.randint(10**9, 10**10),
        "location_id": random.randint(10**7, 10**8),
        "available": random.randint(0, 500),
        "updated_at": datetime.now(UTC).isoformat(),
    }


def push_envelope(shop_id: str, payload: dict | None = None, message_id: str | None = None) -> dict:
    """Queued push envelope wrapping an inventory webhook."""
    data = base64.b64encode(json.dumps(payload or inventory_payload()).encode("utf-8")).decode("ascii")
    return {
        "message": {
            "data": data,
            "messageId": message_id or uuid.uuid4().hex,
            "publishTime": datetime.now(UTC).isoformat(),
            "attributes": {
                "shop": shop_id,
                "topic": "inventory_levels/update",
                "api_version": "2024-10",
                "webhook_id": str(uuid.uuid4()),
            },
        },
        "subscription": "projects/stockpool/subscriptions/inventory-levels",
    }
