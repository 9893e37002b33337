"""Per-user state tracking for Locust load test scenarios."""

from dataclasses import dataclass, field


@dataclass
class ShopState:
    """Bundles and variants one simulated merchant has set up."""

    shop_id: str
    bundle_ids: list[str] = field(default_factory=list)
    variant_ids: list[str] = field(default_factory=list)
