"""BinLocation aggregate (CQRS) — where a variant lives in the warehouse.

One record per (shop, variant). Variants without a record simply have no
known bin; pick lists show them without a location.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from bundling.domain import bundling
from bundling.location.events import BinLocationAssigned
from bundling.shopify import canonical_variant_id


@bundling.aggregate
class BinLocation:
    shop_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    location = String(required=True, max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, shop_id, variant_id, location):
        now = datetime.now(UTC)
        bin_location = cls(
            shop_id=shop_id,
            variant_id=canonical_variant_id(variant_id),
            location=location.strip(),
            created_at=now,
            updated_at=now,
        )
        bin_location._record_assignment()
        return bin_location

    def relocate(self, location):
        self.location = location.strip()
        self.updated_at = datetime.now(UTC)
        self._record_assignment()

    def _record_assignment(self):
        self.raise_(
            BinLocationAssigned(
                bin_location_id=str(self.id),
                shop_id=str(self.shop_id),
                variant_id=str(self.variant_id),
                location=self.location,
                assigned_at=self.updated_at,
            )
        )
