"""Repository for the BinLocation aggregate."""

from bundling.bundle.repository import fetch_all
from bundling.domain import bundling
from bundling.location.bin_location import BinLocation
from bundling.shopify import canonical_variant_id


@bundling.repository(part_of=BinLocation)
class BinLocationRepository:
    def find_for_variant(self, shop_id, variant_id) -> BinLocation | None:
        results = self._dao.query.filter(shop_id=str(shop_id), variant_id=canonical_variant_id(variant_id)).all()
        return results.items[0] if results.items else None

    def lookup(self, shop_id, variant_ids) -> dict[str, str | None]:
        """Bin for each requested variant, keyed as requested; variants without one map to None."""
        wanted = [str(v) for v in variant_ids]
        if not wanted:
            return {}
        canonical = {variant_id: canonical_variant_id(variant_id) for variant_id in wanted}
        stored = set(canonical.values())
        known = {
            str(record.variant_id): record.location
            for record in fetch_all(self._dao.query.filter(shop_id=str(shop_id)))
            if str(record.variant_id) in stored
        }
        return {variant_id: known.get(canonical[variant_id]) for variant_id in wanted}
