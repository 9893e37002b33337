"""Repository for the Bundle aggregate — lookups used by sync and picking."""

from bundling.bundle.bundle import Bundle
from bundling.domain import bundling
from bundling.shopify import canonical_variant_id

_PAGE_SIZE = 100


def fetch_all(query, page_size=_PAGE_SIZE):
    """Drain a query page by page so large shops are scanned completely."""
    results = []
    offset = 0
    while True:
        page = query.offset(offset).limit(page_size).all()
        results.extend(page.items)
        if len(page.items) < page_size:
            return results
        offset += page_size


@bundling.repository(part_of=Bundle)
class BundleRepository:
    def list_for_shop(self, shop_id) -> list[Bundle]:
        return fetch_all(self._dao.query.filter(shop_id=str(shop_id)))

    def find_by_parent(self, shop_id, parent_variant_id) -> Bundle | None:
        """The shop's bundle for this parent variant, if any (at most one exists)."""
        results = self._dao.query.filter(
            shop_id=str(shop_id),
            parent_variant_id=canonical_variant_id(parent_variant_id),
        ).all()
        return results.items[0] if results.items else None

    def find_containing(self, shop_id, variant_id) -> list[Bundle]:
        """Every bundle where the variant is the parent or a component.

        Parent matches come first; each bundle appears once.
        """
        variant_id = canonical_variant_id(variant_id)
        bundles = self.list_for_shop(shop_id)

        as_parent = [b for b in bundles if str(b.parent_variant_id) == variant_id]
        as_component = [b for b in bundles if b.component_for(variant_id) is not None]

        found = {}
        for bundle in as_parent + as_component:
            found.setdefault(str(bundle.id), bundle)
        return list(found.values())

    def find_expandable(self, shop_id, parent_variant_ids) -> dict[str, Bundle]:
        """Bundles flagged expand-on-pick, keyed by the parent ids as requested."""
        requested: dict[str, list[str]] = {}
        for variant_id in parent_variant_ids:
            requested.setdefault(canonical_variant_id(variant_id), []).append(str(variant_id))
        if not requested:
            return {}

        expandable = {}
        for bundle in fetch_all(self._dao.query.filter(shop_id=str(shop_id), expand_on_pick=True)):
            for variant_id in requested.get(str(bundle.parent_variant_id), []):
                expandable[variant_id] = bundle
        return expandable
