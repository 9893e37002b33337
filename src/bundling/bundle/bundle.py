"""Bundle aggregate (CQRS) — one parent variant drawing on component stock.

A bundle with exactly one component is a same-product bundle: the component
quantity is the pack multiplier against a shared base unit (a 24-Pack is
one bundle whose single component is the Single with quantity 24). A bundle
with several components is a mixed bundle (variety pack).

Parents are synthetic: their availability is always derived from the
components, never the other way round.

Variant ids are stored in canonical form: bare numeric ids become
ProductVariant gids so they match what the Admin API reports.
"""

import json
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from bundling.bundle.events import BundleDefined, BundleUpdated
from bundling.domain import bundling
from bundling.shopify import canonical_variant_id


@bundling.entity(part_of="Bundle")
class BundleComponent:
    """One component variant and how many of it go into the bundle."""

    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@bundling.aggregate
class Bundle:
    """A parent variant whose availability is computed from its components."""

    shop_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    parent_variant_id = Identifier(required=True)
    expand_on_pick = Boolean(default=False)
    components = HasMany(BundleComponent)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def component_variants_must_be_distinct(self):
        variant_ids = [str(c.variant_id) for c in self.components]
        if len(variant_ids) != len(set(variant_ids)):
            raise ValidationError({"components": ["Each component variant may appear only once in a bundle"]})

    @invariant.post
    def parent_cannot_be_its_own_component(self):
        if any(str(c.variant_id) == str(self.parent_variant_id) for c in self.components):
            raise ValidationError({"components": ["A bundle cannot contain its own parent variant"]})

    @classmethod
    def create(cls, shop_id, name, parent_variant_id, components, expand_on_pick=False):
        """Define a new bundle.

        Args:
            components: list of dicts with ``variant_id`` and ``quantity``.
        """
        entries = _build_components(components)
        parent_variant_id = canonical_variant_id(parent_variant_id)
        now = datetime.now(UTC)
        bundle = cls(
            shop_id=shop_id,
            name=name,
            parent_variant_id=parent_variant_id,
            expand_on_pick=expand_on_pick,
            components=entries,
            created_at=now,
            updated_at=now,
        )
        bundle.raise_(
            BundleDefined(
                bundle_id=str(bundle.id),
                shop_id=str(shop_id),
                name=name,
                parent_variant_id=str(parent_variant_id),
                components=json.dumps(_serialize(entries)),
                expand_on_pick=bool(expand_on_pick),
                defined_at=now,
            )
        )
        return bundle

    def update(self, name=None, components=None, expand_on_pick=None):
        """Update bundle details. A new component list replaces the old one wholesale."""
        with atomic_change(self):
            if name is not None:
                self.name = name
            if expand_on_pick is not None:
                self.expand_on_pick = expand_on_pick
            if components is not None:
                entries = _build_components(components)
                for existing in list(self.components):
                    self.remove_components(existing)
                for entry in entries:
                    self.add_components(entry)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            BundleUpdated(
                bundle_id=str(self.id),
                name=self.name,
                components=json.dumps(_serialize(self.components)),
                expand_on_pick=bool(self.expand_on_pick),
                updated_at=self.updated_at,
            )
        )

    @property
    def is_same_product(self) -> bool:
        return len(self.components) == 1

    @property
    def variant_ids(self) -> list[str]:
        """Parent first, then components; each id once."""
        ordered = [str(self.parent_variant_id)] + [str(c.variant_id) for c in self.components]
        return list(dict.fromkeys(ordered))

    def component_for(self, variant_id):
        variant_id = canonical_variant_id(variant_id)
        return next((c for c in self.components if str(c.variant_id) == variant_id), None)


def _build_components(components):
    if not components:
        raise ValidationError({"components": ["A bundle needs at least one component"]})
    return [
        BundleComponent(variant_id=canonical_variant_id(c["variant_id"]), quantity=c["quantity"])
        for c in components
    ]


def _serialize(components):
    return [{"variant_id": str(c.variant_id), "quantity": c.quantity} for c in components]
