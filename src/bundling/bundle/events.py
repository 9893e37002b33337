"""Domain events for the Bundle aggregate."""

from protean.fields import Boolean, DateTime, Identifier, String, Text

from bundling.domain import bundling


@bundling.event(part_of="Bundle")
class BundleDefined:
    """A new bundle relationship was defined."""

    __version__ = 1

    bundle_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    name = String(required=True)
    parent_variant_id = Identifier(required=True)
    components = Text(required=True)  # JSON list of {variant_id, quantity}
    expand_on_pick = Boolean(default=False)
    defined_at = DateTime(required=True)


@bundling.event(part_of="Bundle")
class BundleUpdated:
    """A bundle's details or component set changed."""

    __version__ = 1

    bundle_id = Identifier(required=True)
    name = String(required=True)
    components = Text(required=True)
    expand_on_pick = Boolean(default=False)
    updated_at = DateTime(required=True)
