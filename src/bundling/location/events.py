"""Domain events for the BinLocation aggregate."""

from protean.fields import DateTime, Identifier, String

from bundling.domain import bundling


@bundling.event(part_of="BinLocation")
class BinLocationAssigned:
    """A variant was assigned a warehouse bin."""

    __version__ = 1

    bin_location_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    location = String(required=True)
    assigned_at = DateTime(required=True)
