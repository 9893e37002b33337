"""Bin location management — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bundling.domain import bundling
from bundling.location.bin_location import BinLocation


@bundling.command(part_of="BinLocation")
class AssignBinLocation:
    """Set (or move) the bin a variant is stored in."""

    shop_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    location = String(required=True, max_length=100)


@bundling.command(part_of="BinLocation")
class ClearBinLocation:
    """Forget a variant's bin."""

    shop_id = Identifier(required=True)
    variant_id = Identifier(required=True)


@bundling.command_handler(part_of=BinLocation)
class BinLocationHandler:
    @handle(AssignBinLocation)
    def assign_bin_location(self, command):
        repo = current_domain.repository_for(BinLocation)
        existing = repo.find_for_variant(command.shop_id, command.variant_id)
        if existing is None:
            bin_location = BinLocation.create(
                shop_id=command.shop_id,
                variant_id=command.variant_id,
                location=command.location,
            )
        else:
            bin_location = existing
            bin_location.relocate(command.location)
        repo.add(bin_location)
        return str(bin_location.id)

    @handle(ClearBinLocation)
    def clear_bin_location(self, command):
        repo = current_domain.repository_for(BinLocation)
        existing = repo.find_for_variant(command.shop_id, command.variant_id)
        if existing is not None:
            repo._dao.delete(existing)
