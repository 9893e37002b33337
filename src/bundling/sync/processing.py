"""Inventory level updates as a domain command."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from bundling.bundle.bundle import Bundle
from bundling.domain import bundling
from bundling.sync.synchronizer import BundleInventorySynchronizer, InventoryLevelUpdate


@bundling.command(part_of="Bundle")
class ProcessInventoryLevelUpdate:
    """Reconcile bundles after a stock item's available quantity changed."""

    shop_id = Identifier(required=True)
    stock_item_id = Identifier(required=True)
    location_id = Identifier(required=True)
    available = Integer(required=True)  # Can be negative


@bundling.command_handler(part_of=Bundle)
class InventoryLevelUpdateHandler:
    @handle(ProcessInventoryLevelUpdate)
    def process_inventory_level_update(self, command):
        synchronizer = BundleInventorySynchronizer(
            bundle_repository=current_domain.repository_for(Bundle),
        )
        result = synchronizer.process(
            InventoryLevelUpdate(
                stock_item_id=str(command.stock_item_id),
                location_id=str(command.location_id),
                available=command.available,
                shop_id=str(command.shop_id),
            )
        )
        return result.to_dict()
