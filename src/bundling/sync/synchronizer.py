"""Bundle inventory synchronizer.

Reacts to one inventory level change and brings every bundle that involves
the changed variant back in line with its components:

1. Resolve the stock item in the event to a variant.
2. Find the shop's bundles where that variant is the parent or a component.
3. For each bundle, under a per-(bundle, location) sync lock, read the
   current levels, compute what the parent should show, and write the
   difference as a single relative adjustment.

Writes are deltas, never absolute sets, so a pass that finds the parent
already correct writes nothing and replaying an event is harmless.

Each bundle is handled on its own: a failure on one is logged and reported
in ``failed_bundles`` while the rest carry on.
"""

from dataclasses import asdict, dataclass, field
from uuid import uuid4

import structlog
from protean.utils.globals import current_domain

from bundling.bundle.bundle import Bundle
from bundling.gateway import GatewayError, InventoryGateway, StockAdjustment, get_inventory_gateway
from bundling.shopify import canonical_variant_id
from bundling.sync.availability import InvalidQuantityError, mixed_bundle_availability, same_product_availability
from bundling.sync.locking import BUNDLE_SYNC_LOCK_TTL, SyncLockManager, bundle_sync_lock_id

logger = structlog.get_logger(__name__)

READ_BATCH_SIZE = 50
ADJUST_BATCH_SIZE = 10
ADJUSTMENT_REASON = "correction"

SKIP_UNKNOWN_STOCK_ITEM = "Could not find variant for inventory item"
SKIP_NOT_IN_BUNDLE = "Variant is not part of any bundle"


@dataclass(frozen=True)
class InventoryLevelUpdate:
    """An inventory level change at one location."""

    stock_item_id: str
    location_id: str
    available: int | None  # None when the item is not tracked
    shop_id: str


@dataclass
class SyncResult:
    processed: bool
    bundles_affected: int = 0
    adjustments_made: int = 0
    skipped: str | None = None
    error: str | None = None
    locked_bundles: list[str] = field(default_factory=list)
    failed_bundles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class BundleSyncFailed(Exception):
    """A bundle could not be reconciled; carries the change set attempted."""

    def __init__(self, message: str, changes: list[StockAdjustment] | None = None):
        self.changes = changes or []
        super().__init__(message)


def chunked(items, size):
    """Split ``items`` into consecutive lists of at most ``size``."""
    items = list(items)
    return [items[i : i + size] for i in range(0, len(items), size)]


class BundleInventorySynchronizer:
    """Recomputes parent availability for bundles touched by a stock change."""

    def __init__(
        self,
        gateway: InventoryGateway | None = None,
        lock_manager: SyncLockManager | None = None,
        bundle_repository=None,
    ) -> None:
        self._gateway = gateway
        self._bundle_repository = bundle_repository
        self.lock_manager = lock_manager or SyncLockManager()

    @property
    def gateway(self) -> InventoryGateway:
        return self._gateway or get_inventory_gateway()

    @property
    def bundle_repository(self):
        return self._bundle_repository or current_domain.repository_for(Bundle)

    def process(self, event: InventoryLevelUpdate) -> SyncResult:
        gateway = self.gateway

        try:
            variant_id = gateway.resolve_variant(event.stock_item_id)
        except GatewayError as exc:
            logger.error(
                "Could not resolve stock item",
                stock_item_id=event.stock_item_id,
                shop_id=event.shop_id,
                error=str(exc),
            )
            return SyncResult(processed=False, error=str(exc))

        if variant_id is None:
            logger.info("Stock item has no variant", stock_item_id=event.stock_item_id, shop_id=event.shop_id)
            return SyncResult(processed=False, skipped=SKIP_UNKNOWN_STOCK_ITEM)

        bundles = self.bundle_repository.find_containing(event.shop_id, variant_id)
        if not bundles:
            return SyncResult(processed=True, skipped=SKIP_NOT_IN_BUNDLE)

        result = SyncResult(processed=True, bundles_affected=len(bundles))
        for bundle in bundles:
            bundle_id = str(bundle.id)
            lock_id = bundle_sync_lock_id(bundle_id, event.location_id)
            owner_ref = f"{bundle_id}:{uuid4().hex[:8]}"

            if not self.lock_manager.acquire(lock_id, owner_ref, BUNDLE_SYNC_LOCK_TTL):
                logger.info("Skipping bundle, sync already in progress", bundle_id=bundle_id)
                result.locked_bundles.append(bundle_id)
                continue

            try:
                result.adjustments_made += self._reconcile(gateway, bundle, event, variant_id)
            except (GatewayError, InvalidQuantityError, BundleSyncFailed) as exc:
                logger.error(
                    "Bundle sync failed",
                    bundle_id=bundle_id,
                    location_id=event.location_id,
                    changes=[asdict(c) for c in getattr(exc, "changes", [])],
                    error=str(exc),
                )
                result.failed_bundles.append(bundle_id)
            finally:
                self.lock_manager.release(lock_id)

        logger.info(
            "Inventory update processed",
            shop_id=event.shop_id,
            variant_id=variant_id,
            bundles_affected=result.bundles_affected,
            adjustments_made=result.adjustments_made,
            locked_bundles=len(result.locked_bundles),
            failed_bundles=len(result.failed_bundles),
        )
        return result

    def _reconcile(self, gateway, bundle, event, changed_variant_id) -> int:
        """Bring one bundle's parent in line; returns accepted adjustments."""
        stock_items, stock = self._read_stock(gateway, bundle, event, changed_variant_id)

        if bundle.is_same_product:
            component = bundle.components[0]
            expected = same_product_availability(stock[str(component.variant_id)], component.quantity)
        else:
            expected = mixed_bundle_availability(
                [{"stock": stock[str(c.variant_id)], "quantity": c.quantity} for c in bundle.components]
            )

        parent_id = str(bundle.parent_variant_id)
        delta = expected - stock[parent_id]
        parent_stock_item = stock_items.get(parent_id)

        changes = []
        if delta != 0 and parent_stock_item is not None:
            changes.append(StockAdjustment(stock_item_id=parent_stock_item, location_id=event.location_id, delta=delta))
        elif delta != 0:
            logger.warning("Parent variant has no stock item", bundle_id=str(bundle.id), parent_variant_id=parent_id)

        logger.info(
            "Bundle reconciled",
            bundle_id=str(bundle.id),
            name=bundle.name,
            expected=expected,
            current=stock[parent_id],
            delta=delta,
        )
        return self._apply(gateway, changes)

    def _read_stock(self, gateway, bundle, event, changed_variant_id):
        variant_ids = bundle.variant_ids
        changed_variant_id = canonical_variant_id(changed_variant_id)

        stock_items: dict[str, str] = {}
        for batch in chunked(variant_ids, READ_BATCH_SIZE):
            stock_items.update(gateway.resolve_stock_items(batch))

        levels: dict[str, int] = {}
        for batch in chunked(list(dict.fromkeys(stock_items.values())), READ_BATCH_SIZE):
            levels.update(gateway.read_levels(batch, event.location_id))

        stock = {}
        for variant_id in variant_ids:
            if variant_id == changed_variant_id:
                stock[variant_id] = event.available
            else:
                stock[variant_id] = levels.get(stock_items.get(variant_id), 0)
        return stock_items, stock

    def _apply(self, gateway, changes) -> int:
        changes = [c for c in changes if c.delta != 0]
        applied = 0
        for batch in chunked(changes, ADJUST_BATCH_SIZE):
            try:
                report = gateway.adjust_levels(batch, ADJUSTMENT_REASON)
            except GatewayError as exc:
                raise BundleSyncFailed(str(exc), changes=batch) from exc
            if not report.ok:
                raise BundleSyncFailed("; ".join(report.user_errors), changes=batch)
            applied += report.applied
        return applied
