"""Application tests for BundleInventorySynchronizer.

Ledger used throughout (one location, ``loc-1``):

    var-single  -> inv-single   (the base unit)
    var-4pack   -> inv-4pack    (4 x single)
    var-24pack  -> inv-24pack   (24 x single)
"""

import json

import pytest
from protean import current_domain

from bundling.bundle.management import DefineBundle
from bundling.gateway.port import StockAdjustment
from bundling.lockstore.memory_adapter import MemoryLockStore
from bundling.sync.locking import BUNDLE_SYNC_LOCK_TTL, SyncLockManager, bundle_sync_lock_id
from bundling.sync.synchronizer import (
    ADJUST_BATCH_SIZE,
    READ_BATCH_SIZE,
    BundleInventorySynchronizer,
    InventoryLevelUpdate,
    chunked,
)

SHOP = "lager-co.myshopify.com"
LOCATION = "loc-1"


def _define(parent, components, **overrides):
    return current_domain.process(
        DefineBundle(
            shop_id=SHOP,
            name=overrides.pop("name", f"Bundle {parent}"),
            parent_variant_id=parent,
            components=json.dumps([{"variant_id": v, "quantity": q} for v, q in components]),
            **overrides,
        ),
        asynchronous=False,
    )


def _event(stock_item_id="inv-single", available=48, location_id=LOCATION):
    return InventoryLevelUpdate(stock_item_id=stock_item_id, location_id=location_id, available=available, shop_id=SHOP)


@pytest.fixture()
def lock_manager():
    return SyncLockManager(store=MemoryLockStore())


@pytest.fixture()
def synchronizer(gateway, lock_manager):
    return BundleInventorySynchronizer(gateway=gateway, lock_manager=lock_manager)


@pytest.fixture()
def pack_sizes(gateway):
    for variant in ("single", "4pack", "24pack"):
        gateway.register_variant(f"var-{variant}", f"inv-{variant}")
    gateway.set_level("inv-single", LOCATION, 48)
    gateway.set_level("inv-4pack", LOCATION, 0)
    gateway.set_level("inv-24pack", LOCATION, 0)

    return {
        "4pack": _define("var-4pack", [("var-single", 4)]),
        "24pack": _define("var-24pack", [("var-single", 24)]),
    }


class TestSameProductSync:
    def test_base_stock_change_updates_every_pack_size(self, synchronizer, gateway, pack_sizes):
        result = synchronizer.process(_event(available=48))

        assert result.processed is True
        assert result.bundles_affected == 2
        assert result.adjustments_made == 2
        assert gateway.level("inv-4pack", LOCATION) == 12
        assert gateway.level("inv-24pack", LOCATION) == 2

    def test_event_quantity_overrides_ledger_for_changed_variant(self, synchronizer, gateway, pack_sizes):
        gateway.set_level("inv-single", LOCATION, 1000)

        synchronizer.process(_event(available=24))

        assert gateway.level("inv-24pack", LOCATION) == 1
        assert gateway.level("inv-4pack", LOCATION) == 6

    def test_adjustments_are_relative_corrections(self, synchronizer, gateway, pack_sizes):
        gateway.set_level("inv-24pack", LOCATION, 5)

        synchronizer.process(_event(available=48))

        adjust_calls = gateway.calls_to("adjust_levels")
        deltas = {c.stock_item_id: c.delta for call in adjust_calls for c in call["changes"]}
        assert deltas == {"inv-4pack": 12, "inv-24pack": -3}
        assert all(call["reason"] == "correction" for call in adjust_calls)

    def test_parent_change_is_corrected_back(self, synchronizer, gateway, pack_sizes):
        synchronizer.process(_event(available=48))
        gateway.set_level("inv-24pack", LOCATION, 7)

        result = synchronizer.process(_event(stock_item_id="inv-24pack", available=7))

        assert result.bundles_affected == 1
        assert result.adjustments_made == 1
        assert gateway.level("inv-24pack", LOCATION) == 2

    def test_replaying_an_event_writes_nothing(self, synchronizer, gateway, pack_sizes):
        synchronizer.process(_event(available=48))
        adjustments_after_first = len(gateway.calls_to("adjust_levels"))

        result = synchronizer.process(_event(available=48))

        assert result.processed is True
        assert result.adjustments_made == 0
        assert len(gateway.calls_to("adjust_levels")) == adjustments_after_first

    def test_parent_echo_event_converges(self, synchronizer, gateway, pack_sizes):
        """The platform echoes our own write back as an event; it must not trigger another write."""
        synchronizer.process(_event(available=48))

        result = synchronizer.process(_event(stock_item_id="inv-24pack", available=2))

        assert result.adjustments_made == 0


class TestMixedBundleSync:
    def test_variety_pack_limited_by_scarcest_component(self, synchronizer, gateway):
        for variant in ("variety", "lager", "ipa", "stout"):
            gateway.register_variant(f"var-{variant}", f"inv-{variant}")
        gateway.set_level("inv-lager", LOCATION, 100)
        gateway.set_level("inv-ipa", LOCATION, 40)
        gateway.set_level("inv-variety", LOCATION, 0)
        _define("var-variety", [("var-lager", 6), ("var-ipa", 4), ("var-stout", 2)])

        synchronizer.process(_event(stock_item_id="inv-stout", available=10))

        assert gateway.level("inv-variety", LOCATION) == 5

    def test_missing_component_level_counts_as_zero(self, synchronizer, gateway):
        for variant in ("variety", "lager", "ipa"):
            gateway.register_variant(f"var-{variant}", f"inv-{variant}")
        gateway.set_level("inv-variety", LOCATION, 3)
        _define("var-variety", [("var-lager", 1), ("var-ipa", 1)])

        synchronizer.process(_event(stock_item_id="inv-lager", available=50))

        assert gateway.level("inv-variety", LOCATION) == 0


class TestSkips:
    def test_unknown_stock_item(self, synchronizer, pack_sizes):
        result = synchronizer.process(_event(stock_item_id="inv-unknown"))
        assert result.processed is False
        assert result.skipped == "Could not find variant for inventory item"
        assert result.error is None

    def test_variant_not_in_any_bundle(self, synchronizer, gateway, pack_sizes):
        gateway.register_variant("var-cider", "inv-cider")
        result = synchronizer.process(_event(stock_item_id="inv-cider"))
        assert result.processed is True
        assert result.bundles_affected == 0
        assert result.skipped == "Variant is not part of any bundle"

    def test_bundles_of_other_shops_ignored(self, synchronizer, gateway, pack_sizes):
        event = InventoryLevelUpdate(
            stock_item_id="inv-single", location_id=LOCATION, available=48, shop_id="other.myshopify.com"
        )
        result = synchronizer.process(event)
        assert result.skipped == "Variant is not part of any bundle"

    def test_parent_without_stock_item_is_not_adjusted(self, synchronizer, gateway):
        gateway.register_variant("var-single", "inv-single")
        _define("var-orphan", [("var-single", 2)])

        result = synchronizer.process(_event(available=10))

        assert result.processed is True
        assert result.adjustments_made == 0
        assert gateway.calls_to("adjust_levels") == []


class TestLocking:
    def test_bundle_locked_elsewhere_is_skipped(self, synchronizer, gateway, lock_manager, pack_sizes):
        lock_manager.acquire(bundle_sync_lock_id(pack_sizes["24pack"], LOCATION), "other-worker", BUNDLE_SYNC_LOCK_TTL)

        result = synchronizer.process(_event(available=48))

        assert result.locked_bundles == [pack_sizes["24pack"]]
        assert result.adjustments_made == 1
        assert gateway.level("inv-4pack", LOCATION) == 12
        assert gateway.level("inv-24pack", LOCATION) == 0

    def test_lock_on_another_location_does_not_block(self, synchronizer, lock_manager, pack_sizes):
        lock_manager.acquire(bundle_sync_lock_id(pack_sizes["24pack"], "loc-2"), "other-worker", BUNDLE_SYNC_LOCK_TTL)
        result = synchronizer.process(_event(available=48))
        assert result.locked_bundles == []

    def test_locks_released_after_processing(self, synchronizer, lock_manager, pack_sizes):
        synchronizer.process(_event(available=48))
        for bundle_id in pack_sizes.values():
            assert not lock_manager.is_held(bundle_sync_lock_id(bundle_id, LOCATION))


class TestFailureContainment:
    def test_rejected_adjustments_reported_per_bundle(self, synchronizer, gateway, lock_manager, pack_sizes):
        gateway.configure(should_succeed=True, failure_reason="Quantity out of range", fail_adjustments=True)

        result = synchronizer.process(_event(available=48))

        assert result.processed is True
        assert result.adjustments_made == 0
        assert sorted(result.failed_bundles) == sorted(pack_sizes.values())
        for bundle_id in pack_sizes.values():
            assert not lock_manager.is_held(bundle_sync_lock_id(bundle_id, LOCATION))

    def test_one_failing_bundle_does_not_stop_the_next(self, synchronizer, gateway, pack_sizes, monkeypatch):
        original = gateway.adjust_levels
        calls = []

        def fail_first(changes, reason):
            calls.append(changes)
            if len(calls) == 1:
                from bundling.gateway import GatewayError

                raise GatewayError("connection reset")
            return original(changes, reason)

        monkeypatch.setattr(gateway, "adjust_levels", fail_first)

        result = synchronizer.process(_event(available=48))

        assert len(result.failed_bundles) == 1
        assert result.adjustments_made == 1

    def test_resolution_failure_reports_error(self, synchronizer, gateway, pack_sizes):
        gateway.configure(should_succeed=False, failure_reason="Inventory service unavailable")

        result = synchronizer.process(_event())

        assert result.processed is False
        assert result.error == "Inventory service unavailable"
        assert result.bundles_affected == 0


class TestBatching:
    def test_reads_batched_at_fifty(self, synchronizer, gateway):
        components = [(f"var-c{i}", 1) for i in range(60)]
        for variant_id, _ in components:
            gateway.register_variant(variant_id, variant_id.replace("var", "inv"))
            gateway.set_level(variant_id.replace("var", "inv"), LOCATION, 5)
        gateway.register_variant("var-big", "inv-big")
        _define("var-big", components)

        synchronizer.process(_event(stock_item_id="inv-c0", available=5))

        resolve_sizes = [c["batch_size"] for c in gateway.calls_to("resolve_stock_items")]
        read_sizes = [c["batch_size"] for c in gateway.calls_to("read_levels")]
        assert resolve_sizes == [50, 11]
        assert read_sizes == [50, 11]
        assert gateway.level("inv-big", LOCATION) == 5

    def test_adjustments_batched_at_ten_without_zero_deltas(self, synchronizer, gateway):
        changes = [StockAdjustment(stock_item_id=f"inv-{i}", location_id=LOCATION, delta=i % 3) for i in range(35)]

        applied = synchronizer._apply(gateway, changes)

        sizes = [c["batch_size"] for c in gateway.calls_to("adjust_levels")]
        assert all(size <= ADJUST_BATCH_SIZE for size in sizes)
        assert sum(sizes) == applied == len([c for c in changes if c.delta])
        assert all(c.delta != 0 for call in gateway.calls_to("adjust_levels") for c in call["changes"])

    def test_chunked(self):
        assert chunked(range(5), 2) == [[0, 1], [2, 3], [4]]
        assert chunked([], READ_BATCH_SIZE) == []


class TestResultShape:
    def test_to_dict(self, synchronizer, pack_sizes):
        data = synchronizer.process(_event(available=48)).to_dict()
        assert set(data) == {
            "processed",
            "bundles_affected",
            "adjustments_made",
            "skipped",
            "error",
            "locked_bundles",
            "failed_bundles",
        }
