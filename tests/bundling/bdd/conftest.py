"""Shared BDD fixtures and step definitions for bundle inventory sync."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from bundling.bundle.management import DefineBundle
from bundling.lockstore.memory_adapter import MemoryLockStore
from bundling.sync.locking import BUNDLE_SYNC_LOCK_TTL, SyncLockManager, bundle_sync_lock_id

SHOP = "lager-co.myshopify.com"
LOCATION = "loc-1"

_STOCK_ITEMS = {
    "Single": "inv-single",
    "4-Pack": "inv-4pack",
    "24-Pack": "inv-24pack",
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def lock_manager():
    return SyncLockManager(store=MemoryLockStore())


@pytest.fixture()
def bundles():
    return {}


@pytest.fixture()
def results():
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a shop selling Lager as a Single, a 4-Pack and a 24-Pack")
def _(gateway, bundles):
    for label, stock_item in _STOCK_ITEMS.items():
        gateway.register_variant(f"var-{label.lower()}", stock_item)

    for label, multiplier in (("4-Pack", 4), ("24-Pack", 24)):
        bundles[label] = current_domain.process(
            DefineBundle(
                shop_id=SHOP,
                name=f"Lager {label}",
                parent_variant_id=f"var-{label.lower()}",
                components=json.dumps([{"variant_id": "var-single", "quantity": multiplier}]),
            ),
            asynchronous=False,
        )


@given(parsers.parse("the 4-Pack and the 24-Pack show {qty:d} available"))
def _(gateway, qty):
    gateway.set_level(_STOCK_ITEMS["4-Pack"], LOCATION, qty)
    gateway.set_level(_STOCK_ITEMS["24-Pack"], LOCATION, qty)


@given(parsers.parse("the {label} is being synced by another worker"))
def _(lock_manager, bundles, label):
    lock_manager.acquire(bundle_sync_lock_id(bundles[label], LOCATION), "other-worker", BUNDLE_SYNC_LOCK_TTL)


@given("the inventory service rejects adjustments")
def _(gateway):
    gateway.configure(should_succeed=True, failure_reason="Quantity out of range", fail_adjustments=True)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse("the {label} shows {qty:d} available"))
def _(gateway, label, qty):
    assert gateway.level(_STOCK_ITEMS[label], LOCATION) == qty


@then(parsers.parse("{count:d} adjustments were made"))
def _(results, count):
    assert results[-1].adjustments_made == count


@then(parsers.parse("the {label} is reported as locked"))
def _(results, bundles, label):
    assert results[-1].locked_bundles == [bundles[label]]


@then("both bundles are reported as failed")
def _(results, bundles):
    assert sorted(results[-1].failed_bundles) == sorted(bundles.values())


@then("no sync locks are left behind")
def _(lock_manager, bundles):
    for bundle_id in bundles.values():
        assert not lock_manager.is_held(bundle_sync_lock_id(bundle_id, LOCATION))
