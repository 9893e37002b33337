import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from bundling.gateway import FakeInventoryGateway, reset_inventory_gateway, set_inventory_gateway
from bundling.lockstore import reset_lock_store
from bundling.orders import FakeOrderSource, reset_order_source, set_order_source


@pytest.fixture(scope="session")
def bundling_bed():
    from bundling.domain import bundling

    bed = DomainFixture(bundling)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(bundling_bed):
    with bundling_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _adapters():
    """Fresh in-memory collaborators for every test."""
    reset_lock_store()
    reset_inventory_gateway()
    reset_order_source()
    yield
    reset_lock_store()
    reset_inventory_gateway()
    reset_order_source()


@pytest.fixture()
def gateway():
    fake = FakeInventoryGateway()
    set_inventory_gateway(fake)
    return fake


@pytest.fixture()
def order_source():
    fake = FakeOrderSource()
    set_order_source(fake)
    return fake
