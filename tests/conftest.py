import os
from pathlib import Path

import pytest

_LAYER_MARKERS = ("domain", "application", "integration")


def pytest_addoption(parser):
    parser.addoption("--env", action="store", default="test", help="Protean config environment for the run")


def pytest_sessionstart(session):
    """Select the config environment and fake adapters before any domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("INVENTORY_GATEWAY", "fake")
    os.environ.setdefault("ORDER_SOURCE", "fake")
    os.environ.setdefault("LOCK_STORE", "memory")


def pytest_collection_modifyitems(config, items):
    """Mark each test with the layer its directory belongs to."""
    for item in items:
        parts = Path(str(item.fspath)).parts
        layer = next((name for name in _LAYER_MARKERS if name in parts), None)
        if layer is None:
            continue
        item.add_marker(getattr(pytest.mark, layer))
        if layer == "integration" and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
