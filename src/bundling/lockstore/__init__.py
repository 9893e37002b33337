"""Lock store factory.

Provides get_lock_store() / set_lock_store() to swap implementations:
- MemoryLockStore for single-node deployments and tests (default)
- SqlLockStore for multi-worker deployments sharing a database

Selected by the LOCK_STORE environment variable ("memory" or "sql"); the sql
store connects to LOCK_STORE_URL.
"""

import os

from bundling.lockstore.port import LockRecord, LockStore

_current_store: LockStore | None = None


def get_lock_store() -> LockStore:
    """Return the configured lock store (singleton)."""
    global _current_store
    if _current_store is None:
        adapter = os.environ.get("LOCK_STORE", "memory")
        if adapter == "memory":
            from bundling.lockstore.memory_adapter import MemoryLockStore

            _current_store = MemoryLockStore()
        elif adapter == "sql":
            from bundling.lockstore.sql_adapter import SqlLockStore

            url = os.environ.get("LOCK_STORE_URL")
            if not url:
                raise ValueError("LOCK_STORE_URL must be set when LOCK_STORE=sql")
            store = SqlLockStore(url)
            store.create_schema()
            _current_store = store
        else:
            raise ValueError(f"Unknown lock store: {adapter}")
    return _current_store


def set_lock_store(store: LockStore) -> None:
    """Override the active lock store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_lock_store() -> None:
    """Reset to the default lock store."""
    global _current_store
    _current_store = None


__all__ = ["LockRecord", "LockStore", "get_lock_store", "reset_lock_store", "set_lock_store"]
