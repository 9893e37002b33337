"""Tests for the relational lock store against a SQLite file."""

from datetime import UTC, datetime, timedelta

import pytest

from bundling.lockstore import get_lock_store, reset_lock_store
from bundling.lockstore.port import LockRecord
from bundling.lockstore.sql_adapter import SqlLockStore
from bundling.sync.locking import SyncLockManager

NOW = datetime(2026, 1, 17, 12, 0, tzinfo=UTC)


def _record(lock_id="sync:b-1:loc-1", ttl=timedelta(seconds=60), now=NOW):
    return LockRecord(lock_id=lock_id, owner_ref="b-1", created_at=now, expires_at=now + ttl)


@pytest.fixture()
def store(tmp_path):
    sql_store = SqlLockStore(f"sqlite:///{tmp_path / 'locks.db'}")
    sql_store.create_schema()
    yield sql_store
    sql_store.drop_schema()
    sql_store.close()


class TestSqlLockStore:
    def test_create_if_absent(self, store):
        assert store.create_if_absent(_record()) is True

    def test_primary_key_rejects_second_holder(self, store):
        store.create_if_absent(_record())
        assert store.create_if_absent(_record()) is False

    def test_get_round_trips_timestamps_as_utc(self, store):
        store.create_if_absent(_record())
        record = store.get("sync:b-1:loc-1")
        assert record.owner_ref == "b-1"
        assert record.created_at == NOW
        assert record.expires_at == NOW + timedelta(seconds=60)

    def test_get_missing(self, store):
        assert store.get("sync:none") is None

    def test_delete(self, store):
        store.create_if_absent(_record())
        store.delete("sync:b-1:loc-1")
        assert store.get("sync:b-1:loc-1") is None

    def test_delete_expired_only_removes_lapsed_locks(self, store):
        store.create_if_absent(_record("sync:short", ttl=timedelta(seconds=60)))
        store.create_if_absent(_record("delivery:long", ttl=timedelta(hours=24)))

        removed = store.delete_expired(NOW + timedelta(minutes=2))

        assert removed == 1
        assert store.get("sync:short") is None
        assert store.get("delivery:long") is not None


class TestSqlBackedManager:
    def test_expired_lock_is_reacquired(self, store):
        clock = iter([NOW, NOW + timedelta(seconds=30), NOW + timedelta(seconds=90)])
        manager = SyncLockManager(store=store, clock=lambda: next(clock))

        assert manager.acquire("sync:b-1:loc-1", "b-1", timedelta(seconds=60)) is True
        assert manager.acquire("sync:b-1:loc-1", "b-1", timedelta(seconds=60)) is False
        assert manager.acquire("sync:b-1:loc-1", "b-1", timedelta(seconds=60)) is True


class TestFactory:
    def test_sql_store_selected_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOCK_STORE", "sql")
        monkeypatch.setenv("LOCK_STORE_URL", f"sqlite:///{tmp_path / 'factory.db'}")
        reset_lock_store()

        store = get_lock_store()

        assert isinstance(store, SqlLockStore)
        assert store.create_if_absent(_record()) is True
        store.close()

    def test_sql_store_requires_url(self, monkeypatch):
        monkeypatch.setenv("LOCK_STORE", "sql")
        monkeypatch.delenv("LOCK_STORE_URL", raising=False)
        reset_lock_store()

        with pytest.raises(ValueError, match="LOCK_STORE_URL"):
            get_lock_store()
