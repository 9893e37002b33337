"""Sync locks — short-lived mutual exclusion keyed by a logical resource id.

Lifecycle per lock id: absent -> held -> (released | expired) -> absent.

A lock is created at the start of a protected operation and deleted when it
finishes. A crashed holder never releases; its lock lapses after the TTL and
is swept by the next acquirer, so a stuck bundle heals on the next event.

Two id namespaces share the mechanism and must never collide:
- ``sync:<bundle>:<location>``  one reconciliation pass per bundle/location
- ``delivery:<message id>``     suppresses redelivery of an inbound message
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from bundling.lockstore import LockRecord, LockStore, get_lock_store

logger = structlog.get_logger(__name__)

BUNDLE_SYNC_LOCK_TTL = timedelta(seconds=60)
DELIVERY_DEDUP_LOCK_TTL = timedelta(hours=24)


def bundle_sync_lock_id(bundle_id: str, location_id: str) -> str:
    """Lock id for reconciling one bundle at one location.

    Keyed by bundle and location only, so two events racing on the same
    bundle contend for the same lock.
    """
    return f"sync:{bundle_id}:{location_id}"


def delivery_lock_id(message_id: str) -> str:
    """Lock id marking an inbound delivery as seen."""
    return f"delivery:{message_id}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncLockManager:
    """Acquires and releases locks through a ``LockStore``."""

    def __init__(self, store: LockStore | None = None, clock: Callable[[], datetime] | None = None):
        self._store = store
        self._clock = clock or _utcnow

    @property
    def store(self) -> LockStore:
        return self._store or get_lock_store()

    def acquire(self, lock_id: str, owner_ref: str, ttl: timedelta) -> bool:
        """Try to take ``lock_id`` for ``ttl``.

        Sweeps every expired lock first, then attempts an atomic create.
        Returns False when a live lock with this id already exists.
        """
        now = self._clock()
        store = self.store

        swept = store.delete_expired(now)
        if swept:
            logger.debug("Swept expired sync locks", count=swept)

        acquired = store.create_if_absent(
            LockRecord(
                lock_id=lock_id,
                owner_ref=owner_ref,
                created_at=now,
                expires_at=now + ttl,
            )
        )
        if not acquired:
            logger.debug("Sync lock is held elsewhere", lock_id=lock_id, owner_ref=owner_ref)
        return acquired

    def release(self, lock_id: str) -> None:
        """Release ``lock_id``. The lock may already have lapsed and been swept."""
        self.store.delete(lock_id)

    def is_held(self, lock_id: str) -> bool:
        record = self.store.get(lock_id)
        return record is not None and not record.is_expired(self._clock())
