"""In-process lock store for single-node deployments and tests."""

import threading
from datetime import datetime

from bundling.lockstore.port import LockRecord, LockStore


class MemoryLockStore(LockStore):
    """Dictionary of lock records guarded by a mutex."""

    def __init__(self) -> None:
        self._records: dict[str, LockRecord] = {}
        self._mutex = threading.Lock()

    def create_if_absent(self, record: LockRecord) -> bool:
        with self._mutex:
            if record.lock_id in self._records:
                return False
            self._records[record.lock_id] = record
            return True

    def delete(self, lock_id: str) -> None:
        with self._mutex:
            self._records.pop(lock_id, None)

    def delete_expired(self, now: datetime) -> int:
        with self._mutex:
            expired = [lock_id for lock_id, record in self._records.items() if record.is_expired(now)]
            for lock_id in expired:
                del self._records[lock_id]
            return len(expired)

    def get(self, lock_id: str) -> LockRecord | None:
        with self._mutex:
            return self._records.get(lock_id)

    def clear(self) -> None:
        with self._mutex:
            self._records.clear()
