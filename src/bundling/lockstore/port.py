"""Lock store port — persistence contract behind sync locks.

Mutual exclusion rests entirely on the store: ``create_if_absent`` must be a
single atomic compare-and-set. Implementations use whatever the backing
store offers for that (a primary key, a conditional put, a mutex).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LockRecord:
    """A held lock: who took it, when, and when it lapses on its own."""

    lock_id: str
    owner_ref: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class LockStore(ABC):
    """Abstract interface for lock persistence."""

    @abstractmethod
    def create_if_absent(self, record: LockRecord) -> bool:
        """Insert ``record`` unless a lock with the same id exists.

        Returns:
            True if the record was created, False on an id collision.
        """
        ...

    @abstractmethod
    def delete(self, lock_id: str) -> None:
        """Delete a lock by id. Deleting an absent lock is not an error."""
        ...

    @abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """Delete every lock that expired before ``now``.

        Returns:
            Number of locks removed.
        """
        ...

    @abstractmethod
    def get(self, lock_id: str) -> LockRecord | None:
        """Return the lock with this id, expired or not, if present."""
        ...
