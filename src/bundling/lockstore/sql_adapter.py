"""Relational lock store — the primary key is the concurrency primitive.

Two workers racing to insert the same lock id both reach the database; the
loser gets an ``IntegrityError``, which is reported as a failed acquisition.
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy import Column, DateTime, MetaData, String, Table, create_engine, delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from bundling.lockstore.port import LockRecord, LockStore

logger = structlog.get_logger(__name__)

metadata = MetaData()

sync_locks = Table(
    "sync_locks",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("owner_ref", String(255), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("expires_at", DateTime, nullable=False, index=True),
)


def _to_db(value: datetime) -> datetime:
    """Store naive UTC so comparisons behave the same on every backend."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def _from_db(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC)


class SqlLockStore(LockStore):
    """Lock store backed by a ``sync_locks`` table."""

    def __init__(self, engine: Engine | str):
        self.engine = create_engine(engine) if isinstance(engine, str) else engine

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    def create_if_absent(self, record: LockRecord) -> bool:
        statement = insert(sync_locks).values(
            id=record.lock_id,
            owner_ref=record.owner_ref,
            created_at=_to_db(record.created_at),
            expires_at=_to_db(record.expires_at),
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(statement)
        except IntegrityError:
            logger.debug("Lock already held", lock_id=record.lock_id)
            return False
        return True

    def delete(self, lock_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(sync_locks).where(sync_locks.c.id == lock_id))

    def delete_expired(self, now: datetime) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(delete(sync_locks).where(sync_locks.c.expires_at < _to_db(now)))
        return result.rowcount or 0

    def get(self, lock_id: str) -> LockRecord | None:
        with self.engine.connect() as conn:
            row = conn.execute(select(sync_locks).where(sync_locks.c.id == lock_id)).mappings().first()
        if row is None:
            return None
        return LockRecord(
            lock_id=row["id"],
            owner_ref=row["owner_ref"],
            created_at=_from_db(row["created_at"]),
            expires_at=_from_db(row["expires_at"]),
        )

    def close(self) -> None:
        self.engine.dispose()
