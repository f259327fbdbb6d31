"""
Opaque string key-value store used for the persisted collections.

The repository layer only ever needs three calls: get(key), set(key, value)
and remove_many(keys). SqlKeyValueStore keeps the values in the kv_store
table, InMemoryKeyValueStore is the fake used in tests and scripts.

Writes raise StorageError. Reads raise StorageError too; the callers decide
whether a failed read is recoverable.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import nullcontext

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import STORE_LOCKING
from models.kv_entry import KeyValueEntry


class StorageError(Exception):
    pass


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_many(self, keys: list[str]) -> None:
        ...


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove_many(self, keys: list[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


class SqlKeyValueStore(KeyValueStore):
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> str | None:
        try:
            row = self.db.get(KeyValueEntry, key)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not read '{key}': {exc}") from exc
        return row.value if row else None

    def set(self, key: str, value: str) -> None:
        try:
            row = self.db.get(KeyValueEntry, key)
            if row:
                row.value = value
            else:
                self.db.add(KeyValueEntry(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not write '{key}': {exc}") from exc

    def remove_many(self, keys: list[str]) -> None:
        # One commit per key: a failure leaves earlier deletes in place.
        for key in keys:
            try:
                self.db.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                raise StorageError(f"Could not remove '{key}': {exc}") from exc


# ─── Collection locks ─────────────────────────────────────

def make_lock(policy: str | None = None):
    """Lock guarding one collection's read-modify-write cycle.

    "mutex" returns a re-entrant lock (the dose recorder updates a reactive
    while already holding the reactives lock). "none" returns a no-op
    context manager and keeps the unguarded race.
    """
    policy = (policy or STORE_LOCKING or "none").strip().lower()
    if policy == "mutex":
        return threading.RLock()
    if policy == "none":
        return nullcontext()
    raise ValueError(f"Unknown STORE_LOCKING policy '{policy}'")


_COLLECTION_LOCKS: dict[str, object] = {}
_REGISTRY_LOCK = threading.Lock()


def collection_lock(key: str):
    """Process-wide lock for the collection stored under ``key``."""
    with _REGISTRY_LOCK:
        lock = _COLLECTION_LOCKS.get(key)
        if lock is None:
            lock = make_lock()
            _COLLECTION_LOCKS[key] = lock
        return lock
