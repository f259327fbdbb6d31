"""
Reactive repository, dose history and dose recorder.

Both collections live in the key-value store as whole JSON arrays and every
mutation rewrites the full array. Reads fail soft (logged, empty list),
writes fail hard (StorageError reaches the caller).

Mutations work on the stored JSON items as they are. A record that does not
fit the current schema is hidden from list() but written back untouched, so
it never takes its siblings down with it.
"""

import json
import logging
import uuid
from datetime import date, datetime
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from config import LOCAL_TIMEZONE
from schemas.reactive import DoseHistory, Reactive
from services.store import KeyValueStore, StorageError, collection_lock

REACTIVES_KEY = "@reactives"
DOSE_HISTORY_KEY = "@dose_history"

logger = logging.getLogger("maywa.storage")


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _load_raw(store: KeyValueStore, key: str) -> list:
    try:
        raw = store.get(key)
        if not raw:
            return []
        items = json.loads(raw)
    except (StorageError, ValueError) as exc:
        logger.error("Error reading %s: %s", key, exc)
        return []
    if not isinstance(items, list):
        logger.error("Error reading %s: expected a JSON array, got %s", key, type(items).__name__)
        return []
    return items


def _parse_items(key: str, items: list, model) -> list:
    parsed = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping unreadable item in %s: %s", key, exc.errors()[0].get("msg"))
    return parsed


def _load_list(store: KeyValueStore, key: str, model) -> list:
    return _parse_items(key, _load_raw(store, key), model)


def _item_id(item) -> object:
    return item.get("id") if isinstance(item, dict) else None


def _dump_raw(store: KeyValueStore, key: str, items: list) -> None:
    store.set(key, json.dumps(items))


class ReactiveRepository:
    def __init__(self, store: KeyValueStore, lock=None):
        self.store = store
        self.lock = lock if lock is not None else collection_lock(REACTIVES_KEY)

    def list(self) -> list[Reactive]:
        return _load_list(self.store, REACTIVES_KEY, Reactive)

    def get(self, reactive_id: str) -> Reactive | None:
        return next((r for r in self.list() if r.id == reactive_id), None)

    def add(self, reactive: Reactive) -> None:
        with self.lock:
            items = _load_raw(self.store, REACTIVES_KEY)
            items.append(reactive.to_storage())
            _dump_raw(self.store, REACTIVES_KEY, items)

    def add_if_absent(self, reactive: Reactive) -> bool:
        """Add unless some stored item already uses the id. Returns whether it was added."""
        with self.lock:
            items = _load_raw(self.store, REACTIVES_KEY)
            if any(_item_id(item) == reactive.id for item in items):
                return False
            items.append(reactive.to_storage())
            _dump_raw(self.store, REACTIVES_KEY, items)
            return True

    def update(self, reactive: Reactive) -> None:
        with self.lock:
            items = _load_raw(self.store, REACTIVES_KEY)
            for i, item in enumerate(items):
                if _item_id(item) == reactive.id:
                    items[i] = reactive.to_storage()
                    _dump_raw(self.store, REACTIVES_KEY, items)
                    return

    def delete(self, reactive_id: str) -> None:
        with self.lock:
            items = [item for item in _load_raw(self.store, REACTIVES_KEY) if _item_id(item) != reactive_id]
            _dump_raw(self.store, REACTIVES_KEY, items)

    def refill(self, reactive_id: str, now: datetime | None = None) -> Reactive | None:
        """Restore current supply to total supply and stamp the refill date."""
        now = now or datetime.now(ZoneInfo(LOCAL_TIMEZONE))
        with self.lock:
            reactive = self.get(reactive_id)
            if reactive is None:
                return None
            refilled = reactive.model_copy(update={
                "current_supply": reactive.total_supply,
                "last_refill_date": now.isoformat(),
            })
            self.update(refilled)
            return refilled


class DoseHistoryLog:
    def __init__(self, store: KeyValueStore, lock=None, tz: str | None = None):
        self.store = store
        self.lock = lock if lock is not None else collection_lock(DOSE_HISTORY_KEY)
        self.tz = ZoneInfo(tz or LOCAL_TIMEZONE)

    def get_all(self) -> list[DoseHistory]:
        return _load_list(self.store, DOSE_HISTORY_KEY, DoseHistory)

    def get_today(self, now: datetime | None = None) -> list[DoseHistory]:
        now = now or datetime.now(self.tz)
        today = now.astimezone(self.tz).date() if now.tzinfo else now.date()
        return [dose for dose in self.get_all() if self._local_date(dose.timestamp) == today]

    def append(self, dose: DoseHistory) -> None:
        with self.lock:
            items = _load_raw(self.store, DOSE_HISTORY_KEY)
            items.append(dose.to_storage())
            _dump_raw(self.store, DOSE_HISTORY_KEY, items)

    def _local_date(self, timestamp: str) -> date | None:
        try:
            parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Skipping dose with unparseable timestamp %r", timestamp)
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(self.tz)
        return parsed.date()


class DoseRecorder:
    def __init__(self, history: DoseHistoryLog, reactives: ReactiveRepository):
        self.history = history
        self.reactives = reactives

    def record(self, reactive_id: str, taken: bool, timestamp: str) -> DoseHistory:
        """Append a dose event; a taken dose also uses up one unit of supply.

        Not transactional: if the supply update fails the history entry
        stays written.
        """
        dose = DoseHistory(id=_new_id(), reactive_id=reactive_id, timestamp=timestamp, taken=taken)
        self.history.append(dose)

        if taken:
            with self.reactives.lock:
                reactive = self.reactives.get(reactive_id)
                if reactive and reactive.current_supply > 0:
                    self.reactives.update(
                        reactive.model_copy(update={"current_supply": reactive.current_supply - 1})
                    )
        return dose


def clear_all_data(store: KeyValueStore) -> None:
    store.remove_many([REACTIVES_KEY, DOSE_HISTORY_KEY])
