from schemas.reactive import Reactive
from services.store import InMemoryKeyValueStore, StorageError


def make_reactive(reactive_id="r1", **overrides) -> Reactive:
    data = {
        "id": reactive_id,
        "name": "Ibuprofen",
        "quantity": "400mg",
        "times": ["08:00", "20:00"],
        "startDate": "2024-01-01",
        "duration": "30 days",
        "color": "#E91E63",
        "reminderEnabled": True,
        "currentSupply": 10,
        "totalSupply": 30,
        "refillAt": 5,
        "refillReminder": True,
    }
    data.update(overrides)
    return Reactive.model_validate(data)


class BrokenWriteStore(InMemoryKeyValueStore):
    def set(self, key, value):
        raise StorageError(f"disk full while writing {key}")

    def remove_many(self, keys):
        raise StorageError("disk full")


class BrokenReadStore(InMemoryKeyValueStore):
    def get(self, key):
        raise StorageError(f"cannot read {key}")
