"""Seed the database with a couple of sample reactives."""

from datetime import date

import models  # noqa: F401
from database import SessionLocal, Base, engine
from schemas.reactive import Reactive
from services.notifications import SqlNotificationQueue
from services.reminders import ReminderScheduler
from services.storage import ReactiveRepository
from services.store import SqlKeyValueStore

Base.metadata.create_all(bind=engine)

REACTIVES = [
    {"id": "demo-vitd3", "name": "Vitamin D3 1000 IU", "quantity": "1 capsule", "times": ["08:00"],
     "duration": "ongoing", "color": "#FF9800", "currentSupply": 60, "totalSupply": 60, "refillAt": 10},
    {"id": "demo-amox", "name": "Amoxicillin 500mg", "quantity": "1 tablet", "times": ["08:00", "16:00", "23:59"],
     "duration": "7 days", "color": "#2196F3", "currentSupply": 4, "totalSupply": 21, "refillAt": 5},
]


def seed():
    db = SessionLocal()
    try:
        repository = ReactiveRepository(SqlKeyValueStore(db))
        existing = repository.list()
        if existing:
            print(f"Database already has {len(existing)} reactives, skipping seed.")
            return

        scheduler = ReminderScheduler(SqlNotificationQueue(db))
        for r in REACTIVES:
            reactive = Reactive(
                startDate=date.today().isoformat(),
                reminderEnabled=True,
                refillReminder=True,
                **r,
            )
            repository.add(reactive)
            scheduler.resync(reactive)
        print(f"Seeded {len(REACTIVES)} reactives.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
