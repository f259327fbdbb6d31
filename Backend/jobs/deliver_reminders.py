import logging

import models  # noqa: F401
from database import Base, SessionLocal, engine
from services.firebase_app import DISABLED, init_firebase
from services.notifications import SqlNotificationQueue, deliver_due, init_notification_handler


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if init_firebase() == DISABLED:
        print("Firebase is not configured, reminders will only be logged")
    Base.metadata.create_all(bind=engine)
    handler = init_notification_handler()
    db = SessionLocal()
    try:
        count = deliver_due(SqlNotificationQueue(db), handler)
        print(f"Reminders delivered: {count}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
