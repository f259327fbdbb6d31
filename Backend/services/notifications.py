"""
Local notification queue and delivery.

The queue holds scheduled reminders (repeating daily triggers and one-shot
immediate ones). SqlNotificationQueue persists them in the
scheduled_notifications table, InMemoryNotificationQueue is the test fake.
Presentation settings live on a NotificationHandler that the host app
creates once with init_notification_handler().
"""

import json
import logging
import traceback
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import firebase_admin
from firebase_admin import messaging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import (
    LOCAL_TIMEZONE,
    DEVICE_PUSH_TOKEN,
    NOTIFICATION_CHANNEL_ID,
    NOTIFICATION_LIGHT_COLOR,
    NOTIFICATION_VIBRATION_PATTERN,
)
from models.scheduled_notification import ScheduledNotification, TriggerType

logger = logging.getLogger("maywa.notifications")


@dataclass
class NotificationContent:
    title: str
    body: str
    data: dict = field(default_factory=dict)


@dataclass
class DailyTrigger:
    hour: int
    minute: int
    repeats: bool = True


@dataclass
class ScheduledReminder:
    identifier: str
    content: NotificationContent
    trigger: DailyTrigger | None
    next_fire_at: datetime


@dataclass
class NotificationHandler:
    show_banner: bool = True
    play_sound: bool = True
    set_badge: bool = True
    show_list: bool = True
    channel_id: str = NOTIFICATION_CHANNEL_ID
    light_color: str = NOTIFICATION_LIGHT_COLOR
    vibration_pattern: list[int] = field(default_factory=lambda: list(NOTIFICATION_VIBRATION_PATTERN))
    push_token: str | None = None

    def present(self, reminder: ScheduledReminder) -> bool:
        """Deliver one reminder. Returns False when it could not be pushed."""
        if not self.show_banner and not self.show_list:
            logger.info("Notification %s suppressed by handler", reminder.identifier)
            return False
        return send_push_to_token(self.push_token, reminder.content, self)


def init_notification_handler(push_token: str | None = None, **overrides) -> NotificationHandler:
    """Create the handler the app uses for every reminder it presents.

    Call once at startup and keep the returned object; nothing is configured
    at import time.
    """
    handler = NotificationHandler(push_token=push_token or DEVICE_PUSH_TOKEN or None, **overrides)
    logger.info(
        "Notification handler ready (channel=%s, push=%s)",
        handler.channel_id,
        "on" if handler.push_token else "off",
    )
    return handler


def send_push_to_token(push_token: str | None, content: NotificationContent, handler: NotificationHandler) -> bool:
    if not push_token:
        logger.info("Push skipped: no device push token (%s)", content.title)
        return False
    try:
        if not firebase_admin._apps:
            logger.info("Push skipped: Firebase Admin is not initialized")
            return False
        msg = messaging.Message(
            token=push_token,
            notification=messaging.Notification(title=content.title, body=content.body),
            data={k: str(v) for k, v in content.data.items()},
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id=handler.channel_id,
                    color=handler.light_color,
                    light_settings=messaging.LightSettings(
                        color=handler.light_color,
                        light_on_duration_millis=250,
                        light_off_duration_millis=250,
                    ),
                    vibrate_timings_millis=handler.vibration_pattern,
                    default_sound=handler.play_sound,
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        sound="default" if handler.play_sound else None,
                        badge=1 if handler.set_badge else None,
                    ),
                )
            ),
        )
        messaging.send(msg)
        return True
    except Exception as exc:
        logger.error("Push send failed for %s: %s", content.title, exc)
        traceback.print_exc()
        # Push failures should not break the reminder flow.
        return False


# ─── Queues ────────────────────────────────────────────────

class NotificationQueue(ABC):
    @abstractmethod
    def schedule(self, content: NotificationContent, trigger: DailyTrigger | None, fire_at: datetime) -> str:
        ...

    @abstractmethod
    def get_all_scheduled(self) -> list[ScheduledReminder]:
        ...

    @abstractmethod
    def cancel(self, identifier: str) -> None:
        ...

    @abstractmethod
    def reschedule(self, identifier: str, next_fire_at: datetime) -> None:
        ...


class InMemoryNotificationQueue(NotificationQueue):
    def __init__(self):
        self.items: dict[str, ScheduledReminder] = {}

    def schedule(self, content, trigger, fire_at):
        identifier = uuid.uuid4().hex
        self.items[identifier] = ScheduledReminder(identifier, content, trigger, fire_at)
        return identifier

    def get_all_scheduled(self):
        return list(self.items.values())

    def cancel(self, identifier):
        self.items.pop(identifier, None)

    def reschedule(self, identifier, next_fire_at):
        if identifier in self.items:
            self.items[identifier].next_fire_at = next_fire_at


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SqlNotificationQueue(NotificationQueue):
    def __init__(self, db: Session):
        self.db = db

    def schedule(self, content, trigger, fire_at):
        row = ScheduledNotification(
            identifier=uuid.uuid4().hex,
            title=content.title,
            body=content.body,
            data=json.dumps(content.data),
            medication_id=content.data.get("medicationId"),
            trigger_type=TriggerType.daily if trigger else TriggerType.immediate,
            hour=trigger.hour if trigger else None,
            minute=trigger.minute if trigger else None,
            repeats=bool(trigger and trigger.repeats),
            next_fire_at=_to_naive_utc(fire_at),
        )
        self.db.add(row)
        self._commit()
        return row.identifier

    def get_all_scheduled(self):
        rows = self.db.query(ScheduledNotification).order_by(ScheduledNotification.next_fire_at.asc()).all()
        return [self._to_reminder(row) for row in rows]

    def cancel(self, identifier):
        self.db.query(ScheduledNotification).filter(ScheduledNotification.identifier == identifier).delete()
        self._commit()

    def reschedule(self, identifier, next_fire_at):
        row = self.db.get(ScheduledNotification, identifier)
        if row:
            row.next_fire_at = _to_naive_utc(next_fire_at)
            self._commit()

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    @staticmethod
    def _to_reminder(row: ScheduledNotification) -> ScheduledReminder:
        trigger = None
        if row.trigger_type == TriggerType.daily:
            trigger = DailyTrigger(hour=row.hour, minute=row.minute, repeats=bool(row.repeats))
        return ScheduledReminder(
            identifier=row.identifier,
            content=NotificationContent(title=row.title, body=row.body, data=json.loads(row.data or "{}")),
            trigger=trigger,
            next_fire_at=row.next_fire_at.replace(tzinfo=timezone.utc),
        )


# ─── Delivery ──────────────────────────────────────────────

def next_daily_occurrence(hour: int, minute: int, now: datetime, tz: ZoneInfo) -> datetime:
    """Today at hour:minute local time, or tomorrow if that has passed."""
    local_now = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
    candidate = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate < local_now:
        candidate += timedelta(days=1)
    return candidate


def deliver_due(
    queue: NotificationQueue,
    handler: NotificationHandler,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> int:
    """Present every reminder whose fire time has passed.

    One-shot reminders are removed after presenting, repeating daily ones
    are re-armed for their next local hour:minute.
    """
    tz = tz or ZoneInfo(LOCAL_TIMEZONE)
    now = now or datetime.now(timezone.utc)
    delivered = 0
    for reminder in queue.get_all_scheduled():
        if reminder.next_fire_at > now:
            continue
        handler.present(reminder)
        delivered += 1
        if reminder.trigger and reminder.trigger.repeats:
            trigger = reminder.trigger
            next_fire = next_daily_occurrence(trigger.hour, trigger.minute, now, tz)
            if next_fire <= now:
                next_fire += timedelta(days=1)
            queue.reschedule(reminder.identifier, next_fire)
        else:
            queue.cancel(reminder.identifier)
    return delivered
