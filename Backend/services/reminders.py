"""
Dose and refill reminder scheduling for reactives.

Purely reactive: nothing here runs on a timer. Callers resync a reactive
after they create, update or refill it, and cancel its reminders after
deleting it. Notification failures are logged and swallowed so they never
block the data write that triggered them.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from config import LOCAL_TIMEZONE
from schemas.reactive import Reactive
from services.notifications import (
    DailyTrigger,
    NotificationContent,
    NotificationQueue,
    next_daily_occurrence,
)

logger = logging.getLogger("maywa.reminders")

REFILL_TYPE = "refill"


def parse_time(value: str) -> tuple[int, int]:
    hours, minutes = (int(part) for part in value.split(":"))
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Time out of range: {value!r}")
    return hours, minutes


class ReminderScheduler:
    def __init__(self, queue: NotificationQueue, tz: str | None = None, clock=None):
        self.queue = queue
        self.tz = ZoneInfo(tz or LOCAL_TIMEZONE)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def schedule_dose_reminders(self, reactive: Reactive) -> list[str]:
        """One repeating daily reminder per configured dosing time."""
        if not reactive.reminder_enabled:
            return []

        identifiers = []
        now = self.clock()
        for time_str in reactive.times:
            try:
                hours, minutes = parse_time(time_str)
                identifier = self.queue.schedule(
                    NotificationContent(
                        title="Reactive Reminder",
                        body=f"Time to take {reactive.name} ({reactive.quantity})",
                        data={"medicationId": reactive.id},
                    ),
                    DailyTrigger(hour=hours, minute=minutes, repeats=True),
                    next_daily_occurrence(hours, minutes, now, self.tz),
                )
                identifiers.append(identifier)
            except Exception as exc:
                logger.error("Error scheduling reminder for %s at %r: %s", reactive.id, time_str, exc)
        return identifiers

    def schedule_refill_reminder(self, reactive: Reactive) -> str | None:
        if not reactive.refill_reminder:
            return None
        if reactive.current_supply > reactive.refill_at:
            return None
        try:
            return self.queue.schedule(
                NotificationContent(
                    title="Refill Reminder",
                    body=(
                        f"Your {reactive.name} supply is running low. "
                        f"Current supply: {reactive.current_supply}"
                    ),
                    data={"medicationId": reactive.id, "type": REFILL_TYPE},
                ),
                None,
                self.clock(),
            )
        except Exception as exc:
            logger.error("Error scheduling refill reminder for %s: %s", reactive.id, exc)
            return None

    def cancel_reminders(self, medication_id: str) -> int:
        """Cancel dose and refill reminders of one medication together."""
        canceled = 0
        try:
            for reminder in self.queue.get_all_scheduled():
                if reminder.content.data.get("medicationId") == medication_id:
                    self.queue.cancel(reminder.identifier)
                    canceled += 1
        except Exception as exc:
            logger.error("Error canceling reminders for %s: %s", medication_id, exc)
        return canceled

    def resync(self, reactive: Reactive) -> None:
        self.cancel_reminders(reactive.id)
        self.schedule_dose_reminders(reactive)
        self.schedule_refill_reminder(reactive)
