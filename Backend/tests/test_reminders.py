import unittest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from services.notifications import (
    DailyTrigger,
    InMemoryNotificationQueue,
    NotificationContent,
    NotificationHandler,
    deliver_due,
    init_notification_handler,
    next_daily_occurrence,
)
from services.reminders import ReminderScheduler, parse_time

from helpers import make_reactive

NOW = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)


class ExplodingQueue(InMemoryNotificationQueue):
    def schedule(self, content, trigger, fire_at):
        raise RuntimeError("notification service unavailable")

    def get_all_scheduled(self):
        raise RuntimeError("notification service unavailable")


class RecordingHandler(NotificationHandler):
    def __init__(self):
        super().__init__()
        self.presented = []

    def present(self, reminder):
        self.presented.append(reminder.identifier)
        return True


def _for(queue, medication_id):
    return [r for r in queue.get_all_scheduled() if r.content.data.get("medicationId") == medication_id]


class TestDoseReminders(unittest.TestCase):
    def setUp(self):
        self.queue = InMemoryNotificationQueue()
        self.scheduler = ReminderScheduler(self.queue, tz="UTC", clock=lambda: NOW)

    def test_one_notification_per_configured_time(self):
        reactive = make_reactive("a", times=["08:00", "13:30", "21:15"])
        identifiers = self.scheduler.schedule_dose_reminders(reactive)
        self.assertEqual(len(identifiers), 3)
        triggers = sorted((r.trigger.hour, r.trigger.minute) for r in self.queue.get_all_scheduled())
        self.assertEqual(triggers, [(8, 0), (13, 30), (21, 15)])

    def test_next_occurrence_is_today_or_tomorrow(self):
        self.scheduler.schedule_dose_reminders(make_reactive("a", times=["08:00", "13:30"]))
        fire_times = sorted(r.next_fire_at for r in self.queue.get_all_scheduled())
        self.assertEqual(fire_times[0], datetime(2024, 1, 2, 13, 30, tzinfo=timezone.utc))
        self.assertEqual(fire_times[1], datetime(2024, 1, 3, 8, 0, tzinfo=timezone.utc))

    def test_payload_and_text(self):
        self.scheduler.schedule_dose_reminders(make_reactive("a", times=["08:00"]))
        reminder = self.queue.get_all_scheduled()[0]
        self.assertEqual(reminder.content.data, {"medicationId": "a"})
        self.assertEqual(reminder.content.title, "Reactive Reminder")
        self.assertEqual(reminder.content.body, "Time to take Ibuprofen (400mg)")
        self.assertTrue(reminder.trigger.repeats)

    def test_disabled_reminders_schedule_nothing(self):
        result = self.scheduler.schedule_dose_reminders(make_reactive("a", reminderEnabled=False))
        self.assertEqual(result, [])
        self.assertEqual(self.queue.get_all_scheduled(), [])

    def test_malformed_time_is_logged_and_skipped(self):
        with self.assertLogs("maywa.reminders", level="ERROR"):
            identifiers = self.scheduler.schedule_dose_reminders(make_reactive("a", times=["25:00", "nine", "09:00"]))
        self.assertEqual(len(identifiers), 1)

    def test_parse_time(self):
        self.assertEqual(parse_time("07:05"), (7, 5))
        with self.assertRaises(ValueError):
            parse_time("24:00")


class TestRefillReminder(unittest.TestCase):
    def setUp(self):
        self.queue = InMemoryNotificationQueue()
        self.scheduler = ReminderScheduler(self.queue, tz="UTC", clock=lambda: NOW)

    def test_fires_at_threshold(self):
        identifier = self.scheduler.schedule_refill_reminder(make_reactive("a", currentSupply=5, refillAt=5))
        self.assertIsNotNone(identifier)
        reminder = self.queue.get_all_scheduled()[0]
        self.assertIsNone(reminder.trigger)
        self.assertEqual(reminder.next_fire_at, NOW)
        self.assertEqual(reminder.content.data, {"medicationId": "a", "type": "refill"})
        self.assertEqual(reminder.content.body, "Your Ibuprofen supply is running low. Current supply: 5")

    def test_does_not_fire_above_threshold(self):
        self.assertIsNone(self.scheduler.schedule_refill_reminder(make_reactive("a", currentSupply=6, refillAt=5)))
        self.assertEqual(self.queue.get_all_scheduled(), [])

    def test_disabled_refill_reminder(self):
        reactive = make_reactive("a", currentSupply=0, refillAt=5, refillReminder=False)
        self.assertIsNone(self.scheduler.schedule_refill_reminder(reactive))
        self.assertEqual(self.queue.get_all_scheduled(), [])


class TestCancelAndResync(unittest.TestCase):
    def setUp(self):
        self.queue = InMemoryNotificationQueue()
        self.scheduler = ReminderScheduler(self.queue, tz="UTC", clock=lambda: NOW)

    def test_cancel_removes_dose_and_refill_together(self):
        low = make_reactive("a", currentSupply=1, refillAt=5)
        self.scheduler.resync(low)
        self.scheduler.resync(make_reactive("b"))
        self.assertEqual(len(_for(self.queue, "a")), 3)

        canceled = self.scheduler.cancel_reminders("a")
        self.assertEqual(canceled, 3)
        self.assertEqual(_for(self.queue, "a"), [])
        self.assertEqual(len(_for(self.queue, "b")), 2)

    def test_resync_replaces_previous_schedule(self):
        self.scheduler.resync(make_reactive("a", times=["08:00", "20:00"]))
        self.scheduler.resync(make_reactive("a", times=["09:00"]))
        self.assertEqual([(r.trigger.hour, r.trigger.minute) for r in _for(self.queue, "a")], [(9, 0)])

    def test_resync_then_cancel_leaves_nothing(self):
        self.scheduler.resync(make_reactive("a", currentSupply=0))
        self.scheduler.cancel_reminders("a")
        self.assertEqual(_for(self.queue, "a"), [])

    def test_queue_failures_are_swallowed(self):
        scheduler = ReminderScheduler(ExplodingQueue(), tz="UTC", clock=lambda: NOW)
        with self.assertLogs("maywa.reminders", level="ERROR"):
            scheduler.resync(make_reactive("a", currentSupply=0))
            self.assertEqual(scheduler.schedule_dose_reminders(make_reactive("a")), [])
            self.assertIsNone(scheduler.schedule_refill_reminder(make_reactive("a", currentSupply=0)))
            self.assertEqual(scheduler.cancel_reminders("a"), 0)


class TestDelivery(unittest.TestCase):
    def test_next_daily_occurrence_uses_local_wall_clock(self):
        tz = ZoneInfo("Europe/Madrid")
        # 12:00 UTC is 13:00 in Madrid in January.
        self.assertEqual(
            next_daily_occurrence(14, 0, NOW, tz),
            datetime(2024, 1, 2, 14, 0, tzinfo=tz),
        )
        self.assertEqual(
            next_daily_occurrence(9, 0, NOW, tz),
            datetime(2024, 1, 3, 9, 0, tzinfo=tz),
        )

    def test_deliver_due_presents_and_rearms(self):
        queue = InMemoryNotificationQueue()
        daily = queue.schedule(NotificationContent("d", "b", {"medicationId": "a"}), DailyTrigger(8, 0), NOW - timedelta(hours=4))
        once = queue.schedule(NotificationContent("r", "b", {"medicationId": "a", "type": "refill"}), None, NOW)
        later = queue.schedule(NotificationContent("l", "b", {"medicationId": "b"}), DailyTrigger(20, 0), NOW + timedelta(hours=8))
        handler = RecordingHandler()

        delivered = deliver_due(queue, handler, now=NOW, tz=ZoneInfo("UTC"))

        self.assertEqual(delivered, 2)
        self.assertEqual(sorted(handler.presented), sorted([daily, once]))
        self.assertNotIn(once, queue.items)
        self.assertEqual(queue.items[daily].next_fire_at, datetime(2024, 1, 3, 8, 0, tzinfo=ZoneInfo("UTC")))
        self.assertEqual(queue.items[later].next_fire_at, NOW + timedelta(hours=8))

    def test_handler_without_push_token_does_not_raise(self):
        handler = init_notification_handler(push_token=None)
        handler.push_token = None
        reminder_queue = InMemoryNotificationQueue()
        reminder_queue.schedule(NotificationContent("r", "b", {"medicationId": "a"}), None, NOW)
        self.assertEqual(deliver_due(reminder_queue, handler, now=NOW), 1)
        self.assertEqual(reminder_queue.get_all_scheduled(), [])

    def test_handler_defaults(self):
        handler = init_notification_handler()
        self.assertTrue(handler.show_banner and handler.play_sound and handler.set_badge and handler.show_list)
        self.assertEqual(handler.vibration_pattern, [0, 250, 250, 250])
        self.assertEqual(handler.light_color, "#1a8e2d")


if __name__ == "__main__":
    unittest.main(verbosity=2)
