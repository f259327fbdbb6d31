from models.kv_entry import KeyValueEntry
from models.scheduled_notification import ScheduledNotification, TriggerType

__all__ = ["KeyValueEntry", "ScheduledNotification", "TriggerType"]
