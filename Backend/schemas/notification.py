from datetime import datetime

from pydantic import BaseModel


class ScheduledNotificationOut(BaseModel):
    identifier: str
    title: str
    body: str
    data: dict
    repeats: bool
    hour: int | None = None
    minute: int | None = None
    next_fire_at: datetime
