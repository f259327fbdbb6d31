from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Enum as SAEnum
from sqlalchemy.sql import func
import enum

from database import Base


class TriggerType(str, enum.Enum):
    daily = "daily"
    immediate = "immediate"


class ScheduledNotification(Base):
    __tablename__ = "scheduled_notifications"

    identifier = Column(String(36), primary_key=True)
    title = Column(String(200), nullable=False)
    body = Column(String(500), nullable=False)
    data = Column(Text, nullable=False, default="{}")   # JSON payload
    medication_id = Column(String(100), nullable=True, index=True)
    trigger_type = Column(SAEnum(TriggerType), default=TriggerType.immediate)
    hour = Column(Integer, nullable=True)
    minute = Column(Integer, nullable=True)
    repeats = Column(Boolean, default=False)
    next_fire_at = Column(DateTime, nullable=False, index=True)   # naive UTC
    created_at = Column(DateTime(timezone=True), server_default=func.now())
