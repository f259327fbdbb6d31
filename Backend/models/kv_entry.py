from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func

from database import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_store"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
