from sqlalchemy import Column, DateTime, String, Text

from marketboard.db.session import Base
from marketboard.utils.time import utcnow


class KeyValueEntry(Base):
    """Small durable settings, stored as JSON text under a string key."""

    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value_json = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
