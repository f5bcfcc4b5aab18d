"""Database models for the bot."""
from sqlalchemy import Column, String, Text

from conjubot.models.base import Base, TimestampMixin


class StorageSlot(Base, TimestampMixin):
    """Named storage slot holding one serialized value."""

    __tablename__ = "storage_slots"

    name = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<StorageSlot({self.name}, {len(self.value or '')} chars)>"
