from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from app.database import Base


class StorageEntry(Base):
    """
    One entry of the durable key-value store.

    Attributes:
        key: Storage key (e.g. 'products')
        value: Serialized payload stored under the key
        updated_at: Timestamp of the last write
    """
    __tablename__ = "storage_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StorageEntry(key='{self.key}', size={len(self.value or '')})>"
