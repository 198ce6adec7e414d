from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import Column, String, Text, DateTime, func


# Base class for all models
class Base(DeclarativeBase):
    pass


class StorageEntry(Base):
    """One serialized document per key, the way browser storage holds them."""
    __tablename__ = "storage_entries"
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
