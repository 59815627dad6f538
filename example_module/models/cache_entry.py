from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text

from example_module.constants.module import CACHE_TABLE
from example_module.database import Base


class CacheEntry(Base):
    __tablename__ = CACHE_TABLE

    cache_key = Column(String(255), primary_key=True)
    cache_value = Column(Text, nullable=True)
    cache_group = Column(String(100), default="default", nullable=False)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        Index("idx_group", "cache_group"),
        Index("idx_expires", "expires_at"),
    )
