from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, String, Text

from example_module.constants.content import ContentStatus
from example_module.constants.module import DATA_TABLE
from example_module.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentItem(Base):
    __tablename__ = DATA_TABLE

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    data_type = Column(String(50), default="general", nullable=False)
    status = Column(
        Enum(
            ContentStatus,
            name="example_module_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=ContentStatus.ACTIVE,
        nullable=False,
    )
    meta_data = Column(JSON, nullable=True)
    user_id = Column(Integer, nullable=True)
    views = Column(Integer, default=0, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # FULLTEXT on MySQL, a plain composite index elsewhere
    __table_args__ = (
        Index("idx_data_type", "data_type"),
        Index("idx_status", "status"),
        Index("idx_created_at", "created_at"),
        Index("idx_user_id", "user_id"),
        Index("idx_sort_order", "sort_order"),
        Index("idx_search", "title", "content", mysql_prefix="FULLTEXT"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "data_type": self.data_type,
            "status": self.status.value if isinstance(self.status, ContentStatus) else self.status,
            "meta_data": self.meta_data or {},
            "user_id": self.user_id,
            "created_at": self.created_at,
        }
