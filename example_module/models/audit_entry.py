from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text

from example_module.constants.module import AUDIT_TABLE
from example_module.database import Base


class AuditEntry(Base):
    __tablename__ = AUDIT_TABLE

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        Index("idx_action", "action"),
        Index("idx_entity", "entity_type", "entity_id"),
        Index("idx_user", "user_id"),
        Index("idx_created", "created_at"),
    )
