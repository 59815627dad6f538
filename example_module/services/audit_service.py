"""
Audit Log Service

Appends rows to the module's audit table. Audit writes never break the
operation being audited: failures are logged and reported as None.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from example_module.models.audit_entry import AuditEntry

logger = logging.getLogger(__name__)

ACTION_SUBMISSION = "form_submission"
ACTION_BACKUP = "uninstall_backup"
ACTION_SETTINGS_UPDATED = "settings_updated"
ACTION_CLEANUP = "cleanup"


def validate_details(details: Optional[dict]) -> None:
    """Raise ValueError when `details` cannot be stored as JSON."""
    if details:
        try:
            json.dumps(details)
        except TypeError as e:
            logger.error(f"Details validation failed. Non-serializable data: {details}")
            raise ValueError(f"Details must be JSON-serializable. Error: {e}") from e


class AuditService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Optional[int]:
        """Append an audit row and return its id."""
        validate_details(data)
        entry = AuditEntry(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            data=data,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(entry)
        try:
            await self.db.commit()
            await self.db.refresh(entry)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to record audit entry {action}: {e}")
            return None
        return entry.id

    async def count_recent_by_ip(self, action: str, ip_address: str, window_seconds: int) -> int:
        """Number of `action` rows from one address inside the window."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=window_seconds)
        query = select(func.count(AuditEntry.id)).where(
            AuditEntry.action == action,
            AuditEntry.ip_address == ip_address,
            AuditEntry.created_at > cutoff,
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Error counting audit entries for {ip_address}: {e}")
            return 0
        return result.scalar() or 0

    async def latest(self, action: str) -> Optional[AuditEntry]:
        query = select(AuditEntry).where(AuditEntry.action == action).order_by(AuditEntry.id.desc()).limit(1)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Error reading audit log: {e}")
            return None
        return result.scalars().first()

    async def list_recent(self, limit: int = 20) -> list[AuditEntry]:
        query = select(AuditEntry).order_by(AuditEntry.created_at.desc(), AuditEntry.id.desc()).limit(limit)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Error reading audit log: {e}")
            return []
        return list(result.scalars().all())
