"""
Content Data Service

Parameterized access to the module's content table. Failures are logged and
degrade to empty results; nothing raises to the caller.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from example_module.constants.content import DEFAULT_DATA_TYPE, DEFAULT_TITLE, ContentStatus
from example_module.models.content_item import ContentItem

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 7
RETENTION_DAYS = 365


class ContentDataService:
    """Service for reading and writing module content items."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, record: Mapping[str, Any]) -> Optional[int]:
        """
        Insert a content item.

        `type` is accepted as an alias of `data_type`; a missing title is
        stored as "Untitled".

        Returns:
            The new item id, or None if the insert failed
        """
        try:
            status = ContentStatus(record.get("status") or ContentStatus.ACTIVE)
        except ValueError:
            logger.error(f"Error saving data: unknown status {record.get('status')!r}")
            return None

        item = ContentItem(
            title=record.get("title") or DEFAULT_TITLE,
            content=record.get("content") or "",
            data_type=record.get("data_type") or record.get("type") or DEFAULT_DATA_TYPE,
            status=status,
            meta_data=record.get("meta_data"),
            user_id=record.get("user_id"),
        )
        self.db.add(item)

        try:
            await self.db.commit()
            await self.db.refresh(item)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error saving data: {e}")
            return None

        logger.info(f"Content item created: {item.id}")
        return item.id

    async def get(self, item_id: int) -> Optional[ContentItem]:
        try:
            result = await self.db.execute(select(ContentItem).where(ContentItem.id == item_id))
        except SQLAlchemyError as e:
            logger.error(f"Error getting item {item_id}: {e}")
            return None
        return result.scalars().first()

    async def query(self, data_type: str, limit: int = 10) -> list[ContentItem]:
        """Items of one type, newest first."""
        query = (
            select(ContentItem)
            .where(ContentItem.data_type == data_type)
            .order_by(ContentItem.created_at.desc(), ContentItem.id.desc())
            .limit(max(0, int(limit)))
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Error getting data: {e}")
            return []
        return list(result.scalars().all())

    async def list_items(self, limit: int = 50, offset: int = 0, status: Optional[str] = None) -> list[ContentItem]:
        """All items, newest first, for the admin content page."""
        query = select(ContentItem)
        if status:
            query = query.where(ContentItem.status == ContentStatus(status))
        query = query.order_by(ContentItem.created_at.desc(), ContentItem.id.desc()).offset(offset).limit(limit)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Error listing data: {e}")
            return []
        return list(result.scalars().all())

    async def count_all(self) -> int:
        try:
            result = await self.db.execute(select(func.count(ContentItem.id)))
        except SQLAlchemyError as e:
            logger.error(f"Error counting data: {e}")
            return 0
        return result.scalar() or 0

    async def count_by_type(self) -> dict[str, int]:
        query = select(ContentItem.data_type, func.count(ContentItem.id)).group_by(ContentItem.data_type)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Error counting data by type: {e}")
            return {}
        return {data_type: count for data_type, count in result.all()}

    async def count_recent(self, window_days: int = RECENT_WINDOW_DAYS) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=window_days)
        try:
            result = await self.db.execute(select(func.count(ContentItem.id)).where(ContentItem.created_at > cutoff))
        except SQLAlchemyError as e:
            logger.error(f"Error counting recent data: {e}")
            return 0
        return result.scalar() or 0

    async def stats(self) -> Optional[dict[str, Any]]:
        """Dashboard statistics, or None if the table cannot be read."""
        try:
            total = (await self.db.execute(select(func.count(ContentItem.id)))).scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error getting stats: {e}")
            return None

        return {
            "total_items": total,
            "by_type": await self.count_by_type(),
            "recent_items": await self.count_recent(),
        }

    async def delete(self, item_id: int) -> bool:
        try:
            result = await self.db.execute(delete(ContentItem).where(ContentItem.id == item_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error deleting item {item_id}: {e}")
            return False
        return result.rowcount > 0

    async def purge_older_than(self, days: int = RETENTION_DAYS) -> int:
        """Delete items older than the retention window; returns rows removed."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        try:
            result = await self.db.execute(
                delete(ContentItem)
                .where(ContentItem.created_at < cutoff)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Cleanup error: {e}")
            return 0

        logger.info(f"Cleanup completed: {result.rowcount} items older than {days} days removed")
        return result.rowcount
