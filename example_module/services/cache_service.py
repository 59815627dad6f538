"""
Module Cache Service

Key/value cache stored in the module's own cache table. Values are JSON
serialized; entries carry an optional expiry and a group so related keys can
be invalidated together.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from example_module.models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)


def _now() -> datetime:
    # Stored without tzinfo by SQLite; compare on naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ModuleCache:
    """Database-backed cache scoped to this module."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        try:
            result = await self.db.execute(select(CacheEntry).where(CacheEntry.cache_key == key))
            entry = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None

        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at.replace(tzinfo=None) <= _now():
            return None

        try:
            return json.loads(entry.cache_value) if entry.cache_value is not None else None
        except json.JSONDecodeError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None, group: str = "default") -> bool:
        """Store a value; `ttl` of None or 0 means no expiry."""
        expires_at = _now() + timedelta(seconds=ttl) if ttl else None
        try:
            entry = await self.db.get(CacheEntry, key)
            if entry is None:
                entry = CacheEntry(cache_key=key)
                self.db.add(entry)
            entry.cache_value = json.dumps(value)
            entry.cache_group = group
            entry.expires_at = expires_at
            entry.created_at = _now()
            await self.db.commit()
        except (SQLAlchemyError, TypeError) as e:
            await self.db.rollback()
            logger.error(f"Cache set error for {key}: {e}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            result = await self.db.execute(delete(CacheEntry).where(CacheEntry.cache_key == key))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Cache delete error for {key}: {e}")
            return False
        return result.rowcount > 0

    async def delete_group(self, group: str) -> int:
        """Invalidate every entry in a group; returns rows removed."""
        try:
            result = await self.db.execute(delete(CacheEntry).where(CacheEntry.cache_group == group))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Cache group delete error for {group}: {e}")
            return 0
        return result.rowcount

    async def purge_expired(self) -> int:
        try:
            result = await self.db.execute(
                delete(CacheEntry).where(CacheEntry.expires_at <= _now()).execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Cache purge error: {e}")
            return 0
        return result.rowcount

    async def clear(self) -> int:
        try:
            result = await self.db.execute(delete(CacheEntry))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Cache clear error: {e}")
            return 0
        return result.rowcount

    async def count(self) -> int:
        try:
            result = await self.db.execute(select(func.count()).select_from(CacheEntry))
        except SQLAlchemyError as e:
            logger.error(f"Cache count error: {e}")
            return 0
        return result.scalar() or 0
