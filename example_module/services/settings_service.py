"""
Settings Store

Reads and writes the module's settings blob in the host `modules` table.
Reads never raise: a missing row, an empty or malformed blob, or a database
error all yield the defaults (errors are logged). Writes report failure as
False.
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from example_module.constants.module import MODULE_NAME
from example_module.constants.settings import get_default_settings
from example_module.models.host import Module
from example_module.plugins.events import EventBus
from example_module.plugins.hooks import HOOK_SETTINGS_UPDATED
from example_module.schemas.settings import normalize_settings

logger = logging.getLogger(__name__)

# Informational keys the installer writes next to the settings; preserved on save
INFO_KEYS = ("installation_date", "version")


def _decode(raw: Optional[str]) -> Optional[dict[str, Any]]:
    """Parse a settings blob, returning None when it is unusable."""
    if not raw:
        return None
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Malformed settings blob: {e}")
        return None
    return decoded if isinstance(decoded, dict) else None


def has_legacy_values(values: Mapping[str, Any]) -> bool:
    """True when any setting is stored as an object instead of a primitive."""
    return any(isinstance(value, Mapping) for value in values.values())


class SettingsStore:
    """Settings persistence for one module row."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        module_name: str = MODULE_NAME,
        bus: Optional[EventBus] = None,
    ):
        self.session_factory = session_factory
        self.module_name = module_name
        self.bus = bus

    async def _fetch_row(self, db: AsyncSession) -> Optional[Module]:
        result = await db.execute(select(Module).where(Module.name == self.module_name))
        return result.scalars().first()

    async def load(self) -> dict[str, Any]:
        """
        Return defaults merged with the persisted settings.

        Legacy `{"default": ...}` / `{"value": ...}` objects are unwrapped and
        every value is brought back within bounds. A disabled registration
        row loads with `enabled` forced to False.
        """
        try:
            async with self.session_factory() as db:
                row = await self._fetch_row(db)
                raw, row_enabled = (row.settings, row.enabled) if row else (None, True)
        except SQLAlchemyError as e:
            logger.error(f"Error loading settings for {self.module_name}: {e}")
            return get_default_settings()

        loaded = _decode(raw)
        if loaded is None:
            return get_default_settings()

        try:
            settings = normalize_settings(loaded)
        except (ValidationError, ValueError) as e:
            logger.error(f"Invalid settings stored for {self.module_name}: {e}")
            return get_default_settings()

        if not row_enabled:
            settings["enabled"] = False
        return settings

    async def save(self, values: Mapping[str, Any]) -> bool:
        """
        Persist a complete settings map as flat JSON.

        Returns:
            bool: True on success, False if the write failed or the module
            has no registration row
        """
        try:
            settings = normalize_settings(values)
        except (ValidationError, ValueError) as e:
            logger.error(f"Refusing to save invalid settings for {self.module_name}: {e}")
            return False

        try:
            async with self.session_factory() as db:
                row = await self._fetch_row(db)
                if row is None:
                    logger.warning(f"Cannot save settings: module {self.module_name} is not registered")
                    return False

                existing = _decode(row.settings) or {}
                blob = {**{k: existing[k] for k in INFO_KEYS if k in existing}, **settings}

                await db.execute(
                    update(Module)
                    .where(Module.name == self.module_name)
                    .values(settings=json.dumps(blob), updated_at=datetime.now(timezone.utc))
                )
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error saving settings for {self.module_name}: {e}")
            return False

        return True

    async def update(self, new_values: Mapping[str, Any]) -> bool:
        """
        Merge already-sanitized values over the current settings and save.

        Emits HOOK_SETTINGS_UPDATED with the resulting map on success.
        """
        current = await self.load()
        try:
            merged = normalize_settings({**current, **dict(new_values)})
        except (ValidationError, ValueError) as e:
            logger.error(f"Invalid settings update for {self.module_name}: {e}")
            return False

        if not await self.save(merged):
            return False

        logger.info(f"Settings updated for {self.module_name}: {sorted(new_values)}")
        if self.bus is not None:
            await self.bus.emit(HOOK_SETTINGS_UPDATED, merged)
        return True

    async def fix_legacy_settings(self) -> bool:
        """
        Rewrite a settings blob that still stores objects as flat primitives.

        Returns True when the row is (now) flat, False when there is nothing
        to fix or the rewrite failed.
        """
        try:
            async with self.session_factory() as db:
                row = await self._fetch_row(db)
                current = _decode(row.settings) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Error reading settings for {self.module_name}: {e}")
            return False

        if current is None:
            return False
        if not has_legacy_values(current):
            return True

        if await self.save(current):
            logger.info(f"Legacy settings flattened for {self.module_name}")
            return True
        return False
