"""
Example Module plugin

ExampleModule is the object the host loads. It owns the settings snapshot,
registers hooks, filters and shortcodes on the host event bus, and renders the
widget, data list, public form and admin pages.

Hook subscriptions (only while enabled):
  - example_module.display     → display_widget
  - example_module.save_data   → save_data
  - example_module.content     → filter_content (filter)
  - example_module.settings    → filter_settings (filter)
  - page.footer                → footer_content
  - app.init                   → trigger_module_hooks
  - shortcode.example_widget   → shortcode_handler
  - shortcode.example_data     → data_shortcode
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from example_module.constants.module import (
    MODULE_DESCRIPTION,
    MODULE_NAME,
    MODULE_PERMISSIONS,
    MODULE_VERSION,
    SETTINGS_CACHE_GROUP,
)
from example_module.constants.settings import (
    DEFAULT_SETTINGS,
    INTEGER_BOUNDS,
    SETTINGS_SECTIONS,
    WIDGET_STYLES,
    get_default_settings,
)
from example_module.plugins.base import PluginBase, PluginMeta
from example_module.plugins.events import EventBus
from example_module.plugins.hooks import (
    FILTER_CONTENT,
    FILTER_MODIFY_SETTINGS,
    FILTER_SETTINGS,
    HOOK_DATA_SAVED,
    HOOK_DEACTIVATING,
    HOOK_DISPLAY,
    HOOK_INIT,
    HOOK_LOADED,
    HOOK_SAVE_DATA,
    HOST_FOOTER,
    HOST_INIT,
    REGISTERED_HOOKS,
    SHORTCODE_DATA,
    SHORTCODE_WIDGET,
    shortcode_event,
)
from example_module.services.audit_service import AuditService
from example_module.services.cache_service import ModuleCache
from example_module.services.content_data_service import RETENTION_DAYS, ContentDataService
from example_module.services.render_service import ViewRenderer
from example_module.services.settings_service import SettingsStore
from example_module.utils.context import RequestContext
from example_module.utils.settings_validator import parse_int, sanitize_settings

logger = logging.getLogger(__name__)

GENERATED_MARKER = "<!-- Generated by Example Module -->"
RECENT_ACTIVITY_LIMIT = 10


def _config_schema() -> dict[str, Any]:
    """JSON-Schema fragments for every setting, derived from the defaults."""
    schema: dict[str, Any] = {}
    for key, default in DEFAULT_SETTINGS.items():
        if isinstance(default, bool):
            schema[key] = {"type": "boolean", "default": default}
        elif isinstance(default, int):
            minimum, maximum = INTEGER_BOUNDS[key]
            schema[key] = {"type": "integer", "default": default, "minimum": minimum, "maximum": maximum}
        elif isinstance(default, list):
            schema[key] = {"type": "array", "items": {"type": "string"}, "default": list(default)}
        else:
            schema[key] = {"type": "string", "default": default}
    schema["widget_style"]["enum"] = list(WIDGET_STYLES)
    return schema


_META = PluginMeta(
    name=MODULE_NAME,
    version=MODULE_VERSION,
    description=MODULE_DESCRIPTION,
    hooks=list(REGISTERED_HOOKS),
    permissions=list(MODULE_PERMISSIONS),
    config_schema=_config_schema(),
)


class ExampleModule(PluginBase):
    """Settings-backed content widget with public and admin views."""

    def __init__(
        self,
        bus: EventBus,
        session_factory: async_sessionmaker[AsyncSession],
        renderer: Optional[ViewRenderer] = None,
        store: Optional[SettingsStore] = None,
    ):
        self.bus = bus
        self.session_factory = session_factory
        self.renderer = renderer or ViewRenderer()
        self.store = store or SettingsStore(session_factory, MODULE_NAME, bus)
        self._settings: dict[str, Any] = get_default_settings()
        self._hooks_registered = False

    @property
    def meta(self) -> PluginMeta:
        return _META

    @property
    def enabled(self) -> bool:
        return bool(self._settings["enabled"])

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def load_settings(self) -> dict[str, Any]:
        self._settings = await self.store.load()
        return self.get_setting_values()

    async def init(self) -> None:
        """Load settings and, when enabled, register hooks and shortcodes."""
        await self.load_settings()
        if not self.enabled:
            logger.info("Example Module is disabled; hooks not registered")
            return
        self.register_hooks()

    def _hook_handlers(self) -> list[tuple[str, Any]]:
        return [
            (HOOK_DISPLAY, self.display_widget),
            (HOOK_SAVE_DATA, self.save_data),
            (HOST_FOOTER, self.footer_content),
            (FILTER_CONTENT, self.filter_content),
            (FILTER_SETTINGS, self.filter_settings),
            (HOST_INIT, self.trigger_module_hooks),
            (shortcode_event(SHORTCODE_WIDGET), self.shortcode_handler),
            (shortcode_event(SHORTCODE_DATA), self.data_shortcode),
        ]

    def register_hooks(self) -> None:
        if self._hooks_registered:
            return
        for event, handler in self._hook_handlers():
            self.bus.subscribe(event, handler)
        self._hooks_registered = True
        logger.debug("Example Module hooks registered")

    def unregister_hooks(self) -> None:
        for event, handler in self._hook_handlers():
            self.bus.unsubscribe(event, handler)
        self._hooks_registered = False

    async def trigger_module_hooks(self, _payload: Any = None) -> None:
        """Let other modules hook into this one once the host is up."""
        await self.bus.emit(HOOK_INIT, self)
        await self.bus.emit(HOOK_LOADED, self.get_setting_values())

    async def deactivate(self) -> None:
        await self.bus.emit(HOOK_DEACTIVATING, {"module": MODULE_NAME})
        self.unregister_hooks()

    # ── Settings ──────────────────────────────────────────────────────────────

    def get_setting_values(self) -> dict[str, Any]:
        """Current settings as a flat map of primitives (a copy)."""
        return copy.deepcopy(self._settings)

    def get_settings_sections(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(SETTINGS_SECTIONS)

    def sanitize_settings(self, form: Mapping[str, Any]) -> dict[str, Any]:
        return sanitize_settings(form)

    async def update_settings(self, new_values: Mapping[str, Any]) -> bool:
        """Persist sanitized values and refresh the in-memory snapshot."""
        if not await self.store.update(new_values):
            return False
        await self.load_settings()
        async with self.session_factory() as db:
            await ModuleCache(db).delete_group(SETTINGS_CACHE_GROUP)
        return True

    async def filter_settings(self, settings: dict[str, Any]) -> dict[str, Any]:
        return await self.bus.apply_filters(FILTER_MODIFY_SETTINGS, settings)

    # ── Public output ─────────────────────────────────────────────────────────

    async def display_widget(self, attributes: Optional[Mapping[str, Any]] = None) -> str:
        if not self.enabled:
            return ""
        resolved = {
            "style": self._settings["widget_style"],
            "show_date": self._settings["show_date"],
            "title": self._settings["welcome_title"],
            **dict(attributes or {}),
        }
        return self.renderer.widget(self._settings, resolved)

    async def shortcode_handler(self, attributes: Optional[Mapping[str, Any]] = None) -> str:
        """[example_widget title=".." style=".." show_date="true|false"]"""
        resolved = {
            "title": self._settings["welcome_title"],
            "style": "default",
            "show_date": "true",
            **dict(attributes or {}),
        }
        show_date = resolved["show_date"]
        resolved["show_date"] = show_date == "true" if isinstance(show_date, str) else bool(show_date)
        return await self.display_widget(resolved)

    async def data_shortcode(self, attributes: Optional[Mapping[str, Any]] = None) -> str:
        """[example_data type="latest" limit="10"]"""
        attributes = dict(attributes or {})
        data_type = attributes.get("type") or "latest"
        limit = parse_int(attributes.get("limit"))
        if limit is None:
            limit = self._settings["max_items"]
        return await self.get_data_display(data_type, limit)

    async def get_data_display(self, data_type: str = "latest", limit: Optional[int] = None) -> str:
        if limit is None:
            limit = self._settings["max_items"]
        async with self.session_factory() as db:
            items = await ContentDataService(db).query(data_type, limit)
        return self.renderer.data_list(items, data_type)

    def render_form(self, ctx: RequestContext) -> str:
        return self.renderer.form(self._settings, ctx)

    async def save_data(self, data: Mapping[str, Any]) -> Optional[int]:
        """Insert a content item and announce it on example_module.data_saved."""
        async with self.session_factory() as db:
            item_id = await ContentDataService(db).insert(data)
        if item_id is not None:
            await self.bus.emit(HOOK_DATA_SAVED, {"id": item_id, "data": dict(data)})
        return item_id

    def filter_content(self, content: str) -> str:
        if self.enabled and content:
            content += f"\n\n{GENERATED_MARKER}"
        return content

    def footer_content(self, _payload: Any = None) -> str:
        if not self.enabled:
            return ""
        return f"<!-- Example Module {MODULE_VERSION} -->"

    # ── Maintenance ───────────────────────────────────────────────────────────

    async def get_stats(self) -> Optional[dict[str, Any]]:
        async with self.session_factory() as db:
            return await ContentDataService(db).stats()

    async def cleanup(self, retention_days: int = RETENTION_DAYS) -> int:
        """Drop content past the retention window and expired cache rows."""
        async with self.session_factory() as db:
            removed = await ContentDataService(db).purge_older_than(retention_days)
            await ModuleCache(db).purge_expired()
        return removed

    # ── Admin ─────────────────────────────────────────────────────────────────

    def admin_menu_items(self) -> list[dict[str, Any]]:
        """Menu entries for the host admin, each gated by a module permission."""
        return [
            {
                "title": "Example Module",
                "capability": "example_module_admin",
                "slug": MODULE_NAME,
                "path": "/admin/example-module",
                "icon": "fas fa-star",
                "position": 25,
            },
            {
                "title": "Dashboard",
                "capability": "example_module_view",
                "slug": "example_module_dashboard",
                "path": "/admin/example-module",
            },
            {
                "title": "Manage Content",
                "capability": "example_module_manage_data",
                "slug": "example_module_content",
                "path": "/admin/example-module/content",
            },
            {
                "title": "Settings",
                "capability": "example_module_settings",
                "slug": "example_module_settings",
                "path": "/admin/example-module/settings",
            },
        ]

    def render_admin_settings(self, ctx: RequestContext) -> str:
        return self.renderer.admin_settings(self._settings, ctx, SETTINGS_SECTIONS)

    async def render_admin_dashboard(self, ctx: Optional[RequestContext] = None) -> str:
        async with self.session_factory() as db:
            activity = await AuditService(db).list_recent(limit=RECENT_ACTIVITY_LIMIT)
        return self.renderer.admin_dashboard(await self.get_stats(), ctx, activity)

    async def render_admin_content(self, ctx: Optional[RequestContext] = None, limit: int = 50) -> str:
        async with self.session_factory() as db:
            items = await ContentDataService(db).list_items(limit=limit)
        return self.renderer.admin_content(items, ctx)
