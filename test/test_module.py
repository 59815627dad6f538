"""
Tests for the ExampleModule plugin facade
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from example_module.constants.module import MODULE_NAME, MODULE_VERSION, SETTINGS_CACHE_GROUP
from example_module.models import ContentItem
from example_module.module import GENERATED_MARKER, ExampleModule
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
    SHORTCODE_DATA,
    SHORTCODE_WIDGET,
    shortcode_event,
)
from example_module.services.audit_service import ACTION_SETTINGS_UPDATED, AuditService
from example_module.services.cache_service import ModuleCache
from example_module.services.settings_service import SettingsStore
from example_module.utils.context import RequestContext


@pytest.fixture
async def module(bus, session_factory):
    plugin = ExampleModule(bus, session_factory)
    await plugin.init()
    return plugin


class TestMeta:
    def test_identity(self, bus, session_factory):
        meta = ExampleModule(bus, session_factory).meta
        assert meta.name == MODULE_NAME
        assert meta.version == MODULE_VERSION
        assert "example_module_admin" in meta.permissions

    def test_config_schema(self, bus, session_factory):
        schema = ExampleModule(bus, session_factory).meta.config_schema
        assert schema["widget_style"]["enum"] == ["default", "minimal", "fancy"]
        assert schema["max_items"] == {"type": "integer", "default": 10, "minimum": 1, "maximum": 100}
        assert schema["enabled"]["type"] == "boolean"
        assert schema["allowed_file_types"]["type"] == "array"


class TestLifecycle:
    async def test_init_registers_hooks_when_enabled(self, module, bus):
        for event in (
            HOOK_DISPLAY,
            HOOK_SAVE_DATA,
            HOST_FOOTER,
            FILTER_CONTENT,
            FILTER_SETTINGS,
            HOST_INIT,
            shortcode_event(SHORTCODE_WIDGET),
            shortcode_event(SHORTCODE_DATA),
        ):
            assert bus.subscribers(event), event

    async def test_init_skips_hooks_when_disabled(self, bus, session_factory):
        assert await SettingsStore(session_factory).update({"enabled": False})

        plugin = ExampleModule(bus, session_factory)
        await plugin.init()

        assert plugin.enabled is False
        assert bus.subscribers(HOOK_DISPLAY) == []

    async def test_host_init_triggers_module_hooks(self, module, bus):
        seen = {}
        bus.subscribe(HOOK_INIT, lambda payload: seen.setdefault("init", payload))
        bus.subscribe(HOOK_LOADED, lambda payload: seen.setdefault("loaded", payload))

        await bus.emit(HOST_INIT)

        assert seen["init"] is module
        assert seen["loaded"]["enabled"] is True

    async def test_deactivate_emits(self, module, bus):
        seen = []
        bus.subscribe(HOOK_DEACTIVATING, seen.append)
        await module.deactivate()
        assert seen == [{"module": MODULE_NAME}]

    async def test_deactivate_unregisters_hooks(self, module, bus):
        await module.deactivate()

        assert bus.subscribers(HOOK_DISPLAY) == []
        assert await bus.apply_filters(FILTER_CONTENT, "Hello") == "Hello"

        module.register_hooks()
        assert bus.subscribers(HOOK_DISPLAY) == [module.display_widget]


class TestSettings:
    async def test_get_setting_values_is_a_copy(self, module):
        values = module.get_setting_values()
        values["allowed_file_types"].append("exe")
        assert "exe" not in module.get_setting_values()["allowed_file_types"]

    async def test_sections(self, module):
        assert "general" in module.get_settings_sections()

    async def test_update_settings_persists_and_clears_cache(self, module, session_factory):
        async with session_factory() as db:
            await ModuleCache(db).set("rendered_widget", "<div>old</div>", group=SETTINGS_CACHE_GROUP)

        assert await module.update_settings(module.sanitize_settings({"enabled": "1", "welcome_title": "New"}))

        assert module.get_setting_values()["welcome_title"] == "New"
        assert (await SettingsStore(session_factory).load())["welcome_title"] == "New"
        async with session_factory() as db:
            assert await ModuleCache(db).get("rendered_widget") is None

    async def test_settings_filter(self, module, bus):
        bus.subscribe(FILTER_MODIFY_SETTINGS, lambda settings: {**settings, "max_items": 3})
        filtered = await bus.apply_filters(FILTER_SETTINGS, module.get_setting_values())
        assert filtered["max_items"] == 3


class TestOutput:
    async def test_display_hook_renders_widget(self, module, bus):
        [html] = await bus.emit(HOOK_DISPLAY, {"title": "Hooked"})
        assert "<h3>Hooked</h3>" in html

    async def test_display_widget_defaults_from_settings(self, module):
        html = await module.display_widget()
        assert "Welcome to Example Module!" in html
        assert "Today:" in html

    async def test_disabled_widget_is_empty(self, module):
        module._settings["enabled"] = False
        assert await module.display_widget() == ""
        assert module.footer_content() == ""

    async def test_widget_shortcode(self, module, bus):
        [html] = await bus.emit(shortcode_event(SHORTCODE_WIDGET), {"title": "Short", "show_date": "false"})
        assert "<h3>Short</h3>" in html
        assert "Today:" not in html
        assert 'class="example-module-widget default"' in html

    async def test_data_shortcode(self, module, bus):
        await module.save_data({"title": "Latest one", "type": "latest"})
        await module.save_data({"title": "Tutorial", "type": "tutorial"})

        [html] = await bus.emit(shortcode_event(SHORTCODE_DATA), {})
        assert "Latest one" in html
        assert "Tutorial" not in html

    async def test_data_shortcode_limit(self, module):
        for i in range(3):
            await module.save_data({"title": f"News {i}", "type": "news"})
        html = await module.data_shortcode({"type": "news", "limit": "2"})
        assert html.count('class="data-item"') == 2

    async def test_data_shortcode_empty(self, module):
        assert "No news data found." in await module.data_shortcode({"type": "news"})

    async def test_save_data_hook(self, module, bus):
        saved = []
        bus.subscribe(HOOK_DATA_SAVED, saved.append)

        [item_id] = await bus.emit(HOOK_SAVE_DATA, {"title": "Via hook"})

        assert isinstance(item_id, int)
        assert saved == [{"id": item_id, "data": {"title": "Via hook"}}]

    async def test_save_data_with_unknown_status(self, module):
        assert await module.save_data({"title": "Bad", "status": "published"}) is None
        assert (await module.get_stats())["total_items"] == 0

    async def test_content_filter(self, module, bus):
        assert await bus.apply_filters(FILTER_CONTENT, "Hello") == f"Hello\n\n{GENERATED_MARKER}"
        assert await bus.apply_filters(FILTER_CONTENT, "") == ""

    async def test_footer(self, module, bus):
        assert await bus.emit(HOST_FOOTER) == [f"<!-- Example Module {MODULE_VERSION} -->"]

    async def test_render_form(self, module):
        html = module.render_form(RequestContext(csrf_token="abc"))
        assert 'value="abc"' in html


class TestMaintenance:
    async def test_stats(self, module):
        await module.save_data({"title": "a", "type": "news"})
        stats = await module.get_stats()
        assert stats["total_items"] == 1
        assert stats["by_type"] == {"news": 1}

    async def test_cleanup(self, module, session_factory):
        old_id = await module.save_data({"title": "old"})
        await module.save_data({"title": "new"})
        async with session_factory() as db:
            await db.execute(
                update(ContentItem)
                .where(ContentItem.id == old_id)
                .values(created_at=datetime.now(timezone.utc) - timedelta(days=400))
            )
            await db.commit()

        assert await module.cleanup() == 1
        assert (await module.get_stats())["total_items"] == 1

    async def test_admin_menu(self, module):
        items = module.admin_menu_items()
        assert items[0]["capability"] == "example_module_admin"
        assert {item["path"] for item in items} == {
            "/admin/example-module",
            "/admin/example-module/content",
            "/admin/example-module/settings",
        }

    async def test_admin_pages(self, module):
        await module.save_data({"title": "Listed item"})
        ctx = RequestContext(csrf_token="tok")

        assert "Total Items" in await module.render_admin_dashboard(ctx)
        assert "Listed item" in await module.render_admin_content(ctx)
        assert "General Settings" in module.render_admin_settings(ctx)

    async def test_dashboard_lists_recent_activity(self, module, session_factory):
        async with session_factory() as db:
            await AuditService(db).record(ACTION_SETTINGS_UPDATED, ip_address="192.0.2.4")

        html = await module.render_admin_dashboard(RequestContext(csrf_token="tok"))
        assert "Recent Activity" in html
        assert ACTION_SETTINGS_UPDATED in html
        assert "192.0.2.4" in html

    async def test_dashboard_without_activity(self, module):
        assert "Recent Activity" not in await module.render_admin_dashboard()
