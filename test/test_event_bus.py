"""
Tests for the in-process hook bus and plugin metadata
"""

import dataclasses

import pytest

from example_module.plugins.base import PluginBase, PluginMeta
from example_module.plugins.events import HookBus
from example_module.plugins.hooks import SHORTCODE_PREFIX, shortcode_event


class TestHookBus:
    async def test_emit_calls_sync_and_async_handlers(self, bus):
        seen = []

        def sync_handler(payload):
            seen.append(("sync", payload))
            return 1

        async def async_handler(payload):
            seen.append(("async", payload))
            return 2

        bus.subscribe("evt", sync_handler)
        bus.subscribe("evt", async_handler)

        assert await bus.emit("evt", {"x": 1}) == [1, 2]
        assert seen == [("sync", {"x": 1}), ("async", {"x": 1})]

    async def test_failing_handler_does_not_stop_dispatch(self, bus):
        def broken(_payload):
            raise RuntimeError("boom")

        bus.subscribe("evt", broken)
        bus.subscribe("evt", lambda payload: "ok")

        assert await bus.emit("evt") == ["ok"]

    async def test_emit_without_subscribers(self, bus):
        assert await bus.emit("nobody") == []

    def test_subscribe_is_idempotent(self, bus):
        def handler(_payload):
            return None

        bus.subscribe("evt", handler)
        bus.subscribe("evt", handler)
        assert bus.subscribers("evt") == [handler]

    def test_unsubscribe(self, bus):
        def handler(_payload):
            return None

        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        assert bus.subscribers("evt") == []

    async def test_filters_thread_value(self, bus):
        bus.subscribe("flt", lambda value: value + " one")

        async def second(value):
            return value + " two"

        bus.subscribe("flt", second)
        assert await bus.apply_filters("flt", "zero") == "zero one two"

    async def test_failing_filter_keeps_last_value(self, bus):
        def broken(_value):
            raise ValueError("bad")

        bus.subscribe("flt", lambda value: value * 2)
        bus.subscribe("flt", broken)
        assert await bus.apply_filters("flt", 3) == 6

    def test_shortcode_event_name(self):
        assert shortcode_event("example_widget") == f"{SHORTCODE_PREFIX}example_widget"


class TestPluginBase:
    def test_pluginmeta_is_dataclass(self):
        assert dataclasses.is_dataclass(PluginMeta)

    def test_pluginmeta_defaults_isolated(self):
        first = PluginMeta(name="a", version="1.0.0", description="d")
        second = PluginMeta(name="b", version="1.0.0", description="d")
        first.hooks.append("x")
        assert second.hooks == []

    def test_cannot_instantiate_without_meta(self):
        with pytest.raises(TypeError):
            PluginBase()

    async def test_default_lifecycle_is_noop(self):
        class Minimal(PluginBase):
            @property
            def meta(self):
                return PluginMeta(name="minimal", version="0.1.0", description="d")

        plugin = Minimal()
        assert await plugin.init() is None
        assert await plugin.deactivate() is None


def test_hookbus_satisfies_event_bus_protocol():
    bus = HookBus()
    for name in ("emit", "subscribe", "apply_filters"):
        assert callable(getattr(bus, name))
