"""
Hook Constants

Event names the module emits or subscribes to on the host event bus.
Names follow the `category.action` convention.
"""

from __future__ import annotations

# ── Module actions ─────────────────────────────────────────────────────────────
HOOK_DISPLAY = "example_module.display"
HOOK_SAVE_DATA = "example_module.save_data"
HOOK_INIT = "example_module.init"
HOOK_LOADED = "example_module.loaded"
HOOK_SETTINGS_UPDATED = "example_module.settings_updated"
HOOK_DATA_SAVED = "example_module.data_saved"
HOOK_DEACTIVATING = "example_module.deactivating"

# ── Lifecycle ─────────────────────────────────────────────────────────────────
HOOK_INSTALLED = "example_module.installed"
HOOK_BEFORE_UNINSTALL = "example_module.before_uninstall"
HOOK_AFTER_UNINSTALL = "example_module.after_uninstall"

# ── Filters ───────────────────────────────────────────────────────────────────
FILTER_CONTENT = "example_module.content"
FILTER_SETTINGS = "example_module.settings"
FILTER_MODIFY_SETTINGS = "example_module.modify_settings"

# ── Host events ───────────────────────────────────────────────────────────────
HOST_INIT = "app.init"
HOST_FOOTER = "page.footer"

SHORTCODE_PREFIX = "shortcode."
SHORTCODE_WIDGET = "example_widget"
SHORTCODE_DATA = "example_data"

# ── Registered with the host module row ───────────────────────────────────────
REGISTERED_HOOKS: list[str] = [
    HOOK_DISPLAY,
    HOOK_SAVE_DATA,
    HOOK_INIT,
    HOOK_LOADED,
    HOOK_SETTINGS_UPDATED,
    HOOK_DATA_SAVED,
    HOOK_DEACTIVATING,
]


def shortcode_event(tag: str) -> str:
    return f"{SHORTCODE_PREFIX}{tag}"
