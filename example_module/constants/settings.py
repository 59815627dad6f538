"""
Settings Constants

Every recognized setting key with its default, plus the bounds and allow-lists
the validator enforces. The persisted settings blob only ever holds these keys.
"""

import copy
from typing import Any

DEFAULT_SETTINGS: dict[str, Any] = {
    "enabled": True,
    "welcome_title": "Welcome to Example Module!",
    "welcome_message": "This is a demonstration of PhPstrap module capabilities.",
    "show_date": True,
    "widget_style": "default",
    "cache_duration": 3600,
    "admin_notifications": True,
    "notification_email": "",
    "max_items": 10,
    "max_content_length": 2000,
    "allow_uploads": False,
    "max_upload_size": 5242880,
    "allowed_file_types": ["jpg", "jpeg", "png", "gif", "pdf"],
    "enable_captcha": True,
    "rate_limit": 5,
    "rate_limit_window": 3600,
    "debug_mode": False,
}

BOOLEAN_SETTINGS = (
    "enabled",
    "show_date",
    "admin_notifications",
    "allow_uploads",
    "enable_captcha",
    "debug_mode",
)

# (min, max) inclusive
INTEGER_BOUNDS: dict[str, tuple[int, int]] = {
    "max_items": (1, 100),
    "max_content_length": (100, 10000),
    "max_upload_size": (1024, 52428800),
    "rate_limit": (1, 100),
    "rate_limit_window": (60, 86400),
    "cache_duration": (0, 86400),
}

# Maximum stored length for free-text settings
TEXT_LIMITS: dict[str, int] = {
    "welcome_title": 255,
    "welcome_message": 1000,
}

WIDGET_STYLES = ("default", "minimal", "fancy")

ALLOWED_FILE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "pdf", "doc", "docx", "txt")

# Markers a checkbox or query string may use for "on"
TRUTHY_MARKERS = frozenset({"1", "on", "true", "yes"})

# Admin page layout: section slug → title, description, icon, keys
SETTINGS_SECTIONS: dict[str, dict[str, Any]] = {
    "general": {
        "title": "General Settings",
        "description": "Basic module configuration options",
        "icon": "fas fa-cog",
        "keys": ["enabled", "welcome_title", "welcome_message"],
    },
    "display": {
        "title": "Display Options",
        "description": "Customize how content is displayed",
        "icon": "fas fa-eye",
        "keys": ["show_date", "widget_style"],
    },
    "notifications": {
        "title": "Notifications",
        "description": "Email and alert configuration",
        "icon": "fas fa-bell",
        "keys": ["admin_notifications", "notification_email"],
    },
    "uploads": {
        "title": "File Uploads",
        "description": "File upload settings and restrictions",
        "icon": "fas fa-upload",
        "keys": ["allow_uploads", "max_upload_size", "allowed_file_types"],
    },
    "security": {
        "title": "Security",
        "description": "Security and spam protection settings",
        "icon": "fas fa-shield-alt",
        "keys": ["enable_captcha", "rate_limit", "rate_limit_window"],
    },
    "limits": {
        "title": "Limits",
        "description": "Data and content limitations",
        "icon": "fas fa-chart-bar",
        "keys": ["max_items", "max_content_length"],
    },
    "performance": {
        "title": "Performance",
        "description": "Caching and optimization settings",
        "icon": "fas fa-tachometer-alt",
        "keys": ["cache_duration"],
    },
    "development": {
        "title": "Development",
        "description": "Development and debugging options",
        "icon": "fas fa-code",
        "keys": ["debug_mode"],
    },
}


def get_default_settings() -> dict[str, Any]:
    """Return a fresh copy of the defaults (lists are not shared)."""
    return copy.deepcopy(DEFAULT_SETTINGS)
