"""Constants package for the Example Module."""

from .content import (
    CONTENT_STATUSES,
    DATA_TYPES,
    PRIORITIES,
    SAMPLE_DATA,
    SUBMISSION_STATUSES,
    ContentStatus,
)
from .module import (
    AUDIT_TABLE,
    BACKUP_TABLE_PREFIX,
    CACHE_TABLE,
    DATA_TABLE,
    MODULE_NAME,
    MODULE_PERMISSIONS,
    MODULE_TAGS,
    MODULE_TITLE,
    MODULE_VERSION,
    MODULE_TABLES,
)
from .settings import (
    ALLOWED_FILE_EXTENSIONS,
    BOOLEAN_SETTINGS,
    DEFAULT_SETTINGS,
    INTEGER_BOUNDS,
    SETTINGS_SECTIONS,
    TEXT_LIMITS,
    WIDGET_STYLES,
    get_default_settings,
)

__all__ = [
    # Module identity
    "MODULE_NAME",
    "MODULE_TITLE",
    "MODULE_VERSION",
    "MODULE_TAGS",
    "MODULE_PERMISSIONS",
    "DATA_TABLE",
    "CACHE_TABLE",
    "AUDIT_TABLE",
    "MODULE_TABLES",
    "BACKUP_TABLE_PREFIX",
    # Settings
    "DEFAULT_SETTINGS",
    "BOOLEAN_SETTINGS",
    "INTEGER_BOUNDS",
    "TEXT_LIMITS",
    "WIDGET_STYLES",
    "ALLOWED_FILE_EXTENSIONS",
    "SETTINGS_SECTIONS",
    "get_default_settings",
    # Content
    "ContentStatus",
    "CONTENT_STATUSES",
    "SUBMISSION_STATUSES",
    "DATA_TYPES",
    "PRIORITIES",
    "SAMPLE_DATA",
]
