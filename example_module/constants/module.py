"""
Module Identity Constants

Registration metadata written to the host's `modules` table and the names of
the tables this module owns.
"""

MODULE_NAME = "example_module"
MODULE_TITLE = "Example Module"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "A comprehensive example module showing PhPstrap module development best practices"
MODULE_AUTHOR = "PhPstrap Team"
MODULE_AUTHOR_URL = "https://PhPstrap.com"
MODULE_LICENSE = "MIT"
MODULE_NAMESPACE = "PhPstrap\\Modules\\Example"
MODULE_INSTALL_PATH = "modules/example_module"
MODULE_PRIORITY = 10
MODULE_REQUIRED_VERSION = "1.0.0"
MODULE_TAGS = ["example", "demo", "tutorial", "development"]

# ── Owned tables ─────────────────────────────────────────────────────────────
DATA_TABLE = "example_module_data"
CACHE_TABLE = "example_module_cache"
AUDIT_TABLE = "example_module_audit"

MODULE_TABLES = [DATA_TABLE, CACHE_TABLE, AUDIT_TABLE]

BACKUP_TABLE_PREFIX = "example_module_backup_"

# ── Permissions (name → description) ─────────────────────────────────────────
MODULE_PERMISSIONS: dict[str, str] = {
    "example_module_view": "View Example Module content",
    "example_module_admin": "Access Example Module admin panel",
    "example_module_settings": "Modify Example Module settings",
    "example_module_manage_data": "Create and edit module data",
    "example_module_delete_data": "Delete module data",
}

# Cache group holding rendered settings-dependent fragments
SETTINGS_CACHE_GROUP = "settings"
DATA_CACHE_GROUP = "data"
