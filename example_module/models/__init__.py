from .audit_entry import AuditEntry
from .cache_entry import CacheEntry
from .content_item import ContentItem
from .host import Module, Permission, RolePermission

__all__ = [
    "AuditEntry",
    "CacheEntry",
    "ContentItem",
    "Module",
    "Permission",
    "RolePermission",
]
