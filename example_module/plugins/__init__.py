"""
Plugin integration points

Public API:
    PluginMeta  plugin metadata dataclass
    PluginBase  abstract base class for host plugins
    EventBus    interface of the host's hook/filter system
    HookBus     in-process EventBus implementation
"""

from .base import PluginBase, PluginMeta
from .events import EventBus, HookBus

__all__ = ["EventBus", "HookBus", "PluginBase", "PluginMeta"]
