"""
Plugin Base Classes

A host module is described by a PluginMeta record and implemented as a
PluginBase subclass that wires itself to the host's hook bus in init().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PluginMeta:
    """
    Identity and capabilities of a host module.

    Attributes:
        name:          Module slug, matches the `modules.name` row.
        version:       Version string written at install time.
        description:   Text shown in the host's module list.
        author:        Module author.
        hooks:         Hook names the module emits for other modules.
        permissions:   Permission names created by the installer.
        config_schema: Per-setting type, default and bounds; the admin
                       settings page is built from it.
    """

    name: str
    version: str
    description: str
    author: str = "PhPstrap Team"
    hooks: list[str] = field(default_factory=list)
    permissions: list[str] = field(default_factory=list)
    config_schema: dict[str, Any] = field(default_factory=dict)


class PluginBase(ABC):
    """
    Base class for modules loaded by the host.

    Only `meta` is required; init() and deactivate() do nothing by default.
    """

    @property
    @abstractmethod
    def meta(self) -> PluginMeta: ...

    async def init(self) -> None:  # noqa: B027
        """Load state and subscribe to host hooks."""

    async def deactivate(self) -> None:  # noqa: B027
        """Run before the module is switched off or uninstalled."""
