"""
Host Event Bus

EventBus is the interface the module needs from the host's hook/filter
system. HookBus is an in-process implementation used by the bundled web app
and the tests.

Actions are fire-and-forget: each subscriber is awaited in sequence;
exceptions are caught, logged, and dispatch continues. Filters thread a value
through every subscriber and keep the last good value when one fails.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, Union

logger = logging.getLogger(__name__)

Handler = Callable[..., Union[Any, Awaitable[Any]]]


class EventBus(Protocol):
    async def emit(self, event: str, payload: Any = None) -> list[Any]: ...

    def subscribe(self, event: str, handler: Handler) -> None: ...

    def unsubscribe(self, event: str, handler: Handler) -> None: ...

    async def apply_filters(self, event: str, value: Any) -> Any: ...


async def _call(handler: Handler, *args: Any) -> Any:
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", repr(handler))


class HookBus:
    """In-process event bus keyed by event name."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    # ── Subscription ──────────────────────────────────────────────────────────

    def subscribe(self, event: str, handler: Handler) -> None:
        """Add a handler; subscribing the same handler twice is a no-op."""
        if handler not in self._subscribers[event]:
            self._subscribers[event].append(handler)
            logger.debug("Subscribed %s to %s", _handler_name(handler), event)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        if handler in self._subscribers.get(event, []):
            self._subscribers[event].remove(handler)

    def subscribers(self, event: str) -> list[Handler]:
        return list(self._subscribers.get(event, []))

    # ── Dispatch ──────────────────────────────────────────────────────────────

    async def emit(self, event: str, payload: Any = None) -> list[Any]:
        """
        Fire an action to every subscriber.

        Args:
            event:   Event name, e.g. "example_module.data_saved".
            payload: Arbitrary data passed to each subscriber.

        Returns:
            List of return values from subscribers that did not raise.
        """
        results: list[Any] = []
        for handler in self.subscribers(event):
            try:
                results.append(await _call(handler, payload))
            except Exception as exc:
                logger.warning("Handler %s for %s raised: %s", _handler_name(handler), event, exc)
        return results

    async def apply_filters(self, event: str, value: Any) -> Any:
        """Pass `value` through each subscriber and return the result."""
        for handler in self.subscribers(event):
            try:
                value = await _call(handler, value)
            except Exception as exc:
                logger.warning("Filter %s for %s raised: %s", _handler_name(handler), event, exc)
        return value
