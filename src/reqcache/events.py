"""Observer channels for request lifecycle events."""

import itertools
from typing import Any

from reqcache.types import Handler, Unsubscribe


class EventHook:
    """A single event channel with ordered handlers.

    Usage:
        hook = EventHook()
        off = hook.on(lambda data: print(data))
        hook.trigger({"id": 7})
        off()
    """

    __slots__ = ("_handlers", "_ids")

    def __init__(self) -> None:
        self._handlers: dict[int, Handler] = {}
        self._ids = itertools.count()

    def __len__(self) -> int:
        return len(self._handlers)

    def on(self, handler: Handler) -> Unsubscribe:
        """Register a handler. Returns a callable that removes it."""
        handle = next(self._ids)
        self._handlers[handle] = handler

        def unsubscribe() -> None:
            self._handlers.pop(handle, None)

        return unsubscribe

    def off(self, handler: Handler) -> None:
        """Remove every registration of ``handler``."""
        for handle, registered in list(self._handlers.items()):
            if registered == handler:
                del self._handlers[handle]

    def trigger(self, *payload: Any) -> None:
        """Call each handler registered at trigger time, in order."""
        for handler in list(self._handlers.values()):
            handler(*payload)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()


__all__ = ["EventHook"]
