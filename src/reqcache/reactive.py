"""Minimal reactive cells.

This module provides:
- Ref: a mutable cell that notifies subscribers when its value changes
- Computed: a read-only cell derived from other cells, recomputed lazily
- watch(): subscribe a callback to any cell

Reads of ``Ref.value`` or ``Computed.value`` inside a ``Computed`` getter
register the cell as a dependency of that computed.
"""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from typing import Any, Generic, TypeVar

from reqcache.events import EventHook
from reqcache.types import Unsubscribe

T = TypeVar("T")

_collecting: ContextVar[list[Cell[Any]] | None] = ContextVar(
    "reqcache_collecting", default=None
)


def _track(cell: Cell[Any]) -> None:
    deps = _collecting.get()
    if deps is not None and not any(dep is cell for dep in deps):
        deps.append(cell)


class Cell(Generic[T]):
    """Base for observable cells."""

    __slots__ = ("_changed",)

    def __init__(self) -> None:
        self._changed = EventHook()

    @property
    def value(self) -> T:
        raise NotImplementedError

    def subscribe(self, callback: Callable[[T], Any]) -> Unsubscribe:
        """Call ``callback(new_value)`` after every change."""
        return self._changed.on(callback)


class Ref(Cell[T]):
    """A mutable reactive cell."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    @property
    def value(self) -> T:
        _track(self)
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if new_value is self._value:
            return
        self._value = new_value
        self._changed.trigger(new_value)

    def peek(self) -> T:
        """Read the value without registering a dependency."""
        return self._value

    def __repr__(self) -> str:
        return f"Ref({self._value!r})"


class Computed(Cell[T]):
    """A read-only cell derived from other cells.

    The getter runs on first read and again on the first read after any
    dependency changed. Subscribers are notified with the recomputed value.
    """

    __slots__ = ("_dirty", "_getter", "_unsubscribes", "_value")

    def __init__(self, getter: Callable[[], T]) -> None:
        super().__init__()
        self._getter = getter
        self._value: T | None = None
        self._dirty = True
        self._unsubscribes: list[Unsubscribe] = []

    @property
    def value(self) -> T:
        _track(self)
        if self._dirty:
            self._recompute()
        return self._value  # type: ignore[return-value]

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _recompute(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []

        deps: list[Cell[Any]] = []
        token = _collecting.set(deps)
        try:
            value = self._getter()
        finally:
            _collecting.reset(token)

        self._unsubscribes = [dep.subscribe(self._invalidate) for dep in deps]
        self._value = value
        self._dirty = False

    def _invalidate(self, _: Any = None) -> None:
        if self._dirty:
            return
        self._dirty = True
        if len(self._changed):
            self._changed.trigger(self.value)

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else repr(self._value)
        return f"Computed({state})"


def watch(
    cell: Cell[T],
    callback: Callable[[T], Any],
    *,
    immediate: bool = False,
) -> Unsubscribe:
    """Call ``callback`` with the new value whenever ``cell`` changes.

    With ``immediate=True`` the callback also runs once right away.
    """
    unsubscribe = cell.subscribe(callback)
    if immediate:
        callback(cell.value)
    return unsubscribe


__all__ = ["Cell", "Computed", "Ref", "watch"]
