"""Core types for reqcache."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """An adapted result with its fetch time."""

    data: T
    fetched_at: float | None = None  # clock seconds; None when no TTL is set


# Duration type alias
Duration = str | int | float  # "30s", "5m", "2h", "1d" or seconds

Request = Callable[..., Awaitable[Any]]
Adapter = Callable[[Any], Any]
ErrorAdapter = Callable[[Exception], Any]
Handler = Callable[..., Any]
Unsubscribe = Callable[[], None]
