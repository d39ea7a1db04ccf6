"""Request-execution engine with argument-keyed caching.

This module provides:
- ApiEngine: wraps an async request function with caching, loading/error
  state, lifecycle events, reactive refs and grouped views
- use_api(): factory with validated options
- api(): decorator form of use_api()
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
import weakref
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from reqcache.duration import parse_duration
from reqcache.errors import RequestFailure
from reqcache.events import EventHook
from reqcache.keys import arg_matches, make_cache_key
from reqcache.query_ref import QueryRef
from reqcache.reactive import Computed, Ref
from reqcache.types import (
    Adapter,
    CacheEntry,
    Duration,
    ErrorAdapter,
    Handler,
    Request,
    Unsubscribe,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ApiEngine(Generic[T]):
    """Async request engine bound to one request function.

    Usage:
        async def fetch_user(id: int) -> dict:
            ...

        users = ApiEngine(fetch_user, cache_time="5m")
        user = await users.execute(7)   # fetches
        user = await users.execute(7)   # served from cache
        user = await users.load(7)      # always fetches
    """

    def __init__(
        self,
        request: Request,
        *,
        adapter: Adapter | None = None,
        error_adapter: ErrorAdapter | None = None,
        cache_time: Duration | None = None,
        coalesce: bool = False,
        on_success: Handler | None = None,
        on_error: Handler | None = None,
        on_finally: Handler | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._request = request
        self._adapter = adapter
        self._error_adapter = error_adapter
        self._cache_time = (
            parse_duration(cache_time) if cache_time is not None else None
        )
        if self._cache_time is not None and self._cache_time <= 0:
            raise ValueError("cache_time must be positive")
        self._coalesce = coalesce
        self._clock = clock or time.time

        self._cache: dict[str, CacheEntry[T]] = {}
        self._in_flight: dict[str, asyncio.Future[T]] = {}
        self._refs: weakref.WeakValueDictionary[str, QueryRef[T]] = (
            weakref.WeakValueDictionary()
        )
        self._ref_ids = itertools.count(1)
        self._background_tasks: set[asyncio.Task[None]] = set()

        self._is_loading: Ref[bool] = Ref(False)
        self._error: Ref[Any] = Ref(None)
        self._revision: Ref[int] = Ref(0)
        self._table_version: Ref[int] = Ref(0)

        self._success_hook = EventHook()
        self._error_hook = EventHook()
        self._finally_hook = EventHook()
        if on_success is not None:
            self._success_hook.on(on_success)
        if on_error is not None:
            self._error_hook.on(on_error)
        if on_finally is not None:
            self._finally_hook.on(on_finally)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return getattr(self._request, "__name__", repr(self._request))

    @property
    def is_loading(self) -> Ref[bool]:
        """True while the most recent fetching call is in progress."""
        return self._is_loading

    @property
    def error(self) -> Ref[Any]:
        """Adapted error of the last failed call, None after a new call starts."""
        return self._error

    @property
    def revision(self) -> Ref[int]:
        """Counter bumped on every successful cache write."""
        return self._revision

    @property
    def cache_time(self) -> float | None:
        return self._cache_time

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_success(self, handler: Handler) -> Unsubscribe:
        """Call ``handler(data)`` after every successful request."""
        return self._success_hook.on(handler)

    def on_error(self, handler: Handler) -> Unsubscribe:
        """Call ``handler(error)`` with the adapted error of every failure."""
        return self._error_hook.on(handler)

    def on_finally(self, handler: Handler) -> Unsubscribe:
        """Call ``handler()`` after every request, successful or not."""
        return self._finally_hook.on(handler)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def execute(self, *args: Any, bypass_cache: bool = False) -> T:
        """Return the cached result for ``args`` or fetch it.

        A valid cache entry short-circuits the call: the request is not
        invoked and no state changes or events happen. Otherwise the
        request runs and its adapted result is cached.

        Raises:
            The adapted error of a failed request, or ``RequestFailure``
            wrapping it when the adapted error is not an exception.
        """
        key = self.get_cache_key(*args)

        if not bypass_cache:
            entry = self._cache.get(key)
            if entry is not None and self._is_valid(entry):
                logger.debug("%s: cache hit for %s", self.name, key)
                return entry.data

            in_flight = self._in_flight.get(key)
            if in_flight is not None:
                logger.debug("%s: joining in-flight request for %s", self.name, key)
                try:
                    return await asyncio.shield(in_flight)
                except asyncio.CancelledError:
                    task = asyncio.current_task()
                    if not in_flight.cancelled() or (
                        task is not None and task.cancelling()
                    ):
                        raise
                # The owning call was cancelled; start over for this caller
                logger.debug("%s: in-flight request for %s cancelled", self.name, key)
                return await self.execute(*args)

        logger.debug("%s: fetching %s", self.name, key)
        return await self._fetch(key, args)

    async def load(self, *args: Any) -> T:
        """Fetch ``args`` bypassing the cache and overwrite the entry."""
        return await self.execute(*args, bypass_cache=True)

    async def __call__(self, *args: Any) -> T:
        return await self.execute(*args)

    def get_cache_key(self, *args: Any) -> str:
        """Canonical cache key of an argument list."""
        return make_cache_key(args)

    def has(self, *args: Any) -> bool:
        """Check if a valid entry is cached for ``args``."""
        entry = self._cache.get(self.get_cache_key(*args))
        return entry is not None and self._is_valid(entry)

    def clear(self) -> None:
        """Remove every cached entry."""
        self._cache.clear()
        self._table_version.value += 1
        logger.debug("%s: cache cleared", self.name)

    def clear_one(self, *args: Any) -> None:
        """Remove the cached entry for ``args``."""
        key = self.get_cache_key(*args)
        if self._cache.pop(key, None) is not None:
            self._table_version.value += 1
            logger.debug("%s: cleared %s", self.name, key)

    # -------------------------------------------------------------------------
    # Reactive accessors
    # -------------------------------------------------------------------------

    def get_ref(self, default: T | None = None, *args: Any) -> QueryRef[T]:
        """Reactive cell following the cached result for ``args``.

        Must be called with a running event loop. Every call returns a new
        cell; cells with equal arguments share the cache entry.
        """
        asyncio.get_running_loop()
        ref_id = f"{next(self._ref_ids)}-{self.get_cache_key(*args)}"
        ref: QueryRef[T] = QueryRef(self, ref_id, default, args)  # type: ignore[arg-type]
        self._refs[ref_id] = ref
        return ref

    def get_group_by_arg(
        self,
        index: int | None = None,
        arg: Any = None,
    ) -> Computed[list[T]]:
        """Reactive list of cached results whose argument at ``index`` is ``arg``.

        With ``index=None`` every cached result is included.
        """

        def group() -> list[T]:
            _ = self._table_version.value
            return [
                entry.data
                for key, entry in self._cache.items()
                if arg_matches(key, index, arg)
            ]

        return Computed(group)

    def dispose(self) -> None:
        """Dispose every ref and drop all event handlers.

        In-flight requests are left to finish.
        """
        for ref in list(self._refs.values()):
            ref.dispose()
        self._success_hook.clear()
        self._error_hook.clear()
        self._finally_hook.clear()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _is_valid(self, entry: CacheEntry[T]) -> bool:
        """Check if an entry is within its TTL."""
        if self._cache_time is None or entry.fetched_at is None:
            return True
        return self._clock() < entry.fetched_at + self._cache_time

    def _store(self, key: str, data: T) -> None:
        fetched_at = self._clock() if self._cache_time is not None else None
        self._cache[key] = CacheEntry(data=data, fetched_at=fetched_at)
        self._table_version.value += 1

    async def _fetch(self, key: str, args: tuple[Any, ...]) -> T:
        future: asyncio.Future[T] | None = None
        if self._coalesce:
            future = asyncio.get_running_loop().create_future()
            self._in_flight[key] = future

        self._is_loading.value = True
        self._error.value = None
        try:
            data = await self._run_request(key, args)
        except asyncio.CancelledError:
            if future is not None:
                future.cancel()
            raise
        except BaseException as exc:
            if future is not None:
                future.set_exception(exc)
                future.exception()  # retrieved even when nobody joined
            raise
        else:
            if future is not None:
                future.set_result(data)
            return data
        finally:
            if future is not None and self._in_flight.get(key) is future:
                del self._in_flight[key]
            self._is_loading.value = False
            self._finally_hook.trigger()

    async def _run_request(self, key: str, args: tuple[Any, ...]) -> T:
        try:
            response = await self._request(*args)
            data = self._adapter(response) if self._adapter else response
        except Exception as exc:
            failure = self._error_adapter(exc) if self._error_adapter else exc
            self._error.value = failure
            logger.debug("%s: request for %s failed: %r", self.name, key, failure)
            self._error_hook.trigger(failure)
            if failure is exc:
                raise
            if isinstance(failure, BaseException):
                raise failure from exc
            raise RequestFailure(failure) from exc

        self._store(key, data)
        self._revision.value += 1
        logger.debug("%s: cached %s", self.name, key)
        self._success_hook.trigger(data)
        return data

    def _track_task(self, task: asyncio.Task[None]) -> None:
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    def _release_ref(self, ref_id: str) -> None:
        self._refs.pop(ref_id, None)

    def __repr__(self) -> str:
        return f"ApiEngine({self.name}, entries={len(self._cache)})"


def use_api(
    request: Request,
    *,
    adapter: Adapter | None = None,
    error_adapter: ErrorAdapter | None = None,
    cache_time: Duration | None = None,
    coalesce: bool = False,
    on_success: Handler | None = None,
    on_error: Handler | None = None,
    on_finally: Handler | None = None,
    clock: Callable[[], float] | None = None,
) -> ApiEngine[Any]:
    """Create a request engine.

    Args:
        request: Async function performing the request
        adapter: Maps every response before it is cached
        error_adapter: Maps every failure before it is recorded and raised
        cache_time: Entry lifetime ("30s", "5m" or seconds); None never expires
        coalesce: Share one in-flight request between concurrent cache misses
        on_success: Handler registered on the success channel
        on_error: Handler registered on the error channel
        on_finally: Handler registered on the finally channel
        clock: Time source in seconds (default: time.time)

    Returns:
        ApiEngine with execute, load, clear, clear_one, get_ref,
        get_group_by_arg and event subscriptions
    """
    if not callable(request):
        raise TypeError(f"request must be callable, got {type(request).__name__}")

    return ApiEngine(
        request,
        adapter=adapter,
        error_adapter=error_adapter,
        cache_time=cache_time,
        coalesce=coalesce,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
        clock=clock,
    )


def api(**options: Any) -> Callable[[Request], ApiEngine[Any]]:
    """Decorator turning an async function into a request engine.

    Usage:
        @api(cache_time="5m")
        async def get_user(id: int) -> dict:
            return await fetch_user(id)

        user = await get_user(7)
        get_user.clear_one(7)
    """

    def decorator(fn: Request) -> ApiEngine[Any]:
        return use_api(fn, **options)

    return decorator


__all__ = ["ApiEngine", "api", "use_api"]
