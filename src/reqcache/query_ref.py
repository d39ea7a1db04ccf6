"""QueryRef - reactive cell bound to one argument list of an engine."""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Generator
from typing import TYPE_CHECKING, Any, TypeVar

from reqcache.reactive import Cell, Ref
from reqcache.types import Unsubscribe

if TYPE_CHECKING:
    from reqcache.engine import ApiEngine

T = TypeVar("T")

logger = logging.getLogger(__name__)


class QueryRef(Cell[T]):
    """A read-only cell holding the latest result for fixed arguments.

    The cell re-runs ``engine.execute(*args)`` on creation and whenever the
    engine's revision advances. Reads never block: ``.value`` is the last
    resolved value, or the default until the first execution resolves.

    Usage:
        user = engine.get_ref(None, 7)
        user.value            # None, fetch scheduled
        await user            # waits for pending work, returns the value
    """

    __slots__ = (
        "__weakref__",
        "_args",
        "_cell",
        "_engine",
        "_id",
        "_task",
        "_unwatch",
    )

    def __init__(
        self,
        engine: ApiEngine[T],
        ref_id: str,
        default: T,
        args: tuple[Any, ...],
    ) -> None:
        super().__init__()
        self._engine = engine
        self._id = ref_id
        self._args = args
        self._cell: Ref[T] = Ref(default)
        self._cell.subscribe(self._changed.trigger)
        self._task: asyncio.Task[None] | None = None
        self._unwatch: Unsubscribe | None = self._follow_revision()
        self.refresh()

    @property
    def id(self) -> str:
        return self._id

    @property
    def args(self) -> tuple[Any, ...]:
        return self._args

    @property
    def value(self) -> T:
        return self._cell.value

    @property
    def pending(self) -> bool:
        """Whether an execution is scheduled and not yet settled."""
        return self._task is not None and not self._task.done()

    @property
    def disposed(self) -> bool:
        return self._unwatch is None

    def refresh(self) -> None:
        """Schedule a cached execution for this cell's arguments."""
        task = asyncio.get_running_loop().create_task(self._run())
        self._task = task
        self._engine._track_task(task)

    def dispose(self) -> None:
        """Stop following the engine's revision and release the cell."""
        if self._unwatch is None:
            return
        self._unwatch()
        self._unwatch = None
        self._engine._release_ref(self._id)

    async def wait(self) -> T:
        """Wait until no execution is pending, then return the value."""
        while self._task is not None and not self._task.done():
            await self._task
        return self._cell.peek()

    def __await__(self) -> Generator[Any, None, T]:
        return self.wait().__await__()

    def _follow_revision(self) -> Unsubscribe:
        """Subscribe to the engine revision without keeping this cell alive.

        Once the cell is collected its subscription removes itself on the
        next revision.
        """
        method = weakref.WeakMethod(self._on_revision)
        unsubscribe: Unsubscribe | None = None

        def on_revision(revision: int) -> None:
            handler = method()
            if handler is None:
                if unsubscribe is not None:
                    unsubscribe()
                return
            handler(revision)

        unsubscribe = self._engine.revision.subscribe(on_revision)
        return unsubscribe

    def _on_revision(self, _: int) -> None:
        self.refresh()

    async def _run(self) -> None:
        try:
            data = await self._engine.execute(*self._args)
        except Exception:
            # Surfaced through engine.error and on_error
            logger.debug("ref %s keeps its value after a failed execution", self._id)
            return
        # A newer execution supersedes this one. Dropping the result is safe:
        # the write that scheduled the newer execution bumped the revision,
        # and the newer execution reads the same cache entry.
        if asyncio.current_task() is self._task:
            self._cell.value = data

    def __repr__(self) -> str:
        return f"QueryRef({self._id!r}, {self._cell.peek()!r})"


__all__ = ["QueryRef"]
