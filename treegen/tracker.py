"""Running-action tracking for one generation run.

Every unit of asynchronous work (a render, a static copy, a directory
traversal) is counted while it is outstanding.  When the count returns to zero
after having been raised at least once, the tracker drains: its future
resolves and the drain hook runs, exactly once per run.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Coroutine, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeneratedItem:
    """Outcome of one render or static copy."""

    kind: str
    source: Path
    output: Path | None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GenerationResult:
    """Everything reported during one run."""

    items: list[GeneratedItem] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)
    duration: float = 0.0

    @property
    def rendered(self) -> list[GeneratedItem]:
        return [i for i in self.items if i.kind == "render" and i.ok]

    @property
    def copied(self) -> list[GeneratedItem]:
        return [i for i in self.items if i.kind == "static" and i.ok]

    @property
    def failures(self) -> list[GeneratedItem]:
        return [i for i in self.items if not i.ok]

    @property
    def success(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Counter
# ---------------------------------------------------------------------------


class RunningActions:
    """Counter of outstanding work with an exactly-once drain signal.

    All methods must be called from the event loop thread; the counter relies
    on the loop running one callback at a time.

    Attributes:
        count: Number of units currently outstanding.
        started: Whether ``increment`` has been called at least once.
        drained: Whether the drain signal has fired.
    """

    def __init__(
        self,
        on_item: Callable[[GeneratedItem], Any] | None = None,
        on_drain: Callable[[], None] | None = None,
    ) -> None:
        self.count = 0
        self.started = False
        self.drained = False
        self.on_item = on_item
        self.on_drain = on_drain
        self.errors: list[BaseException] = []
        self._future: asyncio.Future[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # -- Counting ----------------------------------------------------------

    def increment(self) -> None:
        if self.drained:
            raise RuntimeError("Cannot start new work after the run has completed")
        self.count += 1
        self.started = True

    def decrement(self) -> None:
        """Release one unit; fires the drain signal when the count hits zero."""
        if self.count <= 0:
            raise RuntimeError("Running-action counter decremented below zero")
        self.count -= 1
        if self.count == 0 and self.started and not self.drained:
            self.drained = True
            if self._future is not None and not self._future.done():
                self._future.set_result(None)
            if self.on_drain is not None:
                self.on_drain()

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Count the enclosed block as one outstanding unit."""
        self.increment()
        try:
            yield
        finally:
            self.decrement()

    # -- Dispatch ----------------------------------------------------------

    def dispatch(self, work: Coroutine[Any, Any, GeneratedItem]) -> asyncio.Task[None]:
        """Schedule *work* as one unit and report its item when it finishes.

        The counter is raised before the task is created, so the run cannot
        drain between dispatch and the task's first step.
        """
        self.increment()
        task = asyncio.get_running_loop().create_task(self._run(work))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, work: Coroutine[Any, Any, GeneratedItem]) -> None:
        try:
            item = await work
            if self.on_item is not None:
                await maybe_await(self.on_item(item))
        except Exception as exc:
            # Work coroutines report their own failures as items; anything
            # reaching this point is re-raised from ``wait``.
            self.errors.append(exc)
        finally:
            self.decrement()

    # -- Waiting -----------------------------------------------------------

    async def wait(self) -> None:
        """Wait for the drain signal.

        Raises:
            Exception: The first unexpected error raised by dispatched work.
        """
        if not self.drained:
            if self._future is None:
                self._future = asyncio.get_running_loop().create_future()
            await self._future
        if self.errors:
            raise self.errors[0]


async def maybe_await(value: Awaitable[Any] | Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
