"""
Cancellable scheduled tasks.

A TaskSlot holds at most one pending task for a logical job (training,
advice refresh). Scheduling into a busy slot cancels the pending task,
so only the latest result is ever delivered.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

CoroutineFactory = Callable[[], Awaitable[Any]]


class TaskSlot:
    """
    Single-occupancy slot for delayed coroutines.

    Parameters
    ----------
    name : str
        Label used in log messages
    on_result : callable, optional
        Called with the result of each task that completes without being
        superseded or cancelled
    """

    def __init__(self, name: str, on_result: Optional[Callable[[Any], None]] = None):
        self.name = name
        self.on_result = on_result
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def cancel(self) -> bool:
        """Cancel the pending task, if any. Returns True if one was cancelled."""
        if not self.pending:
            return False
        logger.debug("Cancelling pending task in slot %s", self.name)
        self._task.cancel()
        return True

    def schedule(self, coro_factory: CoroutineFactory, delay: float = 0.0) -> asyncio.Task:
        """
        Replace whatever is pending with ``coro_factory()`` run after ``delay`` seconds.

        Must be called from a running event loop. Awaiting a superseded
        task raises ``asyncio.CancelledError``.
        """
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._run(coro_factory, delay))
        self._task = task
        task.add_done_callback(self._deliver)
        return task

    async def _run(self, coro_factory: CoroutineFactory, delay: float) -> Any:
        if delay > 0:
            await asyncio.sleep(delay)
        return await coro_factory()

    def _deliver(self, task: asyncio.Task) -> None:
        if task.cancelled() or task is not self._task:
            return
        if task.exception() is not None:
            logger.error("Task in slot %s failed: %r", self.name, task.exception())
            return
        if self.on_result is not None:
            self.on_result(task.result())


class Debouncer:
    """
    Delay a job until its trigger has been quiet for ``delay`` seconds.

    Each ``trigger`` restarts the delay and cancels the previous pending run.
    """

    def __init__(self, delay: float, callback: Optional[Callable[[Any], None]] = None,
                 name: str = "debounce"):
        self.delay = delay
        self.slot = TaskSlot(name, on_result=callback)

    @property
    def pending(self) -> bool:
        return self.slot.pending

    def trigger(self, coro_factory: CoroutineFactory) -> asyncio.Task:
        return self.slot.schedule(coro_factory, delay=self.delay)

    def flush(self, coro_factory: CoroutineFactory) -> asyncio.Task:
        """Run immediately, dropping any pending delayed run."""
        return self.slot.schedule(coro_factory, delay=0.0)

    def cancel(self) -> bool:
        return self.slot.cancel()
