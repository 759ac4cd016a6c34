"""
Supervised background tasks for one session.

Polling loops, grace timers and deferred backend registrations all run
here, so logout can cancel them instead of leaving them detached.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from purchase_register.config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BackgroundTaskRegistry:
    """Tracks fire-and-forget tasks and logs their failures."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    def spawn(self, coro: Coroutine[Any, Any, T], name: str | None = None) -> asyncio.Task[T]:
        """Schedule a coroutine on the running loop and keep a reference to it."""
        if self._closed:
            coro.close()
            raise RuntimeError("task registry is closed")

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "background_task_failed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )

    @property
    def active(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every task, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> int:
        """Cancel in-flight tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("background_tasks_cancelled", count=len(tasks))
        return len(tasks)

    async def close(self) -> None:
        self._closed = True
        await self.cancel_all()
