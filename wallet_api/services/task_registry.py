"""
Background task registry.

Keeps references to detached asyncio tasks so they are not garbage
collected mid-flight, logs their failures, and cancels leftovers on
shutdown.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger


class TaskRegistry:
    """Process-scoped holder of fire-and-forget tasks."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """
        Start coroutine as a detached task.

        Args:
            coro: Coroutine to run
            name: Task name used in logs

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        try:
            task.result()
        except asyncio.CancelledError:
            logger.warning(f"Background task {task.get_name()} was cancelled")
        except Exception as e:
            logger.error(
                f"Unhandled exception in background task "
                f"{task.get_name()}: {e}"
            )

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    async def wait_idle(self, timeout: float | None = None) -> None:
        """Wait for all running tasks to finish."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def shutdown(self) -> None:
        """Cancel running tasks and wait for them to unwind."""
        if not self._tasks:
            return

        logger.info(f"Cancelling {len(self._tasks)} background tasks")
        tasks = set(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
