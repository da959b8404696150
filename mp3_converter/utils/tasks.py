"""Helpers for fire-and-forget asyncio tasks."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

logger = logging.getLogger(__name__)


def _task_done_callback(task_set: set) -> Callable[[asyncio.Task], None]:
    """Creates a callback to remove a task from a set and log exceptions."""

    def callback(task: asyncio.Task) -> None:
        task_set.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Exception in background task {task.get_name()}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    return callback


def spawn(
    coro: Coroutine[Any, Any, Any],
    task_set: set,
    name: Optional[str] = None,
) -> asyncio.Task:
    """
    Start a background task that owns its own failure.

    The task is kept in ``task_set`` while it runs so it can be cancelled on
    shutdown, and any exception it ends with is logged instead of being lost.
    """
    task = asyncio.create_task(coro, name=name)
    task_set.add(task)
    task.add_done_callback(_task_done_callback(task_set))
    return task


async def cancel_all(task_set: set) -> None:
    """Cancel every task in the set and wait for them to finish."""
    tasks = list(task_set)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
