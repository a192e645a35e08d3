"""
Fire-and-forget executor for best-effort background work (tracking dispatch).

Tasks run on the application's event loop after the request handler has
returned; the caller never awaits them. The executor keeps a strong
reference to each task until it finishes (the loop only holds weak ones),
logs any exception the task raised, and drains in-flight tasks on shutdown.
"""
import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)

_tasks: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}", exc_info=exc)


def submit(coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
    """Schedule a coroutine in the background and return immediately."""
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _tasks.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    return len(_tasks)


async def drain(timeout: float = 5.0) -> None:
    """Wait for in-flight tasks (used by tests and shutdown)."""
    if not _tasks:
        return
    await asyncio.wait(list(_tasks), timeout=timeout)


async def shutdown_executor(timeout: float = 5.0) -> None:
    """Give in-flight tasks a grace period on app shutdown, then cancel the rest."""
    if not _tasks:
        return
    logger.info(f"Waiting for {len(_tasks)} background task(s) to finish")
    await drain(timeout)
    leftover = list(_tasks)
    if leftover:
        logger.warning(f"Cancelling {len(leftover)} background task(s) still running at shutdown")
        for task in leftover:
            task.cancel()
        await asyncio.gather(*leftover, return_exceptions=True)
