# lazyrequest/utils/async_helpers.py
"""
Async utilities for bounded calls and safe task management.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


def create_safe_task(
    coro: Coroutine[Any, Any, Any],
    name: Optional[str] = None,
    log_errors: bool = True
) -> asyncio.Task:
    """
    Create an asyncio task that never dies silently.

    Exceptions are still delivered to whoever awaits the task; the done
    callback only makes sure an unobserved failure leaves a log line.

    Args:
        coro: The coroutine to run as a task
        name: Optional name for the task (for logging)
        log_errors: Whether to log errors (default True)

    Returns:
        The created asyncio.Task
    """
    task = asyncio.create_task(coro, name=name)

    def _handle_exception(t: asyncio.Task):
        if t.cancelled():
            return
        exc = t.exception()
        if exc and log_errors:
            task_name = name or t.get_name()
            logger.error(f"[AsyncTask:{task_name}] Unhandled exception: {exc}", exc_info=exc)

    task.add_done_callback(_handle_exception)
    return task


async def call_with_timeout(
    coro: Coroutine[Any, Any, Any],
    timeout: float,
    name: Optional[str] = None
) -> Any:
    """
    Await a coroutine, aborting it once `timeout` seconds have elapsed.

    Unlike a default-returning wrapper, expiry is re-raised as
    asyncio.TimeoutError so the caller can turn it into its own error type.

    Args:
        coro: The coroutine to run
        timeout: Timeout in seconds
        name: Optional name for logging
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[AsyncTask:{name or 'unknown'}] Timed out after {timeout}s")
        raise


async def sleep_ms(ms: int) -> None:
    """Suspend for `ms` milliseconds; non-positive values return immediately."""
    if ms > 0:
        await asyncio.sleep(ms / 1000)
