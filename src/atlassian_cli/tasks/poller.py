"""Poll a long-running Jira task until it finishes."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Protocol

from atlassian_cli.errors import TaskTimeoutError
from atlassian_cli.jira.models import TaskResult

logger = logging.getLogger("atlassian_cli")

DEFAULT_INTERVAL = 2.0
DEFAULT_MAX_WAIT = 300.0


class TaskFetcher(Protocol):
    async def get_task(self, task_id: str) -> TaskResult: ...


async def poll_task(
    client: TaskFetcher,
    task_id: str,
    *,
    interval: float = DEFAULT_INTERVAL,
    max_wait: float = DEFAULT_MAX_WAIT,
    on_progress: Callable[[TaskResult], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TaskResult:
    """Fetch the task every ``interval`` seconds until it reaches a terminal status.

    ``on_progress`` sees every snapshot, the terminal one included. The
    timeout is only checked between fetches, so a fetch that hangs is bounded
    by the HTTP client's own timeout, not by ``max_wait``. There is no way to
    cancel a poll other than abandoning the coroutine.

    Raises:
        TaskTimeoutError: ``max_wait`` seconds elapsed without a terminal status.
    """
    start = clock()
    fetches = 0
    while True:
        task = await client.get_task(task_id)
        fetches += 1

        if on_progress is not None:
            on_progress(task)

        if task.is_terminal:
            logger.debug(
                "Task %s finished with %s after %d fetches", task_id, task.status.value, fetches
            )
            return task

        elapsed = clock() - start
        if elapsed >= max_wait:
            raise TaskTimeoutError(task_id, max_wait, task.status.value)

        logger.debug("Task %s is %s (%.1fs elapsed)", task_id, task.status.value, elapsed)
        await sleep(interval)
