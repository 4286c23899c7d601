from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from functools import lru_cache

from advisorhub.core.config import get_settings

logger = logging.getLogger(__name__)

JobFactory = Callable[[], Awaitable[None]]


class BackgroundJobRunner:
    """Fire-and-forget jobs on the running event loop with bounded concurrency.

    Jobs are keyed: a key that is already queued or running is refused, so the
    same attachment is never worked on twice at once. A job's exceptions and
    timeouts are logged and never reach the caller.
    """

    def __init__(self, *, max_concurrency: int, default_timeout: float | None = None) -> None:
        self._max_concurrency = max(1, max_concurrency)
        self._default_timeout = default_timeout
        self._semaphore: asyncio.Semaphore | None = None
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def pending_keys(self) -> set[str]:
        return set(self._tasks)

    def is_pending(self, key: str) -> bool:
        return key in self._tasks

    def submit(self, key: str, factory: JobFactory, *, timeout: float | None = None) -> bool:
        if key in self._tasks:
            logger.debug("Job %s is already pending; skipping duplicate submit.", key)
            return False
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)
        effective_timeout = timeout if timeout is not None else self._default_timeout
        task = asyncio.create_task(self._run(key, factory, effective_timeout), name=f"job:{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda _task: self._tasks.pop(key, None))
        return True

    async def _run(self, key: str, factory: JobFactory, timeout: float | None) -> None:
        assert self._semaphore is not None
        async with self._semaphore:
            try:
                await asyncio.wait_for(factory(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.error("Background job %s timed out after %s seconds.", key, timeout)
            except Exception:
                logger.exception("Background job %s failed.", key)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        self._semaphore = None


@lru_cache
def get_job_runner() -> BackgroundJobRunner:
    settings = get_settings()
    return BackgroundJobRunner(max_concurrency=settings.background_max_concurrency)
