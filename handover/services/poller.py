# This project was developed with assistance from AI tools.
"""Cancellable repeating poll of batch progress.

One asyncio task per batch id polls immediately, then every
``POLL_INTERVAL_SECONDS`` until the batch is terminal or the watch is
cancelled. Each poll is awaited before the next sleep starts, so polls for a
batch never overlap. Cancelling a watch stops polling only; the batch keeps
running on the console API and can be watched again later.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from ..core.config import settings
from ..enums import BatchKind
from ..schemas.batch import BatchJob
from .batch import BatchJobTracker, TransientServiceError, is_terminal, maybe_await

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[BatchJob], Awaitable[None] | None]


class PollScheduler:
    """Drives a BatchJobTracker on a fixed interval."""

    def __init__(self, tracker: BatchJobTracker, interval: float | None = None) -> None:
        self._tracker = tracker
        self._interval = settings.POLL_INTERVAL_SECONDS if interval is None else interval
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def interval(self) -> float:
        return self._interval

    def is_watching(self, batch_id: str) -> bool:
        task = self._tasks.get(batch_id)
        return task is not None and not task.done()

    def watch(
        self,
        batch_id: str,
        kind: BatchKind | None = None,
        on_update: UpdateCallback | None = None,
    ) -> asyncio.Task:
        """Start polling a batch, or return the task already polling it.

        The task resolves to the terminal BatchJob. A cancelled watch raises
        CancelledError when awaited; programmer errors such as an unknown
        batch id surface as the task's exception.
        """
        existing = self._tasks.get(batch_id)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.create_task(
            self._run(batch_id, kind, on_update), name=f"batch-poll-{batch_id}"
        )
        self._tasks[batch_id] = task
        task.add_done_callback(lambda t: self._discard(batch_id, t))
        return task

    def cancel(self, batch_id: str) -> bool:
        """Stop polling a batch. Returns False if it was not being polled."""
        task = self._tasks.get(batch_id)
        if task is None or task.done():
            return False
        logger.debug("Cancelling poll for batch %s", batch_id)
        task.cancel()
        return True

    def cancel_all(self) -> None:
        for batch_id in list(self._tasks):
            self.cancel(batch_id)

    def _discard(self, batch_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(batch_id) is task:
            del self._tasks[batch_id]

    async def _run(
        self,
        batch_id: str,
        kind: BatchKind | None,
        on_update: UpdateCallback | None,
    ) -> BatchJob:
        while True:
            try:
                job = await self._tracker.poll(batch_id, kind)
            except (TransientServiceError, httpx.HTTPError):
                logger.warning(
                    "Polling batch %s failed, retrying in %.1fs",
                    batch_id,
                    self._interval,
                    exc_info=True,
                )
            else:
                if on_update is not None:
                    await maybe_await(on_update(job))
                if is_terminal(job):
                    return job
            await asyncio.sleep(self._interval)
