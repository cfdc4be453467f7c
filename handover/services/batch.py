# This project was developed with assistance from AI tools.
"""Batch job tracking for bulk handover emails and bulk SOA generation.

The console API executes batches asynchronously and owns their state. The
tracker only mirrors that state: ``submit`` starts a batch, ``poll`` fetches
the latest snapshot and replaces the cached copy wholesale, and the
completion hook fires once per batch id the first time a poll observes the
COMPLETED status.

Nothing needed for correctness lives only in memory. A tracker created in a
fresh process can reattach to an in-flight batch from the persisted batch id
alone (see ``reattach``).
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol

from ..enums import BatchKind, BatchStatus
from ..schemas.batch import BatchJob, BatchSlots, BatchSubmission

logger = logging.getLogger(__name__)


class BatchTrackingError(Exception):
    """Base error for batch submission and polling failures."""

    pass


class BatchNotFoundError(BatchTrackingError):
    """The console API does not know the batch id."""

    pass


class TransientServiceError(BatchTrackingError):
    """Network or server-side failure that is worth retrying on the next tick."""

    pass


class BatchService(Protocol):
    """The two console API calls the tracker depends on."""

    async def submit_batch(
        self, kind: BatchKind, target_ids: list[int | str], **options: Any
    ) -> BatchSubmission: ...

    async def fetch_batch_status(self, batch_id: str, kind: BatchKind) -> BatchJob: ...


CompletionHook = Callable[[BatchJob], Awaitable[None] | None]


async def maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


def is_terminal(job: BatchJob) -> bool:
    return job.status == BatchStatus.COMPLETED


def should_resume(job: BatchJob) -> bool:
    """Whether a reattached batch still deserves a progress display.

    Running batches resume; finished batches resume only when some items
    failed, so the admin sees the failure list.
    """
    return not is_terminal(job) or job.failed > 0


class BatchJobTracker:
    """Submits batches and mirrors their progress via polling.

    Args:
        service: Console API adapter (``HandoverServiceClient`` in production).
        on_complete: Called with the terminal snapshot, exactly once per
            batch id for the lifetime of this tracker. May be a coroutine
            function.
    """

    def __init__(
        self,
        service: BatchService,
        on_complete: CompletionHook | None = None,
    ) -> None:
        self._service = service
        self._on_complete = on_complete
        self._snapshots: dict[str, BatchJob] = {}
        self._kinds: dict[str, BatchKind] = {}
        self._notified: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    async def submit(
        self,
        kind: BatchKind,
        target_ids: Iterable[int | str],
        **options: Any,
    ) -> BatchSubmission:
        """Start a batch and return immediately.

        Callers must persist ``submission.batch_id`` (see ``remember``)
        before the first poll so the batch can be reattached after a restart.
        """
        ids = list(target_ids)
        submission = await self._service.submit_batch(kind, ids, **options)
        if submission.batch_id:
            self._kinds[submission.batch_id] = kind
        logger.info(
            "Submitted %s batch %s: %d queued, %d skipped",
            kind.value,
            submission.batch_id,
            submission.queued_count,
            len(submission.skipped),
        )
        return submission

    async def poll(self, batch_id: str, kind: BatchKind | None = None) -> BatchJob:
        """Fetch the current snapshot of a batch.

        ``kind`` may be omitted for batches this tracker submitted or has
        already polled. Polls for the same batch id never overlap.

        Raises:
            ValueError: If batch_id is empty or its kind cannot be resolved.
            BatchNotFoundError: If the console API does not know the batch.
            TransientServiceError: On retryable network/server failures; the
                cached snapshot is left unchanged.
        """
        if not batch_id:
            raise ValueError("batch_id is required")
        kind = kind or self._kinds.get(batch_id)
        if kind is None:
            raise ValueError(f"Batch kind unknown for {batch_id}; pass kind explicitly")

        lock = self._locks.setdefault(batch_id, asyncio.Lock())
        async with lock:
            job = await self._service.fetch_batch_status(batch_id, kind)
            self._kinds[batch_id] = kind
            self._snapshots[batch_id] = job

            if is_terminal(job) and batch_id not in self._notified:
                self._notified.add(batch_id)
                logger.info(
                    "Batch %s completed: %d succeeded, %d failed of %d",
                    batch_id,
                    job.succeeded,
                    job.failed,
                    job.total,
                )
                if self._on_complete is not None:
                    await maybe_await(self._on_complete(job))
        if batch_id in self._notified and not lock.locked():
            # terminal batches need no further serialisation
            self._locks.pop(batch_id, None)
        return job

    def snapshot(self, batch_id: str) -> BatchJob | None:
        """Last snapshot seen for a batch, or None before the first good poll."""
        return self._snapshots.get(batch_id)

    def was_notified(self, batch_id: str) -> bool:
        return batch_id in self._notified


def remember(slots: BatchSlots, kind: BatchKind, batch_id: str) -> BatchSlots:
    return slots.replace(kind, batch_id)


def forget(slots: BatchSlots, kind: BatchKind) -> BatchSlots:
    return slots.replace(kind, None)


async def reattach(
    tracker: BatchJobTracker,
    slots: BatchSlots,
    kind: BatchKind,
) -> tuple[BatchJob | None, BatchSlots]:
    """Look up the stored batch of ``kind`` after a reload.

    Returns the snapshot when the progress display should resume, otherwise
    None together with slots where the stored id has been cleared.
    """
    batch_id = slots.get(kind)
    if not batch_id:
        return None, slots

    job = await tracker.poll(batch_id, kind)
    if should_resume(job):
        logger.info("Reattached to %s batch %s (%s)", kind.value, batch_id, job.status.value)
        return job, slots

    logger.debug("Stored %s batch %s finished cleanly; clearing slot", kind.value, batch_id)
    return None, forget(slots, kind)
