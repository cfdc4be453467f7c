# This project was developed with assistance from AI tools.
"""Batch job schemas for bulk email sends and bulk SOA generation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..enums import BatchKind, BatchStatus


class FailureDetail(BaseModel):
    """One item of a batch that could not be processed."""

    model_config = ConfigDict(frozen=True)

    item_id: int | str
    item_label: str = ""
    reason: str = ""


class BatchJob(BaseModel):
    """Snapshot of a server-side batch as last reported by the console API."""

    model_config = ConfigDict(frozen=True)

    batch_id: str
    kind: BatchKind
    total: int = Field(ge=0)
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    status: BatchStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    failures: list[FailureDetail] = []

    @model_validator(mode="after")
    def _check_counts(self) -> "BatchJob":
        if self.succeeded + self.failed > self.total:
            raise ValueError(
                f"Batch {self.batch_id} reports {self.succeeded} succeeded and "
                f"{self.failed} failed out of {self.total}"
            )
        return self

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed

    @property
    def progress_percentage(self) -> int:
        if self.total == 0:
            return 100
        return round(self.processed * 100 / self.total)


class BatchSubmission(BaseModel):
    """Result of asking the console API to start a batch."""

    model_config = ConfigDict(frozen=True)

    batch_id: str | None = None
    kind: BatchKind
    queued_count: int = 0
    skipped: list[int | str] = []
    message: str = ""

    @property
    def is_tracked(self) -> bool:
        """A batch id is only issued when at least one item was queued."""
        return self.batch_id is not None and self.queued_count > 0


class BatchSlots(BaseModel):
    """Last known batch id per kind.

    Immutable: the helpers in ``services.batch`` return a new value that the
    caller hands to its key-value storage.
    """

    model_config = ConfigDict(frozen=True)

    email: str | None = None
    document_generation: str | None = None

    def get(self, kind: BatchKind) -> str | None:
        return getattr(self, kind.value)

    def replace(self, kind: BatchKind, batch_id: str | None) -> "BatchSlots":
        return self.model_copy(update={kind.value: batch_id})
