# This project was developed with assistance from AI tools.
"""Handover readiness evaluation.

Compares a unit's uploaded documents against the requirement catalog to
decide whether the buyer stage, the developer stage, and the handover as a
whole are complete. Evaluation is pure: callers re-run it after every upload
or delete and re-render gating from the fresh report.

The official handover stage is a one-way ratchet kept by the caller. Reports
may regress (a document gets deleted) but ``next_stage`` never moves a unit
back once it has been sent to the developer.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..enums import DocumentOwner, HandoverStage
from ..schemas.readiness import (
    DocumentRecord,
    ReadinessReport,
    RequirementContext,
    RequirementStatus,
)
from .catalog import list_requirements

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a handover stage transition is not allowed."""

    pass


def _coerce_context(ctx: RequirementContext | Mapping[str, Any] | None) -> RequirementContext:
    if ctx is None:
        return RequirementContext()
    if isinstance(ctx, RequirementContext):
        return ctx
    return RequirementContext(has_mortgage=ctx.get("has_mortgage") is True)


def _document_type(doc: DocumentRecord | Mapping[str, Any]) -> str | None:
    if isinstance(doc, DocumentRecord):
        return doc.type
    return doc.get("type")


def evaluate(
    documents: Iterable[DocumentRecord | Mapping[str, Any]],
    ctx: RequirementContext | Mapping[str, Any] | None = None,
) -> ReadinessReport:
    """Build a readiness report for one unit.

    Args:
        documents: Uploaded attachments, as DocumentRecord or raw API dicts
            with a ``type`` key. Duplicate types count once; types outside
            the catalog are ignored.
        ctx: Requirement context. A missing mortgage flag is treated as False.

    Returns:
        A new ReadinessReport. Absence of data yields "not ready", never an
        exception.
    """
    context = _coerce_context(ctx)
    uploaded_types = {t for t in (_document_type(d) for d in documents) if t}

    requirements = [
        RequirementStatus(
            type=definition.type,
            label=definition.label,
            owner=definition.owner,
            required=True,
            uploaded=definition.type in uploaded_types,
        )
        for definition in list_requirements(context)
    ]

    buyer_ready = all(
        r.uploaded for r in requirements if r.owner == DocumentOwner.BUYER and r.required
    )
    developer_ready = all(
        r.uploaded for r in requirements if r.owner == DocumentOwner.DEVELOPER and r.required
    )

    return ReadinessReport(
        has_mortgage=context.has_mortgage is True,
        requirements=requirements,
        buyer_ready=buyer_ready,
        developer_ready=developer_ready,
        handover_ready=buyer_ready and developer_ready,
    )


def next_stage(previous: HandoverStage | None, report: ReadinessReport) -> HandoverStage:
    """Return the furthest stage the report allows, never behind ``previous``."""
    previous = previous or HandoverStage.COLLECTING_BUYER_DOCUMENTS
    reached = (
        HandoverStage.READY_FOR_BOOKING
        if report.handover_ready
        else HandoverStage.COLLECTING_BUYER_DOCUMENTS
    )
    if reached.rank < previous.rank:
        logger.debug(
            "Readiness regressed to %s; keeping stage %s", reached.value, previous.value
        )
        return previous
    return reached


def mark_sent_to_developer(
    previous: HandoverStage | None, report: ReadinessReport
) -> HandoverStage:
    """Advance a unit to the developer stage.

    Raises InvalidTransitionError if the buyer documents are incomplete.
    Calling it again for a unit that already passed this stage is a no-op.
    """
    previous = previous or HandoverStage.COLLECTING_BUYER_DOCUMENTS
    if previous.rank >= HandoverStage.SENT_TO_DEVELOPER.rank:
        return previous
    if not report.buyer_ready:
        missing = [r.label for r in report.buyer_requirements if r.required and not r.uploaded]
        raise InvalidTransitionError(
            f"Cannot send to developer: buyer documents missing: {', '.join(missing)}."
        )
    return HandoverStage.SENT_TO_DEVELOPER
