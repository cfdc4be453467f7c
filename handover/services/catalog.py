# This project was developed with assistance from AI tools.
"""Handover requirement catalog.

Static rule table of the documents each party must supply before a unit can
be handed over. Conditional rows carry a predicate evaluated against the
unit's RequirementContext.
"""

from collections.abc import Callable
from dataclasses import dataclass

from ..enums import DocumentOwner, DocumentType
from ..schemas.readiness import RequirementContext


def _always(_ctx: RequirementContext) -> bool:
    return True


def _has_mortgage(ctx: RequirementContext) -> bool:
    # Unknown mortgage status does not waive the bank NOC
    return ctx.has_mortgage is True


@dataclass(frozen=True)
class RequirementDefinition:
    """A document type required from one party, optionally conditional."""

    type: str
    label: str
    owner: DocumentOwner
    applies_when: Callable[[RequirementContext], bool] = _always


REQUIREMENTS: tuple[RequirementDefinition, ...] = (
    RequirementDefinition(
        type=DocumentType.PAYMENT_PROOF.value,
        label="100% SOA Receipt (Final Payment)",
        owner=DocumentOwner.BUYER,
    ),
    RequirementDefinition(
        type=DocumentType.AC_CONNECTION.value,
        label="AC Connection (Chilled Water)",
        owner=DocumentOwner.BUYER,
    ),
    RequirementDefinition(
        type=DocumentType.DEWA_CONNECTION.value,
        label="DEWA Connection",
        owner=DocumentOwner.BUYER,
    ),
    RequirementDefinition(
        type=DocumentType.SERVICE_CHARGE_ACK_BUYER.value,
        label="Service Charge Acknowledgement (Signed by Buyer)",
        owner=DocumentOwner.BUYER,
    ),
    RequirementDefinition(
        type=DocumentType.BANK_NOC.value,
        label="Bank NOC",
        owner=DocumentOwner.BUYER,
        applies_when=_has_mortgage,
    ),
    RequirementDefinition(
        type=DocumentType.DEVELOPER_NOC_SIGNED.value,
        label="Developer NOC (Signed)",
        owner=DocumentOwner.DEVELOPER,
    ),
)

_BY_TYPE: dict[str, RequirementDefinition] = {r.type: r for r in REQUIREMENTS}


def list_requirements(
    ctx: RequirementContext | None = None,
) -> list[RequirementDefinition]:
    """Return the requirements that apply to a unit, in catalog order."""
    ctx = ctx or RequirementContext()
    return [r for r in REQUIREMENTS if r.applies_when(ctx)]


def requirement_for(doc_type: str) -> RequirementDefinition | None:
    return _BY_TYPE.get(doc_type)


def label_for(doc_type: str) -> str:
    """Human-readable label, falling back to the title-cased type."""
    req = _BY_TYPE.get(doc_type)
    if req:
        return req.label
    return doc_type.replace("_", " ").title()
