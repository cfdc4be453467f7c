# This project was developed with assistance from AI tools.
"""Handover readiness schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..enums import DocumentOwner


class RequirementContext(BaseModel):
    """Facts about a unit that decide which requirements apply.

    ``has_mortgage`` is None when the mortgage status is unknown; unknown is
    treated the same as False by the catalog predicates.
    """

    model_config = ConfigDict(frozen=True)

    has_mortgage: bool | None = None


class DocumentRecord(BaseModel):
    """An uploaded attachment as reported by the console API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    owner_entity_id: int | str | None = Field(default=None, alias="unit_or_user_id")
    type: str
    filename: str | None = None
    uploaded_at: datetime | None = Field(default=None, alias="created_at")


class RequirementStatus(BaseModel):
    """A single handover requirement with its fulfillment status."""

    model_config = ConfigDict(frozen=True)

    type: str
    label: str
    owner: DocumentOwner
    required: bool = True
    uploaded: bool = False


class ReadinessReport(BaseModel):
    """Readiness summary for one unit, recomputed on every evaluation."""

    model_config = ConfigDict(frozen=True)

    has_mortgage: bool
    requirements: list[RequirementStatus]
    buyer_ready: bool
    developer_ready: bool
    handover_ready: bool

    def for_owner(self, owner: DocumentOwner) -> list[RequirementStatus]:
        return [r for r in self.requirements if r.owner == owner]

    @property
    def buyer_requirements(self) -> list[RequirementStatus]:
        return self.for_owner(DocumentOwner.BUYER)

    @property
    def developer_requirements(self) -> list[RequirementStatus]:
        return self.for_owner(DocumentOwner.DEVELOPER)

    @property
    def missing(self) -> list[RequirementStatus]:
        """Required entries that have no uploaded document yet."""
        return [r for r in self.requirements if r.required and not r.uploaded]

    def uploaded_count(self, owner: DocumentOwner) -> int:
        return sum(1 for r in self.for_owner(owner) if r.required and r.uploaded)

    def required_count(self, owner: DocumentOwner | None = None) -> int:
        reqs = self.requirements if owner is None else self.for_owner(owner)
        return sum(1 for r in reqs if r.required)

    @computed_field
    @property
    def can_send_to_developer(self) -> bool:
        """Buyer documents are complete and the developer still has work to do."""
        return self.buyer_ready and not self.developer_ready
