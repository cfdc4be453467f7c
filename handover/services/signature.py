# This project was developed with assistance from AI tools.
"""Handover checklist signature validation.

Every owner of the unit must sign the checklist, unless a power of attorney
signs on their behalf. A valid POA signature stands in for *all* missing
owners at once rather than one POA per absent owner; that is the current
business rule, not a logical necessity.

The staff/witness signature is checked separately and can never be replaced
by a POA.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..schemas.signature import Signatory, SignatureRecord, SignatureSetResult

logger = logging.getLogger(__name__)


def is_valid(record: SignatureRecord | None) -> bool:
    """A signature counts only with both a typed name and a drawn image."""
    return record is not None and record.is_valid


def validate(
    signatories: Iterable[Signatory],
    records: Mapping[int | str, SignatureRecord],
    poa: SignatureRecord | None = None,
) -> SignatureSetResult:
    """Check that every owner has signed, or that a POA covers the gaps.

    ``missing`` is always populated with owners lacking a valid signature,
    even when the POA makes the set complete, so callers can warn about
    partially-signed checklists.
    """
    missing = [s for s in signatories if not is_valid(records.get(s.id))]
    poa_valid = is_valid(poa)
    complete = not missing or poa_valid

    if missing and poa_valid:
        logger.info(
            "POA signature substituting for %d unsigned owner(s): %s",
            len(missing),
            [s.id for s in missing],
        )

    return SignatureSetResult(
        complete=complete,
        missing=missing,
        poa_substituted=bool(missing) and poa_valid,
    )


def validate_staff(record: SignatureRecord | None) -> bool:
    return is_valid(record)


def checklist_errors(result: SignatureSetResult, staff_valid: bool) -> list[str]:
    """Messages that block submitting the checklist; empty when it may proceed."""
    errors = []
    if not result.complete:
        for signatory in result.missing:
            role = "Purchaser" if signatory.is_primary else "Joint purchaser"
            errors.append(f"{role} signature is required ({signatory.display_name})")
    if not staff_valid:
        errors.append("Staff signature is required")
    return errors


def _owner_name(owner: Mapping[str, Any]) -> str:
    return owner.get("full_name") or owner.get("name") or ""


def signatories_from_owners(
    primary: Mapping[str, Any] | None,
    co_owners: Iterable[Mapping[str, Any]] = (),
) -> list[Signatory]:
    """Build the signatory list for a checklist from unit owner payloads.

    The primary owner comes first; co-owner entries repeating the primary's
    id are dropped.
    """
    signatories: list[Signatory] = []
    primary_id = None
    if primary:
        primary_id = primary["id"]
        signatories.append(
            Signatory(id=primary_id, display_name=_owner_name(primary), is_primary=True)
        )

    seen = {primary_id} if primary_id is not None else set()
    for owner in co_owners:
        if owner["id"] in seen:
            continue
        seen.add(owner["id"])
        signatories.append(Signatory(id=owner["id"], display_name=_owner_name(owner)))
    return signatories


def blank_records(signatories: Iterable[Signatory]) -> dict[int | str, SignatureRecord]:
    """Empty signature slots keyed by signatory id, owner names prefilled."""
    return {s.id: SignatureRecord(signatory_id=s.id, name=s.display_name) for s in signatories}
