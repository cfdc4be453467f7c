# This project was developed with assistance from AI tools.
"""HTTP adapter for the handover console API.

Implements the four external calls the engine consumes: a unit's uploaded
documents, its mortgage flag, batch submission, and batch progress. Payloads
are normalised into the engine's schemas here so the services never see the
per-endpoint field names (``total_emails`` vs ``total_soas`` and friends).

Error mapping:
    404 / ``success: false`` on batch progress -> BatchNotFoundError
    404 on unit lookups                        -> UnitNotFoundError
    5xx, 408/425/429, transport errors         -> TransientServiceError
    non-JSON or non-object response bodies     -> TransientServiceError
    other 4xx                                  -> BatchTrackingError
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..enums import BatchKind, BatchStatus
from ..schemas.batch import BatchJob, BatchSubmission, FailureDetail
from ..schemas.readiness import DocumentRecord
from ..schemas.signature import Signatory
from .batch import BatchNotFoundError, BatchTrackingError, TransientServiceError
from .signature import signatories_from_owners

logger = logging.getLogger(__name__)

_SUBMIT_PATHS: dict[BatchKind, str] = {
    BatchKind.EMAIL: "/units/bulk-send-handover",
    BatchKind.DOCUMENT_GENERATION: "/units/bulk-generate-soa",
}

_PROGRESS_PATHS: dict[BatchKind, str] = {
    BatchKind.EMAIL: "/units/handover-batch/{batch_id}/progress",
    BatchKind.DOCUMENT_GENERATION: "/units/soa-batch/{batch_id}/progress",
}

# (total field, succeeded field) per batch kind
_COUNTER_FIELDS: dict[BatchKind, tuple[str, str]] = {
    BatchKind.EMAIL: ("total_emails", "sent_count"),
    BatchKind.DOCUMENT_GENERATION: ("total_soas", "generated_count"),
}

_DEFAULT_FAILURE_REASON: dict[BatchKind, str] = {
    BatchKind.EMAIL: "Email could not be sent",
    BatchKind.DOCUMENT_GENERATION: "SOA could not be generated",
}

_STATUS_ALIASES: dict[str, BatchStatus] = {
    "pending": BatchStatus.QUEUED,
    "queued": BatchStatus.QUEUED,
    "processing": BatchStatus.PROCESSING,
    "in_progress": BatchStatus.PROCESSING,
    "running": BatchStatus.PROCESSING,
    "completed": BatchStatus.COMPLETED,
}

# Client errors that gateways and rate limiters return for a healthy batch
_RETRYABLE_STATUS_CODES = frozenset({408, 425, 429})


class UnitNotFoundError(LookupError):
    """The console API does not know the unit id."""

    pass


def _parse_status(raw: str | None) -> BatchStatus:
    status = _STATUS_ALIASES.get((raw or "").lower())
    if status is None:
        logger.warning("Unknown batch status %r, treating as processing", raw)
        return BatchStatus.PROCESSING
    return status


def _parse_failure(item: dict[str, Any], kind: BatchKind) -> FailureDetail:
    label = item.get("label")
    if not label:
        parts = [f"Unit {item['unit_number']}" if item.get("unit_number") else None]
        parts.append(item.get("property"))
        label = " - ".join(p for p in parts if p)
    owners = item.get("owners") or []
    if owners:
        owner_names = ", ".join(str(o) for o in owners)
        label = f"{label} ({owner_names})" if label else owner_names
    return FailureDetail(
        item_id=item.get("id", item.get("unit_id", "")),
        item_label=label or "",
        reason=item.get("reason") or item.get("error") or _DEFAULT_FAILURE_REASON[kind],
    )


def parse_batch_progress(payload: dict[str, Any], kind: BatchKind) -> BatchJob:
    """Normalise a progress response body into a BatchJob."""
    batch = payload["batch"]
    total_field, succeeded_field = _COUNTER_FIELDS[kind]
    failures = batch.get("failed_units") or batch.get("failures") or []
    return BatchJob(
        batch_id=str(batch["batch_id"]),
        kind=kind,
        total=batch.get(total_field, batch.get("total", 0)),
        succeeded=batch.get(succeeded_field, batch.get("succeeded", 0)),
        failed=batch.get("failed_count", batch.get("failed", 0)),
        status=_parse_status(batch.get("status")),
        started_at=batch.get("started_at"),
        completed_at=batch.get("completed_at"),
        failures=[_parse_failure(f, kind) for f in failures],
    )


def parse_submission(payload: dict[str, Any], kind: BatchKind) -> BatchSubmission:
    skipped = [
        s.get("id", s.get("unit_id")) if isinstance(s, dict) else s
        for s in payload.get("skipped") or []
    ]
    return BatchSubmission(
        batch_id=payload.get("batch_id"),
        kind=kind,
        queued_count=payload.get("queued_count", 0),
        skipped=[s for s in skipped if s is not None],
        message=payload.get("message", ""),
    )


class HandoverServiceClient:
    """Async client for the console API, authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: Settings) -> "HandoverServiceClient":
        return cls(cfg.API_BASE_URL, token=cfg.API_TOKEN, timeout=cfg.HTTP_TIMEOUT_SECONDS)

    async def __aenter__(self) -> "HandoverServiceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        not_found: type[Exception] = BatchTrackingError,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send a request and return the JSON object body.

        Args:
            not_found: Exception raised on a 404 for this path.
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise TransientServiceError(f"{method} {path} failed: {exc}") from exc

        status = response.status_code
        if status == 404:
            raise not_found(f"{method} {path} returned 404")
        if status >= 500 or status in _RETRYABLE_STATUS_CODES:
            raise TransientServiceError(f"{method} {path} returned {status}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise BatchTrackingError(f"{method} {path} returned {status}: {response.text}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransientServiceError(f"{method} {path} returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise TransientServiceError(f"{method} {path} returned a non-object body")
        return payload

    async def _get_unit(self, unit_id: int | str) -> dict[str, Any]:
        data = await self._request("GET", f"/units/{unit_id}", not_found=UnitNotFoundError)
        return data.get("unit") or data.get("data") or data

    async def uploaded_documents(self, unit_id: int | str) -> list[DocumentRecord]:
        unit = await self._get_unit(unit_id)
        return [
            DocumentRecord(
                unit_or_user_id=unit_id,
                type=att["type"],
                filename=att.get("filename"),
                created_at=att.get("created_at"),
            )
            for att in unit.get("attachments") or []
            if att.get("type")
        ]

    async def mortgage_flag(self, unit_id: int | str) -> bool:
        status = await self._request(
            "GET", f"/units/{unit_id}/handover-status", not_found=UnitNotFoundError
        )
        return status.get("has_mortgage") is True

    async def unit_signatories(self, unit_id: int | str) -> list[Signatory]:
        """Owners of a unit as checklist signatories, primary first."""
        unit = await self._get_unit(unit_id)
        users = unit.get("users") or []
        primary = next((u for u in users if (u.get("pivot") or {}).get("is_primary")), None)
        if primary is None and users:
            primary = users[0]
        return signatories_from_owners(primary, users)

    async def submit_batch(
        self,
        kind: BatchKind,
        target_ids: list[int | str],
        **options: Any,
    ) -> BatchSubmission:
        body = {"unit_ids": target_ids, **options}
        payload = await self._request("POST", _SUBMIT_PATHS[kind], json=body)
        return parse_submission(payload, kind)

    async def fetch_batch_status(self, batch_id: str, kind: BatchKind) -> BatchJob:
        path = _PROGRESS_PATHS[kind].format(batch_id=batch_id)
        payload = await self._request("GET", path, not_found=BatchNotFoundError)
        if payload.get("success") is False or not payload.get("batch"):
            raise BatchNotFoundError(f"Batch {batch_id} not found")
        try:
            return parse_batch_progress(payload, kind)
        except (KeyError, ValidationError) as exc:
            raise BatchTrackingError(f"Malformed progress payload for batch {batch_id}") from exc
