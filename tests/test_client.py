# This project was developed with assistance from AI tools.
"""Tests for the console API client and payload normalisation."""

import json

import httpx
import pytest

from handover.core.config import Settings
from handover.enums import BatchKind, BatchStatus
from handover.services.batch import (
    BatchJobTracker,
    BatchNotFoundError,
    BatchTrackingError,
    TransientServiceError,
)
from handover.services.client import (
    HandoverServiceClient,
    UnitNotFoundError,
    parse_batch_progress,
    parse_submission,
)
from handover.services.readiness import evaluate

EMAIL_PROGRESS = {
    "success": True,
    "batch": {
        "batch_id": "e-123",
        "total_emails": 10,
        "sent_count": 9,
        "failed_count": 1,
        "status": "completed",
        "progress_percentage": 100,
        "started_at": "2026-02-01T09:00:00Z",
        "completed_at": "2026-02-01T09:04:00Z",
        "failed_units": [
            {
                "id": 44,
                "unit_number": "1204",
                "property": "Viera Residences",
                "owners": ["Jane Doe"],
            }
        ],
    },
}

SOA_PROGRESS = {
    "success": True,
    "batch": {
        "batch_id": "s-9",
        "total_soas": 20,
        "generated_count": 5,
        "failed_count": 0,
        "status": "processing",
        "progress_percentage": 25,
        "started_at": "2026-02-01T09:00:00Z",
        "completed_at": None,
    },
}

UNIT = {
    "unit": {
        "id": 7,
        "has_mortgage": True,
        "attachments": [
            {
                "type": "payment_proof",
                "filename": "receipt.pdf",
                "created_at": "2026-01-02T10:00:00Z",
            },
            {"type": "soa", "filename": "soa.pdf", "created_at": "2026-01-01T10:00:00Z"},
        ],
        "users": [
            {"id": 2, "full_name": "John Doe", "pivot": {"is_primary": False}},
            {"id": 1, "full_name": "Jane Doe", "pivot": {"is_primary": True}},
        ],
    }
}


HANDOVER_STATUS = {
    "unit_id": 7,
    "has_mortgage": True,
    "handover_ready": False,
    "requirements": [],
}


def _client(handler):
    return HandoverServiceClient(
        "http://console.test/api",
        token="tok",
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def test_parse_email_progress():
    job = parse_batch_progress(EMAIL_PROGRESS, BatchKind.EMAIL)
    assert job.batch_id == "e-123"
    assert (job.total, job.succeeded, job.failed) == (10, 9, 1)
    assert job.status == BatchStatus.COMPLETED
    assert job.failures[0].item_id == 44
    assert job.failures[0].item_label == "Unit 1204 - Viera Residences (Jane Doe)"
    assert job.failures[0].reason == "Email could not be sent"


def test_parse_soa_progress():
    job = parse_batch_progress(SOA_PROGRESS, BatchKind.DOCUMENT_GENERATION)
    assert (job.total, job.succeeded, job.failed) == (20, 5, 0)
    assert job.status == BatchStatus.PROCESSING
    assert job.completed_at is None
    assert job.failures == []


def test_parse_unknown_status_as_processing():
    payload = {"batch": {**SOA_PROGRESS["batch"], "status": "warming_up"}}
    job = parse_batch_progress(payload, BatchKind.DOCUMENT_GENERATION)
    assert job.status == BatchStatus.PROCESSING


def test_parse_failure_without_owners():
    payload = {"batch": {**EMAIL_PROGRESS["batch"], "failed_units": [{"id": 3, "owners": []}]}}
    job = parse_batch_progress(payload, BatchKind.EMAIL)
    assert job.failures[0].item_label == ""


def test_parse_requires_batch_envelope():
    with pytest.raises(KeyError):
        parse_batch_progress(EMAIL_PROGRESS["batch"], BatchKind.EMAIL)


def test_parse_submission_normalises_skipped():
    submission = parse_submission(
        {
            "batch_id": "e-1",
            "queued_count": 2,
            "skipped": [{"id": 5, "reason": "no SOA"}, 6],
            "message": "Queued 2 handover email(s)",
        },
        BatchKind.EMAIL,
    )
    assert submission.skipped == [5, 6]
    assert submission.is_tracked


# ---------------------------------------------------------------------------
# HTTP calls
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_batch_status_uses_kind_endpoint():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=SOA_PROGRESS)

    async with _client(handler) as client:
        job = await client.fetch_batch_status("s-9", BatchKind.DOCUMENT_GENERATION)

    assert job.batch_id == "s-9"
    assert seen[0].url.path == "/api/units/soa-batch/s-9/progress"
    assert seen[0].headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_submit_batch_posts_unit_ids():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"batch_id": "e-1", "queued_count": 2, "skipped": []})

    async with _client(handler) as client:
        submission = await client.submit_batch(BatchKind.EMAIL, [1, 2])

    assert submission.batch_id == "e-1"
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/units/bulk-send-handover"
    assert json.loads(seen[0].read()) == {"unit_ids": [1, 2]}


@pytest.mark.asyncio
async def test_submit_soa_batch_forwards_options():
    bodies = []

    def handler(request):
        bodies.append(request.read())
        assert request.url.path == "/api/units/bulk-generate-soa"
        return httpx.Response(200, json={"batch_id": "s-1", "queued_count": 1})

    async with _client(handler) as client:
        await client.submit_batch(BatchKind.DOCUMENT_GENERATION, [3], regenerate=True)

    assert json.loads(bodies[0]) == {"unit_ids": [3], "regenerate": True}


@pytest.mark.asyncio
async def test_404_is_not_found():
    async with _client(lambda r: httpx.Response(404, json={"message": "nope"})) as client:
        with pytest.raises(BatchNotFoundError):
            await client.fetch_batch_status("garbage", BatchKind.EMAIL)


@pytest.mark.asyncio
async def test_success_false_is_not_found():
    async with _client(lambda r: httpx.Response(200, json={"success": False})) as client:
        with pytest.raises(BatchNotFoundError):
            await client.fetch_batch_status("garbage", BatchKind.EMAIL)


@pytest.mark.asyncio
async def test_server_error_is_transient():
    async with _client(lambda r: httpx.Response(503)) as client:
        with pytest.raises(TransientServiceError):
            await client.fetch_batch_status("e-1", BatchKind.EMAIL)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [408, 425, 429])
async def test_throttling_statuses_are_transient(status):
    """should retry timeouts and rate limiting instead of failing the batch."""
    async with _client(lambda r: httpx.Response(status, text="slow down")) as client:
        with pytest.raises(TransientServiceError):
            await client.fetch_batch_status("e-1", BatchKind.EMAIL)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
async def test_unusable_body_is_transient(response):
    async with _client(lambda r: response) as client:
        with pytest.raises(TransientServiceError):
            await client.fetch_batch_status("e-1", BatchKind.EMAIL)


@pytest.mark.asyncio
async def test_mortgage_flag_reads_handover_status():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={**HANDOVER_STATUS, "has_mortgage": False})

    async with _client(handler) as client:
        assert await client.mortgage_flag(12) is False
    assert seen == ["/api/units/12/handover-status"]


@pytest.mark.asyncio
async def test_unknown_unit_is_unit_not_found():
    """should not report a missing unit as a missing batch."""
    async with _client(lambda r: httpx.Response(404, json={"message": "nope"})) as client:
        with pytest.raises(UnitNotFoundError):
            await client.uploaded_documents(99)
        with pytest.raises(UnitNotFoundError):
            await client.mortgage_flag(99)


@pytest.mark.asyncio
async def test_transport_error_is_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(TransientServiceError):
            await client.fetch_batch_status("e-1", BatchKind.EMAIL)


@pytest.mark.asyncio
async def test_client_error_is_hard_failure():
    async with _client(lambda r: httpx.Response(403, json={"message": "forbidden"})) as client:
        with pytest.raises(BatchTrackingError) as exc_info:
            await client.submit_batch(BatchKind.EMAIL, [1])
    assert not isinstance(exc_info.value, TransientServiceError)


@pytest.mark.asyncio
async def test_malformed_progress_is_hard_failure():
    payload = {"success": True, "batch": {**EMAIL_PROGRESS["batch"], "sent_count": 50}}
    async with _client(lambda r: httpx.Response(200, json=payload)) as client:
        with pytest.raises(BatchTrackingError):
            await client.fetch_batch_status("e-123", BatchKind.EMAIL)


@pytest.mark.asyncio
async def test_unit_documents_feed_evaluator():
    """should turn unit attachments and the mortgage flag into a readiness report."""
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path.endswith("/handover-status"):
            return httpx.Response(200, json=HANDOVER_STATUS)
        return httpx.Response(200, json=UNIT)

    async with _client(handler) as client:
        docs = await client.uploaded_documents(7)
        has_mortgage = await client.mortgage_flag(7)

    assert paths == ["/api/units/7", "/api/units/7/handover-status"]
    assert [d.type for d in docs] == ["payment_proof", "soa"]
    assert docs[0].owner_entity_id == 7
    assert has_mortgage is True

    report = evaluate(docs, {"has_mortgage": has_mortgage})
    assert not report.buyer_ready
    assert "bank_noc" in [r.type for r in report.missing]


@pytest.mark.asyncio
async def test_unit_signatories_primary_first():
    async with _client(lambda r: httpx.Response(200, json=UNIT)) as client:
        signatories = await client.unit_signatories(7)
    assert [s.id for s in signatories] == [1, 2]
    assert signatories[0].is_primary


@pytest.mark.asyncio
async def test_tracker_over_http():
    """should drive the tracker end to end through the client."""
    async with _client(lambda r: httpx.Response(200, json=EMAIL_PROGRESS)) as client:
        completed = []
        tracker = BatchJobTracker(client, on_complete=completed.append)
        job = await tracker.poll("e-123", BatchKind.EMAIL)
        await tracker.poll("e-123", BatchKind.EMAIL)

    assert job.failed == 1
    assert len(completed) == 1


def test_from_settings():
    cfg = Settings(API_BASE_URL="http://example.test/api/", API_TOKEN="abc")
    client = HandoverServiceClient.from_settings(cfg)
    assert str(client._client.base_url).rstrip("/") == "http://example.test/api"
    assert client._client.headers["Authorization"] == "Bearer abc"
