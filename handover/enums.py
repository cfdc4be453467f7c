# This project was developed with assistance from AI tools.
"""Enumerations shared across the handover engine."""

import enum


class DocumentOwner(str, enum.Enum):
    """Party responsible for supplying a handover document."""

    BUYER = "buyer"
    DEVELOPER = "developer"


class DocumentType(str, enum.Enum):
    """Attachment types that take part in handover readiness.

    Uploaded documents carry their type as a plain string; anything not listed
    here (SOA, receipts, photos) is accepted and ignored by the evaluator.
    """

    PAYMENT_PROOF = "payment_proof"
    AC_CONNECTION = "ac_connection"
    DEWA_CONNECTION = "dewa_connection"
    SERVICE_CHARGE_ACK_BUYER = "service_charge_ack_buyer"
    BANK_NOC = "bank_noc"
    DEVELOPER_NOC_SIGNED = "developer_noc_signed"


class BatchKind(str, enum.Enum):
    EMAIL = "email"
    DOCUMENT_GENERATION = "document_generation"


class BatchStatus(str, enum.Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"


class HandoverStage(str, enum.Enum):
    """Official handover progression. Only ever moves forward."""

    COLLECTING_BUYER_DOCUMENTS = "collecting_buyer_documents"
    SENT_TO_DEVELOPER = "sent_to_developer"
    READY_FOR_BOOKING = "ready_for_booking"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = [
    HandoverStage.COLLECTING_BUYER_DOCUMENTS,
    HandoverStage.SENT_TO_DEVELOPER,
    HandoverStage.READY_FOR_BOOKING,
]
