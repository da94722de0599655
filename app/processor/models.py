from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from app.processor.exceptions import PipelineError


class PipelineState(str, Enum):
    RECEIVED = "received"
    STORED = "stored"
    DESCRIBED = "described"
    PARSED = "parsed"
    ENCODED = "encoded"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadRequest:
    """One attestation request; the image bytes live in the staged file."""

    staged_path: Path
    original_file_name: str
    coordinates: tuple[str, str]
    recipient_address: str
    content_type: str | None = None


@dataclass(frozen=True)
class StoredContentRef:
    """Address of a blob accepted by the content store."""

    content_id: str
    retrieval_url: str


@dataclass(frozen=True)
class EventRecord:
    """Canonical attestation payload before schema encoding."""

    event_name: str
    event_description: str
    occasion: str
    location_coordinates: tuple[str, str]
    memory_description: str

    def to_dict(self) -> dict[str, object]:
        return {
            "event_name": self.event_name,
            "event_description": self.event_description,
            "occasion": self.occasion,
            "location_coordinates": list(self.location_coordinates),
            "memory_description": self.memory_description,
        }


@dataclass(frozen=True)
class AttestationReceipt:
    """Reference to an attestation the ledger has included."""

    attestation_id: str
    schema_id: str
    recipient: str
    payload: bytes
    revocable: bool
    expiration: int | None = None
    transaction_hash: str | None = None


@dataclass
class PipelineOutcome:
    """Terminal result of one pipeline run."""

    request_id: str
    state: PipelineState
    stored: StoredContentRef | None = None
    event_record: EventRecord | None = None
    receipt: AttestationReceipt | None = None
    failed_stage: str | None = None
    error: PipelineError | None = None
    history: list[PipelineState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.CONFIRMED
