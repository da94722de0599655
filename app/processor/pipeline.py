from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from app.processor.exceptions import PipelineError, UpstreamUnavailable
from app.processor.models import (
    AttestationReceipt,
    EventRecord,
    PipelineState,
    StoredContentRef,
    UploadRequest,
)


@dataclass(slots=True)
class PipelineContext:
    request_id: str
    request: UploadRequest
    state: PipelineState = PipelineState.RECEIVED
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.RECEIVED])
    stored: StoredContentRef | None = None
    extraction_text: str = ""
    event_record: EventRecord | None = None
    encoded_payload: bytes = b""
    transaction_hash: str | None = None
    receipt: AttestationReceipt | None = None
    upload_released: bool = False

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)


class PipelineStep(ABC):
    """One bounded-time transition of the attestation state machine."""

    name: str = ""
    target_state: PipelineState = PipelineState.RECEIVED
    timeout_seconds: float | None = None
    cancellable: bool = True

    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError

    def timeout_error(self, context: PipelineContext) -> PipelineError:
        """Error reported when ``run`` exceeds ``timeout_seconds``."""
        _ = context
        return UpstreamUnavailable(f"{self.name} timed out after {self.timeout_seconds}s")
