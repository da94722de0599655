from app.description.base import BaseDescriptionExtractor
from app.extraction.parser import EventRecordDefaults, parse_event_text
from app.ledger.base import BaseAttestationSubmitter
from app.ledger.models import AttestationSubmission
from app.logging.logger import Log
from app.processor.exceptions import (
    AmbiguousSubmission,
    ConfirmationTimeout,
    InferenceTimeout,
    LedgerUnavailable,
    PipelineError,
    StorageUnavailable,
)
from app.processor.models import PipelineState
from app.processor.pipeline import PipelineContext, PipelineStep
from app.processor.staging import StagingArea
from app.schema.encoder import SchemaEncoder
from app.storage.base import BaseContentStore


class StoreContentStep(PipelineStep):
    name = "store"
    target_state = PipelineState.STORED

    def __init__(
        self,
        content_store: BaseContentStore,
        staging: StagingArea,
        timeout_seconds: float = 30,
    ) -> None:
        self._content_store = content_store
        self._staging = staging
        self.timeout_seconds = timeout_seconds

    async def run(self, context: PipelineContext) -> PipelineContext:
        request = context.request
        blob = self._staging.load(request.staged_path)
        context.stored = await self._content_store.store(blob, request.original_file_name)
        Log.info(
            f"Stored {len(blob)} bytes",
            request_id=context.request_id,
            url=context.stored.retrieval_url,
        )
        return context

    def timeout_error(self, context: PipelineContext) -> PipelineError:
        return StorageUnavailable(f"Content store timed out after {self.timeout_seconds}s")


class DescribeStep(PipelineStep):
    name = "describe"
    target_state = PipelineState.DESCRIBED

    def __init__(self, extractor: BaseDescriptionExtractor, timeout_seconds: float = 60) -> None:
        self._extractor = extractor
        self.timeout_seconds = timeout_seconds

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.stored is None:
            raise ValueError("PipelineContext.stored must be set before description")
        context.extraction_text = await self._extractor.describe(context.stored.retrieval_url)
        Log.info(
            f"Described image in {len(context.extraction_text)} chars",
            request_id=context.request_id,
        )
        return context

    def timeout_error(self, context: PipelineContext) -> PipelineError:
        return InferenceTimeout(f"Description timed out after {self.timeout_seconds}s")


class ParseStep(PipelineStep):
    name = "parse"
    target_state = PipelineState.PARSED

    def __init__(self, defaults: EventRecordDefaults) -> None:
        self._defaults = defaults

    async def run(self, context: PipelineContext) -> PipelineContext:
        context.event_record = parse_event_text(
            context.extraction_text,
            coordinates=context.request.coordinates,
            defaults=self._defaults,
        )
        Log.info(
            f"Parsed event '{context.event_record.event_name}'",
            request_id=context.request_id,
        )
        return context


class EncodeStep(PipelineStep):
    name = "encode"
    target_state = PipelineState.ENCODED

    def __init__(self, encoder: SchemaEncoder) -> None:
        self._encoder = encoder

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.event_record is None:
            raise ValueError("PipelineContext.event_record must be set before encoding")
        context.encoded_payload = self._encoder.encode(
            context.event_record, self._encoder.schema_uid
        )
        return context


class _LedgerStep(PipelineStep):
    def __init__(
        self,
        submitter: BaseAttestationSubmitter,
        encoder: SchemaEncoder,
        revocable: bool,
        expiration: int | None,
        timeout_seconds: float,
    ) -> None:
        self._submitter = submitter
        self._encoder = encoder
        self._revocable = revocable
        self._expiration = expiration
        self.timeout_seconds = timeout_seconds

    def _submission(self, context: PipelineContext) -> AttestationSubmission:
        return AttestationSubmission(
            schema_id=self._encoder.schema_uid,
            recipient=context.request.recipient_address,
            payload=context.encoded_payload,
            revocable=self._revocable,
            expiration=self._expiration,
        )


class SubmitStep(_LedgerStep):
    name = "submit"
    target_state = PipelineState.SUBMITTED

    async def run(self, context: PipelineContext) -> PipelineContext:
        if not context.encoded_payload:
            raise ValueError("PipelineContext.encoded_payload must be set before submission")

        def record_hash(transaction_hash: str) -> None:
            context.transaction_hash = transaction_hash

        await self._submitter.broadcast(self._submission(context), on_signed=record_hash)
        Log.info(
            "Attestation broadcast",
            request_id=context.request_id,
            tx=context.transaction_hash,
        )
        return context

    def timeout_error(self, context: PipelineContext) -> PipelineError:
        if context.transaction_hash is None:
            return LedgerUnavailable(f"Ledger timed out after {self.timeout_seconds}s")
        return AmbiguousSubmission(
            f"Broadcast did not complete within {self.timeout_seconds}s",
            transaction_hash=context.transaction_hash,
        )


class ConfirmStep(_LedgerStep):
    name = "confirm"
    target_state = PipelineState.CONFIRMED
    cancellable = False

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.transaction_hash is None:
            raise ValueError("PipelineContext.transaction_hash must be set before confirmation")
        context.receipt = await self._submitter.wait_for_inclusion(
            self._submission(context), context.transaction_hash
        )
        Log.info(
            "Attestation confirmed",
            request_id=context.request_id,
            uid=context.receipt.attestation_id,
        )
        return context

    def timeout_error(self, context: PipelineContext) -> PipelineError:
        return ConfirmationTimeout(
            f"Inclusion not observed within {self.timeout_seconds}s",
            transaction_hash=context.transaction_hash,
        )
