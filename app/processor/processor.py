import asyncio
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from app.config.settings import Settings
from app.description.base import BaseDescriptionExtractor
from app.description.factory import DescriptionExtractorFactory
from app.extraction.parser import EventRecordDefaults
from app.ledger.base import BaseAttestationSubmitter
from app.ledger.factory import AttestationSubmitterFactory
from app.logging.logger import Log
from app.processor.exceptions import (
    AmbiguousSubmission,
    PipelineCancelled,
    PipelineError,
    SubmissionRejected,
)
from app.processor.models import PipelineOutcome, PipelineState, UploadRequest
from app.processor.pipeline import PipelineContext, PipelineStep
from app.processor.staging import StagingArea
from app.processor.steps import (
    ConfirmStep,
    DescribeStep,
    EncodeStep,
    ParseStep,
    StoreContentStep,
    SubmitStep,
)
from app.schema.encoder import SchemaEncoder
from app.storage.base import BaseContentStore
from app.storage.factory import ContentStoreFactory

CancellationCheck = Callable[[], Awaitable[bool]]


class Processor:
    """Runs the attestation pipeline for one request at a time.

    Pipeline: store -> describe -> parse -> encode -> submit -> confirm.
    The staged upload is released exactly once when the run ends, whatever
    the outcome.
    """

    def __init__(self, steps: list[PipelineStep], staging: StagingArea) -> None:
        self._steps = steps
        self._staging = staging

    async def process(
        self,
        request: UploadRequest,
        is_cancelled: CancellationCheck | None = None,
        request_id: str | None = None,
    ) -> PipelineOutcome:
        """Run every stage in order and return the terminal outcome."""
        context = PipelineContext(request_id=request_id or uuid.uuid4().hex, request=request)
        Log.info(
            f"Received {request.original_file_name}",
            request_id=context.request_id,
            recipient=request.recipient_address,
        )
        error: PipelineError | None = None
        step: PipelineStep | None = None
        try:
            for step in self._steps:
                if step.cancellable and is_cancelled is not None and await is_cancelled():
                    raise PipelineCancelled(f"Client disconnected before {step.name}")
                await self._run_step(step, context)
                context.advance(step.target_state)
                Log.info(f"Pipeline reached {step.target_state.value}", request_id=context.request_id)
        except PipelineError as exc:
            error = self._classify(exc, context)
        except Exception as exc:
            Log.exception("Unexpected pipeline failure", request_id=context.request_id)
            internal = PipelineError(f"Unexpected failure: {exc}")
            internal.__cause__ = exc
            error = self._classify(internal, context)
        finally:
            self._release(context)

        if error is None:
            return self._outcome(context)
        error.stage = error.stage or (step.name if step is not None else None)
        context.advance(PipelineState.FAILED)
        self._log_failure(context, error)
        return self._outcome(context, error)

    @staticmethod
    async def _run_step(step: PipelineStep, context: PipelineContext) -> None:
        if step.timeout_seconds is None:
            await step.run(context)
            return
        try:
            await asyncio.wait_for(step.run(context), timeout=step.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise step.timeout_error(context) from exc

    @staticmethod
    def _classify(error: PipelineError, context: PipelineContext) -> PipelineError:
        """Failures after a transaction was signed for broadcast are ambiguous unless rejected."""
        if context.transaction_hash is None:
            return error
        if isinstance(error, (AmbiguousSubmission, SubmissionRejected)):
            return error
        ambiguous = AmbiguousSubmission(
            f"Submission state unknown after broadcast: {error}",
            stage=error.stage,
            transaction_hash=context.transaction_hash,
        )
        ambiguous.__cause__ = error
        return ambiguous

    def _release(self, context: PipelineContext) -> None:
        if context.upload_released:
            return
        context.upload_released = True
        try:
            self._staging.release(context.request.staged_path)
        except OSError:
            # Cleanup errors never replace the run outcome.
            Log.exception(
                "Failed to release staged upload",
                request_id=context.request_id,
                path=context.request.staged_path,
            )

    @staticmethod
    def _log_failure(context: PipelineContext, error: PipelineError) -> None:
        if isinstance(error, AmbiguousSubmission):
            Log.warning(
                f"Submission ambiguous at {error.stage}: {error}",
                request_id=context.request_id,
                tx=error.transaction_hash,
            )
            return
        Log.error(
            f"Pipeline failed at {error.stage}: {error}",
            request_id=context.request_id,
            kind=error.kind,
        )

    @staticmethod
    def _outcome(context: PipelineContext, error: PipelineError | None = None) -> PipelineOutcome:
        return PipelineOutcome(
            request_id=context.request_id,
            state=context.state,
            stored=context.stored,
            event_record=context.event_record,
            receipt=context.receipt,
            failed_stage=error.stage if error is not None else None,
            error=error,
            history=list(context.history),
        )


@dataclass
class Collaborators:
    """Process-wide clients shared by every request."""

    content_store: BaseContentStore
    extractor: BaseDescriptionExtractor
    submitter: BaseAttestationSubmitter
    encoder: SchemaEncoder

    @classmethod
    def from_settings(cls, settings: Settings) -> "Collaborators":
        return cls(
            content_store=ContentStoreFactory.create(settings),
            extractor=DescriptionExtractorFactory.create(settings),
            submitter=AttestationSubmitterFactory.create(settings),
            encoder=SchemaEncoder(
                settings.eas_schema,
                settings.eas_schema_uid,
                resolver=settings.eas_schema_resolver,
                revocable=settings.eas_schema_revocable,
            ),
        )

    async def aclose(self) -> None:
        await self.content_store.aclose()
        await self.extractor.aclose()
        await self.submitter.aclose()


def parser_defaults(settings: Settings) -> EventRecordDefaults:
    return EventRecordDefaults(
        event_name=settings.default_event_name,
        event_description=settings.default_event_description,
        occasion=settings.default_occasion,
        memory_description=settings.memory_description,
    )


def build_processor(
    settings: Settings,
    collaborators: Collaborators,
    staging: StagingArea | None = None,
) -> Processor:
    """Build a Processor wired to already-constructed collaborators."""
    staging = staging or StagingArea(Path(settings.upload_dir))
    ledger_args = {
        "submitter": collaborators.submitter,
        "encoder": collaborators.encoder,
        "revocable": settings.attestation_revocable,
        "expiration": settings.attestation_expiration or None,
    }
    steps: list[PipelineStep] = [
        StoreContentStep(
            collaborators.content_store,
            staging,
            timeout_seconds=settings.storage_timeout_seconds,
        ),
        DescribeStep(
            collaborators.extractor,
            timeout_seconds=settings.description_timeout_seconds,
        ),
        ParseStep(parser_defaults(settings)),
        EncodeStep(collaborators.encoder),
        SubmitStep(timeout_seconds=settings.ledger_broadcast_timeout_seconds, **ledger_args),
        ConfirmStep(
            # The submitter bounds its own wait; this is the outer backstop.
            timeout_seconds=settings.ledger_confirmation_timeout_seconds
            + settings.ledger_poll_interval_seconds * 2,
            **ledger_args,
        ),
    ]
    return Processor(steps=steps, staging=staging)
