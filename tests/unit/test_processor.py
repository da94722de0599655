import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.description.example_client_adapter import ExampleVisionClientAdapter
from app.description.extractor import DescriptionExtractor
from app.extraction.parser import EventRecordDefaults
from app.ledger.example_submitter import ExampleAttestationSubmitter
from app.processor.exceptions import (
    AmbiguousSubmission,
    ConfirmationTimeout,
    InferenceRejected,
    InferenceTimeout,
    LedgerUnavailable,
    PipelineCancelled,
    PipelineError,
    SchemaMismatch,
    SigningUnavailable,
    StorageUnavailable,
    SubmissionRejected,
    UpstreamUnavailable,
)
from app.processor.models import PipelineState, UploadRequest
from app.processor.processor import Processor
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
from app.storage.example_adapter import ExampleContentStore
from tests.helpers import RECIPIENT, SCHEMA_LAYOUT, SCHEMA_UID


class _Pipeline:
    """Processor wired to in-memory collaborators plus spies for failure injection."""

    def __init__(self, tmp_path: Path, *, timeout_seconds: float = 5) -> None:
        self.staging = StagingArea(tmp_path / "uploads")
        self.release = MagicMock(wraps=self.staging.release)
        self.staging.release = self.release  # type: ignore[method-assign]
        self.store = ExampleContentStore()
        self.extractor = DescriptionExtractor(client=ExampleVisionClientAdapter(), model="m")
        self.submitter = ExampleAttestationSubmitter()
        self.encoder = SchemaEncoder(SCHEMA_LAYOUT, SCHEMA_UID)
        ledger_args = {
            "submitter": self.submitter,
            "encoder": self.encoder,
            "revocable": True,
            "expiration": None,
            "timeout_seconds": timeout_seconds,
        }
        self.steps = [
            StoreContentStep(self.store, self.staging, timeout_seconds=timeout_seconds),
            DescribeStep(self.extractor, timeout_seconds=timeout_seconds),
            ParseStep(EventRecordDefaults()),
            EncodeStep(self.encoder),
            SubmitStep(**ledger_args),
            ConfirmStep(**ledger_args),
        ]
        self.processor = Processor(steps=self.steps, staging=self.staging)

    def request(self, image: bytes = b"\x89PNG-bytes") -> UploadRequest:
        return UploadRequest(
            staged_path=self.staging.stage(image, "photo.png"),
            original_file_name="photo.png",
            coordinates=("12", "72"),
            recipient_address=RECIPIENT,
        )


async def _never_returns(*_args: object, **_kwargs: object) -> None:
    await asyncio.sleep(10)


class TestSuccessfulRun:
    def test_reaches_confirmed_through_every_state(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        outcome = asyncio.run(pipeline.processor.process(pipeline.request(), request_id="r1"))

        assert outcome.succeeded
        assert outcome.request_id == "r1"
        assert outcome.history == [
            PipelineState.RECEIVED,
            PipelineState.STORED,
            PipelineState.DESCRIBED,
            PipelineState.PARSED,
            PipelineState.ENCODED,
            PipelineState.SUBMITTED,
            PipelineState.CONFIRMED,
        ]
        assert outcome.error is None
        assert outcome.receipt is not None
        assert outcome.receipt.attestation_id.startswith("0x")

    def test_record_uses_extraction_text_and_caller_coordinates(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert outcome.event_record is not None
        assert outcome.event_record.event_name == "Community Meetup"
        assert outcome.event_record.location_coordinates == ("12", "72")

    def test_ledger_payload_decodes_to_event_record(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert outcome.receipt is not None
        assert pipeline.encoder.decode(outcome.receipt.payload) == outcome.event_record

    def test_stores_staged_bytes(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        outcome = asyncio.run(pipeline.processor.process(pipeline.request(b"exact-bytes")))

        assert outcome.stored is not None
        assert pipeline.store.blobs[outcome.stored.content_id] == b"exact-bytes"

    def test_releases_upload_once(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        request = pipeline.request()
        asyncio.run(pipeline.processor.process(request))

        pipeline.release.assert_called_once_with(request.staged_path)
        assert not request.staged_path.exists()


class TestStageFailures:
    @pytest.mark.parametrize(
        ("stage", "target", "error"),
        [
            ("store", "store", StorageUnavailable("connection refused")),
            ("describe", "extractor", InferenceRejected("content policy")),
            ("submit", "broadcast", SigningUnavailable("no key")),
            ("submit", "broadcast", SubmissionRejected("insufficient funds")),
        ],
    )
    def test_failure_is_reported_with_stage_and_upload_released(
        self,
        tmp_path: Path,
        stage: str,
        target: str,
        error: PipelineError,
    ) -> None:
        pipeline = _Pipeline(tmp_path)
        if target == "store":
            pipeline.store.store = AsyncMock(side_effect=error)  # type: ignore[method-assign]
        elif target == "extractor":
            pipeline.extractor.describe = AsyncMock(side_effect=error)  # type: ignore[method-assign]
        else:
            pipeline.submitter.broadcast = AsyncMock(side_effect=error)  # type: ignore[method-assign]
        request = pipeline.request()

        outcome = asyncio.run(pipeline.processor.process(request))

        assert outcome.state is PipelineState.FAILED
        assert outcome.error is error
        assert outcome.failed_stage == stage
        pipeline.release.assert_called_once_with(request.staged_path)
        assert not request.staged_path.exists()

    def test_storage_transport_error_is_retryable_unavailable(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.store.store = AsyncMock(side_effect=StorageUnavailable("reset"))  # type: ignore[method-assign]
        request = pipeline.request()

        outcome = asyncio.run(pipeline.processor.process(request))

        assert isinstance(outcome.error, UpstreamUnavailable)
        assert outcome.error.retryable is True
        assert not request.staged_path.exists()

    def test_later_stages_do_not_run_after_failure(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.extractor.describe = AsyncMock(side_effect=InferenceRejected("x"))  # type: ignore[method-assign]
        pipeline.submitter.broadcast = AsyncMock()  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        pipeline.submitter.broadcast.assert_not_called()
        assert outcome.history[-2] is PipelineState.STORED
        assert outcome.history[-1] is PipelineState.FAILED

    def test_schema_mismatch_fails_encode_stage(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.encoder.encode = MagicMock(side_effect=SchemaMismatch("bad"))  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, SchemaMismatch)
        assert outcome.failed_stage == "encode"

    def test_unexpected_exception_is_reported_not_swallowed(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.store.store = AsyncMock(side_effect=RuntimeError("boom"))  # type: ignore[method-assign]
        request = pipeline.request()

        outcome = asyncio.run(pipeline.processor.process(request))

        assert isinstance(outcome.error, PipelineError)
        assert "boom" in str(outcome.error)
        assert outcome.failed_stage == "store"
        assert isinstance(outcome.error.__cause__, RuntimeError)
        assert not request.staged_path.exists()

    def test_no_automatic_retry(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        store = AsyncMock(side_effect=StorageUnavailable("flaky"))
        pipeline.store.store = store  # type: ignore[method-assign]

        asyncio.run(pipeline.processor.process(pipeline.request()))

        assert store.await_count == 1


class TestTimeouts:
    def test_store_timeout_is_storage_unavailable(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path, timeout_seconds=0.01)
        pipeline.store.store = _never_returns  # type: ignore[method-assign]
        request = pipeline.request()

        outcome = asyncio.run(pipeline.processor.process(request))

        assert isinstance(outcome.error, StorageUnavailable)
        assert not request.staged_path.exists()

    def test_describe_timeout_is_inference_timeout(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path, timeout_seconds=0.01)
        pipeline.extractor.describe = _never_returns  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, InferenceTimeout)
        assert outcome.failed_stage == "describe"

    def test_confirmation_timeout_is_ambiguous_with_hash(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path, timeout_seconds=0.05)
        pipeline.submitter.wait_for_inclusion = _never_returns  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, ConfirmationTimeout)
        assert outcome.error.transaction_hash in pipeline.submitter.transactions
        assert outcome.failed_stage == "confirm"
        assert outcome.error.retryable is False

    def test_broadcast_timeout_before_signing_is_unavailable(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path, timeout_seconds=0.05)
        pipeline.submitter.broadcast = _never_returns  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, LedgerUnavailable)
        assert outcome.failed_stage == "submit"

    def test_broadcast_timeout_after_signing_is_ambiguous(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path, timeout_seconds=0.05)

        async def sign_then_hang(_submission: object, on_signed: object = None) -> str:
            assert callable(on_signed)
            on_signed("0x" + "ee" * 32)
            await asyncio.sleep(10)
            return "unreachable"

        pipeline.submitter.broadcast = sign_then_hang  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, AmbiguousSubmission)
        assert outcome.error.transaction_hash == "0x" + "ee" * 32


class TestAmbiguousSubmission:
    def test_confirmation_timeout_from_ledger_surfaces_distinctly(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.submitter.wait_for_inclusion = AsyncMock(  # type: ignore[method-assign]
            side_effect=ConfirmationTimeout("not seen", transaction_hash="0xabc")
        )

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, AmbiguousSubmission)
        assert not isinstance(outcome.error, SubmissionRejected)
        assert outcome.error.kind == "ambiguous_submission"

    def test_unavailable_after_broadcast_becomes_ambiguous(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.submitter.wait_for_inclusion = AsyncMock(  # type: ignore[method-assign]
            side_effect=LedgerUnavailable("node down")
        )

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, AmbiguousSubmission)
        assert outcome.error.transaction_hash in pipeline.submitter.transactions
        assert isinstance(outcome.error.__cause__, LedgerUnavailable)

    def test_revert_after_broadcast_stays_rejected(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.submitter.wait_for_inclusion = AsyncMock(  # type: ignore[method-assign]
            side_effect=SubmissionRejected("reverted")
        )

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, SubmissionRejected)


class TestCancellation:
    def test_disconnect_skips_remaining_stages_and_releases(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        checks = iter([False, True])

        async def is_cancelled() -> bool:
            return next(checks, True)

        request = pipeline.request()
        outcome = asyncio.run(pipeline.processor.process(request, is_cancelled=is_cancelled))

        assert isinstance(outcome.error, PipelineCancelled)
        assert outcome.failed_stage == "describe"
        assert pipeline.submitter.transactions == {}
        pipeline.release.assert_called_once_with(request.staged_path)

    def test_disconnect_after_broadcast_does_not_stop_confirmation(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)

        async def is_cancelled() -> bool:
            return bool(pipeline.submitter.transactions)

        outcome = asyncio.run(pipeline.processor.process(pipeline.request(), is_cancelled=is_cancelled))

        assert outcome.succeeded


class TestReleaseFailure:
    @staticmethod
    def _denied(_path: Path) -> bool:
        raise PermissionError("denied")

    def test_successful_outcome_survives_release_error(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        release = MagicMock(side_effect=self._denied)
        pipeline.staging.release = release  # type: ignore[method-assign]

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert outcome.succeeded
        assert outcome.receipt is not None
        release.assert_called_once()

    def test_ambiguous_outcome_survives_release_error(self, tmp_path: Path) -> None:
        pipeline = _Pipeline(tmp_path)
        pipeline.staging.release = MagicMock(side_effect=self._denied)  # type: ignore[method-assign]
        pipeline.submitter.wait_for_inclusion = AsyncMock(  # type: ignore[method-assign]
            side_effect=ConfirmationTimeout("not seen", transaction_hash="0xabc")
        )

        outcome = asyncio.run(pipeline.processor.process(pipeline.request()))

        assert isinstance(outcome.error, AmbiguousSubmission)
        assert outcome.error.transaction_hash == "0xabc"
        assert outcome.failed_stage == "confirm"
