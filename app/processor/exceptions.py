class PipelineError(Exception):
    """Base exception for every failure the attestation pipeline can report."""

    kind: str = "internal"
    retryable: bool = False

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class ValidationError(PipelineError):
    """Raised when caller input is missing or malformed."""

    kind = "validation"


class PipelineCancelled(PipelineError):
    """Raised when the caller disconnected before the ledger stage began."""

    kind = "cancelled"


class UpstreamUnavailable(PipelineError):
    """Raised on transient transport or auth failures in a collaborator."""

    kind = "upstream_unavailable"
    retryable = True


class UpstreamRejected(PipelineError):
    """Raised when a collaborator permanently refused the request."""

    kind = "upstream_rejected"


class StorageUnavailable(UpstreamUnavailable):
    """Raised when the content store cannot be reached or refuses credentials."""


class StorageRejected(UpstreamRejected):
    """Raised when the content store rejects the blob itself."""


class InferenceUnavailable(UpstreamUnavailable):
    """Raised when the inference provider cannot be reached or refuses credentials."""


class InferenceTimeout(UpstreamUnavailable):
    """Raised when the inference provider does not answer in time."""


class InferenceRejected(UpstreamRejected):
    """Raised on content-policy refusals or malformed inference requests."""


class SchemaMismatch(PipelineError):
    """Raised when a record does not fit the published schema layout."""

    kind = "schema_mismatch"


class SigningUnavailable(UpstreamUnavailable):
    """Raised when the ledger signing credential is missing or invalid."""


class LedgerUnavailable(UpstreamUnavailable):
    """Raised when the ledger node cannot be reached before broadcast."""


class SubmissionRejected(UpstreamRejected):
    """Raised when the ledger refuses or reverts the attestation transaction."""


class AmbiguousSubmission(PipelineError):
    """Raised when a transaction was broadcast but its inclusion is unknown.

    The transaction may still be included later. Callers must look it up by
    ``transaction_hash`` before submitting again.
    """

    kind = "ambiguous_submission"

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        transaction_hash: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.transaction_hash = transaction_hash


class ConfirmationTimeout(AmbiguousSubmission):
    """Raised when inclusion was not observed within the confirmation bound."""
