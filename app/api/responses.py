from typing import Any

from fastapi.responses import JSONResponse

from app.processor.exceptions import (
    AmbiguousSubmission,
    PipelineError,
    ValidationError,
)
from app.processor.models import PipelineOutcome

SUCCESS_MESSAGE = "Image uploaded, pinned, described, and attested successfully."


def status_code_for(error: PipelineError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, AmbiguousSubmission):
        return 504
    return 500


def error_response(error: PipelineError, **extra: Any) -> JSONResponse:
    content: dict[str, Any] = {
        "success": False,
        "error": str(error),
        "errorType": error.kind,
        "stage": error.stage,
        "retryable": error.retryable,
    }
    if isinstance(error, AmbiguousSubmission):
        content["transactionHash"] = error.transaction_hash
    content.update(extra)
    return JSONResponse(status_code=status_code_for(error), content=content)


def outcome_response(outcome: PipelineOutcome) -> JSONResponse:
    storage_url = outcome.stored.retrieval_url if outcome.stored is not None else None
    if outcome.error is not None:
        return error_response(
            outcome.error, storageUrl=storage_url, requestId=outcome.request_id
        )
    if outcome.stored is None or outcome.event_record is None or outcome.receipt is None:
        raise ValueError("A successful outcome must carry storage, record and receipt")
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "message": SUCCESS_MESSAGE,
            "requestId": outcome.request_id,
            "storageUrl": storage_url,
            "contentId": outcome.stored.content_id,
            "eventRecord": outcome.event_record.to_dict(),
            "attestationId": outcome.receipt.attestation_id,
            "transactionHash": outcome.receipt.transaction_hash,
        },
    )
