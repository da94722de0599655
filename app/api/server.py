import asyncio
import base64
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.responses import error_response, outcome_response
from app.api.validation import parse_coordinates, validate_image, validate_recipient
from app.config.settings import Settings
from app.extraction.parser import parse_event_text
from app.logging.logger import Log
from app.processor.exceptions import (
    InferenceTimeout,
    PipelineError,
    ValidationError,
)
from app.processor.models import UploadRequest
from app.processor.processor import Collaborators, Processor, build_processor, parser_defaults
from app.processor.staging import StagingArea

_TRANSACTION_HASH = re.compile(r"^0x[0-9a-fA-F]{64}$")


def create_app(
    settings: Settings | None = None,
    collaborators: Collaborators | None = None,
) -> FastAPI:
    """Build the HTTP app; collaborators are created once per process."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = collaborators is None
        services = collaborators or Collaborators.from_settings(settings)
        staging = StagingArea(Path(settings.upload_dir))
        app.state.collaborators = services
        app.state.staging = staging
        app.state.processor = build_processor(settings, services, staging)
        Log.info("Attestation service started", env=settings.app_env)
        try:
            yield
        finally:
            if owned:
                await services.aclose()
            Log.info("Attestation service stopped")

    app = FastAPI(title="Event Attestation API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/upload-image")
    async def upload_image(
        request: Request,
        image: UploadFile | None = File(None),
        location_coordinates: str | None = Form(None),
        recipient: str | None = Form(None),
    ) -> JSONResponse:
        if image is None:
            return error_response(ValidationError("No file uploaded."))
        content = await image.read(settings.max_upload_bytes + 1)
        file_name = image.filename or "upload"
        try:
            validate_image(content, settings.max_upload_bytes)
            coordinates = parse_coordinates(location_coordinates)
            recipient_address = validate_recipient(recipient)
        except ValidationError as exc:
            Log.warning(f"Rejected upload: {exc}", file=file_name)
            return error_response(exc)

        staging: StagingArea = request.app.state.staging
        processor: Processor = request.app.state.processor
        upload = UploadRequest(
            staged_path=staging.stage(content, file_name),
            original_file_name=file_name,
            coordinates=coordinates,
            recipient_address=recipient_address,
            content_type=image.content_type,
        )
        outcome = await processor.process(upload, is_cancelled=request.is_disconnected)
        return outcome_response(outcome)

    @app.post("/process-image")
    async def process_image(
        request: Request,
        image: UploadFile | None = File(None),
    ) -> JSONResponse:
        if image is None:
            return JSONResponse(status_code=400, content={"error": "No image file uploaded."})
        content = await image.read(settings.max_upload_bytes + 1)
        try:
            validate_image(content, settings.max_upload_bytes)
        except ValidationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})

        services: Collaborators = request.app.state.collaborators
        mime_type = image.content_type or "image/jpeg"
        data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        try:
            description = await asyncio.wait_for(
                services.extractor.describe(data_url),
                timeout=settings.description_timeout_seconds,
            )
        except asyncio.TimeoutError:
            return _describe_failure(InferenceTimeout("Description timed out"))
        except PipelineError as exc:
            return _describe_failure(exc)

        record = parse_event_text(description, defaults=parser_defaults(settings))
        return JSONResponse(
            status_code=200,
            content={
                "event_name": record.event_name,
                "event_description": record.event_description,
                "description": description.strip(),
            },
        )

    @app.get("/submissions/{transaction_hash}")
    async def submission_status(request: Request, transaction_hash: str) -> JSONResponse:
        if not _TRANSACTION_HASH.match(transaction_hash):
            return error_response(
                ValidationError("transaction hash must be 0x followed by 64 hex digits.")
            )
        services: Collaborators = request.app.state.collaborators
        try:
            status = await services.submitter.lookup(transaction_hash)
        except PipelineError as exc:
            return error_response(exc)
        return JSONResponse(
            status_code=200,
            content={
                "transactionHash": status.transaction_hash,
                "status": status.status,
                "attestationId": status.attestation_id,
            },
        )

    return app


def _describe_failure(error: PipelineError) -> JSONResponse:
    Log.error(f"Image description failed: {error}")
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to process image", "details": str(error)},
    )
