import json
import logging
import uuid
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from backend.applykit.config import Settings, get_settings, resolve_provider_config
from backend.applykit.core.errors import (
    GENERIC_UPSTREAM_MESSAGE,
    ConfigurationError,
    DocumentGenerationError,
    ProviderError,
    ValidationError,
)
from backend.applykit.core.validator import validate_candidate
from backend.applykit.models.schemas import ErrorResponse, GenerationResult
from backend.applykit.services.generation_service import DocumentGenerationService
from backend.applykit.utils.prometheus_metrics import record_error, record_validation_failure
from backend.applykit.utils.rate_limiter import api_rate_limit, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])

BODY_TOO_LARGE_MESSAGE = "Request body too large."


def get_generation_service(settings: Settings = Depends(get_settings)) -> DocumentGenerationService:
    return DocumentGenerationService(settings=settings)


def _error_response(status_code: int, message: str, request_id: str) -> JSONResponse:
    body = ErrorResponse(error=message, request_id=request_id)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def _parse_payload(body: bytes) -> Dict[str, Any]:
    # Anything that is not a JSON object validates as an empty form.
    if not body:
        return {}
    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        return {}
    return data if isinstance(data, dict) else {}


async def _read_limited_body(request: Request, limit: int) -> Optional[bytes]:
    """Request body, or None once it exceeds ``limit`` bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        return None

    # Chunked bodies carry no Content-Length.
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def classify_error(exc: Exception) -> Tuple[int, str, str]:
    """(status_code, log category, client message) for a pipeline failure."""
    if isinstance(exc, DocumentGenerationError):
        return exc.status_code, exc.category, exc.public_message
    return 502, "upstream", GENERIC_UPSTREAM_MESSAGE


@router.post(
    "/generate-documents",
    response_model=GenerationResult,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
@limiter.limit(api_rate_limit)
async def generate_documents(
    request: Request,
    settings: Settings = Depends(get_settings),
    service: DocumentGenerationService = Depends(get_generation_service),
):
    request_id = str(uuid.uuid4())

    body = await _read_limited_body(request, settings.max_body_bytes)
    if body is None:
        record_validation_failure("body_size")
        return _error_response(413, BODY_TOO_LARGE_MESSAGE, request_id)

    try:
        candidate = validate_candidate(_parse_payload(body))
    except ValidationError as e:
        record_validation_failure("input")
        logger.info(f"generate-documents rejected request_id={request_id}: {e}")
        return _error_response(e.status_code, e.public_message, request_id)

    try:
        provider_config = resolve_provider_config(settings)
        return await service.generate(candidate, provider_config, request_id=request_id)
    except Exception as e:
        status_code, category, message = classify_error(e)
        if isinstance(e, ConfigurationError):
            record_error(type(e).__name__, "provider_config")

        upstream_status = e.provider_status if isinstance(e, ProviderError) else None
        log = logger.error if isinstance(e, DocumentGenerationError) else logger.exception
        log(
            f"generate-documents failed request_id={request_id} category={category} "
            f"status={status_code} error={type(e).__name__} upstream_status={upstream_status}: {e}"
        )
        return _error_response(status_code, message, request_id)
