"""FastAPI routes for the MP3 converter API."""

import logging
from typing import Any, Callable, Dict, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send

from mp3_converter.api.deps import get_finalizer, get_orchestrator, get_registry
from mp3_converter.models.job import JobStatusResponse
from mp3_converter.services.downloads import DownloadFinalizer
from mp3_converter.services.orchestrator import ConversionOrchestrator
from mp3_converter.services.registry import JobRegistry
from mp3_converter.utils.errors import (
    ConverterError,
    InvalidURLError,
    NotFoundError,
    ProviderError,
)

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api")


# ==================== Exception Handlers ====================


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies."""
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request body",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def converter_exception_handler(request: Request, exc: ConverterError) -> JSONResponse:
    """Handle application-specific errors."""
    if isinstance(exc, InvalidURLError):
        return JSONResponse(status_code=400, content={"error": str(exc)})
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    logger.error(f"Unhandled application error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with the same ``{error}`` body as everything else."""
    # Unknown paths and known paths with the wrong method are both unmatched routes
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ==================== Request/Response Models ====================


class ConvertRequest(BaseModel):
    """Request model for the convert endpoint."""

    url: Optional[str] = None
    quality: Optional[Union[str, int]] = None


class ConvertResponse(BaseModel):
    """Response model for the convert endpoint."""

    job_id: str = Field(serialization_alias="jobId")
    title: str


class VideoInfoRequest(BaseModel):
    """Request model for the videoinfo endpoint."""

    url: Optional[str] = None


class FinalizingFileResponse(FileResponse):
    """FileResponse that runs a callback once the transfer is over, even if it failed."""

    def __init__(self, path: Any, on_finish: Callable[[], Any], **kwargs: Any) -> None:
        super().__init__(path, **kwargs)
        self._on_finish = on_finish

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self._on_finish()


# ==================== Endpoints ====================


@router.post("/convert", response_model=ConvertResponse, status_code=202)
async def convert(
    request: ConvertRequest,
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
) -> ConvertResponse:
    """
    Start converting a video to MP3.

    Returns immediately with a job id; poll /api/status/{jobId} for progress.
    """
    try:
        job = orchestrator.submit(request.url, request.quality)
    except ConverterError:
        raise
    except Exception as e:
        logger.exception(f"Conversion error: {e}")
        raise HTTPException(status_code=500, detail="Failed to process video")

    return ConvertResponse(job_id=job.id, title="Processing...")


@router.get(
    "/status/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
)
async def get_status(
    job_id: str,
    registry: JobRegistry = Depends(get_registry),
) -> JobStatusResponse:
    """Get the current state of a conversion job."""
    return JobStatusResponse.from_job(registry.get(job_id))


@router.get("/download/{job_id}")
async def download(
    job_id: str,
    finalizer: DownloadFinalizer = Depends(get_finalizer),
) -> FileResponse:
    """
    Download the converted MP3 of a completed job.

    The file and the job are removed a short grace period after the transfer.
    """
    path, filename = finalizer.resolve(job_id)
    return FinalizingFileResponse(
        path,
        on_finish=lambda: finalizer.schedule_cleanup(job_id),
        filename=filename,
        media_type="audio/mpeg",
    )


@router.post("/videoinfo")
async def video_info(
    request: VideoInfoRequest,
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Return the provider's raw metadata for a video without converting it."""
    try:
        return await orchestrator.video_info(request.url)
    except ProviderError as e:
        logger.error(f"Video info error: {e}")
        return JSONResponse(  # type: ignore[return-value]
            status_code=500,
            content={"error": f"Failed to get video info: {e}"},
        )
