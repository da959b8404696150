"""FastAPI application for the MP3 converter."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from mp3_converter.api.routes import (
    converter_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    router,
    validation_exception_handler,
)
from mp3_converter.config import Settings, get_settings
from mp3_converter.services.downloads import DownloadFinalizer
from mp3_converter.services.extractor import ExtractionProvider, create_extraction_provider
from mp3_converter.services.orchestrator import ConversionOrchestrator
from mp3_converter.services.progress import ProgressSimulator
from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.retention import RetentionSweeper
from mp3_converter.services.storage import ArtifactStore
from mp3_converter.utils.errors import ConverterError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)-8s - %(name)-25s - %(message)s",
    )

    app.state.store.ensure_directory()
    app.state.sweeper.start()
    logger.info(f"Downloads directory: {app.state.store.directory.resolve()}")

    try:
        yield
    finally:
        await app.state.sweeper.stop()
        await app.state.simulator.shutdown()
        await app.state.orchestrator.shutdown()
        await app.state.finalizer.shutdown()
        logger.info("Background tasks stopped")


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[ExtractionProvider] = None,
) -> FastAPI:
    """
    Build the application and its job-lifecycle components.

    Args:
        settings: Settings to use (defaults to the environment)
        provider: Extraction provider (defaults to yt-dlp)

    Returns:
        Configured FastAPI app; components are reachable on ``app.state``
    """
    settings = settings or get_settings()
    provider = provider or create_extraction_provider(settings)

    registry = JobRegistry()
    store = ArtifactStore(settings.downloads_dir)
    simulator = ProgressSimulator(
        registry,
        interval=settings.progress_interval_seconds,
        initial=settings.progress_initial,
        ceiling=settings.progress_ceiling,
        max_step=settings.progress_max_step,
    )

    app = FastAPI(title="MP3 Converter API", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.store = store
    app.state.simulator = simulator
    app.state.orchestrator = ConversionOrchestrator(
        registry,
        provider,
        simulator,
        store,
        default_quality=settings.default_quality,
        metadata_progress=settings.metadata_progress,
    )
    app.state.finalizer = DownloadFinalizer(
        registry, store, grace_period=settings.download_grace_seconds
    )
    app.state.sweeper = RetentionSweeper(
        registry,
        store,
        max_age=settings.retention_max_age_seconds,
        interval=settings.sweep_interval_seconds,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ConverterError, converter_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(router)

    # Mount frontend files - MUST be last as it catches all routes
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="frontend")

    return app


app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("mp3_converter.main:app", host=settings.host, port=settings.port)
