"""FastAPI dependencies for the MP3 converter API."""

from fastapi import Request

from mp3_converter.services.downloads import DownloadFinalizer
from mp3_converter.services.orchestrator import ConversionOrchestrator
from mp3_converter.services.registry import JobRegistry


def get_registry(request: Request) -> JobRegistry:
    return request.app.state.registry


def get_orchestrator(request: Request) -> ConversionOrchestrator:
    return request.app.state.orchestrator


def get_finalizer(request: Request) -> DownloadFinalizer:
    return request.app.state.finalizer
