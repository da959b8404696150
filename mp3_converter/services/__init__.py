"""Service layer for the MP3 converter."""

from mp3_converter.services.downloads import DownloadFinalizer
from mp3_converter.services.extractor import (
    ExtractionProvider,
    YtDlpProvider,
    create_extraction_provider,
)
from mp3_converter.services.orchestrator import ConversionOrchestrator
from mp3_converter.services.progress import ProgressSimulator
from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.retention import RetentionSweeper
from mp3_converter.services.storage import ArtifactStore

__all__ = [
    "ArtifactStore",
    "ConversionOrchestrator",
    "DownloadFinalizer",
    "ExtractionProvider",
    "JobRegistry",
    "ProgressSimulator",
    "RetentionSweeper",
    "YtDlpProvider",
    "create_extraction_provider",
]
