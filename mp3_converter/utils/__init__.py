"""Utility modules for the MP3 converter."""

from mp3_converter.utils.errors import (
    ArtifactNotFoundError,
    ConverterError,
    DuplicateJobError,
    InvalidURLError,
    JobNotFoundError,
    JobStateError,
    NotFoundError,
    ProviderError,
    YtDlpError,
)
from mp3_converter.utils.retry import with_retry
from mp3_converter.utils.urls import is_supported_url, sanitize_title

__all__ = [
    "ConverterError",
    "InvalidURLError",
    "NotFoundError",
    "JobNotFoundError",
    "ArtifactNotFoundError",
    "DuplicateJobError",
    "JobStateError",
    "ProviderError",
    "YtDlpError",
    "with_retry",
    "is_supported_url",
    "sanitize_title",
]
