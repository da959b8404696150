"""Pydantic data models for the MP3 converter."""

from mp3_converter.models.job import PLACEHOLDER_TITLE, Job, JobState, JobStatusResponse

__all__ = [
    "Job",
    "JobState",
    "JobStatusResponse",
    "PLACEHOLDER_TITLE",
]
