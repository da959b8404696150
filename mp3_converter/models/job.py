"""Conversion job Pydantic models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from mp3_converter.utils.errors import JobStateError

PLACEHOLDER_TITLE = "Unknown Title"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobState(str, Enum):
    """
    Lifecycle states of a conversion job.

    PROCESSING -> COMPLETED on a successful extraction,
    PROCESSING -> ERROR on any provider failure. Both are terminal.
    """

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class Job(BaseModel):
    """Tracked state of a single conversion request."""

    id: str = Field(min_length=1)
    status: JobState = JobState.PROCESSING
    title: str = PLACEHOLDER_TITLE
    quality: str
    progress: int = Field(default=0, ge=0, le=100)
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status != JobState.PROCESSING

    def _require_processing(self, action: str) -> None:
        if self.is_terminal:
            raise JobStateError(f"Cannot {action} job {self.id}: already {self.status.value}")

    def advance_progress(self, value: int) -> None:
        """Raise progress to ``value``; lower values are ignored."""
        self._require_processing("update progress of")
        if value > self.progress:
            self.progress = min(value, 100)
            self.updated_at = utc_now()

    def record_metadata(self, title: str, progress: int) -> None:
        """Store the cleaned title once metadata has been retrieved."""
        self._require_processing("set title of")
        if title:
            self.title = title
        self.advance_progress(progress)

    def complete(self) -> None:
        self._require_processing("complete")
        self.status = JobState.COMPLETED
        self.progress = 100
        self.updated_at = utc_now()

    def fail(self, message: str) -> None:
        self._require_processing("fail")
        self.status = JobState.ERROR
        self.error = message
        self.updated_at = utc_now()


class JobStatusResponse(BaseModel):
    """Client-facing view of a job (no internal bookkeeping)."""

    id: str
    status: JobState
    title: str
    quality: str
    progress: int
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            id=job.id,
            status=job.status,
            title=job.title,
            quality=job.quality,
            progress=job.progress,
            error=job.error,
        )
