"""Conversion orchestrator: drives a job from submission to a terminal state."""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Union
from uuid import uuid4

from mp3_converter.models.job import Job
from mp3_converter.services.extractor import ExtractionProvider
from mp3_converter.services.progress import ProgressSimulator
from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.storage import ArtifactStore
from mp3_converter.utils.errors import ConverterError, InvalidURLError
from mp3_converter.utils.tasks import cancel_all, spawn
from mp3_converter.utils.urls import is_supported_url, sanitize_title

logger = logging.getLogger(__name__)


def new_job_id() -> str:
    return f"job-{uuid4().hex[:12]}"


class ConversionOrchestrator:
    """
    Accepts conversion requests and runs each one as a background workflow.

    A workflow fetches metadata, then extracts audio, then records the
    outcome. Every failure on the way ends in the same place: the job is
    marked ``error`` and its partial files are removed.
    """

    def __init__(
        self,
        registry: JobRegistry,
        provider: ExtractionProvider,
        simulator: ProgressSimulator,
        store: ArtifactStore,
        default_quality: str = "5",
        metadata_progress: int = 20,
    ) -> None:
        self.registry = registry
        self.provider = provider
        self.simulator = simulator
        self.store = store
        self.default_quality = default_quality
        self.metadata_progress = metadata_progress
        self._tasks: set[asyncio.Task] = set()

    @staticmethod
    def validate_url(url: Optional[str]) -> str:
        if not is_supported_url(url):
            raise InvalidURLError()
        return url  # type: ignore[return-value]

    def submit(self, url: Optional[str], quality: Optional[Union[str, int]] = None) -> Job:
        """
        Register a job for the URL and start converting it in the background.

        Must be called from a running event loop. Returns without waiting for
        the provider.

        Raises:
            InvalidURLError: If the URL is not a supported video URL
        """
        url = self.validate_url(url)
        quality_hint = str(quality) if quality not in (None, "") else self.default_quality

        job = self.registry.create(new_job_id(), quality=quality_hint)
        spawn(self.run(job.id, url, quality_hint), self._tasks, name=f"convert-{job.id}")
        logger.info(f"Accepted conversion job {job.id} for {url}")
        return job

    async def run(self, job_id: str, url: str, quality: str) -> None:
        """Run the whole conversion workflow for one job."""
        logger.info(f"Starting conversion for job {job_id}")
        self.simulator.start(job_id)

        try:
            await self._convert(job_id, url, quality)
        except asyncio.CancelledError:
            self.simulator.stop(job_id)
            raise
        except Exception as e:
            logger.error(f"Conversion failed for job {job_id}: {e}")
            self.simulator.stop(job_id)
            self._finish(job_id, lambda job: job.fail(str(e) or type(e).__name__))
            removed = await self.store.remove(job_id)
            if removed:
                logger.info(f"Cleaned up {removed} partial file(s) for job {job_id}")
        else:
            self.simulator.stop(job_id)
            self._finish(job_id, lambda job: job.complete())
            logger.info(f"Conversion completed for job {job_id}")

    async def _convert(self, job_id: str, url: str, quality: str) -> None:
        info = await self.provider.fetch_info(url)
        title = info.get("title") if isinstance(info, dict) else None
        clean_title = sanitize_title(title) if isinstance(title, str) else ""
        self.registry.mutate(
            job_id, lambda job: job.record_metadata(clean_title, self.metadata_progress)
        )

        await self.provider.extract_audio(url, quality, self.store.path_for(job_id))

    def _finish(self, job_id: str, transition: Callable[[Job], None]) -> None:
        try:
            self.registry.mutate(job_id, transition)
        except ConverterError as e:
            # Job was reclaimed (or already terminal) while the provider was busy.
            logger.warning(f"Could not record outcome for job {job_id}: {e}")

    async def video_info(self, url: Optional[str]) -> Dict[str, Any]:
        """
        Fetch raw video metadata without creating a job.

        Raises:
            InvalidURLError: If the URL is not a supported video URL
            ProviderError: If the provider fails
        """
        return await self.provider.fetch_info(self.validate_url(url))

    def pending_jobs(self) -> int:
        """Number of workflows still running."""
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel running workflows and wait for them to unwind."""
        await cancel_all(self._tasks)
