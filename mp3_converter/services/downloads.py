"""Download finalizer: serves finished artifacts and reclaims them afterwards."""

import asyncio
import logging
from pathlib import Path
from typing import Tuple

from mp3_converter.models.job import JobState
from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.storage import ArtifactStore
from mp3_converter.utils.errors import ArtifactNotFoundError
from mp3_converter.utils.tasks import cancel_all, spawn

logger = logging.getLogger(__name__)


class DownloadFinalizer:
    """Resolves downloadable artifacts and deletes them a grace period after transfer."""

    def __init__(self, registry: JobRegistry, store: ArtifactStore, grace_period: float = 30.0) -> None:
        self.registry = registry
        self.store = store
        self.grace_period = grace_period
        self._pending: set[asyncio.Task] = set()

    def resolve(self, job_id: str) -> Tuple[Path, str]:
        """
        Find the artifact for a completed job.

        Returns:
            (artifact path, download filename)

        Raises:
            JobNotFoundError: If the job is unknown
            ArtifactNotFoundError: If the job is not completed or its file is missing
        """
        job = self.registry.get(job_id)
        if job.status != JobState.COMPLETED:
            raise ArtifactNotFoundError("File not ready or not found")

        path = self.store.path_for(job_id)
        if not path.is_file():
            logger.warning(f"Job {job_id} is completed but {path} is missing")
            raise ArtifactNotFoundError("File not found")

        return path, f"{job.title}.mp3"

    def schedule_cleanup(self, job_id: str) -> asyncio.Task:
        """Delete the job's artifact and record once the grace period has passed."""
        return spawn(self._cleanup_later(job_id), self._pending, name=f"cleanup-{job_id}")

    async def _cleanup_later(self, job_id: str) -> None:
        await asyncio.sleep(self.grace_period)
        await self.store.remove(job_id)
        self.registry.delete(job_id)
        logger.info(f"Finalized download for job {job_id}")

    def pending_cleanups(self) -> int:
        return len(self._pending)

    async def shutdown(self) -> None:
        await cancel_all(self._pending)
