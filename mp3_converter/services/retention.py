"""Periodic clean-up of stale artifacts and their job records."""

import asyncio
import logging
import time
from typing import Callable, Optional

from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.storage import ArtifactStore

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Deletes artifacts older than ``max_age`` seconds, whether or not they were downloaded."""

    def __init__(
        self,
        registry: JobRegistry,
        store: ArtifactStore,
        max_age: float = 3600.0,
        interval: float = 900.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.store = store
        self.max_age = max_age
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    async def sweep(self) -> int:
        """
        Run one pass over the downloads directory, then over the registry.

        Finished or failed jobs whose last update is older than ``max_age`` are
        dropped even when they left no file behind.

        Returns:
            Number of files deleted
        """
        logger.debug("Running scheduled cleanup...")
        now = self._clock()
        deleted_count = 0

        for path in await self.store.list_files():
            try:
                stats = await asyncio.to_thread(path.stat)
                if now - stats.st_mtime <= self.max_age:
                    continue
                await asyncio.to_thread(path.unlink)
                deleted_count += 1

                job_id = self.store.job_id_for(path)
                if self.registry.delete(job_id):
                    logger.info(f"Expired job {job_id}")
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Error processing file {path.name}: {e}")

        if deleted_count > 0:
            logger.info(f"Cleaned up {deleted_count} old files")

        self._expire_jobs(now)
        return deleted_count

    def _expire_jobs(self, now: float) -> int:
        expired = 0
        for job in self.registry.list_all():
            if not job.is_terminal or now - job.updated_at.timestamp() <= self.max_age:
                continue
            if self.registry.delete(job.id):
                expired += 1
                logger.info(f"Expired {job.status.value} job {job.id}")
        return expired

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Scheduled cleanup failed")

    def start(self) -> asyncio.Task:
        """Start sweeping every ``interval`` seconds."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="retention-sweeper")
            logger.info(
                f"Retention sweeper started (every {self.interval}s, max age {self.max_age}s)"
            )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
