"""Simulated progress reporting for running conversions."""

import asyncio
import logging
import random
from typing import Dict, Optional

from mp3_converter.models.job import Job
from mp3_converter.services.registry import JobRegistry
from mp3_converter.utils.errors import JobNotFoundError
from mp3_converter.utils.tasks import cancel_all, spawn

logger = logging.getLogger(__name__)


class ProgressSimulator:
    """
    Advances a job's displayed progress while it is processing.

    yt-dlp gives no usable progress signal for the whole
    download-and-transcode run, so each job gets a ticker that creeps towards
    ``ceiling``. Only the orchestrator moves a job past the ceiling, when the
    conversion has actually finished.
    """

    def __init__(
        self,
        registry: JobRegistry,
        interval: float = 1.0,
        initial: int = 5,
        ceiling: int = 90,
        max_step: float = 5.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.registry = registry
        self.interval = interval
        self.initial = initial
        self.ceiling = ceiling
        self.max_step = max_step
        self._rng = rng or random.Random()
        self._tasks: Dict[str, asyncio.Task] = {}
        self._task_set: set[asyncio.Task] = set()
        self._levels: Dict[str, float] = {}

    def start(self, job_id: str) -> asyncio.Task:
        """Set the initial progress and start ticking for a job."""
        self._cancel(job_id)
        self.registry.mutate(job_id, lambda job: job.advance_progress(self.initial))
        self._levels[job_id] = float(self.initial)
        task = spawn(self._run(job_id), self._task_set, name=f"progress-{job_id}")
        self._tasks[job_id] = task
        return task

    def stop(self, job_id: str) -> bool:
        """Cancel the ticker for a job. Returns False if none was running."""
        return self._cancel(job_id)

    def _cancel(self, job_id: str) -> bool:
        self._levels.pop(job_id, None)
        task = self._tasks.pop(job_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    def is_running(self, job_id: str) -> bool:
        return job_id in self._tasks

    def tick(self, job_id: str) -> bool:
        """
        Advance the job's progress once.

        Returns:
            False once the job is terminal or gone and ticking should stop
        """
        keep_going = True

        def advance(job: Job) -> None:
            nonlocal keep_going
            if job.is_terminal:
                keep_going = False
                return
            if job.progress >= self.ceiling:
                return
            level = max(self._levels.get(job_id, 0.0), float(job.progress))
            level = min(float(self.ceiling), level + self._rng.uniform(0, self.max_step))
            self._levels[job_id] = level
            job.advance_progress(int(level))

        try:
            self.registry.mutate(job_id, advance)
        except JobNotFoundError:
            return False
        return keep_going

    async def _run(self, job_id: str) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                if not self.tick(job_id):
                    logger.debug(f"Progress ticker for job {job_id} finished")
                    break
        finally:
            if self._tasks.get(job_id) is asyncio.current_task():
                del self._tasks[job_id]
                self._levels.pop(job_id, None)

    async def shutdown(self) -> None:
        """Cancel every running ticker."""
        self._tasks.clear()
        self._levels.clear()
        await cancel_all(self._task_set)
