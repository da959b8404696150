"""In-memory job registry shared by the API, the orchestrator and the cleanup tasks."""

import logging
import threading
from typing import Any, Callable, Dict, List

from mp3_converter.models.job import Job
from mp3_converter.utils.errors import DuplicateJobError, JobNotFoundError

logger = logging.getLogger(__name__)


class JobRegistry:
    """
    Concurrency-safe store of jobs keyed by id.

    Callers only ever receive copies; the stored jobs are changed through
    ``mutate``, which applies an update under the registry lock. The registry
    lives as long as the process and is never persisted.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self, job_id: str, **fields: Any) -> Job:
        """
        Register a new job.

        Args:
            job_id: Unique job id
            **fields: Remaining Job fields (quality, title, ...)

        Returns:
            Snapshot of the stored job

        Raises:
            DuplicateJobError: If the id is already registered
        """
        job = Job(id=job_id, **fields)
        with self._lock:
            if job_id in self._jobs:
                raise DuplicateJobError(job_id)
            self._jobs[job_id] = job
            return job.model_copy(deep=True)

    def get(self, job_id: str) -> Job:
        """Return a snapshot of the job, or raise JobNotFoundError."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            return job.model_copy(deep=True)

    def mutate(self, job_id: str, fn: Callable[[Job], Any]) -> Job:
        """
        Apply ``fn`` to the job atomically.

        ``fn`` works on a working copy that replaces the stored job only if
        it returns without raising, so a rejected update leaves no trace.

        Returns:
            Snapshot of the updated job

        Raises:
            JobNotFoundError: If the job does not exist
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)
            updated = current.model_copy(deep=True)
            fn(updated)
            self._jobs[job_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, job_id: str) -> bool:
        """Remove the job; returns False if it was already gone."""
        with self._lock:
            removed = self._jobs.pop(job_id, None) is not None
        if removed:
            logger.debug(f"Removed job {job_id} from registry")
        return removed

    def list_all(self) -> List[Job]:
        """Snapshots of every registered job, in no particular order."""
        with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
