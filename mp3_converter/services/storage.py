"""On-disk artifact storage for converted audio files."""

import asyncio
import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    Maps job ids to files in the downloads directory.

    Every file belonging to a job starts with ``{job_id}.``; the finished
    artifact is ``{job_id}.mp3``. Any component may delete a file at any time,
    so a file that is already gone is never treated as an error here.
    """

    def __init__(self, directory: Path, extension: str = "mp3") -> None:
        self.directory = Path(directory)
        self.extension = extension

    def ensure_directory(self) -> None:
        """Create the downloads directory if it does not exist yet."""
        if not self.directory.is_dir():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created downloads directory: {self.directory.resolve()}")

    def path_for(self, job_id: str) -> Path:
        """Path of the finished audio file for a job."""
        return self.directory / f"{job_id}.{self.extension}"

    @staticmethod
    def job_id_for(path: Path) -> str:
        """Job id a stored file belongs to (``job-1.webm.part`` -> ``job-1``)."""
        return path.name.split(".", 1)[0]

    async def list_files(self) -> List[Path]:
        """All regular files currently in the downloads directory."""
        if not await asyncio.to_thread(self.directory.is_dir):
            return []
        entries = await asyncio.to_thread(list, self.directory.iterdir())
        return [entry for entry in entries if await asyncio.to_thread(entry.is_file)]

    async def remove(self, job_id: str) -> int:
        """
        Delete the artifact and any leftovers for a job.

        Deletion problems are logged, never raised.

        Returns:
            Number of files deleted
        """
        candidates = {self.path_for(job_id)}
        try:
            candidates.update(await asyncio.to_thread(list, self.directory.glob(f"{job_id}.*")))
        except OSError as e:
            logger.error(f"Error listing files for job {job_id}: {e}")

        count = 0
        for path in candidates:
            try:
                await asyncio.to_thread(path.unlink)
                count += 1
                logger.info(f"Deleted file: {path}")
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Error deleting file {path}: {e}")
        return count
