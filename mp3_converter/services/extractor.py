"""Extraction provider: video metadata and audio extraction through yt-dlp."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

from mp3_converter.utils.errors import ProviderError, YtDlpError
from mp3_converter.utils.retry import with_retry

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class ExtractionProvider(Protocol):
    """Anything that can describe a video and turn it into an audio file."""

    async def fetch_info(self, url: str) -> Dict[str, Any]:
        """Return the video's metadata (at least a ``title``)."""
        ...

    async def extract_audio(self, url: str, quality: str, output_path: Path) -> None:
        """Write the video's audio track as MP3 to ``output_path`` or raise."""
        ...


class YtDlpProvider:
    """Runs the yt-dlp executable as a subprocess."""

    def __init__(
        self,
        executable: str = "yt-dlp",
        timeout: Optional[float] = None,
        max_attempts: int = 3,
        base_delay: float = 1.0,
    ) -> None:
        """
        Initialize the provider.

        Args:
            executable: Name or path of the yt-dlp binary
            timeout: Seconds before a yt-dlp run is killed (None waits forever)
            max_attempts: Attempts for metadata retrieval
            base_delay: Base backoff delay between metadata attempts
        """
        self.executable = executable
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def _common_args(self) -> List[str]:
        return [
            "--no-playlist",
            "--no-warnings",
            "--no-check-certificates",
            "--add-header",
            "referer:youtube.com",
            "--add-header",
            f"user-agent:{USER_AGENT}",
        ]

    def build_info_command(self, url: str) -> List[str]:
        return [self.executable, "--dump-json", *self._common_args(), url]

    def build_extract_command(self, url: str, quality: str, output_template: str) -> List[str]:
        return [
            self.executable,
            "-x",
            "--audio-format",
            "mp3",
            "--audio-quality",
            str(quality),
            "-o",
            output_template,
            *self._common_args(),
            url,
        ]

    @staticmethod
    def parse_error(stderr: str) -> str:
        """
        Pull a concise error message out of yt-dlp's stderr.

        Returns:
            The first ``ERROR:`` line (truncated), or the last line as a fallback
        """
        if not stderr.strip():
            return "yt-dlp returned an error with no output."

        for line in stderr.strip().splitlines():
            if line.lower().startswith("error:"):
                error_msg = line[6:].strip()
                return error_msg[:200] + "..." if len(error_msg) > 200 else error_msg

        return stderr.strip().splitlines()[-1]

    async def _run(self, command: List[str]) -> Tuple[str, str]:
        """Run yt-dlp and return (stdout, stderr), raising YtDlpError on failure."""
        logger.debug(f"Running: {' '.join(command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise YtDlpError(127, f"yt-dlp executable not found: {self.executable}")
        except OSError as e:
            raise YtDlpError(-1, f"Could not start yt-dlp: {e}")

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise YtDlpError(-1, f"yt-dlp timed out after {self.timeout}s")
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
            raise

        stdout = stdout_bytes.decode("utf-8", "replace")
        stderr = stderr_bytes.decode("utf-8", "replace")
        if process.returncode != 0:
            raise YtDlpError(process.returncode, self.parse_error(stderr))
        return stdout, stderr

    async def _dump_json(self, url: str) -> Dict[str, Any]:
        stdout, _ = await self._run(self.build_info_command(url))
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ProviderError(f"yt-dlp returned invalid metadata: {e}")

    async def fetch_info(self, url: str) -> Dict[str, Any]:
        """
        Fetch video metadata as yt-dlp's ``--dump-json`` document.

        Raises:
            YtDlpError: If every attempt fails
            ProviderError: If the output is not JSON
        """
        fetch = with_retry(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            exceptions=(YtDlpError,),
        )(self._dump_json)
        return await fetch(url)

    async def extract_audio(self, url: str, quality: str, output_path: Path) -> None:
        """
        Download the video and convert its audio track to ``output_path``.

        Raises:
            YtDlpError: If yt-dlp fails
            ProviderError: If yt-dlp succeeds without producing the file
        """
        output_path = Path(output_path)
        template = str(output_path.parent / f"{output_path.stem}.%(ext)s")
        await self._run(self.build_extract_command(url, quality, template))
        if not await asyncio.to_thread(output_path.exists):
            raise ProviderError(f"yt-dlp finished but {output_path.name} was not created")


def create_extraction_provider(settings: Optional[Any] = None) -> YtDlpProvider:
    """
    Create a YtDlpProvider using application settings.

    Args:
        settings: Settings to use (defaults to the cached application settings)

    Returns:
        Configured YtDlpProvider instance
    """
    if settings is None:
        from mp3_converter.config import get_settings

        settings = get_settings()
    return YtDlpProvider(
        executable=settings.yt_dlp_path,
        timeout=settings.provider_timeout_seconds,
        max_attempts=settings.max_retry_attempts,
        base_delay=settings.base_delay_seconds,
    )
