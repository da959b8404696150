"""Pytest fixtures for MP3 converter tests."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from mp3_converter.config import Settings
from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.storage import ArtifactStore


class FakeProvider:
    """Extraction provider double that records calls and writes fake MP3 files."""

    def __init__(
        self,
        title: str = "Never Gonna Give You Up!",
        titles: Optional[Dict[str, str]] = None,
        info_delay: float = 0.0,
        extract_delay: float = 0.0,
        info_error: Optional[Exception] = None,
        extract_error: Optional[Exception] = None,
        write_partial: bool = False,
    ) -> None:
        self.title = title
        self.titles = titles or {}
        self.info_delay = info_delay
        self.extract_delay = extract_delay
        self.info_error = info_error
        self.extract_error = extract_error
        self.write_partial = write_partial
        self.calls: List[Tuple[str, str]] = []

    async def fetch_info(self, url: str) -> Dict[str, Any]:
        self.calls.append(("info", url))
        await asyncio.sleep(self.info_delay)
        if self.info_error is not None:
            raise self.info_error
        return {"id": "dQw4w9WgXcQ", "title": self.titles.get(url, self.title), "duration": 212}

    async def extract_audio(self, url: str, quality: str, output_path: Path) -> None:
        self.calls.append(("extract", url))
        await asyncio.sleep(self.extract_delay)
        if self.write_partial:
            output_path.with_name(f"{output_path.stem}.webm.part").write_bytes(b"partial")
            output_path.write_bytes(b"half an mp3")
        if self.extract_error is not None:
            raise self.extract_error
        output_path.write_bytes(b"ID3" + url.encode() + quality.encode())


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary directory with fast timers."""
    return Settings(
        downloads_dir=tmp_path / "downloads",
        public_dir=tmp_path / "public",
        progress_interval_seconds=0.01,
        download_grace_seconds=0.2,
        sweep_interval_seconds=3600,
        max_retry_attempts=1,
        base_delay_seconds=0,
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_provider() -> type:
    """The FakeProvider class, for tests that need a custom configuration."""
    return FakeProvider


@pytest.fixture
def registry() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    artifact_store = ArtifactStore(tmp_path / "downloads")
    artifact_store.ensure_directory()
    return artifact_store
