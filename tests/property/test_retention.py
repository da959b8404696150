"""Property-based tests for the retention sweeper and artifact storage.

Property: artifacts older than the retention threshold are deleted together
with their job record; younger artifacts are never touched.
"""

import asyncio
import os
import time
from pathlib import Path

from hypothesis import HealthCheck, given, settings, strategies as st

from mp3_converter.services.registry import JobRegistry
from mp3_converter.services.retention import RetentionSweeper
from mp3_converter.services.storage import ArtifactStore

NOW = 1_700_000_000.0
MAX_AGE = 3600.0


def write_artifact(store: ArtifactStore, name: str, age: float) -> Path:
    path = store.directory / name
    path.write_bytes(b"ID3")
    os.utime(path, (NOW - age, NOW - age))
    return path


def make_sweeper(registry: JobRegistry, store: ArtifactStore, **kwargs) -> RetentionSweeper:
    return RetentionSweeper(registry, store, max_age=MAX_AGE, clock=lambda: NOW, **kwargs)


class TestSweep:

    def test_old_artifact_and_job_are_removed(self, registry, store) -> None:
        registry.create("job-old", quality="5")
        path = write_artifact(store, "job-old.mp3", MAX_AGE + 1)

        deleted = asyncio.run(make_sweeper(registry, store).sweep())

        assert deleted == 1
        assert not path.exists()
        assert "job-old" not in registry

    def test_young_artifact_is_left_alone(self, registry, store) -> None:
        registry.create("job-new", quality="5")
        path = write_artifact(store, "job-new.mp3", MAX_AGE - 60)

        deleted = asyncio.run(make_sweeper(registry, store).sweep())

        assert deleted == 0
        assert path.exists()
        assert "job-new" in registry

    def test_orphan_file_without_job(self, registry, store) -> None:
        path = write_artifact(store, "job-gone.mp3", MAX_AGE * 2)

        deleted = asyncio.run(make_sweeper(registry, store).sweep())

        assert deleted == 1
        assert not path.exists()

    def test_leftover_download_maps_to_its_job(self, registry, store) -> None:
        registry.create("job-partial", quality="5")
        write_artifact(store, "job-partial.webm.part", MAX_AGE + 10)

        asyncio.run(make_sweeper(registry, store).sweep())

        assert "job-partial" not in registry

    def test_missing_directory_is_empty(self, registry, tmp_path) -> None:
        store = ArtifactStore(tmp_path / "nowhere")

        assert asyncio.run(make_sweeper(registry, store).sweep()) == 0

    def test_error_on_one_file_does_not_stop_the_sweep(self, registry, store, monkeypatch) -> None:
        registry.create("job-a", quality="5")
        registry.create("job-b", quality="5")
        write_artifact(store, "job-a.mp3", MAX_AGE + 1)
        write_artifact(store, "job-b.mp3", MAX_AGE + 1)

        real_unlink = Path.unlink

        def flaky_unlink(self: Path, *args, **kwargs) -> None:
            if self.name == "job-a.mp3":
                raise PermissionError("locked")
            real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        deleted = asyncio.run(make_sweeper(registry, store).sweep())

        assert deleted == 1
        assert (store.directory / "job-a.mp3").exists()
        assert not (store.directory / "job-b.mp3").exists()
        assert "job-a" in registry
        assert "job-b" not in registry

    def test_stale_terminal_jobs_without_files_are_expired(self, registry, store) -> None:
        registry.create("job-err", quality="5")
        registry.mutate("job-err", lambda job: job.fail("boom"))
        registry.create("job-done", quality="5")
        registry.mutate("job-done", lambda job: job.complete())
        registry.create("job-busy", quality="5")
        sweeper = RetentionSweeper(
            registry, store, max_age=MAX_AGE, clock=lambda: time.time() + 10**6
        )

        deleted = asyncio.run(sweeper.sweep())

        assert deleted == 0
        assert "job-err" not in registry
        assert "job-done" not in registry
        assert "job-busy" in registry

    def test_recent_terminal_job_is_kept(self, registry, store) -> None:
        registry.create("job-err", quality="5")
        registry.mutate("job-err", lambda job: job.fail("boom"))
        sweeper = RetentionSweeper(registry, store, max_age=MAX_AGE, clock=time.time)

        asyncio.run(sweeper.sweep())

        assert "job-err" in registry

    @settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        ages=st.lists(
            st.floats(min_value=0, max_value=MAX_AGE * 3).filter(lambda a: abs(a - MAX_AGE) > 1),
            min_size=1,
            max_size=8,
        )
    )
    def test_only_expired_artifacts_are_reclaimed(self, tmp_path, ages: list[float]) -> None:
        registry = JobRegistry()
        store = ArtifactStore(tmp_path / f"downloads-{time.monotonic_ns()}")
        store.ensure_directory()
        for i, age in enumerate(ages):
            registry.create(f"job-{i}", quality="5")
            write_artifact(store, f"job-{i}.mp3", age)

        deleted = asyncio.run(make_sweeper(registry, store).sweep())

        expired = {f"job-{i}" for i, age in enumerate(ages) if age > MAX_AGE}
        assert deleted == len(expired)
        for i in range(len(ages)):
            job_id = f"job-{i}"
            assert store.path_for(job_id).exists() == (job_id not in expired)
            assert (job_id in registry) == (job_id not in expired)


class TestSweeperLoop:

    def test_loop_sweeps_periodically(self, registry, store) -> None:
        registry.create("job-old", quality="5")
        write_artifact(store, "job-old.mp3", MAX_AGE + 1)
        sweeper = make_sweeper(registry, store, interval=0.01)

        async def run() -> tuple[bool, bool]:
            sweeper.start()
            running = sweeper.running
            await asyncio.sleep(0.1)
            await sweeper.stop()
            return running, sweeper.running

        running, after_stop = asyncio.run(run())
        assert running is True
        assert after_stop is False
        assert "job-old" not in registry

    def test_stop_without_start(self, registry, store) -> None:
        asyncio.run(make_sweeper(registry, store).stop())


class TestArtifactStore:

    def test_paths_are_derived_from_job_id(self, store) -> None:
        assert store.path_for("job-1") == store.directory / "job-1.mp3"
        assert ArtifactStore.job_id_for(store.directory / "job-1.webm.part") == "job-1"

    def test_remove_tolerates_missing_files(self, store) -> None:
        assert asyncio.run(store.remove("job-1")) == 0

    def test_remove_deletes_artifact_and_leftovers(self, store) -> None:
        (store.directory / "job-1.mp3").write_bytes(b"a")
        (store.directory / "job-1.webm.part").write_bytes(b"b")
        (store.directory / "job-10.mp3").write_bytes(b"c")

        assert asyncio.run(store.remove("job-1")) == 2
        assert [p.name for p in store.directory.iterdir()] == ["job-10.mp3"]

    def test_ensure_directory_creates_it(self, tmp_path) -> None:
        store = ArtifactStore(tmp_path / "a" / "b")
        store.ensure_directory()

        assert store.directory.is_dir()
