"""Shared test fixtures for av1watch tests."""

import json
from collections.abc import Generator
from collections.abc import Iterable
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from av1watch.models import Job
from av1watch.models import JobProgress
from av1watch.models import JobSnapshot
from av1watch.models import JobStatus
from av1watch.models import ProgressStage
from av1watch.models import VideoMetadata
from av1watch.state.clock import FrozenClock
from av1watch.state.clock import reset_clock
from av1watch.state.clock import set_clock

BASE_TIME = 1_700_000_000.0
MB = 1_000_000


def make_job(
    job_id: str = "job-1",
    status: JobStatus = JobStatus.PENDING,
    created_at: float = BASE_TIME,
    source_path: str | None = None,
    started_at: float | None = None,
    finished_at: float | None = None,
    original_bytes: int | None = None,
    output_bytes: int | None = None,
    metadata: VideoMetadata | None = None,
    reason: str | None = None,
) -> Job:
    """Build a Job with sensible defaults."""
    return Job(
        job_id=job_id,
        source_path=source_path or f"/media/{job_id}.mkv",
        status=status,
        created_at=created_at,
        started_at=started_at,
        finished_at=finished_at,
        metadata=metadata or VideoMetadata(),
        original_bytes=original_bytes,
        output_bytes=output_bytes,
        reason=reason,
    )


def make_success(
    job_id: str,
    original_bytes: int,
    output_bytes: int,
    started_at: float = BASE_TIME,
    finished_at: float = BASE_TIME + 100.0,
) -> Job:
    """Build a successfully finished job."""
    return make_job(
        job_id,
        JobStatus.SUCCESS,
        created_at=started_at - 10.0,
        started_at=started_at,
        finished_at=finished_at,
        original_bytes=original_bytes,
        output_bytes=output_bytes,
    )


def make_progress(
    frames_processed: int = 0,
    total_frames: int | None = None,
    stage: ProgressStage = ProgressStage.TRANSCODING,
    bytes_written: int = 0,
    stage_started_at: float | None = None,
    reported_at: float | None = None,
) -> JobProgress:
    """Build a JobProgress with sensible defaults."""
    return JobProgress(
        stage=stage,
        frames_processed=frames_processed,
        total_frames=total_frames,
        bytes_written=bytes_written,
        stage_started_at=stage_started_at,
        reported_at=reported_at,
    )


def make_snapshot(
    jobs: Iterable[Job],
    progress: Mapping[str, JobProgress] | None = None,
    taken_at: float = BASE_TIME,
) -> JobSnapshot:
    """Build an available snapshot."""
    return JobSnapshot.from_jobs(jobs, progress, taken_at=taken_at)


def write_job_file(directory: Path, record: dict[str, Any], name: str | None = None) -> Path:
    """Write one job record as the daemon would."""
    path = directory / f"{name or record.get('id', 'job')}.json"
    path.write_text(json.dumps(record))
    return path


@pytest.fixture
def frozen_clock() -> Generator[FrozenClock, None, None]:
    """Install a frozen global clock for the duration of a test."""
    clock = FrozenClock(BASE_TIME)
    set_clock(clock)
    yield clock
    reset_clock()


@pytest.fixture
def job_state_dir(tmp_path: Path) -> Path:
    """Create an empty job-state directory."""
    directory = tmp_path / "jobs"
    directory.mkdir()
    return directory


@pytest.fixture
def mixed_jobs() -> list[Job]:
    """One job of every status plus extra successes, in feed order."""
    return [
        make_job("p1", JobStatus.PENDING, created_at=BASE_TIME + 5, original_bytes=100 * MB),
        make_job("r1", JobStatus.RUNNING, created_at=BASE_TIME + 4, started_at=BASE_TIME + 50),
        make_success("s1", 300 * MB, 150 * MB, BASE_TIME, BASE_TIME + 100),
        make_job(
            "f1",
            JobStatus.FAILED,
            created_at=BASE_TIME + 2,
            started_at=BASE_TIME + 10,
            finished_at=BASE_TIME + 40,
            original_bytes=50 * MB,
            reason="encoder crashed",
        ),
        make_job("k1", JobStatus.SKIPPED, created_at=BASE_TIME + 1, reason="already AV1"),
        make_success("s2", 200 * MB, 50 * MB, BASE_TIME + 100, BASE_TIME + 300),
        make_job("p2", JobStatus.PENDING, created_at=BASE_TIME + 5, original_bytes=100 * MB),
    ]
