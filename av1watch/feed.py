"""Job feed: where snapshots come from.

The dashboard only sees the ``JobFeed`` protocol. ``JobStateDirFeed`` reads
the daemon's job-state directory (one JSON file per job), and ``SafeFeed``
wraps any feed so that a failure becomes an explicit "no data" snapshot
instead of an exception reaching the render path.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from typing import Protocol

from av1watch.exceptions import FeedError
from av1watch.exceptions import FeedUnavailableError
from av1watch.exceptions import JobParseError
from av1watch.models import Job
from av1watch.models import JobProgress
from av1watch.models import JobSnapshot
from av1watch.models import JobStatus
from av1watch.models import ProgressStage
from av1watch.models import VideoMetadata
from av1watch.state.clock import Clock
from av1watch.state.clock import get_clock
from av1watch.utils import iterate_job_files
from av1watch.utils import parse_timestamp

logger = logging.getLogger(__name__)


class JobFeed(Protocol):
    """Source of job snapshots."""

    def get_snapshot(self) -> JobSnapshot:
        """Return the latest snapshot of all jobs.

        Raises:
            FeedError: If no snapshot can be produced.
        """
        ...


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return str(value) if value is not None else None


def _parse_progress(data: dict[str, Any], path: Path) -> JobProgress | None:
    raw = data.get("progress")
    if not isinstance(raw, dict):
        return None
    try:
        stage = ProgressStage(str(raw.get("stage", "transcoding")).lower())
    except ValueError:
        logger.debug("Unknown progress stage in %s: %r", path, raw.get("stage"))
        return None
    frames = _optional_int(raw, "frames_processed") or 0
    total = _optional_int(raw, "total_frames")
    if total is not None and total > 0:
        frames = min(frames, total)
    return JobProgress(
        stage=stage,
        frames_processed=max(0, frames),
        total_frames=total,
        current_fps=_optional_float(raw, "current_fps"),
        bytes_written=max(0, _optional_int(raw, "bytes_written") or 0),
        stage_started_at=parse_timestamp(raw.get("stage_started_at")),
        reported_at=parse_timestamp(raw.get("reported_at")),
    )


def parse_job_record(data: dict[str, Any], path: Path) -> tuple[Job, JobProgress | None]:
    """
    Convert one job file's JSON object into a Job and its progress.

    Args:
        data: Parsed JSON object.
        path: File it came from, for error messages.

    Returns:
        The job and its progress (None unless the job is running and the
        file carries a ``progress`` object).

    Raises:
        JobParseError: If the id, status, or creation time is missing or invalid.
    """
    job_id = data.get("id")
    if job_id is None:
        raise JobParseError(path, f"Job file {path} has no id")
    try:
        status = JobStatus(str(data.get("status", "")).lower())
    except ValueError as e:
        message = f"Job file {path} has invalid status {data.get('status')!r}"
        raise JobParseError(path, message) from e
    created_at = parse_timestamp(data.get("created_at"))
    if created_at is None:
        raise JobParseError(path, f"Job file {path} has no valid created_at")

    is_hdr = data.get("is_hdr")
    metadata = VideoMetadata(
        width=_optional_int(data, "video_width"),
        height=_optional_int(data, "video_height"),
        codec=_optional_str(data, "video_codec"),
        bitrate=_optional_int(data, "video_bitrate"),
        frame_rate=_optional_str(data, "video_frame_rate"),
        is_hdr=bool(is_hdr) if is_hdr is not None else None,
        bit_depth=_optional_int(data, "bit_depth"),
        pix_fmt=_optional_str(data, "pix_fmt"),
    )
    job = Job(
        job_id=str(job_id),
        source_path=str(data.get("source_path", "")),
        status=status,
        created_at=created_at,
        started_at=parse_timestamp(data.get("started_at")),
        finished_at=parse_timestamp(data.get("finished_at")),
        metadata=metadata,
        original_bytes=_optional_int(data, "original_bytes"),
        output_bytes=_optional_int(data, "new_bytes") if status.is_terminal else None,
        reason=_optional_str(data, "reason"),
        updated_at=parse_timestamp(data.get("updated_at")),
    )
    progress = _parse_progress(data, path) if status is JobStatus.RUNNING else None
    return job, progress


class JobStateDirFeed:
    """
    Feed reading the daemon's job-state directory.

    Attributes:
        job_state_dir: Directory with one ``*.json`` file per job.
    """

    def __init__(self, job_state_dir: Path, clock: Clock | None = None) -> None:
        self.job_state_dir = job_state_dir
        self._clock = clock

    def get_snapshot(self) -> JobSnapshot:
        """
        Read every job file into a snapshot.

        Records that cannot be parsed are skipped; they never fail the
        whole snapshot.

        Raises:
            FeedUnavailableError: If the directory does not exist or cannot be listed.
        """
        if not self.job_state_dir.is_dir():
            raise FeedUnavailableError(self.job_state_dir)

        jobs: list[Job] = []
        progress: dict[str, JobProgress] = {}
        try:
            for path, data in iterate_job_files(self.job_state_dir):
                try:
                    job, job_progress = parse_job_record(data, path)
                except JobParseError as e:
                    logger.debug("Skipping job file: %s", e)
                    continue
                jobs.append(job)
                if job_progress is not None:
                    progress[job.job_id] = job_progress
        except OSError as e:
            raise FeedUnavailableError(self.job_state_dir, cause=e) from e

        clock = self._clock or get_clock()
        return JobSnapshot.from_jobs(jobs, progress, taken_at=clock.now())


class SafeFeed:
    """
    Wrapper that turns feed failures into an unavailable snapshot.

    The first failure after a success is logged as a warning; repeated
    failures are logged at debug level.
    """

    def __init__(self, feed: JobFeed, clock: Clock | None = None) -> None:
        self._feed = feed
        self._clock = clock
        self._failing = False

    def get_snapshot(self) -> JobSnapshot:
        """Return the wrapped feed's snapshot, or ``JobSnapshot.unavailable``."""
        try:
            snapshot = self._feed.get_snapshot()
        except FeedError as e:
            if self._failing:
                logger.debug("Job feed still unavailable: %s", e)
            else:
                logger.warning("Job feed unavailable: %s", e)
            self._failing = True
            clock = self._clock or get_clock()
            return JobSnapshot.unavailable(taken_at=clock.now())
        if self._failing:
            logger.info("Job feed recovered with %d jobs", len(snapshot.jobs))
        self._failing = False
        return snapshot
