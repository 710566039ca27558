"""Data models for the transcoding dashboard.

Jobs, their live progress, and the snapshot that bundles them are owned by
the job feed. The dashboard treats all of them as read-only: every model here
is a frozen dataclass and a feed refresh replaces the snapshot wholesale.
"""

import math
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import PurePath
from types import MappingProxyType
from typing import NamedTuple


class JobStatus(str, Enum):
    """Lifecycle status of a transcoding job."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Whether the job can no longer change status."""
        return self in (JobStatus.SUCCESS, JobStatus.FAILED, JobStatus.SKIPPED)

    @property
    def short_label(self) -> str:
        """Compact label used in narrow table columns."""
        return _SHORT_LABELS[self]


_SHORT_LABELS: dict[JobStatus, str] = {
    JobStatus.PENDING: "PEND",
    JobStatus.RUNNING: "RUN",
    JobStatus.SUCCESS: "OK",
    JobStatus.FAILED: "FAIL",
    JobStatus.SKIPPED: "SKIP",
}


class ProgressStage(str, Enum):
    """Stage of a running job as reported by the daemon."""

    PROBING = "probing"
    TRANSCODING = "transcoding"
    VERIFYING = "verifying"


class FeedStatus(Enum):
    """Whether the last snapshot came from a working feed."""

    OK = "ok"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class VideoMetadata:
    """
    Source video properties discovered by the daemon's probe.

    Every field is optional: the probe may not have run yet, or the
    container may not carry the value.

    Attributes:
        width: Frame width in pixels.
        height: Frame height in pixels.
        codec: Source codec name (e.g. "hevc", "h264").
        bitrate: Video bitrate in bits per second.
        frame_rate: Frame rate as reported by ffprobe ("30000/1001" or "29.97").
        is_hdr: Whether the source carries HDR transfer characteristics.
        bit_depth: Bits per sample, when reported explicitly.
        pix_fmt: Pixel format name (e.g. "yuv420p10le").
    """

    width: int | None = None
    height: int | None = None
    codec: str | None = None
    bitrate: int | None = None
    frame_rate: str | None = None
    is_hdr: bool | None = None
    bit_depth: int | None = None
    pix_fmt: str | None = None

    @property
    def resolution(self) -> str | None:
        """Resolution as "WxH", or None if either dimension is unknown."""
        if self.width is None or self.height is None:
            return None
        return f"{self.width}x{self.height}"

    @property
    def effective_bit_depth(self) -> int | None:
        """Bit depth, inferred from the pixel format or HDR flag when not explicit."""
        if self.bit_depth is not None:
            return self.bit_depth
        if self.pix_fmt is not None:
            fmt = self.pix_fmt.lower()
            if "10" in fmt or "p010" in fmt:
                return 10
        if self.is_hdr:
            return 10
        return None


@dataclass(frozen=True)
class Job:
    """
    A single transcoding job as observed from the feed.

    Attributes:
        job_id: Stable identity of the job.
        source_path: Path of the source media file.
        status: Current lifecycle status.
        created_at: Unix timestamp when the job was queued.
        started_at: Unix timestamp when transcoding started, if it has.
        finished_at: Unix timestamp when the job reached a terminal status.
        metadata: Probed source properties.
        original_bytes: Size of the source file in bytes.
        output_bytes: Size of the transcoded file, present only once terminal.
        reason: Daemon-supplied explanation for skips and failures.
        updated_at: Last time the daemon touched the record, if it reports one.
    """

    job_id: str
    source_path: str
    status: JobStatus
    created_at: float
    started_at: float | None = None
    finished_at: float | None = None
    metadata: VideoMetadata = field(default_factory=VideoMetadata)
    original_bytes: int | None = None
    output_bytes: int | None = None
    reason: str | None = None
    updated_at: float | None = None

    @property
    def name(self) -> str:
        """File name of the source, falling back to the full path."""
        return PurePath(self.source_path).name or self.source_path

    @property
    def is_terminal(self) -> bool:
        """Whether the job has reached a terminal status."""
        return self.status.is_terminal

    @property
    def bytes_saved(self) -> int | None:
        """Bytes saved by the transcode, or None if not terminal or sizes are unknown."""
        if not self.is_terminal or self.original_bytes is None or self.output_bytes is None:
            return None
        return self.original_bytes - self.output_bytes

    @property
    def compression_ratio(self) -> float | None:
        """Output size as a fraction of the original, or None if undefined."""
        if self.output_bytes is None or not self.original_bytes:
            return None
        return self.output_bytes / self.original_bytes

    @property
    def processing_time(self) -> float | None:
        """Seconds between start and finish, or None until both are known."""
        if self.started_at is None or self.finished_at is None:
            return None
        return max(0.0, self.finished_at - self.started_at)

    @property
    def last_update(self) -> float:
        """Most recent timestamp known for this job."""
        stamps = [self.created_at, self.started_at, self.finished_at, self.updated_at]
        return max(s for s in stamps if s is not None)


@dataclass(frozen=True)
class JobProgress:
    """
    Live progress of a running job, replaced wholesale on every refresh.

    Attributes:
        stage: Current pipeline stage.
        frames_processed: Frames encoded so far.
        total_frames: Total frames, if the encoder reports it.
        current_fps: Instantaneous encoder frame rate, if reported.
        bytes_written: Bytes of output written so far.
        stage_started_at: Unix timestamp when the current stage began.
        reported_at: Unix timestamp of the report; the observation time is
            used when absent.
    """

    stage: ProgressStage
    frames_processed: int = 0
    total_frames: int | None = None
    current_fps: float | None = None
    bytes_written: int = 0
    stage_started_at: float | None = None
    reported_at: float | None = None


class Fingerprint(NamedTuple):
    """Cheap digest of a job set used to detect change.

    Attributes:
        count: Number of jobs.
        last_update: Maximum update timestamp across all jobs.
        status_counts: Number of jobs in each status, in JobStatus order.
    """

    count: int
    last_update: float
    status_counts: tuple[int, ...]


def compute_fingerprint(jobs: Iterable[Job]) -> Fingerprint:
    """Compute the fingerprint of a job set in a single pass."""
    counts = dict.fromkeys(JobStatus, 0)
    last_update = 0.0
    total = 0
    for job in jobs:
        total += 1
        counts[job.status] += 1
        last_update = max(last_update, job.last_update)
    return Fingerprint(total, last_update, tuple(counts[s] for s in JobStatus))


@dataclass(frozen=True)
class JobSnapshot:
    """
    Immutable view of every known job and its progress at one point in time.

    Attributes:
        jobs: All jobs in feed order.
        progress: Progress keyed by job id, for running jobs only.
        fingerprint: Digest of ``jobs`` used for cache invalidation.
        taken_at: Unix timestamp when the snapshot was obtained.
        status: Whether the feed produced real data.
    """

    jobs: tuple[Job, ...]
    progress: Mapping[str, JobProgress]
    fingerprint: Fingerprint
    taken_at: float
    status: FeedStatus = FeedStatus.OK

    @classmethod
    def from_jobs(
        cls,
        jobs: Iterable[Job],
        progress: Mapping[str, JobProgress] | None = None,
        taken_at: float = 0.0,
    ) -> "JobSnapshot":
        """Build a snapshot, computing its fingerprint."""
        job_tuple = tuple(jobs)
        return cls(
            jobs=job_tuple,
            progress=MappingProxyType(dict(progress or {})),
            fingerprint=compute_fingerprint(job_tuple),
            taken_at=taken_at,
        )

    @classmethod
    def unavailable(cls, taken_at: float = 0.0) -> "JobSnapshot":
        """The explicit "no data" snapshot used when the feed fails."""
        return cls(
            jobs=(),
            progress=MappingProxyType({}),
            fingerprint=compute_fingerprint(()),
            taken_at=taken_at,
            status=FeedStatus.UNAVAILABLE,
        )

    @property
    def available(self) -> bool:
        """Whether this snapshot carries real feed data."""
        return self.status is FeedStatus.OK

    def count_by_status(self, status: JobStatus) -> int:
        """Number of jobs with the given status."""
        return self.fingerprint.status_counts[list(JobStatus).index(status)]


def format_duration(seconds: float | None) -> str:
    """
    Format a duration in seconds as a compact human-readable string.

    Args:
        seconds: Duration in seconds.

    Returns:
        Strings like "45s", "1m 30s", "2h 5m"; "unknown" for None or non-finite input.
    """
    if seconds is None or math.isnan(seconds) or math.isinf(seconds):
        return "unknown"
    total = int(max(0.0, seconds))
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"


def format_bitrate(bits_per_second: int | None) -> str | None:
    """Format a bitrate as "8.5 Mbps" or "850 kbps"; None if unknown or non-positive."""
    if bits_per_second is None or bits_per_second <= 0:
        return None
    if bits_per_second >= 1_000_000:
        return f"{bits_per_second / 1_000_000:.1f} Mbps"
    return f"{bits_per_second / 1000:.0f} kbps"
