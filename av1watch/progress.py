"""Per-job progress, throughput, and ETA estimation for running jobs.

Each derived value uses ``None`` as its "unavailable" sentinel, which is
always distinct from a legitimate zero. No computation here can produce NaN
or infinity: every division is guarded by its own precondition.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from av1watch.config import DEFAULT_CONFIG
from av1watch.config import DashboardConfig
from av1watch.models import Job
from av1watch.models import JobProgress
from av1watch.models import JobSnapshot
from av1watch.models import JobStatus
from av1watch.models import ProgressStage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEstimate:
    """
    Derived progress figures for one running job.

    Attributes:
        job_id: Identity of the job.
        stage: Current pipeline stage.
        percent_complete: Completion in [0, 100].
        approximate: True when the percentage comes from the stage heuristic
            because the encoder did not report a frame total.
        fps: Smoothed frame rate, or None until two reports have been seen.
        eta_seconds: Seconds remaining, or None when not computable.
        estimated_final_size: Projected output bytes, or None.
        compression_ratio: Bytes written so far over original size, or None.
        frames_processed: Frames encoded so far.
        total_frames: Total frames, if known.
    """

    job_id: str
    stage: ProgressStage
    percent_complete: float
    approximate: bool
    fps: float | None
    eta_seconds: float | None
    estimated_final_size: float | None
    compression_ratio: float | None
    frames_processed: int
    total_frames: int | None


def _stage_settings(
    stage: ProgressStage, config: DashboardConfig
) -> tuple[tuple[float, float], float]:
    if stage is ProgressStage.PROBING:
        return config.probe_band, config.expected_probe_seconds
    if stage is ProgressStage.TRANSCODING:
        return config.transcode_band, config.expected_transcode_seconds
    return config.verify_band, config.expected_verify_seconds


def stage_percent(
    progress: JobProgress, now: float, config: DashboardConfig = DEFAULT_CONFIG
) -> float:
    """
    Approximate completion from the current stage and time spent in it.

    Each stage owns a band of the 0-100 range. Within the band, the position
    is the elapsed stage time over the expected stage time, capped at the
    top of the band.

    Args:
        progress: Latest progress report.
        now: Current Unix timestamp.
        config: Supplies stage bands and expected durations.

    Returns:
        Approximate percent complete.
    """
    (low, high), expected = _stage_settings(progress.stage, config)
    if progress.stage_started_at is None:
        return low
    elapsed = max(0.0, now - progress.stage_started_at)
    fraction = min(1.0, elapsed / expected)
    return low + (high - low) * fraction


def estimate_progress(
    job: Job,
    progress: JobProgress,
    fps: float | None,
    now: float,
    config: DashboardConfig = DEFAULT_CONFIG,
) -> ProgressEstimate:
    """
    Derive percent, ETA, projected size, and live ratio for a running job.

    Args:
        job: The running job.
        progress: Its latest progress report.
        fps: Smoothed frame rate, or None if not yet known.
        now: Current Unix timestamp.
        config: Dashboard configuration.

    Returns:
        The progress estimate.
    """
    total = progress.total_frames if progress.total_frames and progress.total_frames > 0 else None
    processed = max(0, progress.frames_processed)
    if total is not None:
        processed = min(processed, total)

    if total is not None:
        percent = min(100.0, max(0.0, 100.0 * processed / total))
        approximate = False
    else:
        percent = stage_percent(progress, now, config)
        approximate = True

    eta: float | None = None
    if total is not None and fps is not None and fps > 0:
        eta = max(0, total - processed) / fps

    final_size: float | None = None
    if percent > 0 and progress.bytes_written > 0:
        final_size = progress.bytes_written / (percent / 100.0)

    ratio: float | None = None
    if job.original_bytes:
        ratio = progress.bytes_written / job.original_bytes

    return ProgressEstimate(
        job_id=job.job_id,
        stage=progress.stage,
        percent_complete=percent,
        approximate=approximate,
        fps=fps,
        eta_seconds=eta,
        estimated_final_size=final_size,
        compression_ratio=ratio,
        frames_processed=processed,
        total_frames=total,
    )


@dataclass(frozen=True)
class _RateSample:
    frames: int
    reported_at: float
    fps: float | None


class ProgressTracker:
    """
    Tracks frame-rate history across feed refreshes.

    The encoder's own fps figure jitters with irregular poll intervals, so the
    tracker derives its own rate from consecutive reports and smooths it
    exponentially. State is kept only for jobs present in the latest report;
    everything else is dropped.

    Attributes:
        config: Dashboard configuration (supplies the smoothing factor).
    """

    def __init__(self, config: DashboardConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self._samples: dict[str, _RateSample] = {}

    def observe(self, progress_by_job: Mapping[str, JobProgress], observed_at: float) -> None:
        """
        Fold a new batch of progress reports into the rate history.

        Args:
            progress_by_job: Latest progress keyed by job id.
            observed_at: Time the batch was obtained; used for reports that
                carry no timestamp of their own.
        """
        alpha = self.config.fps_smoothing
        for job_id, progress in progress_by_job.items():
            reported_at = progress.reported_at if progress.reported_at is not None else observed_at
            previous = self._samples.get(job_id)
            if previous is None:
                self._samples[job_id] = _RateSample(progress.frames_processed, reported_at, None)
                continue

            elapsed = reported_at - previous.reported_at
            if elapsed <= 0:
                continue
            delta = progress.frames_processed - previous.frames
            if delta < 0:
                logger.debug("Frame count for job %s went backwards, resetting rate", job_id)
                self._samples[job_id] = _RateSample(progress.frames_processed, reported_at, None)
                continue

            instant = delta / elapsed
            if previous.fps is None:
                fps = instant
            else:
                fps = alpha * instant + (1.0 - alpha) * previous.fps
            self._samples[job_id] = _RateSample(progress.frames_processed, reported_at, fps)

        for job_id in set(self._samples) - set(progress_by_job):
            del self._samples[job_id]

    def smoothed_fps(self, job_id: str) -> float | None:
        """Smoothed frame rate for a job, or None with fewer than two reports."""
        sample = self._samples.get(job_id)
        return sample.fps if sample is not None else None

    def estimate(self, job: Job, progress: JobProgress, now: float) -> ProgressEstimate:
        """Estimate progress for one job using its tracked frame rate."""
        return estimate_progress(job, progress, self.smoothed_fps(job.job_id), now, self.config)

    def estimates(self, snapshot: JobSnapshot, now: float) -> dict[str, ProgressEstimate]:
        """Estimate progress for every running job in a snapshot that has a report."""
        result: dict[str, ProgressEstimate] = {}
        for job in snapshot.jobs:
            if job.status is not JobStatus.RUNNING:
                continue
            progress = snapshot.progress.get(job.job_id)
            if progress is not None:
                result[job.job_id] = self.estimate(job, progress, now)
        return result

    def clear(self) -> None:
        """Forget all rate history."""
        self._samples.clear()
