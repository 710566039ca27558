"""Summary statistics and trend series over the full job set.

The statistics are expensive relative to a render tick (they walk every job),
so ``StatisticsEngine`` memoizes the last result against the snapshot's
fingerprint and recomputes only when the fingerprint changes.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from statistics import mean

from av1watch.config import DEFAULT_CONFIG
from av1watch.config import DashboardConfig
from av1watch.models import Fingerprint
from av1watch.models import Job
from av1watch.models import JobStatus
from av1watch.models import compute_fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendSeries:
    """
    Trend data over the most recent completions, oldest first.

    Attributes:
        processing_times: Seconds from start to finish for each completion, or
            None when fewer than the minimum number of completions carry both
            timestamps.
        compression_ratios: Output/original ratio for each completion, or None
            when fewer than the minimum number of completions carry both sizes.
        completion_rate: Completions per hour across the window, or None when
            every completion in the window finished at the same instant.
        sample_count: Number of completions in the window.
    """

    processing_times: tuple[float, ...] | None
    compression_ratios: tuple[float, ...] | None
    completion_rate: float | None
    sample_count: int


@dataclass(frozen=True)
class StatisticsCache:
    """
    Aggregate metrics for one job set, tagged with that set's fingerprint.

    ``None`` marks a value with insufficient data behind it; it is never
    replaced with zero or NaN.

    Attributes:
        fingerprint: Fingerprint of the job set these numbers describe.
        total_space_saved: Bytes saved across successful jobs.
        avg_compression_ratio: Mean output/original ratio of successful jobs.
        success_rate: Successes over successes plus failures, 0 with none.
        total_processing_time: Seconds spent across jobs with start and finish.
        estimated_pending_savings: Bytes expected to be saved by pending jobs.
        pending_ratio_assumed: Whether the pending estimate used the configured
            fallback ratio instead of the observed average.
        success_count: Number of successful jobs.
        failed_count: Number of failed jobs.
        trends: Trend series, or None with too few completions.
    """

    fingerprint: Fingerprint
    total_space_saved: int
    avg_compression_ratio: float | None
    success_rate: float
    total_processing_time: float
    estimated_pending_savings: float
    pending_ratio_assumed: bool
    success_count: int
    failed_count: int
    trends: TrendSeries | None


def extract_trends(
    jobs: Sequence[Job],
    window: int = DEFAULT_CONFIG.trend_window,
    min_samples: int = DEFAULT_CONFIG.min_trend_samples,
) -> TrendSeries | None:
    """
    Build trend series from the most recently finished successful jobs.

    Args:
        jobs: Full job set.
        window: Maximum number of completions to include.
        min_samples: Completions required before a trend is reported.

    Returns:
        The trend series, or None if fewer than ``min_samples`` completions exist.
    """
    completed = [
        job for job in jobs if job.status is JobStatus.SUCCESS and job.finished_at is not None
    ]
    completed.sort(key=lambda job: (job.finished_at, job.job_id))
    recent = completed[-window:]
    if len(recent) < min_samples:
        return None

    times = tuple(t for t in (job.processing_time for job in recent) if t is not None)
    ratios = tuple(r for r in (job.compression_ratio for job in recent) if r is not None)

    return TrendSeries(
        # Each series needs enough samples of its own
        processing_times=times if len(times) >= min_samples else None,
        compression_ratios=ratios if len(ratios) >= min_samples else None,
        completion_rate=_completion_rate(recent),
        sample_count=len(recent),
    )


def _completion_rate(recent: Sequence[Job]) -> float | None:
    """Completions per hour across the finish-time span of the window."""
    span = recent[-1].finished_at - recent[0].finished_at  # type: ignore[operator]
    return len(recent) / span * 3600.0 if span > 0 else None


def compute_statistics(
    jobs: Sequence[Job],
    fingerprint: Fingerprint | None = None,
    config: DashboardConfig = DEFAULT_CONFIG,
) -> StatisticsCache:
    """
    Compute every summary metric for a job set.

    Args:
        jobs: Full, unfiltered job set.
        fingerprint: Fingerprint of ``jobs``; computed when omitted.
        config: Supplies the pending-savings fallback ratio and trend window.

    Returns:
        The computed statistics.
    """
    if fingerprint is None:
        fingerprint = compute_fingerprint(jobs)

    space_saved = 0
    ratios: list[float] = []
    success_count = 0
    failed_count = 0
    processing_time = 0.0
    pending_bytes = 0

    for job in jobs:
        if job.status is JobStatus.SUCCESS:
            success_count += 1
            saved = job.bytes_saved
            if saved is not None:
                space_saved += saved
            ratio = job.compression_ratio
            if ratio is not None:
                ratios.append(ratio)
        elif job.status is JobStatus.FAILED:
            failed_count += 1
        elif job.status is JobStatus.PENDING and job.original_bytes:
            pending_bytes += job.original_bytes

        duration = job.processing_time
        if duration is not None:
            processing_time += duration

    avg_ratio = mean(ratios) if ratios else None
    decided = success_count + failed_count
    success_rate = success_count / decided if decided else 0.0

    effective_ratio = avg_ratio if avg_ratio is not None else config.pending_savings_ratio
    pending_savings = pending_bytes * max(0.0, 1.0 - effective_ratio)

    return StatisticsCache(
        fingerprint=fingerprint,
        total_space_saved=space_saved,
        avg_compression_ratio=avg_ratio,
        success_rate=success_rate,
        total_processing_time=processing_time,
        estimated_pending_savings=pending_savings,
        pending_ratio_assumed=avg_ratio is None,
        success_count=success_count,
        failed_count=failed_count,
        trends=extract_trends(jobs, config.trend_window, config.min_trend_samples),
    )


class StatisticsEngine:
    """
    Memoizing front end to ``compute_statistics``.

    Holds a single cached result and returns it for as long as the job set's
    fingerprint is unchanged, so an idle dashboard does no per-job work.

    Attributes:
        config: Dashboard configuration.
        recompute_count: Number of times statistics were actually computed.
    """

    def __init__(self, config: DashboardConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.recompute_count = 0
        self._cache: StatisticsCache | None = None

    @property
    def cached(self) -> StatisticsCache | None:
        """The last computed statistics, if any."""
        return self._cache

    def get(self, jobs: Sequence[Job], fingerprint: Fingerprint | None = None) -> StatisticsCache:
        """
        Return statistics for ``jobs``, recomputing only on fingerprint change.

        Args:
            jobs: Full job set.
            fingerprint: Fingerprint of ``jobs``; computed when omitted.

        Returns:
            Statistics whose fingerprint matches ``jobs``.
        """
        if fingerprint is None:
            fingerprint = compute_fingerprint(jobs)
        if self._cache is not None and self._cache.fingerprint == fingerprint:
            return self._cache

        logger.debug("Recomputing statistics for %d jobs", fingerprint.count)
        self._cache = compute_statistics(jobs, fingerprint, self.config)
        self.recompute_count += 1
        return self._cache

    def invalidate(self) -> None:
        """Drop the cached result so the next call recomputes."""
        self._cache = None
