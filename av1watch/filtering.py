"""Filtering and sorting of the job list.

Both operations are pure and deterministic: the same input always yields the
same order, so re-rendering an unchanged job set never shuffles rows. Every
sort key ends in the job identity, which makes each ordering total.
"""

from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Sequence
from enum import Enum

from av1watch.models import Job
from av1watch.models import JobStatus


class JobFilter(Enum):
    """Status filter selectable from the keyboard (keys 1-5)."""

    ALL = "all"
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def status(self) -> JobStatus | None:
        """The status this filter keeps, or None for ALL."""
        if self is JobFilter.ALL:
            return None
        return JobStatus(self.value)

    @classmethod
    def from_number(cls, number: int) -> "JobFilter":
        """Map a 1-based filter key to a filter.

        Raises:
            ValueError: If the number is outside 1-5.
        """
        members = list(cls)
        if not 1 <= number <= len(members):
            raise ValueError(f"Filter number must be between 1 and {len(members)}, got {number}")
        return members[number - 1]


class SortMode(Enum):
    """Table ordering, cycled with a single key."""

    BY_DATE = "date"
    BY_SIZE = "size"
    BY_STATUS = "status"
    BY_SAVINGS = "savings"

    def next(self) -> "SortMode":
        """The mode that follows this one in the cycle."""
        members = list(SortMode)
        return members[(members.index(self) + 1) % len(members)]


# Lower value sorts first.
STATUS_PRIORITY: dict[JobStatus, int] = {
    JobStatus.RUNNING: 0,
    JobStatus.PENDING: 1,
    JobStatus.FAILED: 2,
    JobStatus.SUCCESS: 3,
    JobStatus.SKIPPED: 4,
}


def filter_jobs(jobs: Iterable[Job], job_filter: JobFilter) -> list[Job]:
    """
    Keep the jobs matching a status filter, preserving their relative order.

    Args:
        jobs: Jobs in feed order.
        job_filter: Filter to apply. ALL keeps everything, including skipped jobs.

    Returns:
        The matching subsequence.
    """
    status = job_filter.status
    if status is None:
        return list(jobs)
    return [job for job in jobs if job.status is status]


def _date_key(job: Job) -> tuple[float, str]:
    return (-job.created_at, job.job_id)


def _size_key(job: Job) -> tuple[int, float, float, str]:
    saved = job.bytes_saved
    if saved is not None:
        return (0, -saved, -job.created_at, job.job_id)
    # Terminal jobs with unknown sizes stay ahead of jobs still in flight.
    tier = 1 if job.is_terminal else 2
    return (tier, 0.0, -job.created_at, job.job_id)


def _status_key(job: Job) -> tuple[int, float, str]:
    return (STATUS_PRIORITY[job.status], -job.created_at, job.job_id)


def _savings_key(job: Job) -> tuple[int, float, float, str]:
    ratio = job.compression_ratio
    if job.status is JobStatus.SUCCESS and ratio is not None:
        # Smallest output/original ratio means the largest saving.
        return (0, ratio, -job.created_at, job.job_id)
    return (1, 0.0, -job.created_at, job.job_id)


_SORT_KEYS: dict[SortMode, Callable[[Job], tuple]] = {
    SortMode.BY_DATE: _date_key,
    SortMode.BY_SIZE: _size_key,
    SortMode.BY_STATUS: _status_key,
    SortMode.BY_SAVINGS: _savings_key,
}


def sort_jobs(jobs: Iterable[Job], mode: SortMode) -> list[Job]:
    """
    Order jobs for display.

    BY_DATE puts the newest job first. BY_SIZE ranks terminal jobs by bytes
    saved, largest first, ahead of all non-terminal jobs. BY_STATUS groups
    Running, Pending, Failed, Success, then Skipped. BY_SAVINGS ranks
    successful jobs by the fraction of space saved ahead of everything else.
    Ties within each group fall back to BY_DATE.

    Args:
        jobs: Jobs to order.
        mode: Sort mode.

    Returns:
        A new, stably sorted list.
    """
    return sorted(jobs, key=_SORT_KEYS[mode])


def visible_jobs(jobs: Sequence[Job], job_filter: JobFilter, mode: SortMode) -> list[Job]:
    """Filter then sort, producing the sequence shown in the table."""
    return sort_jobs(filter_jobs(jobs, job_filter), mode)
