"""The per-tick render model handed to the drawing layer.

Everything the screen needs is precomputed here as display strings, so the
drawing layer never touches raw job data. Each table column is formatted by
exactly one entry of ``COLUMN_FORMATTERS``; the table is checked for
completeness when the module is imported.
"""

from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from rich.filesize import decimal

from av1watch.constants import MAX_NAME_LENGTH
from av1watch.constants import PLACEHOLDER
from av1watch.layout import Column
from av1watch.layout import LayoutConfig
from av1watch.models import FeedStatus
from av1watch.models import Job
from av1watch.models import JobSnapshot
from av1watch.models import JobStatus
from av1watch.models import format_bitrate
from av1watch.models import format_duration
from av1watch.progress import ProgressEstimate
from av1watch.savings import estimate_space_savings
from av1watch.statistics import StatisticsCache
from av1watch.ui_state import UiState
from av1watch.ui_state import ViewMode
from av1watch.utils import truncate_string

ColumnFormatter = Callable[[Job, ProgressEstimate | None], str]


def format_timestamp(timestamp: float | None) -> str:
    """Local date and time, or the placeholder."""
    if timestamp is None:
        return PLACEHOLDER
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def format_size(num_bytes: float | None) -> str:
    """Decimal byte size ("1.5 GB"), or the placeholder."""
    if num_bytes is None:
        return PLACEHOLDER
    return decimal(int(num_bytes))


def format_percent(fraction: float | None, approximate: bool = False) -> str:
    """Fraction as a percentage with one decimal, "~" marking an approximation."""
    if fraction is None:
        return PLACEHOLDER
    prefix = "~" if approximate else ""
    return f"{prefix}{fraction * 100:.1f}%"


def _format_name(job: Job, estimate: ProgressEstimate | None) -> str:
    return truncate_string(job.name, MAX_NAME_LENGTH)


def _format_status(job: Job, estimate: ProgressEstimate | None) -> str:
    return job.status.short_label


def _format_progress_percent(job: Job, estimate: ProgressEstimate | None) -> str:
    if job.status is JobStatus.SUCCESS:
        return "100%"
    if estimate is None:
        return PLACEHOLDER
    prefix = "~" if estimate.approximate else ""
    return f"{prefix}{estimate.percent_complete:.0f}%"


def _format_resolution(job: Job, estimate: ProgressEstimate | None) -> str:
    return job.metadata.resolution or PLACEHOLDER


def _format_codec(job: Job, estimate: ProgressEstimate | None) -> str:
    return job.metadata.codec or PLACEHOLDER


def _format_bitrate(job: Job, estimate: ProgressEstimate | None) -> str:
    return format_bitrate(job.metadata.bitrate) or PLACEHOLDER


def _format_hdr(job: Job, estimate: ProgressEstimate | None) -> str:
    if job.metadata.is_hdr is None:
        return PLACEHOLDER
    return "HDR" if job.metadata.is_hdr else ""


def _format_bit_depth(job: Job, estimate: ProgressEstimate | None) -> str:
    depth = job.metadata.effective_bit_depth
    return f"{depth}-bit" if depth is not None else PLACEHOLDER


def _format_compression(job: Job, estimate: ProgressEstimate | None) -> str:
    if job.is_terminal:
        return format_percent(job.compression_ratio)
    if estimate is not None:
        return format_percent(estimate.compression_ratio, approximate=True)
    return PLACEHOLDER


def _format_created(job: Job, estimate: ProgressEstimate | None) -> str:
    return format_timestamp(job.created_at)


def _format_finished(job: Job, estimate: ProgressEstimate | None) -> str:
    return format_timestamp(job.finished_at)


COLUMN_FORMATTERS: dict[Column, ColumnFormatter] = {
    Column.NAME: _format_name,
    Column.STATUS: _format_status,
    Column.PERCENT: _format_progress_percent,
    Column.RESOLUTION: _format_resolution,
    Column.CODEC: _format_codec,
    Column.BITRATE: _format_bitrate,
    Column.HDR: _format_hdr,
    Column.BIT_DEPTH: _format_bit_depth,
    Column.COMPRESSION: _format_compression,
    Column.CREATED: _format_created,
    Column.FINISHED: _format_finished,
}

COLUMN_HEADERS: dict[Column, str] = {
    Column.NAME: "FILE",
    Column.STATUS: "ST",
    Column.PERCENT: "%",
    Column.RESOLUTION: "RES",
    Column.CODEC: "CODEC",
    Column.BITRATE: "BITRATE",
    Column.HDR: "HDR",
    Column.BIT_DEPTH: "DEPTH",
    Column.COMPRESSION: "RATIO",
    Column.CREATED: "CREATED",
    Column.FINISHED: "FINISHED",
}

_unformatted = (set(Column) - set(COLUMN_FORMATTERS)) | (set(Column) - set(COLUMN_HEADERS))
if _unformatted:
    names = sorted(c.value for c in _unformatted)
    raise RuntimeError(f"Columns without a formatter or header: {names}")


def format_cell(column: Column, job: Job, estimate: ProgressEstimate | None = None) -> str:
    """Display string for one cell."""
    return COLUMN_FORMATTERS[column](job, estimate)


@dataclass(frozen=True)
class JobRow:
    """
    One table row.

    Attributes:
        job_id: Identity of the job.
        status: Job status, for row styling.
        cells: Display strings in the layout's column order.
        selected: Whether this row carries the selection highlight.
    """

    job_id: str
    status: JobStatus
    cells: tuple[str, ...]
    selected: bool


@dataclass(frozen=True)
class JobDetail:
    """
    Everything shown in the detail view for the selected job.

    Attributes:
        job_id: Identity of the job.
        source_path: Full source path.
        status: Job status.
        fields: Every column's display string, keyed by column.
        original_size: Formatted original size.
        output_size: Formatted output size.
        processing_time: Formatted processing or elapsed time.
        hdr: "yes", "no", or the placeholder when HDR is unknown.
        reason: Skip or failure reason, or the placeholder.
        estimated_savings: Predicted bytes saved for jobs not yet finished.
        progress: Live progress estimate for running jobs.
    """

    job_id: str
    source_path: str
    status: JobStatus
    fields: Mapping[Column, str]
    original_size: str
    output_size: str
    processing_time: str
    hdr: str
    reason: str
    estimated_savings: float | None
    progress: ProgressEstimate | None


@dataclass(frozen=True)
class StatusCounts:
    """Per-status job counts for the status bar."""

    total: int
    pending: int
    running: int
    success: int
    failed: int
    skipped: int

    @classmethod
    def from_snapshot(cls, snapshot: JobSnapshot) -> "StatusCounts":
        """Read the counts from a snapshot's fingerprint."""
        return cls(
            total=snapshot.fingerprint.count,
            pending=snapshot.count_by_status(JobStatus.PENDING),
            running=snapshot.count_by_status(JobStatus.RUNNING),
            success=snapshot.count_by_status(JobStatus.SUCCESS),
            failed=snapshot.count_by_status(JobStatus.FAILED),
            skipped=snapshot.count_by_status(JobStatus.SKIPPED),
        )


@dataclass(frozen=True)
class RenderModel:
    """
    Complete description of one frame.

    Attributes:
        layout: Resolved layout.
        headers: Column headers in display order.
        rows: Rows inside the scroll window only.
        total_rows: Length of the filtered and sorted sequence.
        statistics: Statistics for the full job set.
        ui: UI state the frame was built from.
        stale: Whether the feed has missed too many refreshes.
        feed_status: Whether the last snapshot carried data.
        counts: Per-status counts over all jobs.
        detail: Detail view content, when the detail view is active.
        generated_at: Time the model was built.
    """

    layout: LayoutConfig
    headers: tuple[str, ...]
    rows: tuple[JobRow, ...]
    total_rows: int
    statistics: StatisticsCache
    ui: UiState
    stale: bool
    feed_status: FeedStatus
    counts: StatusCounts
    detail: JobDetail | None
    generated_at: float


def _processing_time(job: Job, now: float) -> str:
    if job.started_at is None:
        return PLACEHOLDER
    if job.finished_at is not None:
        return format_duration(job.processing_time)
    if job.status is JobStatus.RUNNING:
        return format_duration(now - job.started_at)
    return PLACEHOLDER


def _hdr_label(is_hdr: bool | None) -> str:
    if is_hdr is None:
        return PLACEHOLDER
    return "yes" if is_hdr else "no"


def build_detail(job: Job, estimate: ProgressEstimate | None, now: float) -> JobDetail:
    """Build the detail view content for one job."""
    return JobDetail(
        job_id=job.job_id,
        source_path=job.source_path,
        status=job.status,
        fields={column: format_cell(column, job, estimate) for column in Column},
        original_size=format_size(job.original_bytes),
        output_size=format_size(job.output_bytes),
        processing_time=_processing_time(job, now),
        hdr=_hdr_label(job.metadata.is_hdr),
        reason=job.reason or PLACEHOLDER,
        estimated_savings=None if job.is_terminal else estimate_space_savings(job),
        progress=estimate,
    )


def build_render_model(
    snapshot: JobSnapshot,
    visible: Sequence[Job],
    ui: UiState,
    layout: LayoutConfig,
    statistics: StatisticsCache,
    estimates: Mapping[str, ProgressEstimate],
    stale: bool,
    now: float,
) -> RenderModel:
    """
    Assemble the render model for one tick.

    Only the rows inside the scroll window are formatted.

    Args:
        snapshot: Current snapshot.
        visible: Filtered and sorted jobs, consistent with ``ui``.
        ui: Current UI state, with a resolved selection.
        layout: Resolved layout.
        statistics: Statistics matching ``snapshot``.
        estimates: Progress estimates keyed by job id.
        stale: Whether the feed is stale.
        now: Current Unix timestamp.

    Returns:
        The render model.
    """
    start = ui.scroll_offset
    window = visible[start : start + layout.table_rows]
    rows = tuple(
        JobRow(
            job_id=job.job_id,
            status=job.status,
            cells=tuple(format_cell(c, job, estimates.get(job.job_id)) for c in layout.columns),
            selected=job.job_id == ui.selected_id,
        )
        for job in window
    )

    detail: JobDetail | None = None
    index = ui.selected_index
    if ui.view_mode is ViewMode.DETAIL and index is not None and index < len(visible):
        selected = visible[index]
        detail = build_detail(selected, estimates.get(selected.job_id), now)

    return RenderModel(
        layout=layout,
        headers=tuple(COLUMN_HEADERS[c] for c in layout.columns),
        rows=rows,
        total_rows=len(visible),
        statistics=statistics,
        ui=ui,
        stale=stale,
        feed_status=snapshot.status,
        counts=StatusCounts.from_snapshot(snapshot),
        detail=detail,
        generated_at=now,
    )
