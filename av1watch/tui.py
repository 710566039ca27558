"""Rich rendering of the dashboard's render model."""

from collections.abc import Sequence
from datetime import datetime

from rich.console import Group
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from av1watch.constants import PLACEHOLDER
from av1watch.layout import Column
from av1watch.layout import LayoutMode
from av1watch.layout import StatsPanelSize
from av1watch.models import FeedStatus
from av1watch.models import JobStatus
from av1watch.models import format_duration
from av1watch.progress import ProgressEstimate
from av1watch.render_model import COLUMN_HEADERS
from av1watch.render_model import JobDetail
from av1watch.render_model import RenderModel
from av1watch.render_model import format_percent
from av1watch.render_model import format_size
from av1watch.statistics import StatisticsCache

# Accent colors
ACCENT_BLUE = "#26a8e0"
ACCENT_GREEN = "#38b44a"

# Sparkline block characters, lowest to highest
SPARK_BLOCKS = "▁▂▃▄▅▆▇█"

INSUFFICIENT_DATA = "insufficient data"
SEPARATOR = "  │  "

STATUS_STYLES: dict[JobStatus, str] = {
    JobStatus.PENDING: "yellow",
    JobStatus.RUNNING: f"bold {ACCENT_BLUE}",
    JobStatus.SUCCESS: ACCENT_GREEN,
    JobStatus.FAILED: "bold red",
    JobStatus.SKIPPED: "dim",
}

SELECTED_STYLE = "bold white on dark_blue"

# Right-aligned numeric columns
_NUMERIC_COLUMNS = frozenset({Column.PERCENT, Column.BITRATE, Column.BIT_DEPTH, Column.COMPRESSION})


def render_sparkline(values: Sequence[float], width: int | None = None) -> str:
    """
    Draw a series as a row of block glyphs scaled between its min and max.

    Args:
        values: The series, oldest first.
        width: Keep only the newest ``width`` values when given.

    Returns:
        One glyph per value; an empty string for an empty series.
    """
    if width is not None:
        values = values[-width:] if width > 0 else []
    if not values:
        return ""
    low = min(values)
    high = max(values)
    top = len(SPARK_BLOCKS) - 1
    if high <= low:
        return SPARK_BLOCKS[top // 2] * len(values)
    return "".join(SPARK_BLOCKS[round((v - low) / (high - low) * top)] for v in values)


def _progress_bar(percent: float, width: int = 30) -> Text:
    filled = int(max(0.0, min(100.0, percent)) / 100 * width)
    bar = Text()
    bar.append("█" * filled, style=ACCENT_GREEN)
    bar.append("░" * (width - filled), style="dim")
    return bar


class DashboardRenderer:
    """
    Turns a ``RenderModel`` into a rich ``Layout``.

    The renderer holds no dashboard state; everything it draws comes from
    the model, so the same model always produces the same screen.
    """

    def __init__(self, title: str = "AV1 Transcoding Monitor") -> None:
        self.title = title

    def render(self, model: RenderModel) -> Layout:
        """Create the complete screen for one frame."""
        layout = Layout()
        sections = [Layout(name="header", size=3), Layout(name="body")]
        if model.layout.stats_panel is not StatsPanelSize.HIDDEN:
            sections.append(Layout(name="stats", size=model.layout.stats_panel.rows))
        sections.append(Layout(name="status", size=3))
        layout.split_column(*sections)

        layout["header"].update(self._make_header(model))
        if model.detail is not None:
            layout["body"].update(self._make_detail_panel(model.detail))
        else:
            layout["body"].update(self._make_table(model))
        if model.layout.stats_panel is not StatsPanelSize.HIDDEN:
            layout["stats"].update(self._make_stats_panel(model))
        layout["status"].update(self._make_status_bar(model))
        return layout

    def _make_header(self, model: RenderModel) -> Panel:
        """Create the header panel with title, queue summary and clock."""
        header = Text()
        header.append("av1watch", style=f"bold {ACCENT_BLUE}")
        header.append(" │ ", style="dim")
        header.append(self.title, style="bold white")
        if model.layout.mode is not LayoutMode.MINIMAL:
            header.append(SEPARATOR, style="dim")
            header.append(f"Running: {model.counts.running}", style=ACCENT_BLUE)
            header.append(f"  Pending: {model.counts.pending}", style="yellow")
        header.append(SEPARATOR, style="dim")
        header.append(datetime.fromtimestamp(model.generated_at).strftime("%H:%M:%S"))
        return Panel(header, style="white on grey23", border_style=ACCENT_BLUE, height=3)

    def _empty_message(self, model: RenderModel) -> str:
        if model.feed_status is FeedStatus.UNAVAILABLE:
            return "[bold red]No data from the job feed[/bold red]"
        if model.counts.total == 0:
            return "[dim]No jobs[/dim]"
        return f"[dim]No {model.ui.job_filter.value} jobs[/dim]"

    def _make_table(self, model: RenderModel) -> Panel:
        """Create the job table for the rows inside the scroll window."""
        table = Table(expand=True, show_header=True, header_style="bold magenta", box=None)
        for column, header in zip(model.layout.columns, model.headers):
            justify = "right" if column in _NUMERIC_COLUMNS else "left"
            table.add_column(header, justify=justify, no_wrap=True)

        for row in model.rows:
            style = SELECTED_STYLE if row.selected else STATUS_STYLES[row.status]
            table.add_row(*row.cells, style=style)

        title = f"Jobs ({model.total_rows})"
        if model.total_rows > len(model.rows):
            first = model.ui.scroll_offset + 1
            last = model.ui.scroll_offset + len(model.rows)
            title += f" [dim]rows {first}-{last}[/dim]"
        body: Table | Group = table
        if not model.rows:
            message = Text.from_markup(self._empty_message(model), justify="center")
            body = Group(table, message)
        return Panel(body, title=title, border_style=ACCENT_BLUE, padding=0)

    def _summary_lines(self, stats: StatisticsCache) -> list[Text]:
        ratio = stats.avg_compression_ratio
        pending = format_size(stats.estimated_pending_savings)
        if stats.pending_ratio_assumed and stats.estimated_pending_savings > 0:
            pending += " (assumed ratio)"

        first = Text()
        first.append("Saved: ", style="dim")
        first.append(format_size(stats.total_space_saved), style=f"bold {ACCENT_GREEN}")
        first.append(SEPARATOR, style="dim")
        first.append("Avg ratio: ", style="dim")
        first.append(format_percent(ratio) if ratio is not None else INSUFFICIENT_DATA)
        first.append(SEPARATOR, style="dim")
        first.append("Success: ", style="dim")
        first.append(format_percent(stats.success_rate))

        second = Text()
        second.append("Processing time: ", style="dim")
        second.append(format_duration(stats.total_processing_time))
        second.append(SEPARATOR, style="dim")
        second.append("Pending savings: ", style="dim")
        second.append(f"~{pending}")

        third = Text()
        third.append(f"{stats.success_count} succeeded", style=ACCENT_GREEN)
        third.append("  ")
        third.append(f"{stats.failed_count} failed", style="red" if stats.failed_count else "dim")
        return [first, second, third]

    def _trend_lines(self, stats: StatisticsCache, width: int) -> list[Text]:
        trends = stats.trends
        if trends is None:
            return [Text(f"Trends: {INSUFFICIENT_DATA}", style="dim"), Text(""), Text("")]

        spark_width = max(1, width - 30)
        times = Text()
        times.append("Time   ", style="dim")
        if trends.processing_times is None:
            times.append(INSUFFICIENT_DATA, style="dim")
        else:
            series = trends.processing_times
            times.append(render_sparkline(series, spark_width), style=ACCENT_BLUE)
            times.append(f" {format_duration(series[-1])}")

        ratios = Text()
        ratios.append("Ratio  ", style="dim")
        if trends.compression_ratios is None:
            ratios.append(INSUFFICIENT_DATA, style="dim")
        else:
            series = trends.compression_ratios
            ratios.append(render_sparkline(series, spark_width), style=ACCENT_GREEN)
            ratios.append(f" {format_percent(series[-1])}")

        rate = Text()
        rate.append("Rate   ", style="dim")
        if trends.completion_rate is None:
            rate.append(INSUFFICIENT_DATA, style="dim")
        else:
            rate.append(f"{trends.completion_rate:.1f} jobs/h")
        rate.append(f"  (last {trends.sample_count})", style="dim")
        return [times, ratios, rate]

    def _make_stats_panel(self, model: RenderModel) -> Panel:
        """Create the statistics panel, with trend sparklines when there is room."""
        lines = self._summary_lines(model.statistics)
        if model.layout.show_trends:
            lines.extend(self._trend_lines(model.statistics, model.layout.width))
        return Panel(Group(*lines), title="Statistics", border_style=ACCENT_BLUE, padding=(0, 1))

    def _progress_rows(self, estimate: ProgressEstimate) -> list[tuple[str, Text | str]]:
        percent = Text()
        percent.append(_progress_bar(estimate.percent_complete))
        prefix = "~" if estimate.approximate else ""
        percent.append(f" {prefix}{estimate.percent_complete:.1f}%", style="bold")

        frames = f"{estimate.frames_processed:,}"
        if estimate.total_frames:
            frames += f" / {estimate.total_frames:,}"
        fps = f"{estimate.fps:.1f}" if estimate.fps is not None else PLACEHOLDER
        eta = format_duration(estimate.eta_seconds) if estimate.eta_seconds is not None else "?"
        live_ratio = estimate.compression_ratio
        return [
            ("Stage", estimate.stage.value),
            ("Progress", percent),
            ("Frames", frames),
            ("FPS", fps),
            ("ETA", eta),
            ("Projected size", format_size(estimate.estimated_final_size)),
            ("Live ratio", format_percent(live_ratio) if live_ratio is not None else PLACEHOLDER),
        ]

    def _make_detail_panel(self, detail: JobDetail) -> Panel:
        """Create the detail view for the selected job."""
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="dim", no_wrap=True)
        grid.add_column()

        grid.add_row("Path", detail.source_path)
        status_style = STATUS_STYLES[detail.status]
        grid.add_row("Status", Text(detail.status.value.upper(), style=status_style))
        for column in (Column.RESOLUTION, Column.CODEC, Column.BITRATE, Column.BIT_DEPTH):
            grid.add_row(COLUMN_HEADERS[column].title(), detail.fields[column])
        grid.add_row("HDR", detail.hdr)
        grid.add_row("Created", detail.fields[Column.CREATED])
        grid.add_row("Finished", detail.fields[Column.FINISHED])
        grid.add_row("Original size", detail.original_size)
        grid.add_row("Output size", detail.output_size)
        grid.add_row("Ratio", detail.fields[Column.COMPRESSION])
        grid.add_row("Time", detail.processing_time)
        if detail.estimated_savings is not None:
            grid.add_row("Est. savings", f"~{format_size(detail.estimated_savings)}")
        if detail.reason != PLACEHOLDER:
            grid.add_row("Reason", Text(detail.reason, style="red"))
        if detail.progress is not None:
            for label, value in self._progress_rows(detail.progress):
                grid.add_row(label, value)

        title = f"[bold]{detail.fields[Column.NAME]}[/bold] [dim](Esc to close)[/dim]"
        return Panel(grid, title=title, border_style=STATUS_STYLES[detail.status], padding=(0, 1))

    def _make_status_bar(self, model: RenderModel) -> Panel:
        """Create the status bar with counts, filter, sort and feed health."""
        counts = model.counts
        bar = Text()
        bar.append(f"Total {counts.total}", style="bold")
        for status, count in (
            (JobStatus.PENDING, counts.pending),
            (JobStatus.RUNNING, counts.running),
            (JobStatus.SUCCESS, counts.success),
            (JobStatus.FAILED, counts.failed),
            (JobStatus.SKIPPED, counts.skipped),
        ):
            bar.append(f"  {status.short_label} {count}", style=STATUS_STYLES[status])

        bar.append(SEPARATOR, style="dim")
        bar.append(f"Filter: {model.ui.job_filter.value}", style="yellow")
        bar.append(SEPARATOR, style="dim")
        bar.append(f"Sort: {model.ui.sort_mode.value}", style=ACCENT_BLUE)
        if model.layout.mode is not LayoutMode.MINIMAL:
            bar.append(SEPARATOR, style="dim")
            bar.append(f"Refresh: {model.ui.refresh_interval}s", style="dim")

        if model.feed_status is FeedStatus.UNAVAILABLE:
            bar.append("  ")
            bar.append(" NO DATA ", style="bold white on red")
        elif model.stale:
            bar.append("  ")
            bar.append(" STALE ", style="bold black on yellow")

        border = "red" if model.feed_status is FeedStatus.UNAVAILABLE else ACCENT_BLUE
        return Panel(bar, border_style=border, padding=(0, 1))
