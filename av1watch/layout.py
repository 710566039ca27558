"""Responsive layout resolution from terminal geometry.

``resolve_layout`` is a pure function of ``(width, height)``. Columns come
from a single canonical order and each wider mode only appends to the column
list of the narrower one, so growing the terminal never reorders or drops a
column.
"""

from dataclasses import dataclass
from enum import Enum

#: Below this width (or height) only the minimal table fits
MIN_WIDTH: int = 80
MIN_HEIGHT: int = 12

#: Widths below this are Small; from here through LARGE_WIDTH are Medium
MEDIUM_WIDTH: int = 120
LARGE_WIDTH: int = 160

#: Heights gating the statistics panel
COMPACT_STATS_HEIGHT: int = 15
FULL_STATS_HEIGHT: int = 20

#: Rows used by fixed chrome: header panel, status bar, table border and header row
HEADER_ROWS: int = 3
STATUS_BAR_ROWS: int = 3
TABLE_CHROME_ROWS: int = 3


class LayoutMode(Enum):
    """Overall layout density."""

    MINIMAL = "minimal"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class StatsPanelSize(Enum):
    """How much of the statistics panel is shown."""

    HIDDEN = "hidden"
    COMPACT = "compact"
    FULL = "full"

    @property
    def rows(self) -> int:
        """Terminal rows the panel occupies, borders included."""
        return _STATS_PANEL_ROWS[self]


# Compact: 3 summary lines. Full: 3 summary lines plus 3 trend lines.
_STATS_PANEL_ROWS: dict[StatsPanelSize, int] = {
    StatsPanelSize.HIDDEN: 0,
    StatsPanelSize.COMPACT: 5,
    StatsPanelSize.FULL: 8,
}


class Column(Enum):
    """Job table columns, in canonical display order."""

    NAME = "name"
    STATUS = "status"
    PERCENT = "percent"
    RESOLUTION = "resolution"
    CODEC = "codec"
    BITRATE = "bitrate"
    HDR = "hdr"
    BIT_DEPTH = "bit_depth"
    COMPRESSION = "compression"
    CREATED = "created"
    FINISHED = "finished"


MODE_COLUMNS: dict[LayoutMode, tuple[Column, ...]] = {
    LayoutMode.MINIMAL: (Column.NAME, Column.STATUS, Column.PERCENT),
    LayoutMode.SMALL: (
        Column.NAME,
        Column.STATUS,
        Column.PERCENT,
        Column.RESOLUTION,
        Column.CODEC,
    ),
    LayoutMode.MEDIUM: (
        Column.NAME,
        Column.STATUS,
        Column.PERCENT,
        Column.RESOLUTION,
        Column.CODEC,
        Column.BITRATE,
        Column.HDR,
        Column.BIT_DEPTH,
    ),
    LayoutMode.LARGE: tuple(Column),
}


@dataclass(frozen=True)
class LayoutConfig:
    """
    Structural description of one frame of the dashboard.

    Attributes:
        width: Terminal width in columns.
        height: Terminal height in rows.
        mode: Overall layout density.
        columns: Visible job table columns, in display order.
        stats_panel: Statistics panel size class.
        table_rows: Job rows that fit in the table window (at least 1).
    """

    width: int
    height: int
    mode: LayoutMode
    columns: tuple[Column, ...]
    stats_panel: StatsPanelSize
    table_rows: int

    @property
    def show_trends(self) -> bool:
        """Whether sparklines are drawn."""
        return self.stats_panel is StatsPanelSize.FULL


def layout_mode(width: int, height: int) -> LayoutMode:
    """Pick the layout density for a terminal size."""
    if width < MIN_WIDTH or height < MIN_HEIGHT:
        return LayoutMode.MINIMAL
    if width < MEDIUM_WIDTH:
        return LayoutMode.SMALL
    if width <= LARGE_WIDTH:
        return LayoutMode.MEDIUM
    return LayoutMode.LARGE


def stats_panel_size(height: int) -> StatsPanelSize:
    """Pick the statistics panel size for a terminal height."""
    if height < COMPACT_STATS_HEIGHT:
        return StatsPanelSize.HIDDEN
    if height < FULL_STATS_HEIGHT:
        return StatsPanelSize.COMPACT
    return StatsPanelSize.FULL


def resolve_layout(width: int, height: int) -> LayoutConfig:
    """
    Resolve the layout for a terminal size.

    Negative sizes are treated as zero; any size too small for the regular
    layout falls back to Minimal rather than failing.

    Args:
        width: Terminal width in columns.
        height: Terminal height in rows.

    Returns:
        The layout description.
    """
    width = max(0, width)
    height = max(0, height)
    mode = layout_mode(width, height)
    stats = stats_panel_size(height)
    chrome = HEADER_ROWS + STATUS_BAR_ROWS + TABLE_CHROME_ROWS + stats.rows
    return LayoutConfig(
        width=width,
        height=height,
        mode=mode,
        columns=MODE_COLUMNS[mode],
        stats_panel=stats,
        table_rows=max(1, height - chrome),
    )
