"""Interactive UI state and its transitions.

All UI state lives in one frozen ``UiState`` value. ``apply_event`` is a pure
``(state, event, jobs) -> state`` function; the dashboard loop is the only
owner and replaces its state with the returned value after every event.

The selection is tracked by job identity rather than row index, because the
row a job occupies changes whenever the filter, sort, or feed changes.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import replace
from enum import Enum

from av1watch.constants import DEFAULT_REFRESH_INTERVAL
from av1watch.events import Close
from av1watch.events import CycleSort
from av1watch.events import Direction
from av1watch.events import Event
from av1watch.events import FeedUpdated
from av1watch.events import Navigate
from av1watch.events import Resize
from av1watch.events import Select
from av1watch.events import SetFilter
from av1watch.filtering import JobFilter
from av1watch.filtering import SortMode
from av1watch.filtering import visible_jobs
from av1watch.layout import resolve_layout
from av1watch.models import Job


class ViewMode(Enum):
    """Which screen is shown."""

    TABLE = "table"
    DETAIL = "detail"


@dataclass(frozen=True)
class UiState:
    """
    Complete interactive state of the dashboard.

    Attributes:
        selected_id: Identity of the selected job, or None.
        selected_index: Row of the selected job in the visible sequence.
        scroll_offset: First visible row of the table.
        job_filter: Active status filter.
        sort_mode: Active sort mode.
        view_mode: Table or detail view.
        last_refresh_at: Time the last successful snapshot was taken.
        refresh_interval: Seconds between feed refreshes.
        window_height: Table rows that fit on screen.
    """

    selected_id: str | None = None
    selected_index: int | None = None
    scroll_offset: int = 0
    job_filter: JobFilter = JobFilter.ALL
    sort_mode: SortMode = SortMode.BY_DATE
    view_mode: ViewMode = ViewMode.TABLE
    last_refresh_at: float | None = None
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    window_height: int = 1


def adjust_scroll(scroll_offset: int, selected_index: int | None, window: int, length: int) -> int:
    """
    Scroll the minimum amount needed to keep the selected row on screen.

    Args:
        scroll_offset: Current first visible row.
        selected_index: Selected row, or None.
        window: Number of visible rows.
        length: Number of rows in the table.

    Returns:
        New scroll offset in ``[0, max(0, length - window)]``.
    """
    window = max(1, window)
    if selected_index is not None:
        if selected_index < scroll_offset:
            scroll_offset = selected_index
        elif selected_index >= scroll_offset + window:
            scroll_offset = selected_index - window + 1
    return min(max(0, scroll_offset), max(0, length - window))


def _index_of(visible: Sequence[Job], job_id: str) -> int | None:
    for index, job in enumerate(visible):
        if job.job_id == job_id:
            return index
    return None


def resolve_selection(state: UiState, visible: Sequence[Job]) -> UiState:
    """
    Re-anchor the selection after the visible sequence changed.

    A selected job still present keeps its selection at its new row. A
    selected job that vanished is replaced by the job at the nearest valid
    row to its old one. An empty sequence clears the selection. The detail
    view falls back to the table whenever its job is no longer visible.

    Args:
        state: Current state.
        visible: The new filtered and sorted sequence.

    Returns:
        State with a valid selection and scroll offset.
    """
    length = len(visible)
    selected_id = state.selected_id
    index: int | None = None

    if selected_id is not None:
        index = _index_of(visible, selected_id)
        if index is None:
            if length == 0:
                selected_id = None
            else:
                index = min(state.selected_index or 0, length - 1)
                selected_id = visible[index].job_id

    view_mode = state.view_mode
    if view_mode is ViewMode.DETAIL and (selected_id is None or selected_id != state.selected_id):
        view_mode = ViewMode.TABLE

    return replace(
        state,
        selected_id=selected_id,
        selected_index=index,
        scroll_offset=adjust_scroll(state.scroll_offset, index, state.window_height, length),
        view_mode=view_mode,
    )


def _navigate(state: UiState, direction: Direction, visible: Sequence[Job]) -> UiState:
    state = resolve_selection(state, visible)
    if not visible:
        return state

    last = len(visible) - 1
    forward = direction in (Direction.DOWN, Direction.PAGE_DOWN)
    step = state.window_height if direction in (Direction.PAGE_UP, Direction.PAGE_DOWN) else 1

    if state.selected_index is None:
        index = 0 if forward else last
    elif forward:
        index = min(last, state.selected_index + step)
    else:
        index = max(0, state.selected_index - step)

    return replace(
        state,
        selected_id=visible[index].job_id,
        selected_index=index,
        scroll_offset=adjust_scroll(state.scroll_offset, index, state.window_height, len(visible)),
    )


def apply_event(state: UiState, event: Event, jobs: Sequence[Job]) -> UiState:
    """
    Advance the UI state by one event.

    Args:
        state: Current state.
        event: The event to apply. Timer ticks leave the state unchanged.
        jobs: The full job set the table is derived from. For FeedUpdated
            the event's own snapshot is used instead.

    Returns:
        The next state.
    """
    if isinstance(event, FeedUpdated):
        snapshot = event.snapshot
        if snapshot.available:
            state = replace(state, last_refresh_at=snapshot.taken_at)
        return resolve_selection(
            state, visible_jobs(snapshot.jobs, state.job_filter, state.sort_mode)
        )

    if isinstance(event, Resize):
        layout = resolve_layout(event.width, event.height)
        state = replace(state, window_height=layout.table_rows)
        return resolve_selection(state, visible_jobs(jobs, state.job_filter, state.sort_mode))

    if state.view_mode is ViewMode.DETAIL:
        if isinstance(event, (Close, Select)):
            return replace(state, view_mode=ViewMode.TABLE)
        return state

    if isinstance(event, Navigate):
        visible = visible_jobs(jobs, state.job_filter, state.sort_mode)
        return _navigate(state, event.direction, visible)

    if isinstance(event, SetFilter):
        state = replace(state, job_filter=event.job_filter)
        return resolve_selection(state, visible_jobs(jobs, state.job_filter, state.sort_mode))

    if isinstance(event, CycleSort):
        state = replace(state, sort_mode=state.sort_mode.next())
        return resolve_selection(state, visible_jobs(jobs, state.job_filter, state.sort_mode))

    if isinstance(event, Select):
        state = resolve_selection(state, visible_jobs(jobs, state.job_filter, state.sort_mode))
        if state.selected_id is not None:
            return replace(state, view_mode=ViewMode.DETAIL)
        return state

    return state
