"""Tests for UI state transitions and selection resolution."""

import random
from dataclasses import replace

import pytest

from av1watch.events import Close
from av1watch.events import CycleSort
from av1watch.events import Direction
from av1watch.events import Event
from av1watch.events import FeedUpdated
from av1watch.events import Navigate
from av1watch.events import Resize
from av1watch.events import Select
from av1watch.events import SetFilter
from av1watch.events import TimerTick
from av1watch.filtering import JobFilter
from av1watch.filtering import SortMode
from av1watch.filtering import visible_jobs
from av1watch.models import Job
from av1watch.models import JobSnapshot
from av1watch.models import JobStatus
from av1watch.ui_state import UiState
from av1watch.ui_state import ViewMode
from av1watch.ui_state import adjust_scroll
from av1watch.ui_state import apply_event
from av1watch.ui_state import resolve_selection
from tests.conftest import BASE_TIME
from tests.conftest import make_job
from tests.conftest import make_snapshot


def numbered_jobs(count: int) -> list[Job]:
    """Pending jobs j00, j01, ... with j00 newest, so BY_DATE keeps them in order."""
    return [
        make_job(f"j{i:02d}", JobStatus.PENDING, created_at=BASE_TIME - i) for i in range(count)
    ]


def select(state: UiState, jobs: list[Job], job_id: str) -> UiState:
    """Put the selection on a job directly."""
    visible = visible_jobs(jobs, state.job_filter, state.sort_mode)
    index = [job.job_id for job in visible].index(job_id)
    return resolve_selection(replace(state, selected_id=job_id, selected_index=index), visible)


class TestAdjustScroll:
    """Tests for adjust_scroll."""

    def test_no_change_when_visible(self) -> None:
        """Test that a selection already on screen does not scroll."""
        assert adjust_scroll(5, 7, 5, 100) == 5

    def test_scrolls_up_to_selection(self) -> None:
        """Test scrolling up just enough."""
        assert adjust_scroll(10, 4, 5, 100) == 4

    def test_scrolls_down_minimally(self) -> None:
        """Test that the selection ends up on the last visible row."""
        assert adjust_scroll(0, 12, 5, 100) == 8

    def test_clamped_to_list(self) -> None:
        """Test that scrolling never passes the end of the list."""
        assert adjust_scroll(50, None, 5, 10) == 5
        assert adjust_scroll(3, None, 20, 10) == 0


class TestNavigation:
    """Tests for Navigate events."""

    def test_down_without_selection_selects_first(self) -> None:
        """Test that the first Down selects the top row."""
        jobs = numbered_jobs(3)
        state = apply_event(UiState(window_height=5), Navigate(Direction.DOWN), jobs)
        assert state.selected_id == "j00"
        assert state.selected_index == 0

    def test_up_without_selection_selects_last(self) -> None:
        """Test that the first Up selects the bottom row."""
        jobs = numbered_jobs(3)
        state = apply_event(UiState(window_height=5), Navigate(Direction.UP), jobs)
        assert state.selected_id == "j02"

    def test_navigation_clamps_at_ends(self) -> None:
        """Test that moving past either end stays on the edge row."""
        jobs = numbered_jobs(3)
        state = select(UiState(window_height=5), jobs, "j02")
        state = apply_event(state, Navigate(Direction.DOWN), jobs)
        assert state.selected_id == "j02"
        state = select(state, jobs, "j00")
        state = apply_event(state, Navigate(Direction.UP), jobs)
        assert state.selected_id == "j00"

    def test_page_moves_by_window_and_scrolls(self) -> None:
        """Test that PageDown moves a full window and scrolls minimally."""
        jobs = numbered_jobs(30)
        state = select(UiState(window_height=10), jobs, "j00")
        state = apply_event(state, Navigate(Direction.PAGE_DOWN), jobs)
        assert state.selected_index == 10
        assert state.scroll_offset == 1
        state = apply_event(state, Navigate(Direction.PAGE_UP), jobs)
        assert state.selected_index == 0
        assert state.scroll_offset == 0

    def test_navigation_on_empty_list(self) -> None:
        """Test that navigating an empty table leaves nothing selected."""
        state = apply_event(UiState(), Navigate(Direction.DOWN), [])
        assert state.selected_id is None
        assert state.selected_index is None


class TestFilterAndSort:
    """Tests for SetFilter and CycleSort events."""

    def test_filter_running_to_all_keeps_selection(self) -> None:
        """Test that a job that stopped running stays selected under All."""
        running = make_job("r1", JobStatus.RUNNING)
        other = make_job("r2", JobStatus.RUNNING, created_at=BASE_TIME + 1)
        initial = UiState(job_filter=JobFilter.RUNNING, window_height=5)
        state = select(initial, [running, other], "r1")
        finished = [
            make_job("r1", JobStatus.SUCCESS),
            other,
            make_job("p1", JobStatus.PENDING, created_at=BASE_TIME + 2),
        ]
        state = apply_event(state, SetFilter(1), finished)
        assert state.job_filter is JobFilter.ALL
        assert state.selected_id == "r1"
        assert state.selected_index == 2

    def test_filter_change_does_not_scroll_away(self) -> None:
        """Test that a still-visible selection keeps the scroll offset."""
        jobs = numbered_jobs(20)
        state = select(UiState(window_height=5), jobs, "j12")
        state = replace(state, scroll_offset=10)
        state = apply_event(state, SetFilter(2), jobs)
        assert state.selected_id == "j12"
        assert state.scroll_offset == 10

    def test_filter_reclamps_vanished_selection(self) -> None:
        """Test that a filtered-out selection moves to the nearest valid row."""
        jobs = [*numbered_jobs(3), make_job("f1", JobStatus.FAILED, created_at=BASE_TIME - 10)]
        state = select(UiState(window_height=5), jobs, "f1")
        state = apply_event(state, SetFilter(2), jobs)
        assert state.selected_id == "j02"
        assert state.selected_index == 2

    def test_filter_to_empty_clears_selection(self) -> None:
        """Test that an empty result clears the selection."""
        jobs = numbered_jobs(3)
        state = select(UiState(window_height=5), jobs, "j01")
        state = apply_event(state, SetFilter(5), jobs)
        assert state.selected_id is None
        assert state.selected_index is None
        assert state.scroll_offset == 0

    def test_cycle_sort_tracks_identity(self) -> None:
        """Test that the selected job is followed to its new row."""
        jobs = [
            make_job("old-running", JobStatus.RUNNING, created_at=BASE_TIME),
            make_job("new-pending", JobStatus.PENDING, created_at=BASE_TIME + 10),
        ]
        state = select(UiState(window_height=5), jobs, "old-running")
        assert state.selected_index == 1
        state = apply_event(state, CycleSort(), jobs)
        assert state.sort_mode is SortMode.BY_SIZE
        state = apply_event(state, CycleSort(), jobs)
        assert state.sort_mode is SortMode.BY_STATUS
        assert state.selected_id == "old-running"
        assert state.selected_index == 0


class TestViewMode:
    """Tests for Table and Detail transitions."""

    def test_select_opens_detail(self) -> None:
        """Test that Enter with a selection opens the detail view."""
        jobs = numbered_jobs(3)
        state = select(UiState(window_height=5), jobs, "j01")
        state = apply_event(state, Select(), jobs)
        assert state.view_mode is ViewMode.DETAIL
        assert state.selected_id == "j01"

    def test_select_without_selection_stays_in_table(self) -> None:
        """Test that Enter with nothing selected does nothing."""
        state = apply_event(UiState(), Select(), numbered_jobs(3))
        assert state.view_mode is ViewMode.TABLE

    @pytest.mark.parametrize("event", [Close(), Select()])
    def test_close_returns_to_table(self, event: Event) -> None:
        """Test that Escape or Enter leaves the detail view, keeping the selection."""
        jobs = numbered_jobs(3)
        state = select(UiState(window_height=5), jobs, "j01")
        state = apply_event(state, Select(), jobs)
        state = apply_event(state, event, jobs)
        assert state.view_mode is ViewMode.TABLE
        assert state.selected_id == "j01"

    @pytest.mark.parametrize("event", [SetFilter(2), CycleSort(), Navigate(Direction.DOWN)])
    def test_table_actions_ignored_in_detail(self, event: Event) -> None:
        """Test that filter, sort and navigation only act in the table."""
        jobs = numbered_jobs(3)
        state = apply_event(select(UiState(window_height=5), jobs, "j01"), Select(), jobs)
        assert apply_event(state, event, jobs) == state

    def test_detail_survives_feed_update(self) -> None:
        """Test that a refresh keeps the detail view while its job exists."""
        jobs = numbered_jobs(3)
        state = apply_event(select(UiState(window_height=5), jobs, "j01"), Select(), jobs)
        state = apply_event(state, FeedUpdated(make_snapshot(jobs)), jobs)
        assert state.view_mode is ViewMode.DETAIL

    def test_detail_falls_back_when_job_disappears(self) -> None:
        """Test that the detail view closes when its job leaves the feed."""
        jobs = numbered_jobs(3)
        state = apply_event(select(UiState(window_height=5), jobs, "j01"), Select(), jobs)
        remaining = [job for job in jobs if job.job_id != "j01"]
        state = apply_event(state, FeedUpdated(make_snapshot(remaining)), jobs)
        assert state.view_mode is ViewMode.TABLE
        assert state.selected_id == "j02"

    def test_resize_keeps_view_mode(self) -> None:
        """Test that a resize never changes the view."""
        jobs = numbered_jobs(3)
        state = apply_event(select(UiState(window_height=5), jobs, "j01"), Select(), jobs)
        state = apply_event(state, Resize(60, 10), jobs)
        assert state.view_mode is ViewMode.DETAIL


class TestFeedAndResize:
    """Tests for FeedUpdated, Resize and TimerTick events."""

    def test_feed_update_records_refresh_time(self) -> None:
        """Test that an available snapshot sets last_refresh_at."""
        snapshot = make_snapshot(numbered_jobs(2), taken_at=BASE_TIME + 42)
        state = apply_event(UiState(), FeedUpdated(snapshot), [])
        assert state.last_refresh_at == BASE_TIME + 42

    def test_unavailable_feed_clears_jobs_but_not_refresh_time(self) -> None:
        """Test that a failed refresh empties the table without counting as a refresh."""
        jobs = numbered_jobs(3)
        state = select(UiState(window_height=5, last_refresh_at=BASE_TIME), jobs, "j01")
        state = apply_event(state, FeedUpdated(JobSnapshot.unavailable(BASE_TIME + 10)), jobs)
        assert state.selected_id is None
        assert state.last_refresh_at == BASE_TIME

    def test_resize_updates_window_and_clamps_scroll(self) -> None:
        """Test that shrinking the window keeps the selection visible."""
        jobs = numbered_jobs(40)
        state = select(UiState(window_height=30), jobs, "j25")
        state = apply_event(state, Resize(100, 16), jobs)
        assert state.window_height == 2
        assert state.scroll_offset <= 25 < state.scroll_offset + state.window_height

    def test_timer_tick_changes_nothing(self) -> None:
        """Test that a timer tick leaves the state untouched."""
        jobs = numbered_jobs(3)
        state = select(UiState(window_height=5), jobs, "j01")
        assert apply_event(state, TimerTick(BASE_TIME), jobs) == state


class TestSelectionInvariant:
    """Randomized event sequences never break selection or scroll bounds."""

    @pytest.mark.parametrize("seed", range(10))
    def test_random_event_sequences(self, seed: int) -> None:
        """Test invariants after every event in a random sequence."""
        rng = random.Random(seed)
        statuses = list(JobStatus)
        jobs: list[Job] = []
        state = UiState(window_height=4)

        for _ in range(200):
            choice = rng.randrange(6)
            if choice == 0:
                jobs = [
                    make_job(
                        f"j{rng.randrange(30)}",
                        rng.choice(statuses),
                        created_at=BASE_TIME + rng.randrange(100),
                    )
                    for _ in range(rng.randrange(15))
                ]
                jobs = list({job.job_id: job for job in jobs}.values())
                event: Event = FeedUpdated(make_snapshot(jobs))
            elif choice == 1:
                event = Navigate(rng.choice(list(Direction)))
            elif choice == 2:
                event = SetFilter(rng.randint(1, 5))
            elif choice == 3:
                event = CycleSort()
            elif choice == 4:
                event = rng.choice([Select(), Close()])
            else:
                event = Resize(rng.randrange(40, 200), rng.randrange(5, 50))

            state = apply_event(state, event, jobs)
            visible = visible_jobs(jobs, state.job_filter, state.sort_mode)
            if state.selected_id is None:
                assert state.view_mode is ViewMode.TABLE
            else:
                assert state.selected_index is not None
                assert visible[state.selected_index].job_id == state.selected_id
            assert 0 <= state.scroll_offset <= max(0, len(visible) - state.window_height)
