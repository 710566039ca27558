"""Integration tests driving the dashboard from a real job-state directory.

A small writer plays the transcoding daemon: it creates, updates and removes
job files the way the daemon does, while the dashboard refreshes from the
directory and draws frames with the rich renderer.

Run with:
    pytest tests/integration -v
"""

import io
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from av1watch.config import DashboardConfig
from av1watch.dashboard import TranscodeDashboard
from av1watch.events import Direction
from av1watch.events import Navigate
from av1watch.events import Select
from av1watch.events import SetFilter
from av1watch.events import TimerTick
from av1watch.feed import JobStateDirFeed
from av1watch.models import FeedStatus
from av1watch.models import JobStatus
from av1watch.state.clock import FrozenClock
from av1watch.tui import DashboardRenderer
from av1watch.ui_state import ViewMode
from tests.conftest import BASE_TIME
from tests.conftest import write_job_file

pytestmark = pytest.mark.integration

GB = 1_000_000_000


class DaemonWriter:
    """Writes job files the way the transcoding daemon does."""

    def __init__(self, directory: Path, clock: FrozenClock) -> None:
        self.directory = directory
        self.clock = clock
        self.records: dict[str, dict[str, Any]] = {}

    def enqueue(self, job_id: str, original_bytes: int) -> None:
        self.records[job_id] = {
            "id": job_id,
            "source_path": f"/media/library/{job_id}.mkv",
            "status": "pending",
            "created_at": self.clock.now(),
            "original_bytes": original_bytes,
            "video_width": 1920,
            "video_height": 1080,
            "video_codec": "h264",
            "video_bitrate": 8_000_000,
            "video_frame_rate": "24000/1001",
        }
        self._flush(job_id)

    def start(self, job_id: str, total_frames: int) -> None:
        now = self.clock.now()
        self.records[job_id].update(
            status="running",
            started_at=now,
            progress={
                "stage": "transcoding",
                "frames_processed": 0,
                "total_frames": total_frames,
                "bytes_written": 0,
                "stage_started_at": now,
                "reported_at": now,
            },
        )
        self._flush(job_id)

    def report(self, job_id: str, frames: int, bytes_written: int) -> None:
        progress = self.records[job_id]["progress"]
        progress.update(
            frames_processed=frames, bytes_written=bytes_written, reported_at=self.clock.now()
        )
        self._flush(job_id)

    def finish(self, job_id: str, new_bytes: int) -> None:
        record = self.records[job_id]
        record.pop("progress", None)
        record.update(status="success", finished_at=self.clock.now(), new_bytes=new_bytes)
        self._flush(job_id)

    def fail(self, job_id: str, reason: str) -> None:
        record = self.records[job_id]
        record.pop("progress", None)
        record.update(status="failed", finished_at=self.clock.now(), reason=reason)
        self._flush(job_id)

    def remove(self, job_id: str) -> None:
        del self.records[job_id]
        (self.directory / f"{job_id}.json").unlink()

    def _flush(self, job_id: str) -> None:
        write_job_file(self.directory, self.records[job_id])


def draw_text(dashboard: TranscodeDashboard) -> str:
    model = dashboard.render()
    console = Console(
        record=True,
        width=model.layout.width,
        height=model.layout.height,
        color_system=None,
        file=io.StringIO(),
    )
    console.print(DashboardRenderer().render(model))
    return console.export_text()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(BASE_TIME)


@pytest.fixture
def daemon(job_state_dir: Path, clock: FrozenClock) -> DaemonWriter:
    return DaemonWriter(job_state_dir, clock)


@pytest.fixture
def dashboard(job_state_dir: Path, clock: FrozenClock) -> TranscodeDashboard:
    feed = JobStateDirFeed(job_state_dir, clock=clock)
    config = DashboardConfig(refresh_interval=1.0, missed_tick_threshold=3)
    return TranscodeDashboard(feed, config=config, clock=clock, width=180, height=40)


def tick(dashboard: TranscodeDashboard, clock: FrozenClock, seconds: float = 1.0) -> None:
    clock.advance(seconds)
    dashboard.refresh_feed()
    dashboard.post(TimerTick(clock.now()))
    dashboard.step()


class TestJobLifecycle:
    """Dashboard behavior across a full transcode lifecycle."""

    def test_queue_to_completion(
        self, dashboard: TranscodeDashboard, daemon: DaemonWriter, clock: FrozenClock
    ) -> None:
        """Test progress, smoothed fps, ETA and final statistics."""
        daemon.enqueue("movie", 4 * GB)
        daemon.enqueue("episode", 2 * GB)
        tick(dashboard, clock)
        assert dashboard.snapshot.count_by_status(JobStatus.PENDING) == 2

        daemon.start("movie", total_frames=2400)
        tick(dashboard, clock, 0.0)
        for frames in (240, 480, 720):
            clock.advance(10.0)
            daemon.report("movie", frames, frames * 500_000)
            tick(dashboard, clock, 0.0)

        estimate = dashboard.tracker.estimates(dashboard.snapshot, clock.now())["movie"]
        assert estimate.percent_complete == pytest.approx(30.0)
        assert estimate.fps == pytest.approx(24.0)
        assert estimate.eta_seconds == pytest.approx(1680 / 24.0)
        assert "30%" in draw_text(dashboard)

        clock.advance(60.0)
        daemon.finish("movie", new_bytes=GB)
        tick(dashboard, clock)
        statistics = dashboard.render().statistics
        assert statistics.total_space_saved == 3 * GB
        assert statistics.avg_compression_ratio == pytest.approx(0.25)
        assert statistics.estimated_pending_savings == pytest.approx(2 * GB * 0.75)
        assert dashboard.tracker.smoothed_fps("movie") is None

    def test_selection_follows_job_across_refreshes(
        self, dashboard: TranscodeDashboard, daemon: DaemonWriter, clock: FrozenClock
    ) -> None:
        """Test that the selection and detail view survive status changes."""
        for name in ("a", "b", "c"):
            daemon.enqueue(name, GB)
            clock.advance(1.0)
        tick(dashboard, clock)
        dashboard.post(Navigate(Direction.DOWN))
        dashboard.post(Navigate(Direction.DOWN))
        dashboard.post(Select())
        dashboard.step()
        assert dashboard.state.selected_id == "b"
        assert dashboard.state.view_mode is ViewMode.DETAIL

        daemon.start("b", total_frames=100)
        tick(dashboard, clock)
        assert dashboard.state.selected_id == "b"
        assert dashboard.state.view_mode is ViewMode.DETAIL
        assert "Esc to close" in draw_text(dashboard)

        daemon.remove("b")
        tick(dashboard, clock)
        assert dashboard.state.view_mode is ViewMode.TABLE
        assert dashboard.state.selected_id in {"a", "c"}

    def test_filter_keeps_counts(
        self, dashboard: TranscodeDashboard, daemon: DaemonWriter, clock: FrozenClock
    ) -> None:
        """Test that filtering narrows the table but not the status bar."""
        daemon.enqueue("ok", GB)
        daemon.enqueue("bad", GB)
        daemon.start("bad", total_frames=10)
        daemon.fail("bad", "encoder crashed")
        tick(dashboard, clock)
        dashboard.post(SetFilter(5))
        dashboard.step()
        model = dashboard.render()
        assert [row.job_id for row in model.rows] == ["bad"]
        assert model.counts.total == 2
        assert model.statistics.success_rate == 0.0


class TestFeedOutage:
    """Dashboard behavior when the job-state directory disappears."""

    def test_outage_and_recovery(
        self,
        dashboard: TranscodeDashboard,
        daemon: DaemonWriter,
        clock: FrozenClock,
        job_state_dir: Path,
    ) -> None:
        """Test the no-data state, staleness and recovery."""
        daemon.enqueue("movie", GB)
        tick(dashboard, clock)
        assert dashboard.render().feed_status is FeedStatus.OK

        moved = job_state_dir.with_name("jobs.offline")
        job_state_dir.rename(moved)
        for _ in range(4):
            tick(dashboard, clock)
        model = dashboard.render()
        assert model.feed_status is FeedStatus.UNAVAILABLE
        assert model.stale
        assert "NO DATA" in draw_text(dashboard)

        moved.rename(job_state_dir)
        tick(dashboard, clock)
        model = dashboard.render()
        assert model.feed_status is FeedStatus.OK
        assert not model.stale
        assert model.total_rows == 1
