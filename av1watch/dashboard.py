"""The dashboard loop: owns the state and turns events into render models.

``TranscodeDashboard`` is the only owner of the UI state, the statistics cache,
and the frame-rate history. Every source (resize, key actions, feed refreshes,
the timer) posts into one ``EventQueue``; ``step`` drains it in priority order
and applies each event to completion before the next frame is built.
"""

import logging
from collections.abc import Callable
from collections.abc import Iterable

from av1watch.config import DEFAULT_CONFIG
from av1watch.config import DashboardConfig
from av1watch.events import Event
from av1watch.events import EventQueue
from av1watch.events import FeedUpdated
from av1watch.events import Resize
from av1watch.events import TimerTick
from av1watch.feed import JobFeed
from av1watch.feed import SafeFeed
from av1watch.filtering import visible_jobs
from av1watch.layout import LayoutConfig
from av1watch.layout import resolve_layout
from av1watch.models import JobSnapshot
from av1watch.progress import ProgressTracker
from av1watch.render_model import RenderModel
from av1watch.render_model import build_render_model
from av1watch.state.clock import Clock
from av1watch.state.clock import get_clock
from av1watch.statistics import StatisticsEngine
from av1watch.ui_state import UiState
from av1watch.ui_state import apply_event

logger = logging.getLogger(__name__)


class TranscodeDashboard:
    """
    State owner and event loop for the transcoding dashboard.

    The dashboard never touches the terminal. ``run`` is driven by two
    callables: one that draws a finished ``RenderModel`` and one that waits
    up to a timeout for input and returns the semantic events it produced.

    Attributes:
        config: Dashboard configuration.
        snapshot: The current job snapshot. Replaced whole, never mutated.
        layout: Layout for the current terminal size.
        state: Current UI state.
        statistics: Memoizing statistics engine.
        tracker: Frame-rate history for running jobs.
        queue: The merged event queue.
        started_at: Time the dashboard was created.
    """

    def __init__(
        self,
        feed: JobFeed,
        config: DashboardConfig = DEFAULT_CONFIG,
        clock: Clock | None = None,
        width: int = 80,
        height: int = 24,
    ) -> None:
        """
        Initialize the dashboard.

        Args:
            feed: Source of job snapshots. Wrapped in ``SafeFeed`` unless it
                already is one, so feed failures never reach the loop.
            config: Dashboard configuration.
            clock: Time source; the global clock when omitted.
            width: Initial terminal width.
            height: Initial terminal height.
        """
        self.config = config
        self._clock = clock
        self._feed = feed if isinstance(feed, SafeFeed) else SafeFeed(feed, clock)
        self.started_at = self._now()
        self.snapshot = JobSnapshot.unavailable(taken_at=self.started_at)
        self.layout: LayoutConfig = resolve_layout(width, height)
        self.state = UiState(
            refresh_interval=config.refresh_interval,
            window_height=self.layout.table_rows,
        )
        self.statistics = StatisticsEngine(config)
        self.tracker = ProgressTracker(config)
        self.queue = EventQueue()
        self._running = True
        self._stale_reported = False

    def _now(self) -> float:
        clock = self._clock or get_clock()
        return clock.now()

    @property
    def running(self) -> bool:
        """Whether the loop should keep going."""
        return self._running

    def request_shutdown(self) -> None:
        """Stop the loop once the frame in progress has been drawn."""
        logger.debug("Dashboard shutdown requested")
        self._running = False

    def post(self, event: Event) -> None:
        """Queue an event for the next step."""
        self.queue.push(event)

    def refresh_feed(self) -> None:
        """Fetch a snapshot from the feed and queue it."""
        self.post(FeedUpdated(self._feed.get_snapshot()))

    def step(self) -> int:
        """
        Drain the queue and apply every pending event.

        Returns:
            Number of events processed.
        """
        events = self.queue.drain()
        for event in events:
            self._dispatch(event)
        return len(events)

    def _dispatch(self, event: Event) -> None:
        if isinstance(event, Resize):
            self.layout = resolve_layout(event.width, event.height)
        elif isinstance(event, FeedUpdated):
            self.snapshot = event.snapshot
            self.tracker.observe(event.snapshot.progress, event.snapshot.taken_at)

        self.state = apply_event(self.state, event, self.snapshot.jobs)

        if isinstance(event, TimerTick):
            self._maintain(event.at)

    def _maintain(self, now: float) -> None:
        """Timer pass: refresh the statistics cache and report staleness changes."""
        self.statistics.get(self.snapshot.jobs, self.snapshot.fingerprint)
        stale = self.is_stale(now)
        if stale and not self._stale_reported:
            logger.warning("No job feed refresh for more than %.1fs", self.config.stale_after)
        elif not stale and self._stale_reported:
            logger.info("Job feed refreshes resumed")
        self._stale_reported = stale

    def is_stale(self, now: float | None = None) -> bool:
        """
        Whether too many refreshes have been missed.

        Measured from the last available snapshot, or from start-up when no
        snapshot has landed yet.
        """
        if now is None:
            now = self._now()
        reference = self.state.last_refresh_at
        if reference is None:
            reference = self.started_at
        return now - reference > self.config.stale_after

    def render(self, now: float | None = None) -> RenderModel:
        """Build the render model for the current state."""
        if now is None:
            now = self._now()
        snapshot = self.snapshot
        visible = visible_jobs(snapshot.jobs, self.state.job_filter, self.state.sort_mode)
        return build_render_model(
            snapshot=snapshot,
            visible=visible,
            ui=self.state,
            layout=self.layout,
            statistics=self.statistics.get(snapshot.jobs, snapshot.fingerprint),
            estimates=self.tracker.estimates(snapshot, now),
            stale=self.is_stale(now),
            now=now,
        )

    def run(
        self,
        draw: Callable[[RenderModel], None],
        poll_events: Callable[[float], Iterable[Event]],
    ) -> None:
        """
        Run the loop until ``request_shutdown`` is called.

        Each iteration refreshes the feed and ticks the timer when the
        refresh interval has elapsed, applies all pending events, draws a
        frame, and then waits for input until the next refresh is due.

        Args:
            draw: Called with every finished render model.
            poll_events: Called with a timeout in seconds; returns the input
                or resize events that arrived in that time.
        """
        next_refresh = self._now()
        while self._running:
            now = self._now()
            if now >= next_refresh:
                self.refresh_feed()
                self.post(TimerTick(now))
                next_refresh = now + self.state.refresh_interval

            self.step()
            draw(self.render())
            if not self._running:
                break

            timeout = max(0.0, next_refresh - self._now())
            for event in poll_events(timeout):
                self.post(event)
        logger.debug("Dashboard loop stopped")
