"""Tests for dashboard events and the merged event queue."""

import pytest

from av1watch.events import Close
from av1watch.events import CycleSort
from av1watch.events import Direction
from av1watch.events import EventPriority
from av1watch.events import EventQueue
from av1watch.events import FeedUpdated
from av1watch.events import Navigate
from av1watch.events import Resize
from av1watch.events import Select
from av1watch.events import SetFilter
from av1watch.events import TimerTick
from av1watch.events import event_priority
from av1watch.filtering import JobFilter
from av1watch.models import JobSnapshot


class TestSetFilter:
    """Tests for the SetFilter event."""

    def test_maps_number_to_filter(self) -> None:
        """Test that the event exposes the selected filter."""
        assert SetFilter(3).job_filter is JobFilter.RUNNING

    @pytest.mark.parametrize("number", [0, 6])
    def test_rejects_invalid_number(self, number: int) -> None:
        """Test that out-of-range numbers fail on construction."""
        with pytest.raises(ValueError):
            SetFilter(number)


class TestEventPriority:
    """Tests for event_priority."""

    def test_priorities(self) -> None:
        """Test the priority class of each event type."""
        assert event_priority(Resize(80, 24)) is EventPriority.RESIZE
        assert event_priority(Navigate(Direction.UP)) is EventPriority.INPUT
        assert event_priority(SetFilter(1)) is EventPriority.INPUT
        assert event_priority(CycleSort()) is EventPriority.INPUT
        assert event_priority(Select()) is EventPriority.INPUT
        assert event_priority(Close()) is EventPriority.INPUT
        assert event_priority(FeedUpdated(JobSnapshot.unavailable())) is EventPriority.FEED
        assert event_priority(TimerTick(0.0)) is EventPriority.TIMER


class TestEventQueue:
    """Tests for EventQueue."""

    def test_drain_orders_by_priority(self) -> None:
        """Test resize before input before feed before timer."""
        queue = EventQueue()
        tick = TimerTick(1.0)
        feed = FeedUpdated(JobSnapshot.unavailable())
        key = Navigate(Direction.DOWN)
        resize = Resize(100, 40)
        for event in (tick, feed, key, resize):
            queue.push(event)
        assert queue.drain() == [resize, key, feed, tick]

    def test_fifo_within_priority(self) -> None:
        """Test that events of one priority keep their arrival order."""
        queue = EventQueue()
        events = [Navigate(Direction.DOWN), CycleSort(), Navigate(Direction.UP), Select()]
        for event in events:
            queue.push(event)
        assert queue.drain() == events

    def test_equal_events_keep_order(self) -> None:
        """Test that identical events do not need to be comparable."""
        queue = EventQueue()
        first = Resize(80, 24)
        second = Resize(80, 24)
        queue.push(first)
        queue.push(second)
        drained = queue.drain()
        assert drained[0] is first
        assert drained[1] is second

    def test_drain_empties_queue(self) -> None:
        """Test that drain removes everything."""
        queue = EventQueue()
        queue.push(CycleSort())
        assert len(queue) == 1
        queue.drain()
        assert len(queue) == 0
        assert queue.drain() == []
