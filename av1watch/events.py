"""Dashboard events and the merged, prioritized event queue.

Four sources feed the loop: terminal resizes, semantic key actions, feed
refreshes, and the periodic timer. Events pending at the same loop step are
drained in a fixed priority order (resize, input, feed, timer) so that layout
and selection are settled before statistics are refreshed. Events of equal
priority keep their arrival order.
"""

import heapq
import itertools
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from enum import IntEnum

from av1watch.filtering import JobFilter
from av1watch.models import JobSnapshot


class Direction(Enum):
    """Navigation directions."""

    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"


class EventPriority(IntEnum):
    """Drain order within one loop step; lower values go first."""

    RESIZE = 0
    INPUT = 1
    FEED = 2
    TIMER = 3


@dataclass(frozen=True)
class Navigate:
    """Move the selection."""

    direction: Direction


@dataclass(frozen=True)
class SetFilter:
    """Select the status filter bound to keys 1-5."""

    number: int

    def __post_init__(self) -> None:
        # Validate eagerly so a bad key binding fails where it is created.
        JobFilter.from_number(self.number)

    @property
    def job_filter(self) -> JobFilter:
        """The filter this event selects."""
        return JobFilter.from_number(self.number)


@dataclass(frozen=True)
class CycleSort:
    """Advance to the next sort mode."""


@dataclass(frozen=True)
class Select:
    """Open the detail view (Enter in the table)."""


@dataclass(frozen=True)
class Close:
    """Return to the table (Escape, or Enter in the detail view)."""


@dataclass(frozen=True)
class Resize:
    """Terminal geometry changed."""

    width: int
    height: int


@dataclass(frozen=True)
class FeedUpdated:
    """A new job snapshot is available."""

    snapshot: JobSnapshot


@dataclass(frozen=True)
class TimerTick:
    """Periodic tick for cache maintenance and staleness checks."""

    at: float


InputEvent = Navigate | SetFilter | CycleSort | Select | Close
Event = InputEvent | Resize | FeedUpdated | TimerTick


def event_priority(event: Event) -> EventPriority:
    """Priority class of an event."""
    if isinstance(event, Resize):
        return EventPriority.RESIZE
    if isinstance(event, FeedUpdated):
        return EventPriority.FEED
    if isinstance(event, TimerTick):
        return EventPriority.TIMER
    return EventPriority.INPUT


@dataclass(order=True)
class _QueueEntry:
    priority: int
    sequence: int
    event: Event = field(compare=False)


class EventQueue:
    """
    Single merged queue for every event source.

    ``drain`` returns everything pending, ordered by priority and then by
    arrival. The queue is owned by the loop thread and is not thread-safe.
    """

    def __init__(self) -> None:
        self._heap: list[_QueueEntry] = []
        self._counter = itertools.count()

    def push(self, event: Event) -> None:
        """Add an event."""
        heapq.heappush(self._heap, _QueueEntry(event_priority(event), next(self._counter), event))

    def drain(self) -> list[Event]:
        """Remove and return all pending events in processing order."""
        events = [heapq.heappop(self._heap).event for _ in range(len(self._heap))]
        return events

    def __len__(self) -> int:
        return len(self._heap)
