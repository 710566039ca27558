"""Injectable clock for the dashboard's time-dependent computations.

Elapsed stage time, ETA, staleness, and "running for" durations all read
the current time through this module so tests can pin it.

Example usage:
    from av1watch.state import FrozenClock, set_clock

    def test_stale_after_missed_ticks():
        clock = FrozenClock(1000.0)
        set_clock(clock)
        ...
        clock.advance(10.0)
"""

import time as _time
from typing import Protocol


class Clock(Protocol):
    """Protocol for injectable time sources."""

    def now(self) -> float:
        """Return current time as Unix timestamp (seconds since epoch)."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> float:
        """Return current time as Unix timestamp."""
        return _time.time()


class FrozenClock:
    """Clock frozen at a specific time for testing.

    Attributes:
        frozen_time: The frozen Unix timestamp.

    Example:
        clock = FrozenClock(1700000000.0)
        clock.advance(60.0)
        assert clock.now() == 1700000060.0
    """

    def __init__(self, frozen_time: float | None = None) -> None:
        """Initialize with a specific frozen time.

        Args:
            frozen_time: Unix timestamp to freeze at. Defaults to current time.
        """
        self._time = frozen_time if frozen_time is not None else _time.time()

    def now(self) -> float:
        """Return the frozen time."""
        return self._time

    def advance(self, seconds: float) -> None:
        """Advance the frozen time by the given number of seconds."""
        self._time += seconds

    def set_time(self, timestamp: float) -> None:
        """Set the frozen time to a specific timestamp."""
        self._time = timestamp


_default_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Get the current default clock."""
    return _default_clock


def set_clock(clock: Clock) -> None:
    """Set the default clock (primarily for testing).

    Args:
        clock: Clock instance to use as default.
    """
    global _default_clock
    _default_clock = clock


def reset_clock() -> None:
    """Reset the default clock to SystemClock."""
    global _default_clock
    _default_clock = SystemClock()
