"""Process-wide state helpers for av1watch."""

from av1watch.state.clock import Clock
from av1watch.state.clock import FrozenClock
from av1watch.state.clock import SystemClock
from av1watch.state.clock import get_clock
from av1watch.state.clock import reset_clock
from av1watch.state.clock import set_clock

__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "get_clock",
    "reset_clock",
    "set_clock",
]
