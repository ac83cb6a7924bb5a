"""Injectable time sources.

Planning code never reads the wall clock directly; it asks a Clock. Tests and
the simulation runner use FixedClock to step through ticks deterministically.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Protocol for time sources."""

    def now(self) -> datetime:
        ...

    def until(self, t: datetime) -> timedelta:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def until(self, t: datetime) -> timedelta:
        return t - self.now()


class FixedClock:
    """Manually driven clock.

    Holds a fixed instant until it is set or advanced.
    """

    def __init__(self, start: datetime):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def until(self, t: datetime) -> timedelta:
        return t - self._now

    def set(self, t: datetime) -> None:
        self._now = t

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward and return the new instant."""
        self._now = self._now + delta
        return self._now
