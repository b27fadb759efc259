"""Clock abstraction supplying the current date to the lending engine.

Deadlines and lateness are computed from ``Clock.today()`` rather than from
``date.today()`` directly, so tests and batch jobs can pin or advance time.
"""

from datetime import date, timedelta
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the lending engine what day it is."""

    def today(self) -> date: ...


class SystemClock:
    """Clock backed by the local system date."""

    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock pinned to a given date until moved explicitly."""

    def __init__(self, current: date):
        self.current = current

    def today(self) -> date:
        return self.current

    def advance(self, days: int = 1) -> date:
        """Move the clock forward (or backward, for negative days)."""
        self.current = self.current + timedelta(days=days)
        return self.current

    def set(self, current: date) -> None:
        self.current = current
