"""
Time source for status history and due-date reads.

Services take a :class:`Clock` in their constructor and never read the
wall clock themselves, so ``changed_at`` stamps and "days until due"
figures can be pinned in tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current instant. ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        """Calendar date used when classifying an order's due date."""
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """A clock that only moves when told to.

    Starts at ``start`` (noon UTC on 2024-01-01 when omitted) and stays
    there until :meth:`advance`, :meth:`tick` or :meth:`set_time`.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Step one second forward, e.g. between two status changes."""
        self.advance(1)
        return self._current
