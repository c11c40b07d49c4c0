"""
Injectable time source.

Services never call ``datetime.now()``. Every timestamp, and the calendar
day embedded in document numbers, comes from the clock handed to the
service, so tests pin time with ``DeterministicClock``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

EPOCH_FOR_TESTS = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    Time only moves when ``tick``, ``advance`` or ``set_time`` is called,
    so movement ordering and per-day document counters are reproducible.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or EPOCH_FOR_TESTS
        if self._current.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start time")

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = moment

    def advance(self, seconds: float = 1, *, days: int = 0) -> datetime:
        self._current += timedelta(days=days, seconds=seconds)
        return self._current

    def tick(self) -> datetime:
        """One second forward; created_at columns have second resolution."""
        return self.advance(1)
