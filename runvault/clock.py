"""Clock abstraction so calendar-dependent logic can be tested."""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Optional


def today_key(d: Optional[date] = None) -> str:
    """Local calendar key in ``YYYYMMDD`` form.

    Args:
        d: Date or datetime to convert. Defaults to today.

    Returns:
        Eight-digit day key.
    """
    d = d or date.today()
    return f"{d.year:04d}{d.month:02d}{d.day:02d}"


def day_from_key(key: str) -> date:
    """Inverse of :func:`today_key`."""
    return datetime.strptime(key, "%Y%m%d").date()


class Clock(ABC):
    """Source of the current local time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current local timestamp."""
        pass

    def today(self) -> date:
        return self.now().date()

    def today_key(self) -> str:
        return today_key(self.now())


class SystemClock(Clock):
    """Wall clock in local time."""

    def now(self) -> datetime:
        return datetime.now()


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2025, 1, 15, 9, 0, 0)

    def now(self) -> datetime:
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now
