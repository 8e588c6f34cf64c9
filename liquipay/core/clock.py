"""Injectable time source so lifecycle and QR stamping never read the wall clock directly.

Times are naive local datetimes: day boundaries (overdue checks, "generated today")
are local midnight.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current local time."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Clock pinned to a given instant; advance() moves it forward."""

    def __init__(self, fixed_time: datetime):
        self._fixed_time = fixed_time

    def now(self) -> datetime:
        return self._fixed_time

    def set_time(self, time: datetime) -> None:
        self._fixed_time = time

    def advance(self, **kwargs) -> datetime:
        self._fixed_time = self._fixed_time + timedelta(**kwargs)
        return self._fixed_time


system_clock = SystemClock()
