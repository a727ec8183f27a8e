"""Clock abstraction so that date dependent queries can be tested with a fixed day."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional


class Clock(ABC):
    """Source of the current date and time."""

    @abstractmethod
    def now(self) -> datetime:
        pass

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now()


class FrozenClock(Clock):
    """Clock that always returns the same moment."""

    def __init__(self, moment: datetime):
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, datetime.min.time())
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = moment


_default_clock: Optional[Clock] = None


def get_clock() -> Clock:
    """Get the process wide clock, the system clock unless replaced."""
    global _default_clock
    if _default_clock is None:
        _default_clock = SystemClock()
    return _default_clock
