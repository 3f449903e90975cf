"""
Clock -- injectable source of "now".

The numbering year window and the default allocation year depend on the
current date; both read it from a Clock so tests can pin the year.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall clock, UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Always returns ``fixed_time`` (naive values are taken as UTC)."""

    def __init__(self, fixed_time: datetime):
        if fixed_time.tzinfo is None:
            fixed_time = fixed_time.replace(tzinfo=timezone.utc)
        self.fixed_time = fixed_time

    def now(self) -> datetime:
        return self.fixed_time
