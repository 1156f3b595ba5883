"""Current-time source for scheduling code, injectable for tests"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from .config import BUSINESS_TIMEZONE


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC"""

    @abstractmethod
    def local_now(self) -> datetime:
        """Current wall-clock time where appointments are booked (naive)"""


class SystemClock(Clock):
    def __init__(self, tz_name: Optional[str] = None):
        self.tz = ZoneInfo(tz_name) if tz_name else None

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def local_now(self) -> datetime:
        if self.tz is None:
            return datetime.now()
        return datetime.now(self.tz).replace(tzinfo=None)


_system_clock = SystemClock(BUSINESS_TIMEZONE)


def get_clock() -> Clock:
    """FastAPI dependency; override in tests to freeze time"""
    return _system_clock
