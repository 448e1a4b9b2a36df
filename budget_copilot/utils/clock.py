"""Injectable clocks so expiry logic never reads the wall clock directly"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


def _as_utc(moment: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    return moment.replace(tzinfo=timezone.utc) if moment.tzinfo is None else moment


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Test clock: returns a set instant until moved"""

    def __init__(self, now: datetime):
        self._now = _as_utc(now)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, now: datetime) -> None:
        with self._lock:
            self._now = _as_utc(now)

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(**kwargs)
            return self._now
