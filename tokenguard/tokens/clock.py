"""Time sources for the token core"""
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, Union


class Clock(Protocol):
    """Supplies the current time as an aware UTC datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock (UTC)"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to.

    Used to simulate elapsed time deterministically::

        clock = ManualClock()
        service.issue("alice")
        clock.advance(7)      # seconds
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        if start is None:
            start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._now = _as_utc(start)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, delta: Union[timedelta, int, float]) -> datetime:
        """Move the clock forward by ``delta`` (a timedelta or seconds)."""
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        with self._lock:
            self._now = self._now + delta
            return self._now

    def set(self, when: datetime) -> None:
        with self._lock:
            self._now = _as_utc(when)


def _as_utc(when: datetime) -> datetime:
    # Naive datetimes are labelled UTC, not converted
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)
