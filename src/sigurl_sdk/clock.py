"""
Time sources for signing and verification

A clock is handed to ``SigURL`` at construction; nothing in the SDK reads a
process-wide "now" function.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for time sources"""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime"""
        ...


class SystemClock:
    """Wall-clock time in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return "SystemClock()"


class FixedClock:
    """
    Clock frozen at a single instant.

    Naive datetimes are taken to be UTC.
    """

    __slots__ = ('_instant',)

    def __init__(self, instant: datetime):
        if not isinstance(instant, datetime):
            raise TypeError("FixedClock instant must be a datetime")
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advanced(self, seconds: float) -> 'FixedClock':
        """Return a new clock moved forward (or back, if negative) by ``seconds``"""
        return FixedClock(self._instant + timedelta(seconds=seconds))

    def __repr__(self) -> str:
        return f"FixedClock({self._instant.isoformat()})"
