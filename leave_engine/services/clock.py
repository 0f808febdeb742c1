from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock frozen at a given instant; tests move it with ``set``."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing)."""
    global _clock
    _clock = clock


def now() -> datetime:
    return _clock.now()


def today(tz_name: str | None = None) -> date:
    """Current date in ``tz_name``, or in UTC when no zone is given."""
    instant = _clock.now()
    if tz_name is None:
        return instant.astimezone(UTC).date()
    return instant.astimezone(ZoneInfo(tz_name)).date()
