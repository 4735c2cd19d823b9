"""Clock sources and time-zone helpers.

Nothing in the session engine reads the wall clock directly; callers pass a
reference instant obtained from one of the clocks below.
"""

from __future__ import annotations

import datetime as dt
from functools import lru_cache
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tradeclock.core.errors import InvalidTimeZoneError

UTC = dt.timezone.utc

Clock = Callable[[], dt.datetime]


@lru_cache(maxsize=256)
def resolve_zone(zone_id: str) -> ZoneInfo:
    """Return the ZoneInfo for an IANA identifier or raise InvalidTimeZoneError."""
    if not zone_id or not isinstance(zone_id, str):
        raise InvalidTimeZoneError(str(zone_id))
    try:
        return ZoneInfo(zone_id)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimeZoneError(zone_id) from e


def as_instant(timestamp: dt.datetime) -> dt.datetime:
    """Normalize a datetime to an aware UTC instant. Naive values are read as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


class SystemClock:
    """Reads the real wall clock."""

    def __call__(self) -> dt.datetime:
        return dt.datetime.now(tz=UTC)


class FixedClock:
    """Always returns the same instant. Use in tests and for `--at` overrides."""

    def __init__(self, instant: dt.datetime):
        self.instant = as_instant(instant)

    def __call__(self) -> dt.datetime:
        return self.instant

    def advance(self, **delta: float) -> None:
        """Move the frozen instant forward, e.g. advance(minutes=1)."""
        self.instant = self.instant + dt.timedelta(**delta)

    @classmethod
    def at_local(cls, zone_id: str, *args: int) -> "FixedClock":
        """Build a clock frozen at a wall-clock time in the given zone.

        FixedClock.at_local("America/New_York", 2024, 3, 5, 10, 0) is Tuesday 10:00 in New York.
        """
        local = dt.datetime(*args, tzinfo=resolve_zone(zone_id))
        return cls(local)


def parse_instant(text: str) -> dt.datetime:
    """Parse an ISO-8601 string into a UTC instant (CLI `--at` option)."""
    text = text.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_instant(dt.datetime.fromisoformat(text))


def seconds_to_next_minute(instant: dt.datetime) -> float:
    """Seconds from the instant until the next wall-clock minute boundary."""
    instant = as_instant(instant)
    boundary = instant.replace(second=0, microsecond=0) + dt.timedelta(minutes=1)
    return (boundary - instant).total_seconds()
