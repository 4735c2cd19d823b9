"""Exchange trading schedules: session hours plus a weekday mask."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum, Flag
from typing import Iterable

from tradeclock.core.errors import InvalidScheduleError

MINUTES_PER_DAY = 24 * 60


class Weekday(Flag):
    """Bitset over the seven weekdays. Bit order follows datetime.weekday()."""

    NONE = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 4
    THURSDAY = 8
    FRIDAY = 16
    SATURDAY = 32
    SUNDAY = 64

    WEEKDAYS = MONDAY | TUESDAY | WEDNESDAY | THURSDAY | FRIDAY
    WEEKEND = SATURDAY | SUNDAY
    EVERY_DAY = WEEKDAYS | WEEKEND

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        """Map datetime.weekday() (Monday=0) to a single-day flag."""
        return _BY_INDEX[index % 7]

    @classmethod
    def parse(cls, names: Iterable[str]) -> "Weekday":
        """Build a mask from day names or three-letter abbreviations."""
        mask = cls.NONE
        for name in names:
            key = str(name).strip().lower()[:3]
            if key not in _BY_ABBREV:
                raise InvalidScheduleError(f"Unknown weekday: {name!r}")
            mask |= _BY_ABBREV[key]
        return mask

    def previous(self) -> "Weekday":
        """The day before a single-day flag (Monday -> Sunday)."""
        return Weekday.from_index(self.index - 1)

    @property
    def index(self) -> int:
        """datetime.weekday() index of a single-day flag."""
        return _BY_INDEX.index(self)

    def days(self) -> list["Weekday"]:
        """Single-day members of this mask, Monday first."""
        return [day for day in _BY_INDEX if day in self]

    def short_names(self) -> list[str]:
        return [day.name[:3].title() for day in self.days()]


_BY_INDEX = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
    Weekday.SUNDAY,
]
_BY_ABBREV = {day.name[:3].lower(): day for day in _BY_INDEX}


class SessionKind(str, Enum):
    SAME_DAY = "SAME_DAY"
    OVERNIGHT = "OVERNIGHT"
    DEGENERATE = "DEGENERATE"


def parse_time(value: str | dt.time) -> dt.time:
    """Parse 'HH:MM' (or pass through a time) into a minute-resolution time."""
    if isinstance(value, dt.time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    try:
        hour, minute = (int(part) for part in str(value).strip().split(":")[:2])
        return dt.time(hour, minute)
    except (TypeError, ValueError) as e:
        raise InvalidScheduleError(f"Invalid time of day: {value!r}") from e


def minute_of_day(value: dt.time) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class TradingSchedule:
    """Immutable session definition for one exchange.

    Opening and closing times are zone-naive wall-clock values read in
    ``time_zone_id``. A closing time earlier than the opening time describes a
    session that runs past midnight; equal times mean the exchange never opens.
    """

    time_zone_id: str
    opening_time: dt.time
    closing_time: dt.time
    trading_days: Weekday = field(default=Weekday.WEEKDAYS)

    def __post_init__(self):
        object.__setattr__(self, "opening_time", parse_time(self.opening_time))
        object.__setattr__(self, "closing_time", parse_time(self.closing_time))

    @property
    def kind(self) -> SessionKind:
        if self.opening_time == self.closing_time:
            return SessionKind.DEGENERATE
        if self.closing_time < self.opening_time:
            return SessionKind.OVERNIGHT
        return SessionKind.SAME_DAY

    @property
    def crosses_midnight(self) -> bool:
        return self.kind is SessionKind.OVERNIGHT

    @property
    def is_degenerate(self) -> bool:
        return self.kind is SessionKind.DEGENERATE

    @property
    def opening_minute(self) -> int:
        return minute_of_day(self.opening_time)

    @property
    def closing_minute(self) -> int:
        return minute_of_day(self.closing_time)

    @property
    def session_minutes(self) -> int:
        """Length of the open phase in minutes (0 for a degenerate schedule)."""
        return (self.closing_minute - self.opening_minute) % MINUTES_PER_DAY

    def trades_on(self, day: Weekday) -> bool:
        return day in self.trading_days

    def describe(self) -> str:
        hours = f"{self.opening_time:%H:%M}-{self.closing_time:%H:%M}"
        return f"{hours} {self.time_zone_id} ({','.join(self.trading_days.short_names())})"
