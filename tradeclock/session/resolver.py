"""Open/closed resolution for a single exchange at a local wall-clock time."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from tradeclock.session.schedule import SessionKind, TradingSchedule, Weekday


class SessionPhase(str, Enum):
    """Where the local clock sits in the exchange's daily cycle."""

    CLOSED_BEFORE_OPEN = "CLOSED_BEFORE_OPEN"
    OPEN = "OPEN"
    CLOSED_AFTER_CLOSE = "CLOSED_AFTER_CLOSE"

    @property
    def is_open(self) -> bool:
        return self is SessionPhase.OPEN


def in_session_hours(local_time: dt.time, schedule: TradingSchedule) -> bool:
    """Whether the time-of-day falls inside the session, ignoring weekdays.

    Opening is inclusive, closing exclusive. Degenerate schedules never match.
    """
    opening, closing = schedule.opening_time, schedule.closing_time
    kind = schedule.kind
    if kind is SessionKind.DEGENERATE:
        return False
    if kind is SessionKind.SAME_DAY:
        return opening <= local_time < closing
    return local_time >= opening or local_time < closing


def governing_day(local_time: dt.time, local_weekday: Weekday, schedule: TradingSchedule) -> Weekday:
    """The weekday on which the session covering ``local_time`` opened.

    Only the after-midnight tail of an overnight session belongs to the
    previous day.
    """
    if schedule.crosses_midnight and local_time < schedule.closing_time:
        return local_weekday.previous()
    return local_weekday


def resolve_phase(local_time: dt.time, local_weekday: Weekday, schedule: TradingSchedule) -> SessionPhase:
    """Classify the local clock into the three-state daily cycle."""
    local_time = local_time.replace(second=0, microsecond=0, tzinfo=None)
    day = governing_day(local_time, local_weekday, schedule)

    if in_session_hours(local_time, schedule) and schedule.trades_on(day):
        return SessionPhase.OPEN

    # Closed: decide which side of today's session we are on.
    if schedule.kind is SessionKind.SAME_DAY:
        if local_time < schedule.opening_time:
            return SessionPhase.CLOSED_BEFORE_OPEN
        if local_time >= schedule.closing_time:
            return SessionPhase.CLOSED_AFTER_CLOSE
        # Inside the hours on a non-trading day
        return SessionPhase.CLOSED_BEFORE_OPEN
    if schedule.kind is SessionKind.OVERNIGHT and local_time < schedule.closing_time:
        return SessionPhase.CLOSED_BEFORE_OPEN
    if schedule.kind is SessionKind.OVERNIGHT and local_time < schedule.opening_time:
        return SessionPhase.CLOSED_AFTER_CLOSE
    return SessionPhase.CLOSED_BEFORE_OPEN


def is_session_open(local_time: dt.time, local_weekday: Weekday, schedule: TradingSchedule) -> bool:
    """Whether the exchange is trading at ``local_time`` on ``local_weekday``."""
    return resolve_phase(local_time, local_weekday, schedule).is_open
