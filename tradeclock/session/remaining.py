"""Minutes until the next open/close transition and their display form."""

from __future__ import annotations

import datetime as dt

from tradeclock.session.schedule import MINUTES_PER_DAY, TradingSchedule, minute_of_day


def minutes_until(target: dt.time, local_time: dt.time) -> int:
    """Whole minutes from ``local_time`` forward to the next ``target`` on the wall clock.

    Wraps past midnight when the target is earlier in the day. Zero when the
    two are equal.
    """
    return (minute_of_day(target) - minute_of_day(local_time)) % MINUTES_PER_DAY


def minutes_remaining(local_time: dt.time, schedule: TradingSchedule, is_open: bool) -> int:
    """Minutes until the exchange closes (if open) or next opens (if closed).

    The weekday mask is not consulted: a closed exchange reports the distance
    to the next wall-clock opening time, so the result is always below one day.
    """
    target = schedule.closing_time if is_open else schedule.opening_time
    remaining = minutes_until(target, local_time)
    if not 0 <= remaining < MINUTES_PER_DAY:
        raise ArithmeticError(f"Remaining minutes out of range: {remaining}")
    return remaining


def minutes_elapsed(local_time: dt.time, schedule: TradingSchedule, is_open: bool) -> int:
    """Minutes since the last transition into the current state."""
    since = schedule.opening_time if is_open else schedule.closing_time
    return (minute_of_day(local_time) - minute_of_day(since)) % MINUTES_PER_DAY


def format_remaining(total_minutes: int) -> str:
    """Render minutes as '2h 30m', '2h' or '45m'."""
    if total_minutes < 0:
        raise ValueError(f"Negative duration: {total_minutes}")
    hours, minutes = divmod(int(total_minutes), 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"
