"""Session status evaluation for one exchange or a whole board.

``evaluate_session`` composes the three steps: project the reference instant
onto the exchange's wall clock, resolve open/closed, then compute the minutes
to the next transition. Results are plain values recomputed on every call.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Iterable

from tradeclock.core.clocks import as_instant
from tradeclock.core.errors import TradeClockError
from tradeclock.core.logging_utils import get_logger
from tradeclock.session.projector import project_local_time
from tradeclock.session.remaining import format_remaining, minutes_remaining
from tradeclock.session.resolver import SessionPhase, resolve_phase
from tradeclock.session.schedule import MINUTES_PER_DAY, TradingSchedule, Weekday, minute_of_day

logger = get_logger("session.status")


@dataclass(frozen=True)
class SessionStatus:
    """Status of one exchange at one reference instant."""

    local_time: dt.time
    local_weekday: Weekday
    local_date: dt.date
    phase: SessionPhase
    minutes_remaining: int
    next_bell_scheduled: bool = True

    @property
    def is_open(self) -> bool:
        return self.phase.is_open

    @property
    def time_remaining(self) -> str:
        return format_remaining(self.minutes_remaining)

    def describe(self) -> str:
        """Human summary, e.g. 'Open (closes in 2h 30m)'."""
        if self.is_open:
            return f"Open (closes in {self.time_remaining})"
        if not self.next_bell_scheduled:
            return "Closed until next trading day"
        return f"Closed (opens in {self.time_remaining})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "local_time": self.local_time.strftime("%H:%M"),
            "local_weekday": self.local_weekday.name.title(),
            "local_date": self.local_date.isoformat(),
            "phase": self.phase.value,
            "is_open": self.is_open,
            "minutes_remaining": self.minutes_remaining,
            "time_remaining": self.time_remaining,
            "next_bell_scheduled": self.next_bell_scheduled,
        }


def evaluate_session(schedule: TradingSchedule, instant: dt.datetime) -> SessionStatus:
    """Compute the status of ``schedule`` at ``instant``.

    Raises InvalidTimeZoneError when the schedule's zone cannot be resolved.
    """
    local = project_local_time(schedule.time_zone_id, instant)
    phase = resolve_phase(local.time, local.weekday, schedule)
    remaining = minutes_remaining(local.time, schedule, phase.is_open)
    return SessionStatus(
        local_time=local.time,
        local_weekday=local.weekday,
        local_date=local.date,
        phase=phase,
        minutes_remaining=remaining,
        next_bell_scheduled=phase.is_open or _opening_day_trades(local.time, local.weekday, schedule, remaining),
    )


def _opening_day_trades(local_time: dt.time, local_weekday: Weekday, schedule: TradingSchedule, remaining: int) -> bool:
    """Whether the wall-clock opening ``remaining`` minutes ahead falls on a trading day."""
    if schedule.is_degenerate:
        return False
    day = local_weekday
    if minute_of_day(local_time) + remaining >= MINUTES_PER_DAY:
        day = Weekday.from_index(local_weekday.index + 1)
    return schedule.trades_on(day)


@dataclass
class BoardSnapshot:
    """Statuses for an ordered collection of exchanges at one instant.

    Exchanges whose evaluation failed are listed in ``failures`` with the
    error message; they are absent from ``statuses``.
    """

    instant: dt.datetime
    statuses: dict[str, SessionStatus] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def open_ids(self) -> list[str]:
        return [key for key, status in self.statuses.items() if status.is_open]

    def __len__(self) -> int:
        return len(self.statuses) + len(self.failures)


def evaluate_board(
    entries: Iterable[tuple[str, TradingSchedule]],
    instant: dt.datetime,
) -> BoardSnapshot:
    """Evaluate every (exchange id, schedule) pair at the same instant.

    Order of ``entries`` is preserved. A failing exchange is recorded and the
    rest are still evaluated.
    """
    snapshot = BoardSnapshot(instant=as_instant(instant))
    for exchange_id, schedule in entries:
        try:
            snapshot.statuses[exchange_id] = evaluate_session(schedule, snapshot.instant)
        except TradeClockError as e:
            logger.warning(f"Skipping {exchange_id}: {e}")
            snapshot.failures[exchange_id] = str(e)
    return snapshot
