"""Join exchange records with evaluated statuses for display."""

from __future__ import annotations

import datetime as dt

import pandas as pd

from tradeclock.core.clocks import Clock, SystemClock
from tradeclock.data.exchanges import Exchange, ExchangeStore
from tradeclock.session.status import BoardSnapshot, evaluate_board

BOARD_COLUMNS = [
    "id", "flag", "name", "city", "country", "continent", "hours",
    "local_time", "weekday", "is_open", "status", "time_remaining",
    "minutes_remaining", "error",
]


def take_snapshot(
    store: ExchangeStore,
    clock: Clock | None = None,
    selected_only: bool = True,
    instant: dt.datetime | None = None,
) -> tuple[list[Exchange], BoardSnapshot]:
    """Evaluate the store's exchanges at one instant, in board order."""
    exchanges = store.selected_exchanges() if selected_only else store.all_exchanges()
    if instant is None:
        instant = (clock or SystemClock())()
    snapshot = evaluate_board(((e.id, e.schedule) for e in exchanges), instant)
    return exchanges, snapshot


def board_frame(exchanges: list[Exchange], snapshot: BoardSnapshot) -> pd.DataFrame:
    """One row per exchange. Failed exchanges keep their row with ``error`` set."""
    rows = []
    for exchange in exchanges:
        schedule = exchange.schedule
        row = {
            "id": exchange.id,
            "flag": exchange.flag,
            "name": exchange.name,
            "city": exchange.city,
            "country": exchange.country,
            "continent": exchange.continent,
            "hours": f"{schedule.opening_time:%H:%M}-{schedule.closing_time:%H:%M}",
            "local_time": None,
            "weekday": None,
            "is_open": False,
            "status": "Unavailable",
            "time_remaining": None,
            "minutes_remaining": None,
            "error": snapshot.failures.get(exchange.id),
        }
        status = snapshot.statuses.get(exchange.id)
        if status is not None:
            row.update(
                local_time=status.local_time.strftime("%H:%M"),
                weekday=status.local_weekday.name.title(),
                is_open=status.is_open,
                status=status.describe(),
                time_remaining=status.time_remaining,
                minutes_remaining=status.minutes_remaining,
            )
        rows.append(row)
    return pd.DataFrame(rows, columns=BOARD_COLUMNS)
