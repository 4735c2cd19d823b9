"""Exception hierarchy for schedule loading and session evaluation."""

from __future__ import annotations


class TradeClockError(Exception):
    """Base class for all tradeclock errors."""


class InvalidTimeZoneError(TradeClockError):
    """A time-zone identifier could not be resolved."""

    def __init__(self, zone_id: str):
        super().__init__(f"Unknown time zone: {zone_id!r}")
        self.zone_id = zone_id


class InvalidScheduleError(TradeClockError):
    """A stored schedule record is malformed."""


class DegenerateScheduleError(InvalidScheduleError):
    """Opening and closing times are equal, so the session never opens."""

    def __init__(self, exchange_id: str, at: str):
        super().__init__(f"Exchange {exchange_id!r} opens and closes at {at}")
        self.exchange_id = exchange_id
