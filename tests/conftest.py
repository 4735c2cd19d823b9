"""Shared test configuration and fixtures."""

from __future__ import annotations

import datetime as dt

import pytest

from tradeclock.session.schedule import TradingSchedule, Weekday


@pytest.fixture
def nyse() -> TradingSchedule:
    return TradingSchedule("America/New_York", dt.time(9, 30), dt.time(16, 0))


@pytest.fixture
def tokyo() -> TradingSchedule:
    return TradingSchedule("Asia/Tokyo", dt.time(9, 0), dt.time(15, 30))


@pytest.fixture
def overnight() -> TradingSchedule:
    """21:00-05:00 session that trades every day."""
    return TradingSchedule("UTC", dt.time(21, 0), dt.time(5, 0), Weekday.EVERY_DAY)


@pytest.fixture
def overnight_weekdays() -> TradingSchedule:
    """21:00-05:00 session opening Monday to Friday only."""
    return TradingSchedule("UTC", dt.time(21, 0), dt.time(5, 0), Weekday.WEEKDAYS)
