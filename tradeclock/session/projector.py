"""Project a reference instant onto an exchange's local wall clock."""

from __future__ import annotations

import datetime as dt
from typing import NamedTuple

from tradeclock.core.clocks import as_instant, resolve_zone
from tradeclock.session.schedule import Weekday


class LocalClock(NamedTuple):
    """Wall-clock reading at an exchange: minute-resolution time and weekday."""

    time: dt.time
    weekday: Weekday
    date: dt.date
    utc_offset: dt.timedelta


def project_local_time(zone_id: str, instant: dt.datetime) -> LocalClock:
    """Return the local time and weekday in ``zone_id`` at ``instant``.

    The zone's offset at that instant comes from the tz database, so daylight
    saving is applied. Raises InvalidTimeZoneError for an unknown zone.
    """
    zone = resolve_zone(zone_id)
    local = as_instant(instant).astimezone(zone)
    return LocalClock(
        time=dt.time(local.hour, local.minute),
        weekday=Weekday.from_index(local.weekday()),
        date=local.date(),
        utc_offset=local.utcoffset() or dt.timedelta(0),
    )
