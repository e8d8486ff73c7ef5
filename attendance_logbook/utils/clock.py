"""Logbook time helpers.

The logbook runs on a fixed UTC offset rather than a named timezone: a
"day" starts at midnight in UTC+8 regardless of daylight saving anywhere.
Every helper accepts an explicit ``now`` so callers can pin time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

import pytz

log = logging.getLogger(__name__)

DEFAULT_OFFSET_HOURS = 8


def logbook_timezone(offset_hours: int = DEFAULT_OFFSET_HOURS):
    try:
        return pytz.FixedOffset(int(offset_hours) * 60)
    except Exception:
        log.warning("Invalid UTC offset '%s'; defaulting to UTC", offset_hours)
        return pytz.UTC


def now_logbook(offset_hours: int = DEFAULT_OFFSET_HOURS) -> datetime:
    return datetime.now(logbook_timezone(offset_hours))


def to_logbook(moment: datetime, offset_hours: int = DEFAULT_OFFSET_HOURS) -> datetime:
    """Convert ``moment`` to logbook time; naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = pytz.UTC.localize(moment)
    return moment.astimezone(logbook_timezone(offset_hours))


def date_title(moment: Optional[datetime] = None, offset_hours: int = DEFAULT_OFFSET_HOURS) -> str:
    """Title of the daily worksheet, e.g. ``2024-03-02``."""
    moment = now_logbook(offset_hours) if moment is None else to_logbook(moment, offset_hours)
    return moment.strftime("%Y-%m-%d")


def time_label(moment: Optional[datetime] = None, offset_hours: int = DEFAULT_OFFSET_HOURS) -> str:
    moment = now_logbook(offset_hours) if moment is None else to_logbook(moment, offset_hours)
    return moment.strftime("%H:%M:%S")


def seconds_until_next_day(
    moment: Optional[datetime] = None,
    offset_hours: int = DEFAULT_OFFSET_HOURS,
    grace_seconds: int = 5,
) -> int:
    """Seconds from ``moment`` until shortly after the next logbook midnight."""
    moment = now_logbook(offset_hours) if moment is None else to_logbook(moment, offset_hours)
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    return max(1, int((midnight - moment).total_seconds()) + grace_seconds)
