"""
Week identifier helpers.

The current week is never stored; it is recomputed from wall-clock time and
the configured week-start convention so every caller agrees without
coordination.
"""

import re
from datetime import datetime, date, time, timedelta
from typing import Optional, Tuple

import pytz

from league_engine.config import Config
from league_engine.constants import LeagueConstants

_WEEK_ID_PATTERN = re.compile(r'^(\d{4})-W(\d{2})$')


def _resolve_settings(tz_name, start_weekday, start_hour):
    return (
        tz_name or Config.LEAGUE_TIMEZONE,
        Config.WEEK_START_WEEKDAY if start_weekday is None else start_weekday,
        Config.WEEK_START_HOUR if start_hour is None else start_hour,
    )


def week_start(now: Optional[datetime] = None, tz_name: str = None,
               start_weekday: int = None, start_hour: int = None) -> datetime:
    """Start of the league week containing ``now``. Naive datetimes are taken as UTC."""
    tz_name, start_weekday, start_hour = _resolve_settings(tz_name, start_weekday, start_hour)
    tz = pytz.timezone(tz_name)

    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)

    local = now.astimezone(tz).replace(tzinfo=None)
    days_back = (local.weekday() - start_weekday) % 7
    start = (local - timedelta(days=days_back)).replace(
        hour=start_hour, minute=0, second=0, microsecond=0
    )
    if start > local:
        # Right weekday but before the boundary hour
        start -= timedelta(days=7)
    return tz.localize(start)


def week_identifier(now: Optional[datetime] = None, tz_name: str = None,
                    start_weekday: int = None, start_hour: int = None) -> str:
    """Identifier of the league week containing ``now``, e.g. ``2026-W42``."""
    start = week_start(now, tz_name, start_weekday, start_hour)
    iso_year, iso_week, _ = start.date().isocalendar()
    return LeagueConstants.WEEK_ID_FORMAT.format(year=iso_year, week=iso_week)


def previous_week_identifier(now: Optional[datetime] = None, tz_name: str = None,
                             start_weekday: int = None, start_hour: int = None) -> str:
    """Identifier of the week that ended at the most recent boundary."""
    start = week_start(now, tz_name, start_weekday, start_hour)
    return week_identifier(start - timedelta(seconds=1), tz_name, start_weekday, start_hour)


def week_bounds(week_id: str, tz_name: str = None, start_weekday: int = None,
                start_hour: int = None) -> Tuple[datetime, datetime]:
    """Return the (start, end) datetimes of a week identifier."""
    match = _WEEK_ID_PATTERN.match(week_id or '')
    if not match:
        raise ValueError(f"Invalid week identifier: {week_id!r}")

    tz_name, start_weekday, start_hour = _resolve_settings(tz_name, start_weekday, start_hour)
    tz = pytz.timezone(tz_name)

    iso_monday = date.fromisocalendar(int(match.group(1)), int(match.group(2)), 1)
    start_day = iso_monday + timedelta(days=start_weekday)
    start_naive = datetime.combine(start_day, time(hour=start_hour))
    return tz.localize(start_naive), tz.localize(start_naive + timedelta(days=7))
