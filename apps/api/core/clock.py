"""
Time helpers.

Timestamps are stored in UTC. Calendar rules ("today", "yesterday", weekday
names) are evaluated in settings.APP_TIMEZONE.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from core.config import settings

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def app_tz() -> ZoneInfo:
    return ZoneInfo(settings.APP_TIMEZONE)


def local_today() -> date:
    return datetime.now(app_tz()).date()


def local_date(dt: datetime) -> date:
    """Calendar day of a stored timestamp (naive values are UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(app_tz()).date()


def day_start_utc(d: date) -> datetime:
    """UTC instant of local midnight at the start of `d`."""
    return datetime.combine(d, time.min, tzinfo=app_tz()).astimezone(timezone.utc)


def day_name(d: date) -> str:
    return DAY_NAMES[d.weekday()]


def week_start(d: date) -> date:
    """Monday of the week containing `d`."""
    return d - timedelta(days=d.weekday())
