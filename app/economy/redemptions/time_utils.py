from __future__ import annotations

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo


def as_utc(value: datetime) -> datetime:
    """Treats naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_now(now_utc: datetime, tz_name: str) -> datetime:
    return as_utc(now_utc).astimezone(ZoneInfo(tz_name))


def local_midnight_utc(now_utc: datetime, tz_name: str) -> datetime:
    local = local_now(now_utc, tz_name)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def is_time_in_window(current: time, *, start: time, end: time) -> bool:
    minutes = current.hour * 60 + current.minute
    start_minutes = start.hour * 60 + start.minute
    end_minutes = end.hour * 60 + end.minute
    if start_minutes <= end_minutes:
        return start_minutes <= minutes <= end_minutes
    # window wraps past midnight, e.g. 22:00-02:00
    return minutes >= start_minutes or minutes <= end_minutes
