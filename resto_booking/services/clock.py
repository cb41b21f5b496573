"""Restaurant-local time helpers

Instants are stored as naive UTC datetimes; calendar dates, weekdays and
service hours are interpreted in the restaurant's timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.utcnow()


def to_utc_naive(value: datetime, tz_name: str) -> datetime:
    """Normalize an incoming datetime; naive values are restaurant-local"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz_name))
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime, tz_name: str) -> datetime:
    return value.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name))


def local_date(value: datetime, tz_name: str) -> date:
    return to_local(value, tz_name).date()


def local_today(tz_name: str, now: Optional[datetime] = None) -> date:
    return local_date(now or utcnow(), tz_name)


def local_day_bounds(day: date, tz_name: str) -> Tuple[datetime, datetime]:
    """UTC [start, end) of a restaurant-local calendar day"""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min).replace(tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min).replace(tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def local_combine(day: date, at: time, tz_name: str) -> datetime:
    """UTC instant of a restaurant-local date and wall-clock time"""
    return to_utc_naive(datetime.combine(day, at), tz_name)
