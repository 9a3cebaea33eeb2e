"""
Timestamps are stored as UTC. Calendar days (`date.today()`, report
windows, daily buckets) are the server's local days, so every conversion
between the two goes through here.
"""
from datetime import date, datetime, time, timezone
from typing import Tuple, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands stored values back without tzinfo; they are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_day(value: Union[date, datetime]) -> date:
    """Local calendar day a stored timestamp falls on"""
    if isinstance(value, datetime):
        return as_utc(value).astimezone().date()
    return value


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min).astimezone(timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max).astimezone(timezone.utc)


def day_window(date_from: date, date_to: date) -> Tuple[datetime, datetime]:
    """UTC bounds covering local days `date_from` through `date_to`"""
    return start_of_day(date_from), end_of_day(date_to)
