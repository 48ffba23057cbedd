"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import List, TypeVar

D = TypeVar("D", date, datetime)


def generate_date_range(start: D, end: D) -> List[D]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def add_months(value: D, months: int) -> D:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_years(value: D, years: int) -> D:
    """Add calendar years (Feb 29 falls back to Feb 28)"""
    return add_months(value, years * 12)


def start_of_day(value: datetime) -> datetime:
    """Midnight of the given timestamp's date, keeping its tzinfo"""
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)


def ensure_past(value: datetime, today: datetime) -> datetime:
    """
    Pull a timestamp back before the `today` cutoff.

    Anything at or after `today` moves to the day before `today`, keeping its
    time-of-day.
    """
    if value >= today:
        yesterday = today - timedelta(days=1)
        return datetime.combine(yesterday.date(), value.timetz())
    return value


def as_naive_local(value: datetime) -> datetime:
    """Aware timestamps converted to local wall-clock time without tzinfo"""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
