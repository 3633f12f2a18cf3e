"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone
from typing import Union


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def to_date(value: Union[date, datetime, str]) -> date:
    """
    Coerce a calendar date, a datetime or an ISO string to a date.

    Full timestamps ("2026-03-01T18:00:00Z") are cut to their calendar date,
    so campaign windows are compared chronologically rather than as strings.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def days_since(moment: datetime, now: datetime) -> int:
    """Whole days elapsed between two datetimes (naive values are treated as UTC)"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - moment).days


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of shorter months"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
