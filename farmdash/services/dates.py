from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union

DateLike = Union[date, datetime, str, None]

def as_calendar_date(value: DateLike) -> Optional[date]:
    """Normalize a date, datetime or ISO "YYYY-MM-DD" string to a plain date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    # "2024-01-05T10:00:00" keeps only its calendar part
    return date.fromisoformat(text[:10])

def date_range_ending(window_days: int, today: Optional[date] = None) -> Tuple[date, date]:
    end = today or date.today()
    return end - timedelta(days=window_days), end

def days_between(start: date, end: date) -> int:
    return (end - start).days
