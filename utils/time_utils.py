# utils/time_utils.py
from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(start, months: int):
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    Works for both date and datetime; negative months go backwards.
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    last_day = end_of_month(date(y, m, 1)).day
    return start.replace(year=y, month=m, day=min(start.day, last_day))


def beginning_of_month(d: date) -> date:
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    if d.month == 12:
        next_month = date(d.year + 1, 1, 1)
    else:
        next_month = date(d.year, d.month + 1, 1)
    return next_month - timedelta(days=1)


def as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value
