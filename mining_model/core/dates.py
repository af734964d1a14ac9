# mining_model/core/dates.py
from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import List, Union

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Accept a date, datetime or ISO string ("2025-01" or "2025-01-15")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 7:
        text = f"{text}-01"
    return date.fromisoformat(text[:10])


def month_start(value: DateLike) -> date:
    d = to_date(value)
    return date(d.year, d.month, 1)


def add_months(start: date, months: int) -> date:
    year = start.year + (start.month - 1 + months) // 12
    month = (start.month - 1 + months) % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def whole_months_between(start: date, end: date) -> int:
    """
    Number of complete calendar months from start to end.

    2024-01-15 -> 2024-03-01 is 1 month (the second month is not yet
    complete). Negative when end precedes start.
    """
    if end < start:
        return -whole_months_between(end, start)
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def month_range(start: DateLike, end: DateLike) -> List[date]:
    """First-of-month dates from start to end inclusive."""
    current = month_start(start)
    last = month_start(end)
    months: List[date] = []
    while current <= last:
        months.append(current)
        current = add_months(current, 1)
    return months
