"""Calendar helpers that map fractional game days onto real dates."""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str, None]


def parse_start_date(value: DateLike = None) -> date:
    """Coerce ``value`` into a calendar anchor; ``None`` means today."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ValueError(f"Unrecognised start date '{value}'; expected ISO format YYYY-MM-DD.") from exc


def game_date(start_date: date, days_elapsed: float) -> date:
    """Calendar date reached after ``days_elapsed`` whole days."""
    return start_date + timedelta(days=math.floor(days_elapsed))


def is_new_day(previous_days: float, current_days: float) -> bool:
    return math.floor(previous_days) != math.floor(current_days)


def is_new_month(start_date: date, previous_days: float, current_days: float) -> bool:
    prev = game_date(start_date, previous_days)
    curr = game_date(start_date, current_days)
    return prev.month != curr.month or prev.year != curr.year


def is_new_week(start_date: date, previous_days: float, current_days: float) -> bool:
    """True when the Monday-based ISO week differs between the two offsets."""
    prev_year, prev_week, _ = game_date(start_date, previous_days).isocalendar()
    curr_year, curr_week, _ = game_date(start_date, current_days).isocalendar()
    return prev_week != curr_week or prev_year != curr_year


def is_weekend(start_date: date, days_elapsed: float) -> bool:
    return game_date(start_date, days_elapsed).weekday() >= 5


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def count_weekdays_in_month(day: date) -> int:
    total = days_in_month(day)
    return sum(1 for d in range(1, total + 1) if date(day.year, day.month, d).weekday() < 5)


def weekday_fraction(day: date) -> float:
    """Share of the month's days that are Monday-Friday."""
    return count_weekdays_in_month(day) / days_in_month(day)


def format_game_date(start_date: date, days_elapsed: float, fmt: Optional[str] = None) -> str:
    current = game_date(start_date, days_elapsed)
    if fmt:
        return current.strftime(fmt)
    return f"{current.strftime('%a')}, {current.strftime('%b')} {current.day}, {current.year}"
