from __future__ import annotations

from datetime import date, datetime

import pytest

from startup_sim.dates import (
    count_weekdays_in_month,
    format_game_date,
    game_date,
    is_new_day,
    is_new_month,
    is_new_week,
    is_weekend,
    parse_start_date,
    weekday_fraction,
)

JAN_1 = date(2025, 1, 1)  # Wednesday


def test_game_date_floors_fractional_days() -> None:
    assert game_date(JAN_1, 0) == JAN_1
    assert game_date(JAN_1, 30.9) == date(2025, 1, 31)
    assert game_date(JAN_1, 31) == date(2025, 2, 1)


def test_month_boundaries_follow_the_calendar() -> None:
    assert not is_new_month(JAN_1, 29.5, 30.5)
    assert is_new_month(JAN_1, 30.5, 31.0)
    assert is_new_month(date(2024, 12, 31), 0, 1)
    # Same month number, different year.
    assert is_new_month(JAN_1, 0, 365)


def test_week_boundaries_are_monday_based() -> None:
    sunday = date(2025, 1, 5)
    assert is_new_week(sunday, 0, 1)
    monday = date(2025, 1, 6)
    assert not is_new_week(monday, 0, 1)
    assert is_new_week(monday, 6, 7)
    # Sunday 2024-12-29 to Monday 2024-12-30 moves into ISO 2025-W01.
    assert is_new_week(date(2024, 12, 29), 0, 1)


def test_new_day_detection() -> None:
    assert not is_new_day(0.2, 0.9)
    assert is_new_day(0.9, 1.0)
    assert is_new_day(0.0, 3.5)


def test_weekend_detection() -> None:
    assert not is_weekend(JAN_1, 0)
    assert is_weekend(JAN_1, 3)  # Saturday
    assert is_weekend(JAN_1, 4)
    assert not is_weekend(JAN_1, 5)


def test_weekday_counts() -> None:
    assert count_weekdays_in_month(date(2025, 2, 10)) == 20
    assert count_weekdays_in_month(JAN_1) == 23
    assert weekday_fraction(date(2025, 2, 1)) == pytest.approx(20 / 28)


def test_parse_start_date_variants() -> None:
    assert parse_start_date("2025-03-15") == date(2025, 3, 15)
    assert parse_start_date("2025-03-15T10:00:00") == date(2025, 3, 15)
    assert parse_start_date(datetime(2025, 3, 15, 8, 30)) == date(2025, 3, 15)
    assert parse_start_date(JAN_1) is JAN_1
    assert parse_start_date(None) == date.today()
    with pytest.raises(ValueError):
        parse_start_date("next tuesday")


def test_format_game_date() -> None:
    assert format_game_date(date(2025, 1, 6), 0) == "Mon, Jan 6, 2025"
    assert format_game_date(JAN_1, 31, "%Y-%m-%d") == "2025-02-01"
