"""
Week Helpers
ISO week arithmetic used by meal plans and shopping lists.

Weeks follow ISO 8601: a week starts on Monday and week 1 is the week
containing the first Thursday of the year.
"""

from datetime import date, timedelta
from typing import Optional, Tuple

from foodie.core.constants import WEEK_MAX, WEEK_MIN, YEAR_MAX, YEAR_MIN


def current_week(today: Optional[date] = None) -> Tuple[int, int]:
    """Return (week, year) for today's ISO week."""
    iso = (today or date.today()).isocalendar()
    return iso[1], iso[0]


def validate_week(week: int, year: int) -> None:
    """
    Raise ValueError when week/year are outside the supported range.

    Week 53 is only accepted for years that actually have 53 ISO weeks.
    """
    if not YEAR_MIN <= year <= YEAR_MAX:
        raise ValueError(f"Year must be between {YEAR_MIN} and {YEAR_MAX}")
    if not WEEK_MIN <= week <= WEEK_MAX:
        raise ValueError(f"Week must be between {WEEK_MIN} and {WEEK_MAX}")
    if week == WEEK_MAX and weeks_in_year(year) < WEEK_MAX:
        raise ValueError(f"Year {year} has no week {WEEK_MAX}")


def weeks_in_year(year: int) -> int:
    # 28 December is always in the last ISO week of its year
    return date(year, 12, 28).isocalendar()[1]


def week_dates(week: int, year: int) -> Tuple[date, date]:
    """Return the Monday and Sunday of the given ISO week."""
    monday = date.fromisocalendar(year, week, 1)
    return monday, monday + timedelta(days=6)


def format_week_range(week: int, year: int) -> str:
    """
    Human readable week range.

    Example:
        format_week_range(1, 2025) -> "30 Dec - 5 Jan 2025"
    """
    start, end = week_dates(week, year)
    return f"{start.day} {start:%b} - {end.day} {end:%b} {end.year}"


def previous_week(week: int, year: int) -> Tuple[int, int]:
    monday, _ = week_dates(week, year)
    iso = (monday - timedelta(days=7)).isocalendar()
    return iso[1], iso[0]


def next_week(week: int, year: int) -> Tuple[int, int]:
    monday, _ = week_dates(week, year)
    iso = (monday + timedelta(days=7)).isocalendar()
    return iso[1], iso[0]
