"""Tests for ISO week helpers."""

from datetime import date

import pytest

from foodie.core.weeks import (
    current_week,
    format_week_range,
    next_week,
    previous_week,
    validate_week,
    week_dates,
    weeks_in_year,
)


def test_current_week_uses_iso_calendar():
    # 1 January 2021 belongs to week 53 of 2020
    assert current_week(date(2021, 1, 1)) == (53, 2020)
    assert current_week(date(2025, 6, 18)) == (25, 2025)


def test_week_dates_are_monday_to_sunday():
    start, end = week_dates(1, 2025)
    assert start == date(2024, 12, 30)
    assert end == date(2025, 1, 5)


def test_format_week_range():
    assert format_week_range(1, 2025) == "30 Dec - 5 Jan 2025"


def test_week_53_only_in_long_years():
    assert weeks_in_year(2020) == 53
    assert weeks_in_year(2025) == 52
    validate_week(53, 2020)
    with pytest.raises(ValueError):
        validate_week(53, 2025)


@pytest.mark.parametrize("week,year", [(0, 2025), (54, 2025), (10, 1999), (10, 2101)])
def test_validate_week_rejects_out_of_range(week, year):
    with pytest.raises(ValueError):
        validate_week(week, year)


def test_previous_and_next_week_cross_years():
    assert previous_week(1, 2025) == (52, 2024)
    assert next_week(52, 2024) == (1, 2025)
