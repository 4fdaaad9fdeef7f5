"""
Time window tests

用法: pytest test_time_window.py
"""

from datetime import date

import pytest
from pydantic import ValidationError

from trendlens.models.time_window import TimeWindow, WindowSpan, iso_weeks_in_year


def week(number, year=2024):
    return TimeWindow(kind="week", number=number, year=year)


def month(number, year=2024):
    return TimeWindow(kind="month", number=number, year=year)


def test_week_bounds(week_10):
    assert week_10.start_date == date(2024, 3, 4)
    assert week_10.end_date == date(2024, 3, 10)
    assert week_10.label == "2024-W10"


def test_month_bounds():
    assert month(2).end_date == date(2024, 2, 29)
    assert month(12).end_date == date(2024, 12, 31)
    assert month(3).label == "2024-03"


def test_iso_year_lengths():
    assert iso_weeks_in_year(2020) == 53
    assert iso_weeks_in_year(2024) == 52


def test_invalid_numbers_are_rejected():
    with pytest.raises(ValidationError):
        week(53, 2024)
    with pytest.raises(ValidationError):
        month(13)
    with pytest.raises(ValidationError):
        week(0)


def test_previous_crosses_year_boundary():
    assert week(1, 2025).previous() == week(52, 2024)
    assert week(1, 2021).previous() == week(53, 2020)
    assert month(1).previous() == month(12, 2023)
    assert month(12).shift(1) == month(1, 2025)


def test_containing():
    # 2024-12-30 is a Monday in ISO week 1 of 2025
    assert TimeWindow.containing(date(2024, 12, 30), "week") == week(1, 2025)
    assert TimeWindow.containing(date(2024, 12, 30), "month") == month(12)


def test_span_is_contiguous_and_ends_with_anchor(week_10):
    span = week_10.span(4)

    assert [w.number for w in span.windows] == [7, 8, 9, 10]
    assert len(span) == 4
    assert span.previous().windows[-1] == week(6)
    assert not span.overlaps(span.previous())


def test_span_rejects_gaps_and_mixed_kinds():
    with pytest.raises(ValidationError):
        WindowSpan(kind="week", windows=[week(1), week(3)])
    with pytest.raises(ValidationError):
        WindowSpan(kind="week", windows=[week(1), month(1)])
    with pytest.raises(ValueError):
        week(5).span(0)


def test_month_of_week_follows_thursday():
    # Week 9 of 2024 runs Feb 26 to Mar 3, its Thursday is Feb 29
    assert week(9).month_of_week() == month(2)
    assert week(10).month_of_week() == month(3)
    assert month(4).month_of_week() == month(4)


def test_matches(make_record, week_10):
    inside = make_record(day=date(2024, 3, 10))
    outside = make_record(day=date(2024, 3, 11))

    assert week_10.matches(inside)
    assert not week_10.matches(outside)
    assert month(3).matches(outside)
    assert not month(3, 2023).matches(outside)


def test_year_end_days_belong_to_next_iso_year(make_record):
    # 2024-12-30 carries week 1 with calendar year 2024
    late_december = make_record(day=date(2024, 12, 30))
    early_january = make_record(day=date(2024, 1, 2))

    assert late_december.week_number == 1 and late_december.year == 2024
    assert not week(1, 2024).matches(late_december)
    assert week(1, 2024).matches(early_january)
    assert week(1, 2025).matches(late_december)
    assert month(12).matches(late_december)
