"""
Demo data generator tests

用法: pytest test_demo_generator.py
"""

from datetime import date

import pytest

from trendlens.models.time_window import TimeWindow
from trendlens.services.demo_generator import DemoDataGenerator
from trendlens.services.emerging_detector import detect_emerging

ANCHOR = date(2024, 3, 6)


def _split(records, anchor_week, weeks=4):
    recent_span = anchor_week.span(weeks)
    older_span = recent_span.previous()
    recent = [r for r in records if any(w.matches(r) for w in recent_span.windows)]
    older = [r for r in records if any(w.matches(r) for w in older_span.windows)]
    return recent, older


def test_same_seed_same_records():
    first = DemoDataGenerator(seed=7).generate("mixed", anchor=ANCHOR, weeks=4)
    second = DemoDataGenerator(seed=7).generate("mixed", anchor=ANCHOR, weeks=4)
    assert first == second


def test_records_fall_inside_generated_weeks():
    records = DemoDataGenerator().generate("steady", anchor=ANCHOR, weeks=3)
    weeks = TimeWindow.containing(ANCHOR, "week").span(3)

    assert records
    assert all(any(w.matches(r) for w in weeks.windows) for r in records)
    assert len({r.id for r in records}) == len(records)


def test_novel_category_scenario():
    records = DemoDataGenerator().generate("novel_category", anchor=ANCHOR, weeks=8)

    recent, older = _split(records, TimeWindow.containing(ANCHOR, "week"))

    assert "AI Tools" in [e.name for e in detect_emerging(recent, older)]
    assert all(r.category != "AI Tools" for r in older)


def test_rapid_growth_scenario():
    records = DemoDataGenerator().generate("rapid_growth", anchor=ANCHOR, weeks=8)

    recent, older = _split(records, TimeWindow.containing(ANCHOR, "week"))
    names = [e.name for e in detect_emerging(recent, older)]

    assert "Fitness (rapid growth)" in names


def test_unknown_scenario():
    with pytest.raises(ValueError):
        DemoDataGenerator().generate("apocalypse", anchor=ANCHOR)
