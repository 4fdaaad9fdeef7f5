"""
Category analyzer tests

用法: pytest test_category_analyzer.py
"""

import asyncio
from datetime import date

import pytest

from trendlens.models.schemas import Platform
from trendlens.models.time_window import TimeWindow
from trendlens.services.category_analyzer import CategoryAnalyzer
from trendlens.services.errors import DataUnavailable, WindowMismatch
from trendlens.services.record_source import InMemoryRecordSource

CURRENT_DAY = date(2024, 3, 4)      # week 10
PREVIOUS_DAY = date(2024, 2, 27)    # week 9, February
MARCH = TimeWindow(kind="month", number=3, year=2024)


@pytest.fixture
def week_records(make_record):
    return [
        make_record(category="Music", views=1000, hashtags=["#a", "#b"], day=CURRENT_DAY),
        make_record(category="Music", views=3000, hashtags=["#b"], day=CURRENT_DAY),
        make_record(category="Dance", views=500, hashtags=["#a", "#b"], day=CURRENT_DAY, platform="YOUTUBE"),
        make_record(category="Cooking", views=200, hashtags=["#food"], day=CURRENT_DAY),
        make_record(category="Music", views=2000, hashtags=["#a"], day=PREVIOUS_DAY),
    ]


@pytest.fixture
def make_analyzer(analysis_config):
    def _make(records, narrator=None):
        return CategoryAnalyzer(
            source=InMemoryRecordSource(records),
            narrator=narrator,
            config=analysis_config,
            today=lambda: date(2024, 3, 6),
        )
    return _make


def test_reports_ranked_with_growth_and_clusters(make_analyzer, week_records, week_10, stub_narrator):
    analyzer = make_analyzer(week_records, stub_narrator)

    reports = asyncio.run(analyzer.analyze_categories(timeframe="week", window=week_10))

    assert [r.category for r in reports] == ["Music", "Dance", "Cooking"]
    music, dance, cooking = reports
    assert music.metrics.total_views == 4000
    assert music.metrics.growth_rate_percent == pytest.approx(100.0)
    assert dance.metrics.growth_rate_percent == 0
    assert music.cluster.categories == ["Dance", "Music"]
    assert music.cluster_neighbors == ["Dance"]
    assert cooking.cluster is None
    assert music.related_categories[0].category == "Dance"
    assert music.insight == "Narrated insight"
    # Unparseable sub-category text falls back to a single bucket
    assert music.sub_categories[0].name == "Music - General"
    assert music.emerging_trends == []


def test_default_window_uses_injected_today(make_analyzer, week_records):
    reports = asyncio.run(make_analyzer(week_records).analyze_categories())
    assert reports[0].metrics.window == TimeWindow(kind="week", number=10, year=2024)


def test_platform_filter(make_analyzer, week_records, week_10):
    reports = asyncio.run(make_analyzer(week_records).analyze_categories(Platform.YOUTUBE, "week", week_10))
    assert [r.category for r in reports] == ["Dance"]


def test_failing_narrator_uses_templates(make_analyzer, week_records, week_10, failing_narrator):
    reports = asyncio.run(make_analyzer(week_records, failing_narrator).analyze_categories(window=week_10))

    assert reports[0].insight == "Music had 2 items totaling 4,000 views."
    assert reports[0].sub_categories[0].percentage == 100
    assert reports[0].emerging_trends == []


def test_slow_narrator_is_bounded(make_analyzer, week_records, week_10, slow_narrator):
    reports = asyncio.run(make_analyzer(week_records, slow_narrator).analyze_categories(window=week_10))

    assert len(reports) == 3
    assert reports[2].insight == "Cooking had 1 items totaling 200 views."
    assert slow_narrator.cancelled == 9


def test_empty_window_is_data_unavailable(make_analyzer, week_records):
    analyzer = make_analyzer(week_records)

    with pytest.raises(DataUnavailable) as info:
        asyncio.run(analyzer.analyze_categories(window=TimeWindow(kind="week", number=20, year=2024)))

    assert info.value.window.number == 20


def test_timeframe_must_match_window(make_analyzer, week_records, week_10):
    with pytest.raises(WindowMismatch):
        asyncio.run(make_analyzer(week_records).analyze_categories(timeframe="month", window=week_10))


def test_month_analysis(make_analyzer, week_records):
    reports = asyncio.run(make_analyzer(week_records).analyze_categories(timeframe="month", window=MARCH))

    music = reports[0]
    assert music.metrics.total_views == 4000
    # February holds the 2000-view record
    assert music.metrics.growth_rate_percent == pytest.approx(100.0)


def test_narrated_category_trends(make_analyzer, week_records, week_10, stub_narrator):
    stub_narrator.trends = (
        'Here you go: [{"trend": "Lo-fi remixes", "confidence": 0.8, '
        '"evidence": ["#remix is rising"]}]'
    )

    reports = asyncio.run(make_analyzer(week_records, stub_narrator).analyze_categories(window=week_10))

    trends = reports[0].emerging_trends
    assert [t.trend for t in trends] == ["Lo-fi remixes"]
    assert trends[0].confidence == 0.8
    assert trends[0].evidence == ["#remix is rising"]
    assert any(call.kind == "category_trends" and call.subject == "Music" for call in stub_narrator.calls)


# === Emerging ===

@pytest.fixture
def emerging_records(make_record):
    older_day = date(2024, 1, 20)
    recent_day = date(2024, 3, 5)
    records = [make_record(category="Cooking", views=1000, day=older_day) for _ in range(3)]
    records += [make_record(category="Cooking", views=1000, day=recent_day) for _ in range(3)]
    records += [make_record(category="AI Tools", views=8000, hashtags=["#ai"], day=recent_day) for _ in range(4)]
    return records


def test_emerging_from_anchor(make_analyzer, emerging_records, week_10):
    analyzer = make_analyzer(emerging_records)

    result = asyncio.run(analyzer.detect_emerging_categories(anchor=week_10))

    assert [e.name for e in result] == ["AI Tools"]


def test_emerging_default_anchor(make_analyzer, emerging_records):
    result = asyncio.run(make_analyzer(emerging_records).detect_emerging_categories())
    assert [e.name for e in result] == ["AI Tools"]


def test_emerging_explicit_spans(make_analyzer, emerging_records, week_10):
    analyzer = make_analyzer(emerging_records)
    recent, older = analyzer.comparison_spans(week_10)

    assert [w.number for w in older.windows] == [3, 4, 5, 6]
    result = asyncio.run(analyzer.detect_emerging_categories(recent_span=recent, older_span=older))
    assert len(result) == 1


def test_emerging_rejects_bad_spans(make_analyzer, emerging_records, week_10):
    analyzer = make_analyzer(emerging_records)
    recent = week_10.span(4)

    with pytest.raises(WindowMismatch):
        asyncio.run(analyzer.detect_emerging_categories(recent_span=recent, older_span=recent))
    with pytest.raises(WindowMismatch):
        asyncio.run(analyzer.detect_emerging_categories(recent_span=recent))
    with pytest.raises(WindowMismatch):
        analyzer.comparison_spans(MARCH)


def test_emerging_without_recent_data(make_analyzer, emerging_records):
    analyzer = make_analyzer(emerging_records)
    with pytest.raises(DataUnavailable):
        asyncio.run(analyzer.detect_emerging_categories(anchor=TimeWindow(kind="week", number=30, year=2024)))


def test_narrate_emerging_fallback(make_analyzer, emerging_records, week_10):
    analyzer = make_analyzer(emerging_records)
    result = asyncio.run(analyzer.detect_emerging_categories(anchor=week_10))

    text = asyncio.run(analyzer.narrate_emerging(result))

    assert text.startswith("Detected 1 emerging categories; AI Tools leads")


# === Relations ===

def test_relations_report(make_analyzer, week_records, stub_narrator):
    analyzer = make_analyzer(week_records, stub_narrator)

    report = asyncio.run(analyzer.analyze_category_relations(window=MARCH))

    assert report.window == MARCH
    assert len(report.matrix) == 3
    assert report.strong_relations[0].category_a == "Dance"
    assert report.strong_relations[0].strength == "strong"
    assert report.clusters[0].categories == ["Dance", "Music"]
    assert report.network.influential_categories
    assert report.insight == "Narrated insight"
    assert stub_narrator.calls[0].kind == "relations"


def test_relations_default_month_and_fallback(make_analyzer, week_records):
    report = asyncio.run(make_analyzer(week_records).analyze_category_relations())

    assert report.window == MARCH
    assert report.insight.startswith("Found 1 strong category relations and 1 clusters.")


def test_relations_empty_month(make_analyzer, week_records):
    with pytest.raises(DataUnavailable):
        asyncio.run(
            make_analyzer(week_records).analyze_category_relations(
                window=TimeWindow(kind="month", number=7, year=2024)
            )
        )


def test_emerging_ignores_records_from_the_following_december(make_analyzer, make_record):
    # 2024-12-31 carries week 1 with calendar year 2024, but lies in 2025-W01
    records = [make_record(category="AI Tools", day=date(2024, 12, 31)) for _ in range(5)]
    analyzer = make_analyzer(records)

    with pytest.raises(DataUnavailable):
        asyncio.run(analyzer.detect_emerging_categories(anchor=TimeWindow(kind="week", number=4, year=2024)))

    result = asyncio.run(analyzer.detect_emerging_categories(anchor=TimeWindow(kind="week", number=1, year=2025)))
    assert [e.name for e in result] == ["AI Tools"]
