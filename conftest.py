import asyncio
import sys
from datetime import date, datetime, time
from itertools import count
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from trendlens.models.schemas import AnalysisConfig, TrendRecord, window_keys
from trendlens.models.time_window import TimeWindow
from trendlens.services.errors import NarrationUnavailable


# ISO week 10 of 2024 runs Monday 2024-03-04 to Sunday 2024-03-10
WEEK_10 = TimeWindow(kind="week", number=10, year=2024)


@pytest.fixture
def make_record():
    """Factory building TrendRecord snapshots with bucketing keys derived from `day`."""
    ids = count(1)

    def _make(
        category="Gaming",
        views=1000,
        hashtags=None,
        platform="TIKTOK",
        day=date(2024, 3, 4),
        title=None,
        likes=10,
        comments=1,
    ):
        timestamp = datetime.combine(day, time(12, 0))
        number = next(ids)
        return TrendRecord(
            id=f"rec-{number}",
            platform=platform,
            category=category,
            title=title if title is not None else f"{category or 'Untitled'} clip {number}",
            hashtags=hashtags or [],
            views=views,
            likes=likes,
            comments=comments,
            timestamp=timestamp,
            **window_keys(timestamp),
        )

    return _make


@pytest.fixture
def week_10():
    return WEEK_10


@pytest.fixture
def analysis_config():
    return AnalysisConfig(
        correlation_threshold=0.6,
        min_video_count=3,
        growth_threshold=2.0,
        emerging_top_n=10,
        lookback_weeks=4,
        narration_timeout=0.2,
    )


class StubNarrator:
    """Narrator returning canned text and recording the summaries it saw."""

    def __init__(self, text="Narrated insight", sub_categories=None, trends=None):
        self.text = text
        self.sub_categories = sub_categories
        self.trends = trends
        self.calls = []

    async def narrate(self, summary):
        self.calls.append(summary)
        if summary.kind == "sub_categories" and self.sub_categories is not None:
            return self.sub_categories
        if summary.kind == "category_trends" and self.trends is not None:
            return self.trends
        return self.text


class FailingNarrator:
    """Narrator whose every call fails."""

    async def narrate(self, summary):
        raise NarrationUnavailable("quota exceeded")


class SlowNarrator:
    """Narrator that never answers within any reasonable timeout."""

    def __init__(self, delay=5.0):
        self.delay = delay
        self.cancelled = 0

    async def narrate(self, summary):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return "too late"


@pytest.fixture
def stub_narrator():
    return StubNarrator()


@pytest.fixture
def failing_narrator():
    return FailingNarrator()


@pytest.fixture
def slow_narrator():
    return SlowNarrator()
