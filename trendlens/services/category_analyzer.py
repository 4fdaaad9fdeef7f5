"""
Category analyzer - entry points of the category engine.

Wires the pure analysis steps together for one request:

    fetch window -> aggregate -> growth vs. previous window
                 -> correlate month window -> cluster
                 -> narrate (optional, bounded by timeout)

Usage:
```python
analyzer = CategoryAnalyzer(source=SQLiteRecordSource("data/trends.db"))
reports = await analyzer.analyze_categories(
    platform=Platform.TIKTOK,
    window=TimeWindow(kind="week", number=12, year=2024),
)
```

The record source and narrator are injected; the analyzer keeps no state
between calls, so concurrent analyses need no coordination.
"""

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from trendlens.models.schemas import (
    AnalysisConfig,
    CategoryAnalysisReport,
    CategoryMetrics,
    CategoryRelationsReport,
    Cluster,
    CorrelationEntry,
    EmergingCategory,
    Platform,
    TrendRecord,
)
from trendlens.models.time_window import TimeWindow, WindowKind, WindowSpan
from trendlens.services.category_metrics import aggregate, group_by_category, rank_by_views
from trendlens.services.clustering import cluster, find_cluster, network_analysis
from trendlens.services.correlation import correlate, related_categories, strong_relations
from trendlens.services.emerging_detector import detect_emerging, validate_spans
from trendlens.services.errors import DataUnavailable, WindowMismatch
from trendlens.services.growth_rate import apply_growth
from trendlens.services.narrator import (
    InsightNarrator,
    category_fallback,
    category_summary,
    emerging_fallback,
    emerging_summary,
    narrate_category_trends,
    narrate_sub_categories,
    narrate_with_fallback,
    relations_fallback,
    relations_summary,
)
from trendlens.services.record_source import TrendRecordSource, fetch_span

logger = logging.getLogger(__name__)


def _scope(platform: Optional[Platform]) -> str:
    return platform.value if platform else "all platforms"


class CategoryAnalyzer:
    """
    Category analysis service.

    Args:
        source: Record source queried for each window
        narrator: Optional text generator; fallbacks are used when absent
        config: Thresholds, limits and narration timeout
        today: Date provider used only when the caller gives no window
    """

    def __init__(
        self,
        source: TrendRecordSource,
        narrator: Optional[InsightNarrator] = None,
        config: Optional[AnalysisConfig] = None,
        today: Callable[[], date] = date.today
    ):
        self.source = source
        self.narrator = narrator
        self.config = config or AnalysisConfig()
        self._today = today

    def current_window(self, kind: WindowKind) -> TimeWindow:
        return TimeWindow.containing(self._today(), kind)

    def _fetch(self, platform: Optional[Platform], window: TimeWindow) -> List[TrendRecord]:
        records = self.source.fetch_records(platform, window)
        logger.debug(f"Fetched {len(records)} records for {window.label} ({_scope(platform)})")
        return records

    # === Category Reports ===

    async def analyze_categories(
        self,
        platform: Optional[Platform] = None,
        timeframe: WindowKind = "week",
        window: Optional[TimeWindow] = None
    ) -> List[CategoryAnalysisReport]:
        """
        Per-category report for one week or month, ranked by total views.

        Raises:
            WindowMismatch: `window` is not of kind `timeframe`
            DataUnavailable: the window holds no records
        """
        window = window or self.current_window(timeframe)
        if window.kind != timeframe:
            raise WindowMismatch(f"Requested {timeframe} analysis for {window.kind} window {window.label}")

        logger.info(f"Analyzing categories for {_scope(platform)}, {window.label}")

        records = self._fetch(platform, window)
        if not records:
            raise DataUnavailable(
                f"No trend records for {window.label}",
                window=window,
                platform=platform.value if platform else None,
            )

        previous_window = window.previous()
        current = aggregate(records, window)
        previous = aggregate(self._fetch(platform, previous_window), previous_window)
        metrics = apply_growth(current, previous)

        relation_window = window.month_of_week()
        relation_records = records if relation_window == window else self._fetch(platform, relation_window)
        entries = correlate(relation_records)
        clusters = cluster(entries, self.config.correlation_threshold)

        groups = group_by_category(records)
        reports = await asyncio.gather(*(
            self._build_report(m, groups[m.category], entries, clusters)
            for m in rank_by_views(metrics)
        ))

        logger.info(f"Built {len(reports)} category reports for {window.label}")
        return list(reports)

    async def _build_report(
        self,
        metrics: CategoryMetrics,
        records: Sequence[TrendRecord],
        entries: Sequence[CorrelationEntry],
        clusters: Sequence[Cluster]
    ) -> CategoryAnalysisReport:
        timeout = self.config.narration_timeout
        insight, sub_categories, trends = await asyncio.gather(
            narrate_with_fallback(
                self.narrator, category_summary(metrics), category_fallback(metrics), timeout
            ),
            narrate_sub_categories(self.narrator, metrics.category, records, timeout),
            narrate_category_trends(self.narrator, metrics.category, records, timeout),
        )

        home = find_cluster(clusters, metrics.category)
        return CategoryAnalysisReport(
            category=metrics.category,
            metrics=metrics,
            cluster=home,
            cluster_neighbors=[c for c in home.categories if c != metrics.category] if home else [],
            related_categories=related_categories(entries, metrics.category, self.config.related_limit),
            sub_categories=sub_categories,
            emerging_trends=trends,
            insight=insight,
        )

    # === Emerging Categories ===

    def comparison_spans(self, anchor: Optional[TimeWindow] = None) -> Tuple[WindowSpan, WindowSpan]:
        """Recent weeks ending at `anchor` and the equally long run of weeks right before them."""
        anchor = anchor or self.current_window("week")
        if anchor.kind != "week":
            raise WindowMismatch(f"Emerging detection is anchored on a week, got {anchor.label}")
        recent = anchor.span(self.config.lookback_weeks)
        return recent, recent.previous()

    async def detect_emerging_categories(
        self,
        platform: Optional[Platform] = None,
        anchor: Optional[TimeWindow] = None,
        recent_span: Optional[WindowSpan] = None,
        older_span: Optional[WindowSpan] = None
    ) -> List[EmergingCategory]:
        """
        New and fast-growing categories between two adjacent spans.

        By default the recent span is the last `lookback_weeks` weeks ending at
        `anchor` and the older span is the same number of weeks before it.

        Raises:
            WindowMismatch: explicit spans that cannot be compared
            DataUnavailable: the recent span holds no records
        """
        if recent_span is None or older_span is None:
            if recent_span is not None or older_span is not None:
                raise WindowMismatch("Both recent and older spans must be given")
            recent_span, older_span = self.comparison_spans(anchor)
        validate_spans(recent_span, older_span)

        logger.info(
            f"Detecting emerging categories for {_scope(platform)}: "
            f"{recent_span.windows[0].label}..{recent_span.windows[-1].label} vs "
            f"{older_span.windows[0].label}..{older_span.windows[-1].label}"
        )

        recent = fetch_span(self.source, platform, recent_span)
        if not recent:
            raise DataUnavailable(
                f"No trend records between {recent_span.start_date} and {recent_span.end_date}",
                window=recent_span,
                platform=platform.value if platform else None,
            )
        older = fetch_span(self.source, platform, older_span)

        return detect_emerging(
            recent,
            older,
            min_video_count=self.config.min_video_count,
            growth_threshold=self.config.growth_threshold,
            top_n=self.config.emerging_top_n,
        )

    async def narrate_emerging(self, categories: Sequence[EmergingCategory]) -> str:
        return await narrate_with_fallback(
            self.narrator,
            emerging_summary(categories),
            emerging_fallback(categories),
            self.config.narration_timeout,
        )

    # === Category Relations ===

    async def analyze_category_relations(
        self,
        platform: Optional[Platform] = None,
        window: Optional[TimeWindow] = None
    ) -> CategoryRelationsReport:
        """
        Correlation matrix, clusters and network view for one window (a month by default).

        Raises:
            DataUnavailable: the window holds no records
        """
        window = window or self.current_window("month")
        logger.info(f"Analyzing category relations for {_scope(platform)}, {window.label}")

        records = self._fetch(platform, window)
        if not records:
            raise DataUnavailable(
                f"No trend records for {window.label}",
                window=window,
                platform=platform.value if platform else None,
            )

        entries = correlate(records)
        clusters = cluster(entries, self.config.correlation_threshold)
        relations = strong_relations(entries, self.config.strong_relation_threshold)

        insight = await narrate_with_fallback(
            self.narrator,
            relations_summary(relations, clusters),
            relations_fallback(relations, clusters),
            self.config.narration_timeout,
        )

        return CategoryRelationsReport(
            window=window,
            matrix=entries,
            strong_relations=relations,
            clusters=clusters,
            network=network_analysis(entries, clusters, relations),
            insight=insight,
        )
