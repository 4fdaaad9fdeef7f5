"""
Category metrics aggregation.

Groups trend records by category and sums their counters for one window:
- total views / likes / comments
- item count and average views per item

Records without a category are folded into "Other".
"""

import logging
from typing import Dict, List, Optional, Sequence

from trendlens.models.schemas import CategoryMetrics, TrendRecord
from trendlens.models.time_window import TimeWindow

logger = logging.getLogger(__name__)


def group_by_category(records: Sequence[TrendRecord]) -> Dict[str, List[TrendRecord]]:
    """Bucket records by category name, preserving input order inside each bucket."""
    groups: Dict[str, List[TrendRecord]] = {}
    for record in records:
        groups.setdefault(record.category_name, []).append(record)
    return groups


def aggregate(
    records: Sequence[TrendRecord],
    window: Optional[TimeWindow] = None
) -> Dict[str, CategoryMetrics]:
    """
    Aggregate records into per-category metrics.

    Args:
        records: Records of a single window
        window: Window the records were fetched for, attached to each result

    Returns:
        Mapping of category name to CategoryMetrics. Empty input gives an empty map.
    """
    totals: Dict[str, Dict[str, int]] = {}

    for record in records:
        bucket = totals.setdefault(
            record.category_name,
            {"views": 0, "likes": 0, "comments": 0, "count": 0}
        )
        bucket["views"] += record.views or 0
        bucket["likes"] += record.likes or 0
        bucket["comments"] += record.comments or 0
        bucket["count"] += 1

    metrics: Dict[str, CategoryMetrics] = {}
    for category, bucket in totals.items():
        count = bucket["count"]
        metrics[category] = CategoryMetrics(
            category=category,
            total_views=bucket["views"],
            avg_views=bucket["views"] / count if count > 0 else 0.0,
            total_likes=bucket["likes"],
            total_comments=bucket["comments"],
            video_count=count,
            window=window,
        )

    logger.debug(f"Aggregated {len(records)} records into {len(metrics)} categories")
    return metrics


def rank_by_views(metrics: Dict[str, CategoryMetrics]) -> List[CategoryMetrics]:
    """Metrics sorted by total views descending, ties by category name."""
    return sorted(metrics.values(), key=lambda m: (-m.total_views, m.category))
