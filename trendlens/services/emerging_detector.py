"""
Emerging category detection.

Compares a recent span of records against an older span of equal length and
flags two kinds of categories:

- novel: present recently, absent before, with enough items
- rapid growth: present in both, total views grew by more than the threshold

Confidence is a bounded heuristic in [0, 0.9]:

    novel  = 0.3 + min(0.3, items*0.05) + min(0.2, views/1M*0.1) + min(0.2, evidence*0.05)
    growth = 0.5 + growth*0.2
"""

import logging
from typing import Dict, List, Sequence

from trendlens.models.schemas import (
    CategoryMetrics,
    EmergingCategory,
    EmergingOpportunity,
    EmergingSummary,
    EvidenceItem,
    Platform,
    TrendRecord,
)
from trendlens.models.time_window import WindowSpan
from trendlens.services.category_metrics import aggregate, group_by_category
from trendlens.services.correlation import normalize_hashtag
from trendlens.services.errors import WindowMismatch

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 0.9
HIGH_CONFIDENCE = 0.7
HASHTAG_SAMPLE = 3
RAPID_GROWTH_SUFFIX = " (rapid growth)"


def clamp(x: float, lo: float = 0.0, hi: float = MAX_CONFIDENCE) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, x))


def validate_spans(recent: WindowSpan, older: WindowSpan) -> None:
    """
    Ensure two spans can be compared.

    Raises:
        WindowMismatch: different kinds or lengths, overlapping spans, or
            `older` not strictly before `recent`
    """
    if recent.kind != older.kind:
        raise WindowMismatch(f"Cannot compare a {recent.kind} span with a {older.kind} span")
    if len(recent) != len(older):
        raise WindowMismatch(
            f"Spans differ in length: {len(recent)} vs {len(older)} {recent.kind}s"
        )
    if recent.overlaps(older):
        raise WindowMismatch("Recent and older spans overlap")
    if older.end_date >= recent.start_date:
        raise WindowMismatch("Older span must precede the recent span")


def novel_confidence(metrics: CategoryMetrics, evidence_count: int) -> float:
    confidence = 0.3
    confidence += min(0.3, metrics.video_count * 0.05)
    confidence += min(0.2, metrics.total_views / 1_000_000 * 0.1)
    confidence += min(0.2, evidence_count * 0.05)
    return clamp(confidence)


def growth_confidence(growth: float) -> float:
    return clamp(0.5 + growth * 0.2)


def _distinct_hashtags(records: Sequence[TrendRecord]) -> List[str]:
    """Hashtags in first-seen order, normalised the same way correlation compares them."""
    seen: Dict[str, None] = {}
    for record in records:
        for tag in record.hashtags:
            normalized = normalize_hashtag(tag)
            if normalized:
                seen.setdefault(normalized, None)
    return list(seen)


def _platforms(records: Sequence[TrendRecord]) -> List[Platform]:
    return sorted({record.platform for record in records}, key=lambda p: p.value)


def _novel_evidence(metrics: CategoryMetrics, records: Sequence[TrendRecord]) -> List[EvidenceItem]:
    evidence = []
    hashtags = _distinct_hashtags(records)
    if hashtags:
        evidence.append(EvidenceItem(
            type="hashtag",
            value=", ".join(hashtags[:HASHTAG_SAMPLE]),
            description=f"New hashtags appeared: {len(hashtags)}",
        ))
    evidence.append(EvidenceItem(
        type="growth_rate",
        value=metrics.total_views,
        description=f"Initial traction: {metrics.total_views:,} views",
    ))
    return evidence


def _growth_evidence(
    recent: CategoryMetrics,
    older: CategoryMetrics,
    growth: float
) -> List[EvidenceItem]:
    return [
        EvidenceItem(
            type="growth_rate",
            value=growth * 100,
            description=f"Views grew {round(growth * 100)}%",
        ),
        EvidenceItem(
            type="title_pattern",
            value=f"{older.video_count} vs {recent.video_count} videos",
            description=f"Video count went from {older.video_count} to {recent.video_count}",
        ),
    ]


def detect_emerging(
    recent: Sequence[TrendRecord],
    older: Sequence[TrendRecord],
    min_video_count: int = 3,
    growth_threshold: float = 2.0,
    top_n: int = 10
) -> List[EmergingCategory]:
    """
    Flag new and fast-growing categories.

    Args:
        recent: Records of the recent span
        older: Records of the older span, same length, strictly earlier
        min_video_count: Items a novel category needs before it is flagged
        growth_threshold: Growth ratio to exceed (2.0 means +200%)
        top_n: Maximum number of results

    Returns:
        Emerging categories ordered by confidence, highest first.
    """
    recent_metrics = aggregate(recent)
    older_metrics = aggregate(older)
    recent_groups = group_by_category(recent)

    emerging: List[EmergingCategory] = []

    # Novel categories
    for category, metrics in recent_metrics.items():
        if category in older_metrics or metrics.video_count < min_video_count:
            continue
        records = recent_groups[category]
        evidence = _novel_evidence(metrics, records)
        emerging.append(EmergingCategory(
            name=category,
            confidence=novel_confidence(metrics, len(evidence)),
            evidence=evidence,
            estimated_size=metrics.total_views,
            platforms=_platforms(records),
            first_detected_at=min(record.timestamp for record in records),
        ))

    # Rapid growth
    for category, metrics in recent_metrics.items():
        previous = older_metrics.get(category)
        if previous is None or previous.total_views <= 0:
            continue
        growth = (metrics.total_views - previous.total_views) / previous.total_views
        if growth <= growth_threshold:
            continue
        records = recent_groups[category]
        emerging.append(EmergingCategory(
            name=f"{category}{RAPID_GROWTH_SUFFIX}",
            confidence=growth_confidence(growth),
            evidence=_growth_evidence(metrics, previous, growth),
            estimated_size=metrics.total_views,
            platforms=_platforms(records),
            first_detected_at=min(record.timestamp for record in records),
        ))

    emerging.sort(key=lambda e: -e.confidence)
    logger.info(
        f"Emerging detection: {len(emerging)} candidates from "
        f"{len(recent_metrics)} recent / {len(older_metrics)} older categories"
    )
    return emerging[:top_n]


def summarize_emerging(categories: Sequence[EmergingCategory]) -> EmergingSummary:
    """Headline numbers and templated recommendations for a detection result."""
    high = [c for c in categories if c.confidence > HIGH_CONFIDENCE]
    breakdown: Dict[str, int] = {}
    for category in categories:
        for platform in category.platforms:
            breakdown[platform.value] = breakdown.get(platform.value, 0) + 1

    recommendations = []
    if high:
        recommendations.append(f"Consider entering {high[0].name} early")
    if any(len(c.platforms) > 1 for c in categories):
        recommendations.append("Prioritise trends confirmed on more than one platform")
    if any(c.name.endswith(RAPID_GROWTH_SUFFIX) for c in categories):
        recommendations.append("Keep monitoring fast-growing categories")

    return EmergingSummary(
        total_detected=len(categories),
        high_confidence=len(high),
        top_opportunities=[
            EmergingOpportunity(name=c.name, confidence=c.confidence, estimated_size=c.estimated_size)
            for c in high[:3]
        ],
        total_estimated_views=sum(c.estimated_size for c in categories),
        average_confidence=(
            sum(c.confidence for c in categories) / len(categories) if categories else 0.0
        ),
        platform_breakdown=breakdown,
        recommendations=recommendations,
    )
