"""
Category correlation engine.

Two categories are related when their hashtag vocabularies overlap. The score
is the Jaccard similarity of the distinct hashtag sets:

    score = |A ∩ B| / |A ∪ B|      (0 when both sets are empty)

Hashtags compare case-insensitively with the leading '#' removed.
"""

import logging
from collections import Counter
from itertools import combinations
from typing import Dict, List, Sequence, Set

from trendlens.models.schemas import (
    CorrelationEntry,
    RelatedCategory,
    StrongRelation,
    TrendRecord,
)

logger = logging.getLogger(__name__)

COMMON_HASHTAG_SAMPLE = 3
STRONG_SCORE = 0.7


def normalize_hashtag(tag: str) -> str:
    return tag.strip().lstrip("#").strip().casefold()


def category_hashtags(records: Sequence[TrendRecord]) -> Dict[str, Counter]:
    """Hashtag occurrence counts per category; every observed category gets an entry."""
    vocab: Dict[str, Counter] = {}
    for record in records:
        counts = vocab.setdefault(record.category_name, Counter())
        for tag in record.hashtags:
            normalized = normalize_hashtag(tag)
            if normalized:
                counts[normalized] += 1
    return vocab


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def _common_sample(a: Counter, b: Counter) -> List[str]:
    shared = set(a) & set(b)
    ranked = sorted(shared, key=lambda tag: (-(a[tag] + b[tag]), tag))
    return ranked[:COMMON_HASHTAG_SAMPLE]


def correlate(records: Sequence[TrendRecord]) -> List[CorrelationEntry]:
    """
    Score every unordered pair of categories present in `records`.

    Returns:
        One entry per pair with category_a < category_b. A window holding a
        single category yields no entries.
    """
    vocab = category_hashtags(records)
    entries: List[CorrelationEntry] = []

    for cat_a, cat_b in combinations(sorted(vocab), 2):
        tags_a, tags_b = vocab[cat_a], vocab[cat_b]
        entries.append(CorrelationEntry(
            category_a=cat_a,
            category_b=cat_b,
            score=jaccard(set(tags_a), set(tags_b)),
            common_hashtags=_common_sample(tags_a, tags_b),
        ))

    logger.info(f"Correlated {len(vocab)} categories into {len(entries)} pairs")
    return entries


def related_categories(
    entries: Sequence[CorrelationEntry],
    category: str,
    limit: int = 5
) -> List[RelatedCategory]:
    """Categories most similar to `category`, strongest first, zero scores skipped."""
    related = []
    for entry in entries:
        if entry.score <= 0:
            continue
        if entry.category_a == category:
            other = entry.category_b
        elif entry.category_b == category:
            other = entry.category_a
        else:
            continue
        related.append(RelatedCategory(
            category=other,
            correlation_score=entry.score,
            common_hashtags=entry.common_hashtags,
        ))

    related.sort(key=lambda r: (-r.correlation_score, r.category))
    return related[:limit]


def strong_relations(
    entries: Sequence[CorrelationEntry],
    threshold: float = 0.5
) -> List[StrongRelation]:
    """Pairs scoring above `threshold`; above 0.7 they are 'strong', otherwise 'moderate'."""
    relations = [
        StrongRelation(
            category_a=entry.category_a,
            category_b=entry.category_b,
            score=entry.score,
            strength="strong" if entry.score > STRONG_SCORE else "moderate",
        )
        for entry in entries
        if entry.score > threshold
    ]
    relations.sort(key=lambda r: (-r.score, r.category_a, r.category_b))
    return relations
