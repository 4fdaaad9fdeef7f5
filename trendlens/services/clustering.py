"""
Category cluster detection.

Single-linkage clustering over the correlation threshold graph: an edge joins
two categories whose score is >= threshold, and every connected component with
at least two categories is a cluster. Membership propagates through
intermediate categories, so A and C share a cluster when A-B and B-C are linked
even if A-C scores low.
"""

import logging
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from trendlens.models.schemas import (
    Cluster,
    ClusterProfile,
    CorrelationEntry,
    InfluentialCategory,
    NetworkAnalysis,
    StrongRelation,
)

logger = logging.getLogger(__name__)

INFLUENTIAL_LIMIT = 5


class DisjointSet:
    """Union-find with path compression and union by size."""

    def __init__(self, items: Iterable[str] = ()):
        self._parent: Dict[str, str] = {}
        self._size: Dict[str, int] = {}
        for item in items:
            self.add(item)

    def add(self, item: str) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._size[item] = 1

    def find(self, item: str) -> str:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]

    def groups(self) -> List[List[str]]:
        members: Dict[str, List[str]] = {}
        for item in self._parent:
            members.setdefault(self.find(item), []).append(item)
        return [sorted(group) for group in members.values()]


def _pair_key(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def cluster(entries: Sequence[CorrelationEntry], threshold: float = 0.6) -> List[Cluster]:
    """
    Group categories into clusters.

    Args:
        entries: Output of correlate()
        threshold: Minimum score for an edge, in [0, 1]

    Returns:
        Clusters of size >= 2, largest first, then by average correlation.
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {threshold}")

    scores: Dict[Tuple[str, str], float] = {}
    forest = DisjointSet()
    for entry in entries:
        forest.add(entry.category_a)
        forest.add(entry.category_b)
        scores[_pair_key(entry.category_a, entry.category_b)] = entry.score
        if entry.score >= threshold:
            forest.union(entry.category_a, entry.category_b)

    clusters = []
    for group in forest.groups():
        if len(group) < 2:
            continue
        pair_scores = [
            scores[key]
            for key in (_pair_key(a, b) for a, b in combinations(group, 2))
            if key in scores
        ]
        avg = sum(pair_scores) / len(pair_scores) if pair_scores else 0.0
        clusters.append(Cluster(categories=group, avg_correlation=avg))

    clusters.sort(key=lambda c: (-len(c.categories), -c.avg_correlation, c.categories))
    logger.info(f"Found {len(clusters)} clusters at threshold {threshold}")
    return clusters


def find_cluster(clusters: Sequence[Cluster], category: str) -> Optional[Cluster]:
    for candidate in clusters:
        if category in candidate.categories:
            return candidate
    return None


def centrality(entries: Sequence[CorrelationEntry]) -> Dict[str, float]:
    """Mean correlation of each category to every category it was scored against."""
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for entry in entries:
        for category in (entry.category_a, entry.category_b):
            totals[category] = totals.get(category, 0.0) + entry.score
            counts[category] = counts.get(category, 0) + 1
    return {category: totals[category] / counts[category] for category in totals}


def network_analysis(
    entries: Sequence[CorrelationEntry],
    clusters: Sequence[Cluster],
    relations: Sequence[StrongRelation]
) -> NetworkAnalysis:
    """Centrality ranking, density and per-cluster profile of the category graph."""
    scores = centrality(entries)
    category_count = len(scores)
    possible_pairs = category_count * (category_count - 1) // 2
    density = len(relations) / possible_pairs if possible_pairs > 0 else 0.0

    influential = [
        InfluentialCategory(category=category, centrality_score=score)
        for category, score in sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))
    ][:INFLUENTIAL_LIMIT]

    profiles = [
        ClusterProfile(
            categories=c.categories,
            avg_correlation=c.avg_correlation,
            size=len(c.categories),
            dominant_category=max(c.categories, key=lambda name: (scores.get(name, 0.0), name)),
        )
        for c in clusters
    ]

    recommendations = []
    if influential:
        recommendations.append(f"Build the content strategy around {influential[0].category}")
    if profiles:
        largest = max(profiles, key=lambda p: p.size)
        recommendations.append(f"Cross-promote within the {largest.dominant_category} cluster")
    recommendations.append("Collaborate on content between highly related categories")

    return NetworkAnalysis(
        network_density=density,
        influential_categories=influential,
        cluster_analysis=profiles,
        recommendations=recommendations,
    )
