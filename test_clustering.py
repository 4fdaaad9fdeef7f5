"""
Cluster detection tests

用法: pytest test_clustering.py
"""

import random

import pytest

from trendlens.models.schemas import CorrelationEntry
from trendlens.services.clustering import (
    DisjointSet,
    centrality,
    cluster,
    find_cluster,
    network_analysis,
)
from trendlens.services.correlation import strong_relations


def _entry(a, b, score):
    return CorrelationEntry(category_a=a, category_b=b, score=score)


def test_transitive_membership():
    entries = [_entry("A", "B", 0.7), _entry("B", "C", 0.7), _entry("A", "C", 0.1)]

    clusters = cluster(entries, threshold=0.6)

    assert len(clusters) == 1
    assert clusters[0].categories == ["A", "B", "C"]
    assert clusters[0].avg_correlation == pytest.approx((0.7 + 0.7 + 0.1) / 3)


def test_unlinked_categories_are_dropped():
    entries = [_entry("A", "B", 0.9), _entry("A", "C", 0.2), _entry("B", "C", 0.3)]

    clusters = cluster(entries, threshold=0.6)

    assert [c.categories for c in clusters] == [["A", "B"]]
    assert find_cluster(clusters, "C") is None


def test_no_edges_no_clusters():
    entries = [_entry("A", "B", 0.1), _entry("C", "D", 0.2)]
    assert cluster(entries, threshold=0.6) == []


def test_threshold_is_inclusive():
    assert len(cluster([_entry("A", "B", 0.6)], threshold=0.6)) == 1


def test_threshold_zero_joins_everything():
    entries = [_entry("A", "B", 0.0), _entry("A", "C", 0.0), _entry("B", "C", 0.0)]
    clusters = cluster(entries, threshold=0.0)
    assert [c.categories for c in clusters] == [["A", "B", "C"]]


def test_invalid_threshold():
    with pytest.raises(ValueError):
        cluster([], threshold=1.5)


def test_missing_pairs_do_not_count_as_zero():
    entries = [_entry("A", "B", 0.8), _entry("B", "C", 0.6)]

    (only,) = cluster(entries, threshold=0.6)

    assert only.avg_correlation == pytest.approx(0.7)


def test_two_separate_clusters_ordered_by_size():
    entries = [
        _entry("A", "B", 0.9),
        _entry("C", "D", 0.8),
        _entry("D", "E", 0.8),
        _entry("A", "C", 0.0),
    ]

    clusters = cluster(entries, threshold=0.6)

    assert [c.categories for c in clusters] == [["C", "D", "E"], ["A", "B"]]


def test_never_emits_singletons_at_any_threshold():
    rng = random.Random(11)
    names = [f"cat{i}" for i in range(8)]
    entries = [
        _entry(a, b, round(rng.random(), 3))
        for i, a in enumerate(names) for b in names[i + 1:]
    ]

    for threshold in (0.0, 0.25, 0.5, 0.75, 1.0):
        for c in cluster(entries, threshold=threshold):
            assert len(c.categories) >= 2


def test_disjoint_set():
    forest = DisjointSet(["a", "b", "c", "d"])
    forest.union("a", "b")
    forest.union("c", "b")

    assert forest.find("a") == forest.find("c")
    assert sorted(forest.groups()) == [["a", "b", "c"], ["d"]]


def test_network_analysis():
    entries = [_entry("A", "B", 0.9), _entry("A", "C", 0.6), _entry("B", "C", 0.1)]
    clusters = cluster(entries, threshold=0.6)
    relations = strong_relations(entries, threshold=0.5)

    network = network_analysis(entries, clusters, relations)

    assert centrality(entries)["A"] == pytest.approx(0.75)
    assert network.influential_categories[0].category == "A"
    assert network.network_density == pytest.approx(2 / 3)
    assert network.cluster_analysis[0].dominant_category == "A"
    assert network.cluster_analysis[0].size == 3
    assert network.recommendations


def test_network_analysis_empty():
    network = network_analysis([], [], [])
    assert network.network_density == 0.0
    assert network.influential_categories == []
