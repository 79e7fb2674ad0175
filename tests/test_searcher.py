"""
Tests for HNSW search algorithm.

These tests verify the bounded greedy walk on hand-wired graphs:
- Empty graph handling
- Entry points as starting places, and opt-in seeding
- Distance-based ranking, tie order and the ef bound
- Pruning of candidates that cannot improve a full result set
- Optional multi-layer descent
"""

import numpy as np
import pytest
from hnswidx.hnsw.graph import HNSWGraph
from hnswidx.hnsw.searcher import HNSWSearcher


def _query(*values):
    return np.array(values, dtype=np.float32)


@pytest.fixture
def chain_graph() -> HNSWGraph:
    """e -> a -> b -> c on layer 0, with e as entry point"""
    graph = HNSWGraph()
    graph.add_point("e", [0.0, 1.0], level=0)
    graph.add_point("a", [0.5, 1.0], level=0)
    graph.add_point("b", [1.0, 0.5], level=0)
    graph.add_point("c", [1.0, 0.0], level=0)
    graph.add_edge("e", "a", 0)
    graph.add_edge("a", "b", 0)
    graph.add_edge("b", "c", 0)
    return graph


def test_search_empty_graph():
    """Searching an empty graph should return empty results"""
    searcher = HNSWSearcher(HNSWGraph(), ef_search=10)

    assert searcher.search(_query(1.0, 0.0), k=5) == []


def test_search_single_point():
    """The entry point is where the walk starts, not a result"""
    graph = HNSWGraph()
    graph.add_point("only", [1.0, 0.0], level=0)
    searcher = HNSWSearcher(graph, ef_search=10)

    assert searcher.search(_query(0.9, 0.1), k=5) == []

    seeded = searcher.search(_query(0.9, 0.1), k=5, seed_results=True)
    assert [point_id for point_id, _ in seeded] == ["only"]


def test_search_follows_links_and_ranks(chain_graph):
    """Results come back closest first"""
    searcher = HNSWSearcher(chain_graph, ef_search=10)

    results = searcher.search(_query(1.0, 0.0), k=4)

    assert [point_id for point_id, _ in results] == ["c", "b", "a"]
    distances = [dist for _, dist in results]
    assert distances == sorted(distances)
    assert np.isclose(distances[0], 0.0, atol=1e-6)


def test_search_respects_k(chain_graph):
    """Never more than k results"""
    searcher = HNSWSearcher(chain_graph, ef_search=10)

    results = searcher.search(_query(1.0, 0.0), k=2)

    assert [point_id for point_id, _ in results] == ["c", "b"]


def test_search_layer_bounded_by_ef():
    """search_layer keeps at most ef results"""
    graph = HNSWGraph()
    graph.add_point("hub", [1.0, 0.0], level=0)
    for i in range(6):
        graph.add_point(f"n{i}", [1.0, 0.1 * (i + 1)], level=0)
        graph.add_edge("hub", f"n{i}", 0)
    searcher = HNSWSearcher(graph)

    results = searcher.search_layer(_query(1.0, 0.0), ef=3, layer=0)

    assert [point_id for point_id, _ in results] == ["n0", "n1", "n2"]


def test_full_result_set_blocks_worse_candidates():
    """A neighbor worse than everything kept is neither kept nor expanded"""
    graph = HNSWGraph()
    graph.add_point("e", [0.0, 1.0], level=0)
    graph.add_point("x1", [1.0, 0.2], level=0)
    graph.add_point("x2", [-1.0, 1.0], level=0)
    graph.add_point("y", [1.0, 0.0], level=0)
    graph.add_edge("e", "x1", 0)
    graph.add_edge("e", "x2", 0)
    graph.add_edge("x2", "y", 0)
    searcher = HNSWSearcher(graph)
    query = _query(1.0, 0.0)

    narrow = searcher.search_layer(query, ef=1, layer=0)
    wide = searcher.search_layer(query, ef=3, layer=0)

    assert [point_id for point_id, _ in narrow] == ["x1"]
    assert [point_id for point_id, _ in wide] == ["y", "x1", "x2"]


def test_closer_entry_point_does_not_fill_result_set():
    """With ef=1 a worse neighbor is still returned when the entry point is an exact match"""
    graph = HNSWGraph()
    graph.add_point("e", [1.0, 0.0], level=0)
    graph.add_point("x", [0.0, 1.0], level=0)
    graph.add_edge("e", "x", 0)
    searcher = HNSWSearcher(graph)

    results = searcher.search_layer(_query(1.0, 0.0), ef=1, layer=0)

    assert [point_id for point_id, _ in results] == ["x"]


def test_seeded_walk_keeps_entry_point():
    """seed_results scores the starting points like any other candidate"""
    graph = HNSWGraph()
    graph.add_point("e", [1.0, 0.0], level=0)
    graph.add_point("x", [0.0, 1.0], level=0)
    graph.add_edge("e", "x", 0)
    searcher = HNSWSearcher(graph)

    results = searcher.search_layer(_query(1.0, 0.0), ef=1, layer=0, seed_results=True)

    assert [point_id for point_id, _ in results] == ["e"]


def test_equal_distances_keep_discovery_order():
    """Tied results are returned in the order the walk found them"""
    graph = HNSWGraph()
    graph.add_point("e", [0.0, 1.0], level=0)
    graph.add_point("z", [1.0, 0.0], level=0)
    graph.add_point("a", [1.0, 0.0], level=0)
    graph.add_edge("e", "z", 0)
    graph.add_edge("e", "a", 0)
    searcher = HNSWSearcher(graph)

    results = searcher.search_layer(_query(1.0, 0.0), ef=5, layer=0)

    assert [point_id for point_id, _ in results] == ["z", "a"]
    assert results[0][1] == results[1][1]


def test_tied_worst_evicts_latest_found():
    """When a better neighbor overflows the set, the last-found of the tied worst goes"""
    graph = HNSWGraph()
    graph.add_point("e", [0.0, 1.0], level=0)
    graph.add_point("z", [1.0, 1.0], level=0)
    graph.add_point("a", [1.0, 1.0], level=0)
    graph.add_point("b", [1.0, 0.0], level=0)
    graph.add_edge("e", "z", 0)
    graph.add_edge("e", "a", 0)
    graph.add_edge("e", "b", 0)
    searcher = HNSWSearcher(graph)

    results = searcher.search_layer(_query(1.0, 0.0), ef=2, layer=0)

    assert [point_id for point_id, _ in results] == ["b", "z"]


def test_unreachable_points_not_found():
    """Without links, nothing beyond the entry point is reached"""
    graph = HNSWGraph()
    graph.add_point("a", [0.0, 1.0], level=0)
    graph.add_point("b", [1.0, 0.0], level=0)
    searcher = HNSWSearcher(graph)

    assert searcher.search(_query(1.0, 0.0), k=2) == []


def test_search_ef_at_least_k(chain_graph):
    """ef below k is raised to k"""
    searcher = HNSWSearcher(chain_graph, ef_search=1)

    results = searcher.search(_query(1.0, 0.0), k=3)

    assert len(results) == 3


def test_search_layer_only_walks_requested_layer():
    """Links on other layers are ignored"""
    graph = HNSWGraph()
    graph.add_point("a", [0.0, 1.0], level=1)
    graph.add_point("b", [1.0, 0.0], level=1)
    graph.add_edge("a", "b", 1)
    searcher = HNSWSearcher(graph)

    layer_0 = searcher.search_layer(_query(1.0, 0.0), ef=5, layer=0)
    layer_1 = searcher.search_layer(_query(1.0, 0.0), ef=5, layer=1)

    assert layer_0 == []
    assert [point_id for point_id, _ in layer_1] == ["b"]


def test_multilayer_descent_finds_better_region():
    """Descending through layer 1 reaches a layer-0 region the entry point cannot"""
    graph = HNSWGraph()
    graph.add_point("top", [0.0, 1.0], level=1)
    graph.add_point("hub", [1.0, 0.0], level=1)
    graph.add_point("near", [1.0, 0.1], level=0)
    graph.add_edge("top", "hub", 1)
    graph.add_edge("hub", "near", 0)
    searcher = HNSWSearcher(graph, ef_search=10)
    query = _query(1.0, 0.0)

    flat = searcher.search(query, k=3)
    layered = searcher.search(query, k=3, multilayer=True)

    assert flat == []
    assert [point_id for point_id, _ in layered] == ["hub", "near"]
