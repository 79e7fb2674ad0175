"""
Tests for snapshot encoding and decoding.

These tests verify that a snapshot carries the full index state and that
malformed or inconsistent snapshots are rejected with DeserializationError.
"""

import json

import numpy as np
import pytest
from hnswidx.codec import encode_graph, decode_graph
from hnswidx.config import HNSWParams
from hnswidx.errors import DeserializationError, SerializationError
from hnswidx.hnsw.graph import HNSWGraph


@pytest.fixture
def wired_graph() -> HNSWGraph:
    graph = HNSWGraph()
    graph.add_point("a", [0.1, 1.0 / 3.0, -2.5], level=1)
    graph.add_point("b", [1.0, 0.0, 0.0], level=0)
    graph.add_point("c", [0.0, 1.0, 0.0], level=2)
    graph.connect("a", "b", 0)
    graph.add_edge("c", "a", 1)
    return graph


def _document(graph, params=None):
    return json.loads(encode_graph(params or HNSWParams(), graph))


def test_round_trip_preserves_state(wired_graph):
    """Points, levels, links, entry point, dimension and params all survive"""
    params = HNSWParams(m=8, ef_search=20)

    decoded_params, decoded = decode_graph(encode_graph(params, wired_graph))

    assert decoded_params == params
    assert decoded.dimension == 3
    assert decoded.entry_point == "c"
    assert len(decoded.layers) == 3
    for point in wired_graph:
        restored = decoded.get_point(point.id)
        assert restored.level == point.level
        assert restored.vector.dtype == np.float32
        assert np.array_equal(restored.vector, point.vector)
    for layer_idx, layer in enumerate(wired_graph.layers):
        assert decoded.layers[layer_idx].links == layer.links


def test_round_trip_empty_graph():
    """An empty graph round-trips to an empty graph"""
    _, decoded = decode_graph(encode_graph(HNSWParams(), HNSWGraph()))

    assert decoded.size() == 0
    assert decoded.dimension == 0
    assert decoded.entry_point is None
    assert decoded.layers == []


def test_snapshot_is_self_describing(wired_graph):
    """The buffer is a JSON document with a format marker"""
    document = _document(wired_graph)

    assert document["format"] == "hnswidx"
    assert set(document) == {"format", "params", "dimension", "entry_point", "points", "layers"}


def test_non_finite_vector_cannot_be_encoded():
    """NaN components raise SerializationError"""
    graph = HNSWGraph()
    graph.add_point("a", [float("nan"), 1.0], level=0)

    with pytest.raises(SerializationError):
        encode_graph(HNSWParams(), graph)


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"not json",
        b"\xff\xfe\x00",
        b"[]",
        b'{"format": "something-else"}',
    ],
)
def test_garbage_rejected(data):
    """Anything that is not a snapshot raises DeserializationError"""
    with pytest.raises(DeserializationError):
        decode_graph(data)


def test_missing_field_rejected(wired_graph):
    """Every top-level field is required"""
    document = _document(wired_graph)
    del document["layers"]

    with pytest.raises(DeserializationError):
        decode_graph(json.dumps(document).encode())


def test_invalid_params_rejected(wired_graph):
    """Snapshot params go through the same validation as constructor params"""
    document = _document(wired_graph)
    document["params"]["m"] = 0

    with pytest.raises(DeserializationError):
        decode_graph(json.dumps(document).encode())


@pytest.mark.parametrize(
    "corrupt",
    [
        lambda d: d["layers"][0]["b"].append("ghost"),
        lambda d: d.__setitem__("entry_point", "ghost"),
        lambda d: d["points"][1].__setitem__("vector", [1.0, 0.0]),
        lambda d: d["points"][0].__setitem__("level", 7),
        lambda d: d["layers"][2].__setitem__("b", []),
        lambda d: d["points"].append(dict(d["points"][0])),
        lambda d: d["points"][0].__setitem__("id", 5),
        lambda d: d["layers"][0].__setitem__("a", "b"),
        lambda d: d["points"][0].__setitem__("vector", ["1", "0"]),
        lambda d: d["points"][0].__setitem__("vector", [[1.0, 0.0], [1.0]]),
    ],
)
def test_inconsistent_snapshot_rejected(wired_graph, corrupt):
    """Snapshots violating graph invariants are rejected"""
    document = _document(wired_graph)
    corrupt(document)

    with pytest.raises(DeserializationError):
        decode_graph(json.dumps(document).encode())
