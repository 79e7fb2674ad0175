"""
Snapshot encoding for HNSW indexes.

A snapshot is a UTF-8 JSON document holding the full index state:

    {
      "format": "hnswidx",
      "params": {"m": 16, "ef_construction": 200, ...},
      "dimension": 384,
      "entry_point": "doc_7",
      "points": [{"id": "doc_7", "vector": [...], "level": 1}, ...],
      "layers": [{"doc_7": ["doc_2"], ...}, {"doc_7": []}]
    }

Only round-trip fidelity is promised; the layout is not a compatibility
contract. float32 values survive the trip exactly because each one is
widened to a double before it is written.
"""

import json
import logging
from typing import Any, Dict, Tuple

from hnswidx.config import HNSWParams
from hnswidx.errors import DeserializationError, HNSWIndexError, SerializationError
from hnswidx.graph_validator import GraphValidator
from hnswidx.hnsw.graph import HNSWGraph, Layer, Point, to_vector

logger = logging.getLogger(__name__)

FORMAT_NAME = "hnswidx"


def encode_graph(params: HNSWParams, graph: HNSWGraph) -> bytes:
    """
    Serialize params and graph into one byte buffer.

    Raises:
        SerializationError: If the state cannot be encoded (e.g. NaN components)
    """
    document = {
        "format": FORMAT_NAME,
        "params": params.to_dict(),
        "dimension": graph.dimension,
        "entry_point": graph.entry_point,
        "points": [
            {"id": point.id, "vector": point.vector.tolist(), "level": point.level}
            for point in graph
        ],
        "layers": [dict(layer.links) for layer in graph.layers],
    }

    try:
        return json.dumps(document, allow_nan=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Serialization error: {exc}") from exc


def decode_graph(data: bytes) -> Tuple[HNSWParams, HNSWGraph]:
    """
    Rebuild params and graph from a byte buffer produced by ``encode_graph``.

    The result is fully validated; nothing outside the returned objects is touched.

    Raises:
        DeserializationError: If the buffer is not a well-formed, consistent snapshot
    """
    try:
        document = json.loads(bytes(data).decode("utf-8"))
    except (TypeError, ValueError) as exc:
        raise DeserializationError(f"Deserialization error: {exc}") from exc

    try:
        params, graph = _build(document)
    except HNSWIndexError as exc:
        raise DeserializationError(f"Deserialization error: {exc}") from exc
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise DeserializationError(f"Deserialization error: malformed snapshot ({exc!r})") from exc

    problems = GraphValidator(graph).validate()
    if problems:
        raise DeserializationError(
            f"Deserialization error: inconsistent snapshot: {'; '.join(problems[:5])}"
        )

    logger.debug("Decoded snapshot with %d points, %d layers", graph.size(), len(graph.layers))
    return params, graph


def _build(document: Dict[str, Any]) -> Tuple[HNSWParams, HNSWGraph]:
    if not isinstance(document, dict) or document.get("format") != FORMAT_NAME:
        raise ValueError("not an hnswidx snapshot")

    params = HNSWParams.from_dict(document["params"])

    dimension = _as_int(document["dimension"], "dimension")
    if dimension < 0:
        raise ValueError("dimension must be non-negative")
    graph = HNSWGraph(dimension=dimension)

    for entry in _as_list(document["points"], "points"):
        point_id = _as_id(entry["id"])
        if point_id in graph.points:
            raise ValueError(f"duplicate point id {point_id!r}")
        vector = to_vector(entry["vector"])
        graph.points[point_id] = Point(point_id, vector, _as_int(entry["level"], "level"))

    for links in _as_list(document["layers"], "layers"):
        if not isinstance(links, dict):
            raise ValueError("layer must be a mapping")
        graph.layers.append(Layer({
            _as_id(key): [_as_id(n) for n in _as_list(neighbors, "neighbors")]
            for key, neighbors in links.items()
        }))

    entry_point = document["entry_point"]
    graph.entry_point = None if entry_point is None else _as_id(entry_point)

    return params, graph


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    return value


def _as_list(value: Any, name: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{name} must be a list")
    return value


def _as_id(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"point id must be a string, got {value!r}")
    return value
