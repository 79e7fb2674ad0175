"""
HNSW graph data structures.

This module defines the storage behind an index:
- Point: a stored vector with its id and assigned level
- Layer: adjacency table for one level (point id -> ordered neighbor ids)
- HNSWGraph: the point table, the layer sequence, the entry point and the
  dimensionality shared by all stored vectors

Edges are kept as lists of ids inside each layer rather than as references
between objects, so the whole structure stays acyclic and serializes directly.
A point with level L has an adjacency entry in layers 0 through L only.
"""

from typing import Dict, Iterator, List, Optional
import numpy as np
import numpy.typing as npt

from hnswidx.errors import DimensionMismatch

Vector = npt.NDArray[np.float32]

# numpy dtype kinds accepted as vector components: signed, unsigned, float
NUMERIC_KINDS = "iuf"


def to_vector(vector, expected: Optional[int] = None) -> Vector:
    """
    Copy a sequence of numbers into a new float32 array.

    Args:
        vector: Any flat sequence of real numbers
        expected: Dimensionality reported in errors, if one is established

    Returns:
        A new float32 numpy array (never a view of the caller's buffer)

    Raises:
        DimensionMismatch: If the vector is ragged, nested or empty
        TypeError: If a component is not a real number (strings, None, complex)
    """
    try:
        raw = np.asarray(vector)
    except ValueError as exc:
        raise DimensionMismatch(
            expected, 0, f"Vector must be a flat sequence of numbers: {exc}"
        ) from exc

    if raw.dtype.kind not in NUMERIC_KINDS and raw.size > 0:
        raise TypeError(f"Vector components must be real numbers, got dtype {raw.dtype}")
    if raw.ndim != 1:
        raise DimensionMismatch(
            expected, raw.size, f"Vector must be one-dimensional, got shape {raw.shape}"
        )
    if len(raw) == 0:
        raise DimensionMismatch(expected, 0, "Vector must not be empty")

    return raw.astype(np.float32)


class Point:
    """A stored vector, owned by the graph."""

    def __init__(self, point_id: str, vector: Vector, level: int) -> None:
        self.id = point_id
        self.vector = vector
        self.level = level

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Point(id={self.id!r}, level={self.level}, dim={len(self.vector)})"


class Layer:
    """
    Adjacency table for a single level of the graph.

    Neighbor lists are ordered and may be empty. Links are directed; a
    bidirectional connection is two links.
    """

    def __init__(self, links: Optional[Dict[str, List[str]]] = None) -> None:
        self.links: Dict[str, List[str]] = links if links is not None else {}

    def ensure(self, point_id: str) -> None:
        """Create an empty neighbor list for a point if it has none."""
        self.links.setdefault(point_id, [])

    def get_neighbors(self, point_id: str) -> List[str]:
        """
        Get the neighbors of a point in this layer.

        Returns:
            Neighbor ids, or an empty list if the point is not in this layer
        """
        return self.links.get(point_id, [])

    def add_link(self, source_id: str, target_id: str) -> None:
        """Add a directed link, ignoring duplicates."""
        neighbors = self.links.setdefault(source_id, [])
        if target_id not in neighbors:
            neighbors.append(target_id)

    def discard(self, point_id: str) -> None:
        """Remove a point's own entry and every link pointing at it."""
        self.links.pop(point_id, None)
        for source_id, neighbors in self.links.items():
            if point_id in neighbors:
                self.links[source_id] = [n for n in neighbors if n != point_id]

    def edge_count(self) -> int:
        """Number of directed links in this layer."""
        return sum(len(neighbors) for neighbors in self.links.values())

    def __contains__(self, point_id: object) -> bool:
        return point_id in self.links

    def __len__(self) -> int:
        return len(self.links)

    def __repr__(self) -> str:
        return f"Layer(points={len(self)}, edges={self.edge_count()})"


class HNSWGraph:
    """
    Container for the point table and layered adjacency.

    Tracks the entry point for searches and the dimensionality fixed by the
    first stored vector. A dimension of 0 means nothing has been stored yet.
    """

    def __init__(self, dimension: int = 0) -> None:
        """
        Initialize an empty graph.

        Args:
            dimension: Fixed vector length, or 0 to adopt the first vector's length
        """
        self.dimension = dimension

        # Storage for all points
        self.points: Dict[str, Point] = {}

        # layers[0] is the base layer; grows lazily, shrinks only on clear()
        self.layers: List[Layer] = []

        # Entry point: where searches begin. None when graph is empty
        self.entry_point: Optional[str] = None

    def as_vector(self, vector) -> Vector:
        """
        Copy a vector into float32 storage and check its length.

        Raises:
            DimensionMismatch: If the vector is not a flat, non-empty sequence
                or disagrees with the established dimensionality
            TypeError: If a component is not a real number
        """
        array = to_vector(vector, self.dimension or None)

        if self.dimension and len(array) != self.dimension:
            raise DimensionMismatch(self.dimension, len(array))

        return array

    def add_point(self, point_id: str, vector, level: int) -> Point:
        """
        Register a point in the graph (without connecting it).

        An existing point with the same id is removed first, together with every
        link to it, so no stale layer memberships survive.

        Args:
            point_id: Unique identifier
            vector: Vector data; adopted as the graph dimension if none is set
            level: Highest layer this point appears in

        Returns:
            The stored Point
        """
        if level < 0:
            raise ValueError(f"level must be non-negative, got {level}")

        stored = self.as_vector(vector)

        if point_id in self.points:
            self.remove_point(point_id)

        if self.dimension == 0:
            self.dimension = len(stored)

        point = Point(point_id, stored, level)
        self.points[point_id] = point

        self.ensure_layers(level)
        for layer_idx in range(level + 1):
            self.layers[layer_idx].ensure(point_id)

        # Ties keep the current entry point
        if self.entry_point is None or level > self.get_entry_level():
            self.entry_point = point_id

        return point

    def ensure_layers(self, level: int) -> None:
        """Grow the layer sequence until it covers ``level``."""
        while len(self.layers) <= level:
            self.layers.append(Layer())

    def remove_point(self, point_id: str) -> bool:
        """
        Remove a point and scrub every reference to it.

        If the point was the entry point, an arbitrary survivor takes over
        (not necessarily the highest-level one).

        Returns:
            True if the point existed
        """
        existed = self.points.pop(point_id, None) is not None

        for layer in self.layers:
            layer.discard(point_id)

        if self.entry_point == point_id:
            self.entry_point = next(iter(self.points), None)

        return existed

    def get_point(self, point_id: str) -> Optional[Point]:
        """Retrieve a point by id, or None if absent."""
        return self.points.get(point_id)

    def get_neighbors(self, point_id: str, layer: int) -> List[str]:
        """Neighbor ids of a point in a layer (empty if the layer does not exist)."""
        if layer >= len(self.layers):
            return []
        return self.layers[layer].get_neighbors(point_id)

    def set_neighbors(self, point_id: str, layer: int, neighbors: List[str]) -> None:
        """Replace a point's neighbor list in a layer."""
        self._check_membership(point_id, layer)
        self.layers[layer].links[point_id] = list(neighbors)

    def add_edge(self, source_id: str, target_id: str, layer: int) -> None:
        """
        Create a directed link from one point to another at a layer.

        Raises:
            ValueError: If either point is missing or does not reach that layer
        """
        self._check_membership(source_id, layer)
        self._check_membership(target_id, layer)
        self.layers[layer].add_link(source_id, target_id)

    def connect(self, node1_id: str, node2_id: str, layer: int) -> None:
        """Create a bidirectional connection between two points at a layer."""
        self.add_edge(node1_id, node2_id, layer)
        self.add_edge(node2_id, node1_id, layer)

    def set_entry_point(self, point_id: Optional[str]) -> None:
        """Point searches at a specific stored point (or at nothing)."""
        if point_id is not None and point_id not in self.points:
            raise ValueError(f"Point not found: {point_id!r}")
        self.entry_point = point_id

    def get_entry_level(self) -> int:
        """Level of the entry point, or 0 when there is none."""
        if self.entry_point is None:
            return 0
        point = self.points.get(self.entry_point)
        return point.level if point is not None else 0

    def get_max_level(self) -> int:
        """
        Highest layer index, or -1 if no layer exists.

        Layers outlive the points that created them, so this can exceed the
        highest level of any current point after deletions.
        """
        return len(self.layers) - 1

    def size(self) -> int:
        """Total number of points in the graph."""
        return len(self.points)

    def clear(self) -> None:
        """Reset to the empty, dimensionless state."""
        self.points.clear()
        self.layers.clear()
        self.entry_point = None
        self.dimension = 0

    def _check_membership(self, point_id: str, layer: int) -> None:
        point = self.points.get(point_id)
        if point is None:
            raise ValueError(f"Point not found: {point_id!r}")
        if layer > point.level:
            raise ValueError(
                f"Point {point_id!r} has level {point.level}, cannot link at layer {layer}"
            )

    def __contains__(self, point_id: object) -> bool:
        return point_id in self.points

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points.values())

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"HNSWGraph(points={self.size()}, layers={len(self.layers)}, "
            f"entry_point={self.entry_point!r}, dim={self.dimension})"
        )
