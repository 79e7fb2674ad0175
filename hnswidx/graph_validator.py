"""Structural validation and connectivity checks for HNSW graphs.

Used to vet decoded snapshots before they replace a live index, and to report
how well connected a graph is. Points added without edge wiring stay isolated,
so connectivity statistics make that visible.
"""

from typing import Dict, List, Set
from collections import deque

from hnswidx.hnsw.graph import HNSWGraph


class GraphValidator:
    """Checks the invariants of an HNSWGraph.

    - every vector has the graph's dimensionality
    - there is a layer for every point level
    - a point with level L appears only in layers 0..L
    - every adjacency key and neighbor id names a stored point
    - the entry point, if set, names a stored point
    """

    def __init__(self, graph: HNSWGraph) -> None:
        self.graph = graph

    def validate(self) -> List[str]:
        """Collect invariant violations.

        Returns:
            Human-readable problems; empty if the graph is consistent
        """
        problems: List[str] = []
        graph = self.graph

        if graph.points and graph.dimension <= 0:
            problems.append("graph holds points but has no dimension")

        for point in graph:
            if len(point.vector) != graph.dimension:
                problems.append(
                    f"point {point.id!r} has dimension {len(point.vector)}, expected {graph.dimension}"
                )
            if point.level < 0:
                problems.append(f"point {point.id!r} has negative level {point.level}")
            elif point.level >= len(graph.layers):
                problems.append(
                    f"point {point.id!r} has level {point.level} but only {len(graph.layers)} layers exist"
                )

        for layer_idx, layer in enumerate(graph.layers):
            for point_id, neighbors in layer.links.items():
                point = graph.get_point(point_id)
                if point is None:
                    problems.append(f"layer {layer_idx} has links for unknown point {point_id!r}")
                    continue
                if layer_idx > point.level:
                    problems.append(
                        f"point {point_id!r} (level {point.level}) appears in layer {layer_idx}"
                    )
                for neighbor_id in neighbors:
                    if neighbor_id not in graph.points:
                        problems.append(
                            f"layer {layer_idx} links {point_id!r} to unknown point {neighbor_id!r}"
                        )

        if graph.entry_point is not None and graph.entry_point not in graph.points:
            problems.append(f"entry point {graph.entry_point!r} is not a stored point")
        if graph.entry_point is None and graph.points:
            problems.append("graph holds points but has no entry point")

        return problems

    def is_valid(self) -> bool:
        """True if ``validate()`` finds nothing."""
        return not self.validate()

    def reachable_from_entry(self, layer: int = 0) -> Set[str]:
        """Point ids reachable from the entry point by following links in a layer.

        Uses BFS over directed links.
        """
        start = self.graph.entry_point
        if start is None or start not in self.graph.points:
            return set()

        visited: Set[str] = {start}
        queue: deque = deque([start])

        while queue:
            current = queue.popleft()
            for neighbor in self.graph.get_neighbors(current, layer):
                if neighbor not in visited and neighbor in self.graph.points:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return visited

    def get_graph_statistics(self, layer: int = 0) -> Dict[str, float]:
        """Compute connectivity statistics for one layer.

        Returns:
            Dictionary with node_count, edge_count, avg_degree, min_degree,
            max_degree and unreachable_count (points the layer walk cannot reach)
        """
        if layer >= len(self.graph.layers) or not self.graph.layers[layer].links:
            return {
                "node_count": 0,
                "edge_count": 0,
                "avg_degree": 0.0,
                "min_degree": 0,
                "max_degree": 0,
                "unreachable_count": 0,
            }

        links = self.graph.layers[layer].links
        degrees = [len(neighbors) for neighbors in links.values()]
        reachable = self.reachable_from_entry(layer)

        return {
            "node_count": len(links),
            "edge_count": sum(degrees),
            "avg_degree": sum(degrees) / len(degrees),
            "min_degree": min(degrees),
            "max_degree": max(degrees),
            "unreachable_count": len(set(links) - reachable),
        }
