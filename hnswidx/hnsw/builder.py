"""
HNSW edge wiring for newly inserted points.

Plain insertion only registers a point with empty neighbor lists. When an index
is configured with ``connect_on_insert``, the builder also links the point into
the graph:
1. Descend greedily from the entry point to the layer just above the new point
2. On each layer from the point's level down to 0, collect ef_construction
   candidates and keep the nearest M (2*M on layer 0)
3. Connect the point to them bidirectionally
4. Prune any neighbor that now exceeds its degree bound
"""

import logging
from typing import Optional

from hnswidx.hnsw.graph import HNSWGraph
from hnswidx.hnsw.searcher import HNSWSearcher
from hnswidx.hnsw.distance import cosine_distance
from hnswidx.hnsw.utils import select_neighbors_simple

logger = logging.getLogger(__name__)


class HNSWBuilder:
    """
    Links newly registered points to their nearest neighbors.
    """

    def __init__(self, graph: HNSWGraph, M: int = 16, ef_construction: int = 200) -> None:
        """
        Args:
            graph: The HNSWGraph to wire
            M: Maximum neighbors per point at layers > 0 (layer 0 allows 2*M)
            ef_construction: Candidate breadth while searching for neighbors
        """
        self.graph = graph
        self.M = M
        self.M_L = 2 * M
        self.ef_construction = ef_construction
        self._searcher = HNSWSearcher(graph)

    def max_degree(self, layer: int) -> int:
        """Degree bound for a layer."""
        return self.M_L if layer == 0 else self.M

    def connect(self, point_id: str) -> None:
        """
        Wire an already registered point into the graph.

        Args:
            point_id: Id of a point previously stored with ``HNSWGraph.add_point``
        """
        point = self.graph.get_point(point_id)
        if point is None:
            raise ValueError(f"Point not found: {point_id!r}")

        if self.graph.size() == 1:
            return  # Nothing to connect to

        entry_point = self.graph.entry_point
        if entry_point == point_id:
            # The new point took over as entry point; start from the previous one
            entry_point = self._find_previous_entry_point(point_id)
            if entry_point is None:
                return

        entry_level = self.graph.get_point(entry_point).level
        current = self._searcher.descend(point.vector, [entry_point], entry_level, point.level)

        for layer in range(min(point.level, entry_level), -1, -1):
            candidates = self._searcher.search_layer(
                point.vector,
                ef=self.ef_construction,
                layer=layer,
                entry_points=current,
                seed_results=True,
            )
            candidates = [
                (candidate_id, dist)
                for candidate_id, dist in candidates
                if candidate_id != point_id and self.graph.get_point(candidate_id).level >= layer
            ]

            neighbors = select_neighbors_simple(
                [candidate_id for candidate_id, _ in candidates],
                [dist for _, dist in candidates],
                self.max_degree(layer),
            )

            for neighbor_id in neighbors:
                self.graph.connect(point_id, neighbor_id, layer)

            for neighbor_id in neighbors:
                self._prune_neighbors(neighbor_id, layer)

            if candidates:
                current = [candidate_id for candidate_id, _ in candidates]

            logger.debug("Wired %r to %d neighbors at layer %d", point_id, len(neighbors), layer)

    def _prune_neighbors(self, point_id: str, layer: int) -> None:
        """
        Keep only the nearest neighbors of a point if it exceeds the degree bound.

        Pruned links are removed in both directions.
        """
        neighbors = self.graph.get_neighbors(point_id, layer)
        M = self.max_degree(layer)

        if len(neighbors) <= M:
            return

        point = self.graph.get_point(point_id)
        distances = [
            cosine_distance(point.vector, self.graph.get_point(neighbor_id).vector)
            for neighbor_id in neighbors
        ]
        selected = select_neighbors_simple(neighbors, distances, M)

        pruned = set(neighbors) - set(selected)
        self.graph.set_neighbors(point_id, layer, [n for n in neighbors if n in selected])

        for pruned_id in pruned:
            reverse = self.graph.get_neighbors(pruned_id, layer)
            if point_id in reverse:
                self.graph.set_neighbors(
                    pruned_id, layer, [n for n in reverse if n != point_id]
                )

    def _find_previous_entry_point(self, exclude_id: str) -> Optional[str]:
        """
        Highest-level point other than ``exclude_id``, or None if there is none.
        """
        max_level = -1
        entry_id = None

        for point in self.graph:
            if point.id == exclude_id:
                continue
            if point.level > max_level:
                max_level = point.level
                entry_id = point.id

        return entry_id
