"""
HNSW search algorithm.

The core routine is a bounded greedy walk over one layer:
1. Seed a candidate stack with the entry point(s) and mark them visited
2. Pop the most recently pushed candidate and score its unvisited neighbors
3. Keep a neighbor (and push it for expansion) if fewer than ef results are
   held or it beats the worst result held
4. Stop when the stack is empty

The entry point itself is only a starting place, not a result. The multi-layer
descent and edge wiring ask for it to be scored too (``seed_results=True``).

By default only layer 0 is walked, starting from the entry point. With
``multilayer=True`` the walk is preceded by the usual HNSW descent: a beam-1
greedy pass on every layer from the entry point's level down to layer 1.

The ef parameter controls the accuracy-speed tradeoff:
- Higher ef = better recall, slower search
- Lower ef = faster search, lower recall
"""

import heapq
import itertools
from typing import List, Optional, Set, Tuple
import numpy as np
import numpy.typing as npt

from hnswidx.hnsw.graph import HNSWGraph
from hnswidx.hnsw.distance import cosine_distance

Vector = npt.NDArray[np.float32]


class HNSWSearcher:
    """
    Handles search queries on the HNSW graph.
    """

    def __init__(self, graph: HNSWGraph, ef_search: int = 64) -> None:
        """
        Initialize searcher with a graph.

        Args:
            graph: The HNSWGraph to search in
            ef_search: Default size of the result set (higher = better recall)
        """
        self.graph = graph
        self.ef_search = ef_search

    def search(
        self,
        query: Vector,
        k: int,
        ef_search: Optional[int] = None,
        multilayer: bool = False,
        seed_results: Optional[bool] = None,
    ) -> List[Tuple[str, float]]:
        """
        Search for the k nearest points to the query vector.

        Args:
            query: Query vector to search for
            k: Number of nearest points to return
            ef_search: Override default ef_search for this query
            multilayer: Descend through the upper layers before walking layer 0
            seed_results: Score the layer 0 starting point as a result too
                (default: only when ``multilayer`` is set)

        Returns:
            List of (point_id, distance) tuples, sorted by distance (closest first)
        """
        if self.graph.size() == 0 or self.graph.entry_point is None:
            return []

        ef = ef_search if ef_search is not None else self.ef_search
        ef = max(ef, k)

        if seed_results is None:
            seed_results = multilayer

        entry_points = [self.graph.entry_point]
        if multilayer:
            entry_points = self.descend(query, entry_points, self.graph.get_entry_level(), 0)

        results = self.search_layer(
            query, ef=ef, layer=0, entry_points=entry_points, seed_results=seed_results
        )
        return results[:k]

    def descend(
        self, query: Vector, entry_points: List[str], top_layer: int, bottom_layer: int
    ) -> List[str]:
        """
        Greedy beam-1 descent from ``top_layer`` down to ``bottom_layer + 1``.

        Returns:
            The closest point found on the last layer visited, as a one-element list
        """
        current = entry_points
        for layer in range(top_layer, bottom_layer, -1):
            nearest = self.search_layer(
                query, ef=1, layer=layer, entry_points=current, seed_results=True
            )
            if nearest:
                current = [nearest[0][0]]
        return current

    def search_layer(
        self,
        query: Vector,
        ef: int,
        layer: int,
        entry_points: Optional[List[str]] = None,
        seed_results: bool = False,
    ) -> List[Tuple[str, float]]:
        """
        Bounded greedy walk on a single layer.

        Starting points are expanded but, unless ``seed_results`` is set, only
        the neighbors reached from them can become results.

        Args:
            query: Query vector to search for
            ef: Maximum number of results kept
            layer: Which layer to walk
            entry_points: Starting point ids (default: the graph's entry point)
            seed_results: Also keep the starting points as results

        Returns:
            List of (point_id, distance), up to ef entries, sorted by distance.
            Equal distances keep the order in which the walk found them.
        """
        if entry_points is None:
            entry_points = [] if self.graph.entry_point is None else [self.graph.entry_point]

        visited: Set[str] = set()

        # Candidates are expanded last-in first-out
        stack: List[str] = []

        # Max-heap on (distance, discovery order) via negation; the root is the
        # worst result kept, and among tied worst results the latest found
        results: List[Tuple[float, int, str]] = []
        found = itertools.count()

        for point_id in entry_points:
            point = self.graph.get_point(point_id)
            if point is None or point_id in visited:
                continue
            visited.add(point_id)
            stack.append(point_id)
            if seed_results:
                self._keep(results, cosine_distance(query, point.vector), next(found), point_id, ef)

        while stack:
            current_id = stack.pop()

            for neighbor_id in self.graph.get_neighbors(current_id, layer):
                if neighbor_id in visited:
                    continue
                visited.add(neighbor_id)

                neighbor = self.graph.get_point(neighbor_id)
                if neighbor is None:
                    continue

                dist = cosine_distance(query, neighbor.vector)
                if len(results) < ef or dist < -results[0][0]:
                    stack.append(neighbor_id)
                    self._keep(results, dist, next(found), neighbor_id, ef)

        ordered = sorted(
            (-neg_dist, -neg_order, point_id) for neg_dist, neg_order, point_id in results
        )
        return [(point_id, dist) for dist, _, point_id in ordered]

    @staticmethod
    def _keep(
        results: List[Tuple[float, int, str]], dist: float, order: int, point_id: str, ef: int
    ) -> None:
        heapq.heappush(results, (-dist, -order, point_id))
        if len(results) > ef:
            heapq.heappop(results)
