"""
HNSW vector index: the public surface of the engine.

HNSWIndex stores float32 vectors under string ids, assigns each one a random
level, and answers cosine-similarity queries with a bounded greedy walk over
the layered graph. The whole state can be captured in, and restored from, a
single byte buffer.

Instances are self-contained and not thread-safe; callers sharing one index
across threads must serialize access themselves.
"""

import logging
import numbers
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import numpy.typing as npt

from hnswidx.codec import decode_graph, encode_graph
from hnswidx.config import HNSWParams, get_default_params
from hnswidx.errors import DeserializationError, DimensionMismatch, InvalidParams
from hnswidx.graph_validator import GraphValidator
from hnswidx.hnsw.builder import HNSWBuilder
from hnswidx.hnsw.graph import HNSWGraph, to_vector
from hnswidx.hnsw.searcher import HNSWSearcher
from hnswidx.hnsw.utils import LevelGenerator, RandomSource

logger = logging.getLogger(__name__)

Vector = npt.NDArray[np.float32]

# Bytes per stored vector component
FLOAT32_BYTES = 4


class HNSWIndex:
    """
    Approximate nearest-neighbor index over a layered proximity graph.

    The first successful ``add`` fixes the dimensionality until ``clear``.
    Vectors are copied on the way in, so callers may reuse their buffers.

    By default ``add`` registers points without wiring edges and ``search``
    walks layer 0 from the entry point, which is a starting place rather than
    a result, so an index built only through ``add`` finds nothing. Set
    ``connect_on_insert`` and ``multilayer_search`` in the params to get
    conventional HNSW construction and descent.

    Example:
        >>> index = HNSWIndex({"connect_on_insert": True, "multilayer_search": True}, seed=42)
        >>> index.add("a", [1.0, 0.0])
        >>> index.search([1.0, 0.0], k=1)
        [{'id': 'a', 'score': 1.0}]
        >>> restored = HNSWIndex()
        >>> restored.load(index.save())
        >>> restored.get_stats()
        {'total_vectors': 1, 'dimensions': 2, 'index_size': 8}
    """

    def __init__(
        self,
        params: Union[HNSWParams, Mapping[str, Any], None] = None,
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Initialize an empty index.

        Args:
            params: HNSWParams, a mapping of recognized options
                    (m, ef_construction, ef_search, connect_on_insert,
                    multilayer_search), or None for defaults
            rng: Randomness source for level sampling (anything with ``random()``)
            seed: Seed for the default randomness source, ignored when ``rng`` is given

        Raises:
            InvalidParams: If the configuration is malformed
        """
        if params is None:
            params = get_default_params()
        elif isinstance(params, Mapping):
            params = HNSWParams.from_dict(dict(params))
        elif not isinstance(params, HNSWParams):
            raise InvalidParams(f"Invalid params: expected HNSWParams or mapping, got {type(params).__name__}")

        self._params = params
        self._level_generator = LevelGenerator(m=params.m, rng=rng, seed=seed)
        self._bind(HNSWGraph())

    def _bind(self, graph: HNSWGraph) -> None:
        self._graph = graph
        self._searcher = HNSWSearcher(graph, ef_search=self._params.ef_search)
        self._builder = HNSWBuilder(
            graph, M=self._params.m, ef_construction=self._params.ef_construction
        )

    @property
    def params(self) -> HNSWParams:
        """Configuration this index was built with (or loaded from)."""
        return self._params

    @property
    def graph(self) -> HNSWGraph:
        """Underlying graph, for inspection or hand-wiring edges."""
        return self._graph

    @property
    def dimension(self) -> int:
        """Vector dimensionality, or 0 while uninitialized."""
        return self._graph.dimension

    def add(self, point_id: str, vector) -> None:
        """
        Insert a vector under an id.

        An existing point with the same id is replaced, losing its edges.

        Args:
            point_id: Unique string identifier
            vector: 1D float sequence; the first one fixes the index dimensionality

        Raises:
            DimensionMismatch: If the vector length disagrees with the index
        """
        if not isinstance(point_id, str):
            raise TypeError(f"point_id must be a string, got {type(point_id).__name__}")

        stored = self._graph.as_vector(vector)
        level = self._level_generator.sample_level()

        if point_id in self._graph:
            logger.debug("Replacing existing point %r", point_id)

        self._graph.add_point(point_id, stored, level)

        if self._params.connect_on_insert:
            self._builder.connect(point_id)

        logger.debug("Added point %r at level %d", point_id, level)

    def search(self, vector, k: int) -> List[Dict[str, Any]]:
        """
        Find the stored points most similar to a query vector.

        Args:
            vector: Query vector with the index dimensionality
            k: Maximum number of hits

        Returns:
            Up to k dicts with keys 'id' and 'score' (1 - cosine distance),
            sorted by score, highest first

        Raises:
            DimensionMismatch: If the query length disagrees with the index
                (an empty index accepts no query)
            TypeError: If k is not an integer or the query holds non-numbers
        """
        if isinstance(k, bool) or not isinstance(k, numbers.Integral):
            raise TypeError(f"k must be an integer, got {k!r}")
        k = int(k)

        query = to_vector(vector, self._graph.dimension)
        if len(query) != self._graph.dimension:
            raise DimensionMismatch(self._graph.dimension, len(query))

        if k <= 0:
            return []

        ef = max(self._params.ef_search, k)
        candidates = self._searcher.search(
            query, k=ef, ef_search=ef, multilayer=self._params.multilayer_search
        )

        hits = [
            {"id": point_id, "score": 1.0 - dist}
            for point_id, dist in candidates
            if point_id in self._graph
        ]
        hits.sort(key=lambda hit: hit["score"], reverse=True)
        return hits[:k]

    def delete(self, point_id: str) -> None:
        """
        Remove a point and every link to it. Absent ids are ignored.
        """
        previous_entry = self._graph.entry_point
        if not self._graph.remove_point(point_id):
            return

        if previous_entry == point_id:
            logger.debug("Entry point %r deleted, now %r", point_id, self._graph.entry_point)
        logger.debug("Deleted point %r", point_id)

    def save(self) -> bytes:
        """
        Serialize the full index state.

        Returns:
            Opaque byte buffer accepted by ``load``

        Raises:
            SerializationError: If the state cannot be encoded
        """
        data = encode_graph(self._params, self._graph)
        logger.info("Saved index: %d points, %d bytes", self._graph.size(), len(data))
        return data

    def load(self, data: bytes) -> None:
        """
        Replace the entire index state with a saved snapshot.

        The swap happens only after the snapshot decodes and validates; on any
        failure the current state is left untouched.

        Raises:
            DeserializationError: If the buffer is not a valid snapshot
        """
        try:
            params, graph = decode_graph(data)
        except DeserializationError as exc:
            logger.warning("Rejected snapshot: %s", exc)
            raise

        self._params = params
        self._level_generator = LevelGenerator(m=params.m, rng=self._level_generator.rng)
        self._bind(graph)
        logger.info("Loaded index: %d points, dimension %d", graph.size(), graph.dimension)

    def save_to_file(self, filepath: str) -> None:
        """
        Save the index to disk.

        Args:
            filepath: Path to write the snapshot to (e.g., "index.hnsw")
        """
        data = self.save()
        with open(filepath, 'wb') as f:
            f.write(data)

    @classmethod
    def load_from_file(
        cls, filepath: str, rng: Optional[RandomSource] = None, seed: Optional[int] = None
    ) -> 'HNSWIndex':
        """
        Load an index from disk.

        Args:
            filepath: Path to a snapshot written by ``save_to_file``
            rng: Randomness source for future insertions
            seed: Seed for the default randomness source

        Returns:
            Loaded HNSWIndex instance
        """
        with open(filepath, 'rb') as f:
            data = f.read()

        index = cls(rng=rng, seed=seed)
        index.load(data)
        return index

    def get_stats(self) -> Dict[str, int]:
        """
        Summarize the index.

        Returns:
            Dictionary with total_vectors, dimensions and index_size (bytes of
            raw vector data only; graph overhead is not counted)
        """
        total = self._graph.size()
        return {
            "total_vectors": total,
            "dimensions": self._graph.dimension,
            "index_size": total * self._graph.dimension * FLOAT32_BYTES,
        }

    def get_graph_statistics(self, layer: int = 0) -> Dict[str, float]:
        """Connectivity statistics for one layer (see GraphValidator)."""
        return GraphValidator(self._graph).get_graph_statistics(layer)

    def get_vector(self, point_id: str) -> Optional[Vector]:
        """Copy of a stored vector, or None if the id is absent."""
        point = self._graph.get_point(point_id)
        return None if point is None else point.vector.copy()

    def ids(self) -> List[str]:
        """Ids of all stored points, in insertion order."""
        return list(self._graph.points)

    def clear(self) -> None:
        """Reset to the empty state; the next add fixes a new dimensionality."""
        self._graph.clear()
        logger.info("Cleared index")

    def __len__(self) -> int:
        return self._graph.size()

    def __contains__(self, point_id: object) -> bool:
        return point_id in self._graph

    def __repr__(self) -> str:
        return (
            f"HNSWIndex(points={self._graph.size()}, dim={self._graph.dimension}, "
            f"m={self._params.m}, ef_search={self._params.ef_search})"
        )
