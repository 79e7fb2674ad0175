"""
HNSW (Hierarchical Navigable Small World) graph core.

Components:
- distance: Cosine similarity and distance
- utils: Level sampling and neighbor selection
- graph: Point table and per-layer adjacency
- searcher: Bounded greedy walk and optional multi-layer descent
- builder: Optional edge wiring for inserted points
"""

from hnswidx.hnsw.distance import cosine_similarity, cosine_distance
from hnswidx.hnsw.utils import LevelGenerator, select_neighbors_simple
from hnswidx.hnsw.graph import Point, Layer, HNSWGraph
from hnswidx.hnsw.builder import HNSWBuilder
from hnswidx.hnsw.searcher import HNSWSearcher

__all__ = [
    "cosine_similarity",
    "cosine_distance",
    "LevelGenerator",
    "select_neighbors_simple",
    "Point",
    "Layer",
    "HNSWGraph",
    "HNSWBuilder",
    "HNSWSearcher",
]
