"""
hnswidx - Layered proximity-graph vector index

An in-memory approximate nearest-neighbor index for float vectors keyed by
string ids, with cosine similarity search and byte-buffer snapshots.
"""

__version__ = "0.1.0"

from hnswidx.index import HNSWIndex
from hnswidx.config import HNSWParams, get_default_params
from hnswidx.errors import (
    HNSWIndexError,
    InvalidParams,
    DimensionMismatch,
    SerializationError,
    DeserializationError,
)

__all__ = [
    "HNSWIndex",
    "HNSWParams",
    "get_default_params",
    "HNSWIndexError",
    "InvalidParams",
    "DimensionMismatch",
    "SerializationError",
    "DeserializationError",
]
