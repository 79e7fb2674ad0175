"""Configuration for HNSW indexes.

Usage:
    from hnswidx import HNSWIndex, HNSWParams

    # Default params
    index = HNSWIndex()

    # Custom params
    params = HNSWParams(m=8, ef_search=32)
    index = HNSWIndex(params)

    # From file
    params = HNSWParams.from_json("my_params.json")
    index = HNSWIndex(params)
"""

from typing import Dict, Any
import json
from dataclasses import dataclass, asdict, fields

from hnswidx.errors import InvalidParams


@dataclass(frozen=True)
class HNSWParams:
    """Immutable knobs for an HNSW index.

    Hyperparameters:
        m: Branching factor. A new point climbs one level with probability 1/m,
           and wiring keeps m neighbors per upper layer (2*m on layer 0)
        ef_construction: Candidate breadth while wiring a new point
        ef_search: Default candidate breadth during search

    Enhancements (off by default):
        connect_on_insert: Wire each added point to its nearest neighbors
        multilayer_search: Descend through upper layers before the layer 0 walk
    """

    m: int = 16
    ef_construction: int = 200
    ef_search: int = 64

    connect_on_insert: bool = False
    multilayer_search: bool = False

    def __post_init__(self):
        """Validate configuration."""
        for name in ("m", "ef_construction", "ef_search"):
            value = getattr(self, name)
            # bool is an int subclass but never a valid size
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParams(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise InvalidParams(f"{name} must be >= 1, got {value}")

        for name in ("connect_on_insert", "multilayer_search"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidParams(f"{name} must be a bool")

    def to_dict(self) -> Dict[str, Any]:
        """Convert params to dictionary."""
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save params to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, params_dict: Dict[str, Any]) -> 'HNSWParams':
        """Load params from dictionary, rejecting unrecognized options."""
        if not isinstance(params_dict, dict):
            raise InvalidParams(f"params must be a mapping, got {type(params_dict).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params_dict) - known)
        if unknown:
            raise InvalidParams(f"Unrecognized options: {', '.join(unknown)}")

        return cls(**params_dict)

    @classmethod
    def from_json(cls, filepath: str) -> 'HNSWParams':
        """Load params from JSON file."""
        with open(filepath, 'r') as f:
            params_dict = json.load(f)
        return cls.from_dict(params_dict)


def get_default_params() -> HNSWParams:
    """Default params: m=16, ef_construction=200, ef_search=64."""
    return HNSWParams()
