"""
Utility functions for HNSW graph construction.

- Level assignment: decides how many layers a new point appears in
- Neighbor selection: chooses which edges to keep when wiring the graph

Levels follow a geometric distribution: a point climbs one more level with
probability 1/m, so most points live only in layer 0 and each layer above
holds roughly 1/m of the one below.
"""

from typing import List, Optional, Protocol

import numpy as np

# Hard ceiling on sampled levels
MAX_LEVEL = 32


class RandomSource(Protocol):
    """Anything with a ``random()`` method returning a float in [0, 1).

    Both ``numpy.random.Generator`` and ``random.Random`` qualify.
    """

    def random(self) -> float:
        ...


class LevelGenerator:
    """
    Samples the level of each inserted point.

    The randomness source is injectable so level assignment can be made
    deterministic under test.

    Example:
        >>> generator = LevelGenerator(m=16, seed=42)
        >>> levels = [generator.sample_level() for _ in range(10000)]
        >>> levels.count(0) / 10000  # Should be ~0.9375 (1 - 1/16)
    """

    def __init__(
        self,
        m: int = 16,
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
        max_level: int = MAX_LEVEL,
    ) -> None:
        """
        Args:
            m: Branching factor; each extra level has probability 1/m
            rng: Randomness source (default: numpy Generator seeded with ``seed``)
            seed: Seed for the default generator, ignored when ``rng`` is given
            max_level: Highest level that can ever be returned
        """
        if m < 1:
            raise ValueError(f"m must be >= 1, got {m}")

        self.m = m
        self.max_level = max_level
        self.threshold = 1.0 / m
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def sample_level(self) -> int:
        """
        Draw a level for a new point.

        Keeps drawing uniform values while they fall below 1/m, counting the
        draws, and stops at the first draw >= 1/m or once the ceiling is hit.

        Returns:
            Level between 0 and ``max_level`` inclusive
        """
        level = 0
        while self.rng.random() < self.threshold and level < self.max_level:
            level += 1
        return level


def select_neighbors_simple(
    candidates: List[str], distances: List[float], M: int
) -> List[str]:
    """
    Select the M nearest candidates.

    Args:
        candidates: List of point ids
        distances: List of distances (parallel to candidates, lower = closer)
        M: Maximum number of neighbors to select

    Returns:
        List of selected point ids (up to M, sorted by distance)

    Example:
        >>> select_neighbors_simple(["a", "b", "c"], [0.5, 0.2, 0.8], M=2)
        ['b', 'a']
    """
    if len(candidates) == 0:
        return []

    paired_sorted = sorted(zip(candidates, distances), key=lambda x: x[1])
    return [point_id for point_id, _ in paired_sorted[:M]]
