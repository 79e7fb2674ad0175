"""
Pytest configuration and shared fixtures for hnswidx tests
"""

import pytest
import numpy as np


class ScriptedRandom:
    """Randomness source that replays fixed draws (for deterministic levels)."""

    def __init__(self, draws):
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)


class ConstantRandom:
    """Randomness source that always returns the same draw."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def dimension() -> int:
    """Standard vector dimension for testing."""
    return 8


@pytest.fixture
def sample_vectors(dimension) -> np.ndarray:
    """Generate sample vectors for testing."""
    rng = np.random.default_rng(42)
    return rng.standard_normal((30, dimension)).astype(np.float32)


@pytest.fixture
def level_zero_rng() -> ConstantRandom:
    """Randomness source that puts every point at level 0."""
    return ConstantRandom(0.99)
