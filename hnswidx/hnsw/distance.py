"""
Distance and similarity metrics for vector comparisons.

The index ranks points by cosine distance (1 - cosine similarity), which ranges
from 0 (same direction) to 2 (opposite directions). Search converts distances
back into similarity scores before returning them.

Zero vectors have no direction. They are treated as maximally unrelated to
everything: similarity 0.0, distance 1.0.
"""

import numpy as np
import numpy.typing as npt

Vector = npt.NDArray[np.float32]


def cosine_similarity(v1: Vector, v2: Vector) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        v1: First vector (1D numpy array)
        v2: Second vector (1D numpy array, same length as v1)

    Returns:
        Similarity score between -1 and 1, or 0.0 if either vector has zero norm

    Example:
        >>> v1 = np.array([1.0, 0.0], dtype=np.float32)
        >>> v2 = np.array([0.0, 1.0], dtype=np.float32)
        >>> cosine_similarity(v1, v2)
        0.0
    """
    norm_v1 = np.linalg.norm(v1)
    norm_v2 = np.linalg.norm(v2)

    # Avoid division by zero
    if norm_v1 == 0.0 or norm_v2 == 0.0:
        return 0.0

    return float(np.dot(v1, v2) / (norm_v1 * norm_v2))


def cosine_distance(v1: Vector, v2: Vector) -> float:
    """
    Compute cosine distance between two vectors.

    Args:
        v1: First vector (1D numpy array)
        v2: Second vector (1D numpy array, same length as v1)

    Returns:
        Distance between 0 and 2 (lower means more similar); 1.0 when either
        vector has zero norm

    Example:
        >>> v1 = np.array([1.0, 0.0], dtype=np.float32)
        >>> cosine_distance(v1, v1)
        0.0
    """
    return 1.0 - cosine_similarity(v1, v2)
