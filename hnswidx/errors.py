"""
Error types raised by the HNSW index.

Every failure is reported to the caller as an exception; the index never
retries an operation and never leaves partial state behind.
"""

from typing import Optional


class HNSWIndexError(Exception):
    """Base class for all index errors."""


class InvalidParams(HNSWIndexError, ValueError):
    """Raised when index configuration is malformed."""


class DimensionMismatch(HNSWIndexError, ValueError):
    """Raised when a vector's length disagrees with the index dimensionality."""

    def __init__(self, expected: Optional[int], actual: int, message: Optional[str] = None) -> None:
        self.expected = expected
        self.actual = actual
        if message is None:
            message = f"Vector dimension mismatch: expected {expected}, got {actual}"
        super().__init__(message)


class SerializationError(HNSWIndexError):
    """Raised when the index state cannot be encoded."""


class DeserializationError(HNSWIndexError):
    """Raised when a snapshot cannot be decoded; the live index is left untouched."""
