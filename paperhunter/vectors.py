"""
Vector helpers for semantic search.

Blob format:
    Consecutive little-endian IEEE-754 float32 values, no header, no length
    prefix. Dimension = len(blob) / 4. encode → decode is lossless.

Similarity search is a brute-force scan: every candidate vector is compared
with the query, then sorted. No ANN index.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import VectorDecodeError

_FLOAT32_LE = np.dtype('<f4')


def encode_vector(vector: Sequence[float]) -> bytes:
    """Serialize a vector as little-endian float32 bytes"""
    return np.asarray(vector, dtype=_FLOAT32_LE).tobytes()


def decode_vector(blob: bytes, expected_dim: Optional[int] = None) -> np.ndarray:
    """
    Inverse of encode_vector().

    Args:
        blob: Raw bytes from storage
        expected_dim: Required dimension (optional)

    Returns:
        float32 vector (native byte order)

    Raises:
        VectorDecodeError: byte length not a multiple of 4 or wrong dimension
    """
    if blob is None:
        raise VectorDecodeError("Vector blob is missing")
    if len(blob) % 4 != 0:
        raise VectorDecodeError(f"Vector blob length {len(blob)} is not a multiple of 4")

    vector = np.frombuffer(bytes(blob), dtype=_FLOAT32_LE).astype(np.float32)

    if expected_dim is not None and vector.shape[0] != expected_dim:
        raise VectorDecodeError(
            f"Vector dimension {vector.shape[0]} does not match expected {expected_dim}"
        )
    return vector


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity in [-1, 1].

    Zero vectors and vectors of different length score 0.0.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if a.shape != b.shape or a.size == 0:
        return 0.0

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return 0.0
    return float(np.dot(a, b) / norm)


def average_vectors(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Component-wise arithmetic mean (centroid query vector).

    Raises:
        ValueError: no vectors, or vectors of different dimensions
    """
    if len(vectors) == 0:
        raise ValueError("Cannot average an empty list of vectors")

    dims = {len(v) for v in vectors}
    if len(dims) != 1:
        raise ValueError(f"Cannot average vectors of different dimensions: {sorted(dims)}")

    matrix = np.asarray(vectors, dtype=np.float32)
    return matrix.mean(axis=0).astype(np.float32)


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Iterable[Tuple[Any, Sequence[float]]],
    top_k: int,
) -> List[Tuple[Any, float]]:
    """
    Brute-force cosine ranking.

    Args:
        query_vector: Query embedding
        candidates: (item, vector) pairs in storage order
        top_k: Maximum results (<= 0 returns [])

    Returns:
        (item, similarity) pairs, similarity descending; ties keep input order
    """
    if top_k <= 0:
        return []

    scored = [
        (item, cosine_similarity(query_vector, vector))
        for item, vector in candidates
    ]
    # sort() is stable, so equal similarities keep storage order
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:top_k]
