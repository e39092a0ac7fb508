"""Vector helpers for embedding similarity."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import numpy as np


def as_vector(values: Optional[Sequence[float]]) -> Optional[np.ndarray]:
    """Return a float64 array, or None when the input is missing or empty."""
    if values is None:
        return None
    vector = np.asarray(values, dtype=np.float64).ravel()
    if vector.size == 0:
        return None
    return vector


def cosine_similarity(
    vec_a: Optional[Sequence[float]],
    vec_b: Optional[Sequence[float]],
) -> float:
    """Cosine similarity in [-1, 1]; 0 for missing, mismatched or zero vectors."""
    a = as_vector(vec_a)
    b = as_vector(vec_b)
    if a is None or b is None or a.shape != b.shape:
        return 0.0
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0 or not math.isfinite(norm_a * norm_b):
        return 0.0
    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    if not math.isfinite(similarity):
        return 0.0
    # float error can push |cos| slightly past 1
    return max(-1.0, min(1.0, similarity))


def centroid(vectors: Iterable[Sequence[float]]) -> Optional[np.ndarray]:
    """Mean of the vectors sharing the first vector's dimension.

    Vectors of any other length are ignored, as are empty ones.
    """
    stacked = []
    dimension = None
    for values in vectors:
        vector = as_vector(values)
        if vector is None:
            continue
        if dimension is None:
            dimension = vector.size
        if vector.size != dimension:
            continue
        stacked.append(vector)
    if not stacked:
        return None
    return np.mean(np.vstack(stacked), axis=0)
