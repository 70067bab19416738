"""Numeric helpers shared by the scorers and the recommender.

All functions accept array-likes, return plain floats or numpy arrays and
degrade to a uniform distribution instead of producing NaN.
"""

from typing import Sequence

import numpy as np


def uniform(n: int) -> np.ndarray:
    if n <= 0:
        return np.zeros(0)
    return np.full(n, 1.0 / n)


def normalize(weights: Sequence[float]) -> np.ndarray:
    """Scale non-negative weights to sum to 1; degenerate input gives uniform."""
    w = np.asarray(weights, dtype=float)
    if w.size == 0:
        return w
    w = np.where(np.isfinite(w) & (w > 0), w, 0.0)
    total = w.sum()
    if total <= 0 or not np.isfinite(total):
        return uniform(w.size)
    return w / total


def softmax_log(log_weights: Sequence[float]) -> np.ndarray:
    """Normalise log-domain weights with max subtraction.

    -inf entries get zero mass; if every entry is -inf (or NaN) the result
    is uniform.
    """
    lw = np.asarray(log_weights, dtype=float)
    if lw.size == 0:
        return lw
    lw = np.where(np.isnan(lw), -np.inf, lw)
    peak = lw.max()
    if not np.isfinite(peak):
        return uniform(lw.size)
    return normalize(np.exp(lw - peak))


def shannon_entropy(p: Sequence[float]) -> float:
    """Entropy in bits; zero-probability terms contribute nothing."""
    arr = np.asarray(p, dtype=float)
    arr = arr[arr > 0]
    if arr.size == 0:
        return 0.0
    return float(-(arr * np.log2(arr)).sum())


def gini_impurity(p: Sequence[float]) -> float:
    arr = np.asarray(p, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(1.0 - (arr * arr).sum())


def count_above(p: Sequence[float], threshold: float) -> int:
    """Number of entries at or above threshold (candidate count for ECR)."""
    arr = np.asarray(p, dtype=float)
    return int((arr >= threshold).sum())
