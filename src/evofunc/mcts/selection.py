"""Softmax selection among existing children."""

from typing import Optional, Sequence

import numpy as np
from scipy.special import softmax


def softmax_weights(scores: Sequence[Optional[float]]) -> np.ndarray:
    """Softmax over the defined scores.

    Undefined scores get weight 0. The softmax is max-shifted, so large
    scores do not overflow.

    Args:
        scores: Child self scores in insertion order

    Returns:
        Weights aligned with scores, summing to 1 unless none is defined
    """
    weights = np.zeros(len(scores), dtype=np.float64)
    defined = [i for i, s in enumerate(scores) if s is not None]
    if defined:
        values = np.array([scores[i] for i in defined], dtype=np.float64)
        weights[defined] = softmax(values)
    return weights


def select_index(scores: Sequence[Optional[float]], draw: float) -> int:
    """Pick a child by walking cumulative softmax weight.

    Args:
        scores: Child self scores in insertion order (non-empty)
        draw: Uniform random number in [0, 1)

    Returns:
        Index of the first child whose cumulative weight exceeds draw,
        or the last child if rounding leaves the draw uncovered
    """
    if len(scores) == 0:
        raise ValueError("No children to select from")
    if len(scores) == 1:
        return 0

    cumulative = np.cumsum(softmax_weights(scores))
    index = int(np.searchsorted(cumulative, draw, side="right"))
    return min(index, len(scores) - 1)
