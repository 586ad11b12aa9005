"""Random seed helpers."""

import random

import numpy as np


def set_seed(seed: int) -> np.random.Generator:
    """Seed Python and NumPy global state.

    Returns:
        A fresh Generator seeded with the same value, for passing to MCTS
    """
    random.seed(seed)
    np.random.seed(seed)
    return np.random.default_rng(seed)
