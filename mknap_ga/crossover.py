"""
Crossover operators for the knapsack genetic algorithm.

Implements uniform crossover over binary solution vectors.
"""

from typing import Tuple

import numpy as np


def uniform_crossover(
    parent_a: np.ndarray,
    parent_b: np.ndarray,
    rng: np.random.Generator
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Combine two parents gene by gene.

    For every position a fair coin decides which parent child 1 inherits
    from; child 2 inherits the same position from the other parent.

    Args:
        parent_a: First parent
        parent_b: Second parent
        rng: Random number generator

    Returns:
        Tuple of (child_1, child_2, mask) where mask[i] is True if child 1
        took gene i from parent_a
    """
    mask = rng.random(len(parent_a)) < 0.5
    child_1 = np.where(mask, parent_a, parent_b).astype(parent_a.dtype)
    child_2 = np.where(mask, parent_b, parent_a).astype(parent_a.dtype)
    return child_1, child_2, mask


def apply_crossover(
    parents: Tuple[np.ndarray, np.ndarray],
    crossover_probability: float,
    rng: np.random.Generator
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Recombine parents with the configured probability.

    Args:
        parents: (parent_a, parent_b)
        crossover_probability: Chance of performing uniform crossover
        rng: Random number generator

    Returns:
        Two new children; copies of the parents if crossover did not fire
    """
    parent_a, parent_b = parents

    if rng.random() < crossover_probability:
        child_1, child_2, _ = uniform_crossover(parent_a, parent_b, rng)
        return child_1, child_2

    return parent_a.copy(), parent_b.copy()
