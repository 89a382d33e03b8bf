"""
Mutation operators for the knapsack genetic algorithm.

Implements single bit-flip mutation, with an optional greedy variant that
keeps a flip only if it does not lower fitness.
"""

from typing import Callable, Optional, Tuple

import numpy as np


def flip_random_bit(
    solution: np.ndarray,
    rng: np.random.Generator
) -> Tuple[np.ndarray, int]:
    """
    Flip one uniformly chosen bit.

    Args:
        solution: Solution to mutate (left untouched)
        rng: Random number generator

    Returns:
        Tuple of (mutated_copy, flipped_index)
    """
    mutated = solution.copy()
    index = int(rng.integers(0, len(mutated)))
    mutated[index] = 1 - mutated[index]
    return mutated, index


def mutate(
    solution: np.ndarray,
    mutate_probability: float,
    rng: np.random.Generator,
    fitness: Optional[Callable[[np.ndarray], float]] = None
) -> np.ndarray:
    """
    Apply bit-flip mutation according to configuration.

    With probability mutate_probability one random bit is flipped. If a
    fitness function is given (greedy mutation), a flip that strictly lowers
    fitness is reverted.

    Args:
        solution: Solution to mutate (left untouched)
        mutate_probability: Chance of flipping a bit
        rng: Random number generator
        fitness: Fitness function enabling greedy accept/reject

    Returns:
        New solution array
    """
    if len(solution) == 0 or rng.random() >= mutate_probability:
        return solution.copy()

    mutated, _ = flip_random_bit(solution, rng)

    if fitness is not None and fitness(mutated) < fitness(solution):
        return solution.copy()

    return mutated


def mutation_distance(original: np.ndarray, mutated: np.ndarray) -> int:
    """Number of positions at which two solutions differ."""
    return int(np.count_nonzero(original != mutated))
