"""
Parent selection for the knapsack genetic algorithm.

Fitness-proportional (roulette-wheel) selection over a feasible population.
"""

from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np


class StalledPopulationError(RuntimeError):
    """Raised when a population cannot feed fitness-proportional selection."""
    pass


def compute_probabilities(fitnesses: Sequence[float]) -> np.ndarray:
    """
    Turn fitnesses into selection probabilities.

    Each member gets fitness / total fitness. A population whose fitnesses
    are all zero gets a uniform distribution.

    Args:
        fitnesses: Fitness of each member (all must be >= 0)

    Returns:
        Array of probabilities summing to 1

    Raises:
        StalledPopulationError: If the population is empty or holds an
            infeasible (negative fitness) member
    """
    values = np.asarray(fitnesses, dtype=float)

    if len(values) == 0:
        raise StalledPopulationError("Cannot select parents from an empty population")

    if np.any(values < 0):
        infeasible = [int(i) for i in np.flatnonzero(values < 0)]
        raise StalledPopulationError(
            f"Population members {infeasible} are infeasible; "
            f"fitness-proportional selection needs non-negative fitness"
        )

    total = values.sum()
    if total == 0:
        return np.full(len(values), 1.0 / len(values))

    return values / total


def build_intervals(probabilities: Sequence[float]) -> List[Tuple[float, float]]:
    """
    Lay the probabilities out as consecutive half-open intervals [from, to).

    Args:
        probabilities: Probability of each member, in population order

    Returns:
        List of (from, to) pairs covering [0, 1)
    """
    upper = np.cumsum(probabilities)
    lower = np.concatenate(([0.0], upper[:-1]))
    return [(float(a), float(b)) for a, b in zip(lower, upper)]


def roulette_pick(probabilities: Sequence[float], rng: np.random.Generator) -> int:
    """
    Draw one member index with probability proportional to its share.

    Args:
        probabilities: Probability of each member
        rng: Random number generator

    Returns:
        Index of the member whose interval contains a uniform draw in [0, 1)
    """
    upper = np.array([to for _, to in build_intervals(probabilities)])
    index = int(np.searchsorted(upper, rng.random(), side="right"))

    if index >= len(upper):
        # Rounding can leave the last upper bound just below 1
        weighted = np.flatnonzero(np.asarray(probabilities) > 0)
        index = int(weighted[-1]) if len(weighted) else len(upper) - 1

    return index


def roulette_wheel_select(
    population: Sequence[np.ndarray],
    probabilities: Sequence[float],
    rng: np.random.Generator,
    max_attempts: int = 100,
    fallback: Optional[Callable[[np.ndarray], np.ndarray]] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Select two bit-for-bit distinct parents by roulette wheel.

    Draws are repeated until the second pick differs from the first. After
    max_attempts draws the second parent is fallback(first), a mutated clone,
    so populations with a single distinct member cannot hang selection.

    Args:
        population: Candidate parents
        probabilities: Selection probability of each member
        rng: Random number generator
        max_attempts: Draws tolerated before falling back
        fallback: Produces a second parent from the first; required for the
            fallback to apply

    Returns:
        Tuple of (parent_a, parent_b)

    Raises:
        StalledPopulationError: If no distinct parent was found and no
            fallback was given
    """
    first = population[roulette_pick(probabilities, rng)]

    for _ in range(max_attempts):
        second = population[roulette_pick(probabilities, rng)]
        if not np.array_equal(first, second):
            return first, second

    if fallback is None:
        raise StalledPopulationError(
            f"No distinct parent found after {max_attempts} draws"
        )

    return first, fallback(first)
