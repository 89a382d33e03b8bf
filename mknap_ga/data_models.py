"""
Data models for the knapsack genetic algorithm.

Core data structures representing problems, constraints, run parameters,
per-generation statistics and solve results.
"""

from dataclasses import dataclass, field
from typing import Optional, Any

import numpy as np


class ProblemValidationError(ValueError):
    """Raised when a problem's vectors are inconsistent."""
    pass


@dataclass
class Constraint:
    """
    A single capacity constraint of a multi-dimensional knapsack.

    Attributes:
        bag_limit: Capacity of this knapsack dimension
        weights: Weight of each item under this constraint (one per item)
    """
    bag_limit: float
    weights: list[float]


@dataclass
class Problem:
    """
    Represents a multi-dimensional 0/1 knapsack instance.

    Attributes:
        profits: Profit of each item
        constraints: Capacity constraints, each with one weight per item
        optimal: Best known profit (0 if unknown, informational only)
    """
    profits: list[float]
    constraints: list[Constraint] = field(default_factory=list)
    optimal: float = 0

    @property
    def item_count(self) -> int:
        """Number of items (length of every solution vector)."""
        return len(self.profits)

    def validate(self) -> None:
        """
        Check vector lengths and signs.

        Raises:
            ProblemValidationError: If a constraint has the wrong number of
                weights, or any profit or weight is negative
        """
        if any(p < 0 for p in self.profits):
            raise ProblemValidationError("Profits must be non-negative")

        for index, constraint in enumerate(self.constraints):
            if len(constraint.weights) != self.item_count:
                raise ProblemValidationError(
                    f"Constraint {index} has {len(constraint.weights)} weights, "
                    f"expected {self.item_count} (one per profit)"
                )
            if any(w < 0 for w in constraint.weights):
                raise ProblemValidationError(
                    f"Constraint {index} has negative weights"
                )

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form for YAML export."""
        return {
            "optimal": self.optimal,
            "profits": list(self.profits),
            "constraints": [
                {"bag_limit": c.bag_limit, "weights": list(c.weights)}
                for c in self.constraints
            ],
        }


@dataclass
class GAParams:
    """
    Parameters of a genetic algorithm run.

    Attributes:
        population_size: Number of solutions kept each generation
        generations_limit: Number of generations to run
        mutate_probability: Chance that an offspring gets one bit flipped
        crossover_probability: Chance that two parents are recombined
        offsprings_proportion: Fraction of population_size bred per generation
        delay: Seconds to wait between generation steps
        repair: Repair infeasible random solutions during initialization
        greedy_mutation: Revert mutations that lower fitness
        random_seed: Seed for the shared random generator (None = fresh entropy)
        max_init_attempts: Consecutive rejected candidates tolerated while
            building the initial population
        max_selection_attempts: Draws tolerated while looking for two distinct parents
        max_offspring_attempts: Parent pairings tolerated per generation,
            as a multiple of the offspring quota
    """
    population_size: int = 10
    generations_limit: int = 100
    mutate_probability: float = 0.1
    crossover_probability: float = 0.9
    offsprings_proportion: float = 0.5
    delay: float = 0.0
    repair: bool = True
    greedy_mutation: bool = False
    random_seed: Optional[int] = None
    max_init_attempts: int = 1000
    max_selection_attempts: int = 100
    max_offspring_attempts: int = 50

    def __post_init__(self):
        """Validate parameter ranges."""
        if not isinstance(self.population_size, int) or self.population_size <= 0:
            raise ValueError(
                f"population_size must be a positive integer, got: {self.population_size}"
            )
        if not isinstance(self.generations_limit, int) or self.generations_limit < 0:
            raise ValueError(
                f"generations_limit must be a non-negative integer, got: {self.generations_limit}"
            )
        for name in ("mutate_probability", "crossover_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got: {value}")
        if not 0.0 < self.offsprings_proportion <= 1.0:
            raise ValueError(
                f"offsprings_proportion must be in (0, 1], got: {self.offsprings_proportion}"
            )
        if self.delay < 0:
            raise ValueError(f"delay must be non-negative, got: {self.delay}")
        for name in ("max_init_attempts", "max_selection_attempts", "max_offspring_attempts"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got: {getattr(self, name)}")

    @property
    def offspring_quota(self) -> int:
        """Number of offspring bred per generation."""
        return max(1, int(self.population_size * self.offsprings_proportion))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GAParams":
        """
        Build parameters from a config section, ignoring unknown keys.

        Args:
            data: Mapping such as the 'ga' section of a run config

        Returns:
            GAParams instance
        """
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass
class GenerationStats:
    """Best and average fitness of the population after one generation."""
    generation: int
    best_fitness: float
    average_fitness: float


@dataclass
class FitnessHistory:
    """
    Per-generation statistics collected during a run.

    Attributes:
        generations: Generation indices
        best_fitness: Fitness of the fittest member per generation
        average_fitness: Mean population fitness per generation
    """
    generations: list[int] = field(default_factory=list)
    best_fitness: list[float] = field(default_factory=list)
    average_fitness: list[float] = field(default_factory=list)

    def append(self, stats: GenerationStats) -> None:
        self.generations.append(stats.generation)
        self.best_fitness.append(stats.best_fitness)
        self.average_fitness.append(stats.average_fitness)

    def __len__(self) -> int:
        return len(self.generations)

    def rows(self) -> list[GenerationStats]:
        return [
            GenerationStats(g, b, a)
            for g, b, a in zip(self.generations, self.best_fitness, self.average_fitness)
        ]


@dataclass
class SolveResult:
    """
    Outcome of a solve call.

    Attributes:
        best_solution: Fittest member of the final population
        best_fitness: Its fitness
        elapsed_time: Total solve time in milliseconds
        optimal: Known optimum copied from the problem
        history: Per-generation statistics
        generations: Number of generations actually run
        cancelled: True if the run stopped on a cancel request
    """
    best_solution: np.ndarray
    best_fitness: float
    elapsed_time: float
    optimal: float
    history: FitnessHistory = field(default_factory=FitnessHistory)
    generations: int = 0
    cancelled: bool = False

    def selected_items(self) -> list[int]:
        """Indices of the items in the best solution."""
        return [int(i) for i in np.flatnonzero(self.best_solution)]

    def gap(self) -> Optional[float]:
        """Relative distance to the known optimum, or None if it is unknown."""
        if not self.optimal:
            return None
        return (self.optimal - self.best_fitness) / self.optimal

    def to_dict(self) -> dict[str, Any]:
        """
        Convert result to a dictionary for YAML export.

        Returns:
            Dictionary with plain Python values
        """
        return {
            "best_fitness": float(self.best_fitness),
            "optimal": self.optimal,
            "gap": self.gap(),
            "best_solution": [int(bit) for bit in self.best_solution],
            "selected_items": self.selected_items(),
            "elapsed_time_ms": float(self.elapsed_time),
            "generations": self.generations,
            "cancelled": self.cancelled,
        }
