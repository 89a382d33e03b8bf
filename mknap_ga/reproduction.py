"""
Reproduction engine for the knapsack genetic algorithm.

Breeds offspring from a population: fitness-proportional parent selection,
uniform crossover, bit-flip mutation and admission of valid, non-duplicate
children.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .evaluation import Evaluator
from .population import PopulationManager
from .selection import compute_probabilities, roulette_wheel_select
from .crossover import apply_crossover
from .mutation import mutate, flip_random_bit

logger = logging.getLogger(__name__)


class ReproductionEngine:
    """
    Produces offspring for one generation.

    Args:
        evaluator: Evaluator bound to the problem being solved
        population_manager: Provides validity and duplicate checks
        rng: Random number generator shared with the rest of the run
        crossover_probability: Chance that a parent pair is recombined
        mutate_probability: Chance that a child gets one bit flipped
        greedy_mutation: Revert flips that lower fitness
        max_selection_attempts: Draws tolerated while looking for distinct parents
        max_offspring_attempts: Parent pairings tolerated per generation,
            as a multiple of the offspring quota
    """

    def __init__(
        self,
        evaluator: Evaluator,
        population_manager: PopulationManager,
        rng: np.random.Generator,
        crossover_probability: float = 0.9,
        mutate_probability: float = 0.1,
        greedy_mutation: bool = False,
        max_selection_attempts: int = 100,
        max_offspring_attempts: int = 50
    ):
        self.evaluator = evaluator
        self.population_manager = population_manager
        self.rng = rng
        self.crossover_probability = crossover_probability
        self.mutate_probability = mutate_probability
        self.greedy_mutation = greedy_mutation
        self.max_selection_attempts = max_selection_attempts
        self.max_offspring_attempts = max_offspring_attempts

    def get_fitness(self, solution: np.ndarray) -> float:
        return self.evaluator.evaluate(solution)

    def get_fittest_solution(self, population: Sequence[np.ndarray]) -> np.ndarray:
        """
        Find the member with the highest fitness.

        Ties keep the earliest member.

        Args:
            population: Solutions to scan

        Returns:
            Fittest member, or an empty array for an empty population
        """
        fittest = np.empty(0, dtype=np.int8)
        best = None

        for solution in population:
            fitness = self.get_fitness(solution)
            if best is None or fitness > best:
                fittest, best = solution, fitness

        return fittest

    def compute_probabilities(self, population: Sequence[np.ndarray]) -> np.ndarray:
        return compute_probabilities([self.get_fitness(s) for s in population])

    def select_parents(
        self,
        population: Sequence[np.ndarray],
        probabilities: Sequence[float]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Roulette-wheel selection of two distinct parents."""
        return roulette_wheel_select(
            population,
            probabilities,
            self.rng,
            max_attempts=self.max_selection_attempts,
            fallback=self.force_mutate
        )

    def force_mutate(self, solution: np.ndarray) -> np.ndarray:
        """Clone a solution with exactly one bit flipped."""
        logger.warning("Parent selection stalled; using a mutated clone as second parent")
        if len(solution) == 0:
            return solution.copy()
        mutated, _ = flip_random_bit(solution, self.rng)
        return mutated

    def crossover(self, parents: Tuple[np.ndarray, np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        return apply_crossover(parents, self.crossover_probability, self.rng)

    def mutate(self, solution: np.ndarray) -> np.ndarray:
        fitness = self.get_fitness if self.greedy_mutation else None
        return mutate(solution, self.mutate_probability, self.rng, fitness)

    def generate_offspring(self, population: Sequence[np.ndarray], quota: int) -> List[np.ndarray]:
        """
        Breed up to quota valid offspring.

        Algorithm:
            1. Compute selection probabilities once for the population
            2. Select two distinct parents
            3. Cross them over into two children
            4. Mutate each child
            5. Admit each child that is feasible and not already present in
               the population or among admitted offspring
            6. Repeat from 2 until quota children are admitted

        At most quota * max_offspring_attempts parent pairs are tried; if
        that bound is hit the batch is returned short.

        Args:
            population: Current population (not modified)
            quota: Number of offspring wanted

        Returns:
            List of at most quota new solutions

        Raises:
            StalledPopulationError: If the population cannot feed selection
        """
        probabilities = self.compute_probabilities(population)
        offsprings: List[np.ndarray] = []
        max_pairings = quota * self.max_offspring_attempts

        for _ in range(max_pairings):
            parents = self.select_parents(population, probabilities)

            for child in self.crossover(parents):
                child = self.mutate(child)
                if self.population_manager.is_valid_and_not_double(child, list(population) + offsprings):
                    offsprings.append(child)

            if len(offsprings) >= quota:
                return offsprings[:quota]

        logger.warning(
            "Offspring quota not met: %d of %d after %d parent pairings",
            len(offsprings), quota, max_pairings
        )
        return offsprings
