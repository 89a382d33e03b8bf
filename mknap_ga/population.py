"""
Population management for the knapsack genetic algorithm.

Creates a feasible, duplicate-free initial population, repairs infeasible
candidates and performs worst-first survivor replacement.
"""

import logging
from typing import List, Sequence

import numpy as np

from .evaluation import Evaluator

logger = logging.getLogger(__name__)

Solution = np.ndarray


def contains_solution(population: Sequence[Solution], solution: Solution) -> bool:
    """True if any member is bit-for-bit identical to solution."""
    return any(np.array_equal(member, solution) for member in population)


class PopulationManager:
    """
    Owns the creation and replacement of a fixed-size population.

    Args:
        evaluator: Evaluator bound to the problem being solved
        population_size: Target number of members
        rng: Random number generator shared with the rest of the run
        repair: Clear random bits of infeasible candidates until they fit
        max_attempts: Consecutive rejected candidates tolerated before a
            duplicate is admitted
    """

    def __init__(
        self,
        evaluator: Evaluator,
        population_size: int,
        rng: np.random.Generator,
        repair: bool = True,
        max_attempts: int = 1000
    ):
        self.evaluator = evaluator
        self.population_size = population_size
        self.rng = rng
        self.repair_enabled = repair
        self.max_attempts = max_attempts

    def random_solution(self, item_count: int) -> Solution:
        """Draw a vector whose bits are independent fair coin flips."""
        return self.rng.integers(0, 2, size=item_count, dtype=np.int8)

    def repair(self, solution: Solution) -> Solution:
        """
        Clear randomly chosen set bits until the solution is feasible.

        Clearing a bit never increases any constraint's load, and the
        all-zero vector is feasible, so the loop terminates.

        Args:
            solution: Candidate to repair (left untouched)

        Returns:
            Feasible copy of the candidate
        """
        repaired = solution.copy()

        while not self.evaluator.is_feasible(repaired):
            set_bits = np.flatnonzero(repaired)
            if len(set_bits) == 0:
                break
            repaired[set_bits[self.rng.integers(0, len(set_bits))]] = 0

        return repaired

    def create_initial(self, item_count: int) -> List[Solution]:
        """
        Build the generation-0 population.

        Algorithm:
            1. Draw a random binary vector
            2. If infeasible: repair it (or reject it when repair is disabled)
            3. Reject it if an admitted member has the same bits
            4. Admit it otherwise; repeat until population_size members

        After max_attempts consecutive rejections the next candidate is
        repaired and admitted even if it duplicates a member, so the loop
        terminates on problems with fewer distinct feasible vectors than
        population_size.

        Args:
            item_count: Length of each solution vector

        Returns:
            List of population_size feasible solutions
        """
        population: List[Solution] = []
        rejected = 0
        forced = 0

        while len(population) < self.population_size:
            candidate = self.random_solution(item_count)
            exhausted = rejected >= self.max_attempts

            if not self.evaluator.is_feasible(candidate):
                if self.repair_enabled or exhausted:
                    candidate = self.repair(candidate)
                else:
                    rejected += 1
                    continue

            duplicate = contains_solution(population, candidate)
            if duplicate and not exhausted:
                rejected += 1
                continue

            if duplicate:
                forced += 1
            population.append(candidate)
            rejected = 0

        if forced:
            logger.warning(
                "Initial population: admitted %d duplicate candidates after %d "
                "consecutive rejections",
                forced, self.max_attempts
            )

        return population

    def is_valid_and_not_double(self, solution: Solution, population: Sequence[Solution]) -> bool:
        """
        Check whether a solution may join the population.

        Args:
            solution: Candidate solution
            population: Members to compare against

        Returns:
            True if the solution is feasible and has no bit-for-bit twin
        """
        return self.evaluator.evaluate(solution) >= 0 and not contains_solution(population, solution)

    def replace_worst(
        self,
        population: List[Solution],
        fitnesses: Sequence[float],
        offsprings: Sequence[Solution]
    ) -> None:
        """
        Overwrite the lowest-fitness members with offspring, in place.

        Offspring beyond len(population) are dropped (order preserved).
        Equal fitnesses are replaced in original index order.

        Args:
            population: Population to modify
            fitnesses: Fitness of each population member, index aligned
            offsprings: New solutions to insert
        """
        offsprings = list(offsprings)[:len(population)]
        worst_first = np.argsort(np.asarray(fitnesses, dtype=float), kind="stable")

        for slot, offspring in zip(worst_first, offsprings):
            population[int(slot)] = offspring
