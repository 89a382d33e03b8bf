"""
Solve loop for the knapsack genetic algorithm.

GeneticSolver wires the evaluator, population manager and reproduction
engine together, steps generations, collects statistics and reports the
final result.
"""

import logging
import threading
from typing import Callable, Iterator, List, Optional

import numpy as np

from .data_models import (
    Problem,
    GAParams,
    GenerationStats,
    FitnessHistory,
    SolveResult,
)
from .evaluation import Evaluator
from .population import PopulationManager
from .reproduction import ReproductionEngine
from .stopwatch import Stopwatch

logger = logging.getLogger(__name__)


class GeneticSolver:
    """
    Generational genetic algorithm for the multi-dimensional knapsack.

    Each generation runs synchronously to completion; control is only given
    back between generations, through iter_generations() or the delay in
    solve(). cancel() is honoured at those points.

    Args:
        params: Run parameters
        log: Progress sink taking (message, *args); defaults to this
            module's logger
        rng: Random number generator; defaults to one seeded with
            params.random_seed
    """

    def __init__(
        self,
        params: GAParams,
        log: Optional[Callable[..., None]] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.params = params
        self.log = log or logger.info
        self.rng = rng if rng is not None else np.random.default_rng(params.random_seed)
        self.stopwatch = Stopwatch()
        self._cancel_event = threading.Event()

        self.problem: Optional[Problem] = None
        self.evaluator: Optional[Evaluator] = None
        self.population_manager: Optional[PopulationManager] = None
        self.reproduction: Optional[ReproductionEngine] = None
        self.population: List[np.ndarray] = []
        self.generation = 0
        self.history = FitnessHistory()

    def start(self, problem: Problem) -> None:
        """
        Bind a problem and create the initial population.

        Args:
            problem: Problem to solve

        Raises:
            ProblemValidationError: If the problem vectors are inconsistent
        """
        problem.validate()

        self.stopwatch.start('total')
        self._cancel_event.clear()
        self.problem = problem
        self.evaluator = Evaluator(problem)
        self.population_manager = PopulationManager(
            self.evaluator,
            self.params.population_size,
            self.rng,
            repair=self.params.repair,
            max_attempts=self.params.max_init_attempts
        )
        self.reproduction = ReproductionEngine(
            self.evaluator,
            self.population_manager,
            self.rng,
            crossover_probability=self.params.crossover_probability,
            mutate_probability=self.params.mutate_probability,
            greedy_mutation=self.params.greedy_mutation,
            max_selection_attempts=self.params.max_selection_attempts,
            max_offspring_attempts=self.params.max_offspring_attempts
        )

        self.generation = 0
        self.history = FitnessHistory()
        self.population = self.population_manager.create_initial(problem.item_count)

        initial = self.statistics()
        self.history.append(initial)
        self.log(
            "initial population: %d members, best fitness %s",
            len(self.population), initial.best_fitness
        )

    @property
    def is_finished(self) -> bool:
        return self.generation >= self.params.generations_limit

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request the run to stop at the next generation boundary."""
        self._cancel_event.set()

    def fitnesses(self) -> List[float]:
        return [self.evaluator.evaluate(solution) for solution in self.population]

    def statistics(self) -> GenerationStats:
        """Best and average fitness of the current population."""
        fitnesses = self.fitnesses()
        return GenerationStats(
            generation=self.generation,
            best_fitness=float(max(fitnesses)),
            average_fitness=float(np.mean(fitnesses))
        )

    def step(self) -> GenerationStats:
        """
        Run one generation.

        Breeds offspring, replaces the worst members with them and records
        the resulting statistics.

        Returns:
            Statistics of the population after replacement

        Raises:
            RuntimeError: If start() has not been called
            StalledPopulationError: If the population cannot feed selection
        """
        if self.problem is None:
            raise RuntimeError("start() must be called before step()")

        offsprings = self.reproduction.generate_offspring(
            self.population, self.params.offspring_quota
        )
        self.population_manager.replace_worst(self.population, self.fitnesses(), offsprings)
        self.generation += 1

        stats = self.statistics()
        self.history.append(stats)
        self.log(
            "generation %d: best %s, average %.2f",
            stats.generation, stats.best_fitness, stats.average_fitness
        )
        return stats

    def iter_generations(self, problem: Problem) -> Iterator[GenerationStats]:
        """
        Start a run and yield after every generation.

        Args:
            problem: Problem to solve

        Yields:
            Statistics of each completed generation
        """
        self.start(problem)

        while not self.is_finished and not self.cancelled:
            yield self.step()

    def solve(
        self,
        problem: Problem,
        on_generation: Optional[Callable[[GenerationStats], None]] = None,
        on_complete: Optional[Callable[[SolveResult], None]] = None
    ) -> SolveResult:
        """
        Run the genetic algorithm to completion.

        Args:
            problem: Problem to solve
            on_generation: Called with the statistics of each generation
            on_complete: Called with the final result

        Returns:
            SolveResult with the fittest solution of the final population
        """
        for stats in self.iter_generations(problem):
            if on_generation is not None:
                on_generation(stats)
            if self.params.delay > 0 and not self.is_finished:
                # Returns early if cancel() is called meanwhile
                self._cancel_event.wait(self.params.delay)

        result = self.finish()
        if on_complete is not None:
            on_complete(result)
        return result

    def finish(self) -> SolveResult:
        """
        Stop timing and report the fittest member of the current population.

        Returns:
            SolveResult for the run
        """
        elapsed = self.stopwatch.stop('total')
        best_solution = self.reproduction.get_fittest_solution(self.population)
        best_fitness = self.evaluator.evaluate(best_solution)

        if self.cancelled:
            self.log("run cancelled after %d generations", self.generation)
        self.log("total time: %.1f ms", elapsed)

        return SolveResult(
            best_solution=best_solution.copy(),
            best_fitness=float(best_fitness),
            elapsed_time=elapsed,
            optimal=self.problem.optimal,
            history=self.history,
            generations=self.generation,
            cancelled=self.cancelled
        )
