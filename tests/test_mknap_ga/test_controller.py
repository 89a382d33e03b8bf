"""
Tests for the solve loop.

Tests end-to-end convergence, statistics collection, stepping,
cancellation, reproducibility, and timing.
"""

import time
import unittest
import numpy as np

from mknap_ga.data_models import Problem, Constraint, GAParams, ProblemValidationError
from mknap_ga.controller import GeneticSolver
from mknap_ga.stopwatch import Stopwatch


class TestGeneticSolver(unittest.TestCase):
    """Test complete genetic algorithm runs."""

    def setUp(self):
        """Set up the classic three-item problem and a six-item problem."""
        self.small = Problem(
            profits=[60, 100, 120],
            constraints=[Constraint(bag_limit=50, weights=[10, 20, 30])],
            optimal=220
        )
        self.six = Problem(
            profits=[100, 600, 1200, 2400, 500, 2000],
            constraints=[
                Constraint(bag_limit=80, weights=[8, 12, 13, 64, 22, 41]),
                Constraint(bag_limit=96, weights=[8, 12, 13, 75, 22, 41]),
            ],
            optimal=3900
        )
        self.params = GAParams(
            population_size=10,
            generations_limit=200,
            mutate_probability=0.1,
            crossover_probability=0.9,
            offsprings_proportion=0.5,
            random_seed=42,
            max_offspring_attempts=10
        )

    def test_small_problem_converges_to_optimum(self):
        """Test the three-item problem reaches profit 220 with items 2 and 3."""
        result = GeneticSolver(self.params).solve(self.small)

        self.assertEqual(result.best_fitness, 220)
        np.testing.assert_array_equal(result.best_solution, [0, 1, 1])
        self.assertEqual(result.optimal, 220)
        self.assertEqual(result.generations, 200)
        self.assertFalse(result.cancelled)

    def test_best_fitness_is_non_decreasing(self):
        """Test worst-first replacement never loses the best member."""
        params = GAParams(population_size=10, generations_limit=60, random_seed=5)
        result = GeneticSolver(params).solve(self.six)

        best = result.history.best_fitness
        for previous, current in zip(best, best[1:]):
            self.assertGreaterEqual(current, previous)

    def test_six_item_problem_result_is_feasible(self):
        """Test the reported solution is feasible and at most the optimum."""
        params = GAParams(population_size=20, generations_limit=100, random_seed=9)
        result = GeneticSolver(params).solve(self.six)

        self.assertGreater(result.best_fitness, 0)
        self.assertLessEqual(result.best_fitness, 3900)
        self.assertEqual(len(result.best_solution), 6)

    def test_history_covers_every_generation(self):
        """Test statistics include the initial population and each generation."""
        params = GAParams(population_size=8, generations_limit=15, random_seed=1)
        received = []
        result = GeneticSolver(params).solve(self.six, on_generation=received.append)

        self.assertEqual(len(result.history), 16)
        self.assertEqual(result.history.generations, list(range(16)))
        self.assertEqual([s.generation for s in received], list(range(1, 16)))
        for best, average in zip(result.history.best_fitness, result.history.average_fitness):
            self.assertGreaterEqual(best, average)
            self.assertGreaterEqual(average, 0)

    def test_on_complete_receives_result(self):
        """Test the completion callback gets the returned result."""
        params = GAParams(population_size=6, generations_limit=3, random_seed=2)
        completed = []

        result = GeneticSolver(params).solve(self.six, on_complete=completed.append)

        self.assertEqual(len(completed), 1)
        self.assertIs(completed[0], result)
        self.assertGreaterEqual(result.elapsed_time, 0)

    def test_same_seed_same_run(self):
        """Test runs are reproducible for a fixed seed."""
        params = GAParams(population_size=10, generations_limit=30, random_seed=123)

        first = GeneticSolver(params).solve(self.six)
        second = GeneticSolver(params).solve(self.six)

        self.assertEqual(first.history.best_fitness, second.history.best_fitness)
        self.assertEqual(first.history.average_fitness, second.history.average_fitness)
        np.testing.assert_array_equal(first.best_solution, second.best_solution)

    def test_explicit_rng_is_used(self):
        """Test an injected generator drives the run."""
        params = GAParams(population_size=10, generations_limit=10)

        first = GeneticSolver(params, rng=np.random.default_rng(77)).solve(self.six)
        second = GeneticSolver(params, rng=np.random.default_rng(77)).solve(self.six)

        self.assertEqual(first.history.average_fitness, second.history.average_fitness)

    def test_zero_generations_reports_initial_population(self):
        """Test a zero generation limit reports the fittest initial member."""
        params = GAParams(population_size=5, generations_limit=0, random_seed=4)
        solver = GeneticSolver(params)

        result = solver.solve(self.six)

        self.assertEqual(result.generations, 0)
        self.assertEqual(len(result.history), 1)
        self.assertEqual(result.best_fitness, result.history.best_fitness[0])

    def test_step_requires_start(self):
        """Test stepping before start() fails."""
        with self.assertRaises(RuntimeError):
            GeneticSolver(self.params).step()

    def test_manual_stepping(self):
        """Test start() and step() drive the run one generation at a time."""
        params = GAParams(population_size=8, generations_limit=3, random_seed=8)
        solver = GeneticSolver(params)

        solver.start(self.six)
        self.assertEqual(solver.generation, 0)
        self.assertEqual(len(solver.population), 8)

        stats = solver.step()
        self.assertEqual(stats.generation, 1)
        self.assertEqual(len(solver.population), 8)
        self.assertFalse(solver.is_finished)

        solver.step()
        solver.step()
        self.assertTrue(solver.is_finished)

        result = solver.finish()
        self.assertEqual(result.generations, 3)

    def test_iter_generations_yields_each_generation(self):
        """Test the generator yields once per generation."""
        params = GAParams(population_size=8, generations_limit=5, random_seed=3)
        solver = GeneticSolver(params)

        generations = [stats.generation for stats in solver.iter_generations(self.six)]

        self.assertEqual(generations, [1, 2, 3, 4, 5])

    def test_cancel_stops_at_generation_boundary(self):
        """Test a cancel request ends the run before the limit."""
        params = GAParams(population_size=8, generations_limit=50, random_seed=3)
        solver = GeneticSolver(params)

        def cancel_after_three(stats):
            if stats.generation == 3:
                solver.cancel()

        result = solver.solve(self.six, on_generation=cancel_after_three)

        self.assertTrue(result.cancelled)
        self.assertEqual(result.generations, 3)

    def test_delay_between_generations(self):
        """Test the delay is applied between generations but not after the last."""
        params = GAParams(population_size=6, generations_limit=3, delay=0.05, random_seed=3)

        started = time.perf_counter()
        GeneticSolver(params).solve(self.six)
        elapsed = time.perf_counter() - started

        self.assertGreaterEqual(elapsed, 0.1)

    def test_invalid_problem_rejected(self):
        """Test malformed problems fail before solving."""
        problem = Problem(profits=[1, 2, 3], constraints=[Constraint(5, [1, 2])])

        with self.assertRaises(ProblemValidationError):
            GeneticSolver(self.params).solve(problem)

    def test_log_sink_receives_messages(self):
        """Test progress goes to the injected log callable."""
        messages = []
        params = GAParams(population_size=6, generations_limit=2, random_seed=3)

        GeneticSolver(params, log=lambda msg, *args: messages.append(msg % args)).solve(self.six)

        self.assertTrue(any(m.startswith("generation 2:") for m in messages))
        self.assertTrue(any(m.startswith("total time:") for m in messages))

    def test_greedy_mutation_run(self):
        """Test the greedy mutation strategy runs to completion."""
        params = GAParams(population_size=10, generations_limit=30,
                          greedy_mutation=True, mutate_probability=0.5, random_seed=21)
        result = GeneticSolver(params).solve(self.six)

        self.assertGreater(result.best_fitness, 0)


class TestStopwatch(unittest.TestCase):
    """Test named timers."""

    def test_start_stop(self):
        """Test elapsed milliseconds are measured and the timer removed."""
        stopwatch = Stopwatch()
        stopwatch.start('parse')
        time.sleep(0.01)
        elapsed = stopwatch.stop('parse')

        self.assertGreaterEqual(elapsed, 5)
        self.assertNotIn('parse', stopwatch.watches)

    def test_stop_unknown_timer(self):
        """Test stopping a timer that was never started fails."""
        with self.assertRaises(KeyError):
            Stopwatch().stop('missing')


if __name__ == '__main__':
    unittest.main()
