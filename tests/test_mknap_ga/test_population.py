"""
Tests for population management.

Tests random solution generation, repair, initial population creation
(including the attempt bound), validity checks, and worst-first replacement.
"""

import unittest
import numpy as np

from mknap_ga.data_models import Problem, Constraint
from mknap_ga.evaluation import Evaluator
from mknap_ga.population import PopulationManager, contains_solution


class TestPopulationManager(unittest.TestCase):
    """Test initial population creation and repair."""

    def setUp(self):
        """Set up a six-item, two-constraint problem."""
        self.problem = Problem(
            profits=[100, 600, 1200, 2400, 500, 2000],
            constraints=[
                Constraint(bag_limit=80, weights=[8, 12, 13, 64, 22, 41]),
                Constraint(bag_limit=96, weights=[8, 12, 13, 75, 22, 41]),
            ],
            optimal=3900
        )
        self.evaluator = Evaluator(self.problem)
        self.rng = np.random.default_rng(42)
        self.manager = PopulationManager(self.evaluator, population_size=12, rng=self.rng)

    def test_random_solution_is_binary(self):
        """Test random solutions have the right length and 0/1 values."""
        solution = self.manager.random_solution(6)

        self.assertEqual(len(solution), 6)
        self.assertEqual(solution.dtype, np.int8)
        self.assertTrue(set(solution.tolist()) <= {0, 1})

    def test_repair_makes_solution_feasible(self):
        """Test repair clears bits until the solution fits."""
        solution = np.ones(6, dtype=np.int8)
        self.assertFalse(self.evaluator.is_feasible(solution))

        repaired = self.manager.repair(solution)

        self.assertTrue(self.evaluator.is_feasible(repaired))
        # Repair only clears bits
        self.assertTrue(np.all(repaired <= solution))
        # Original left untouched
        np.testing.assert_array_equal(solution, np.ones(6))

    def test_repair_keeps_feasible_solution(self):
        """Test repair returns an equal copy of a feasible solution."""
        solution = np.array([1, 1, 1, 0, 0, 1], dtype=np.int8)
        repaired = self.manager.repair(solution)

        np.testing.assert_array_equal(repaired, solution)
        self.assertIsNot(repaired, solution)

    def test_create_initial_size_and_feasibility(self):
        """Test initial population has the target size and only feasible members."""
        population = self.manager.create_initial(self.problem.item_count)

        self.assertEqual(len(population), 12)
        for solution in population:
            self.assertEqual(len(solution), 6)
            self.assertGreaterEqual(self.evaluator.evaluate(solution), 0)

    def test_create_initial_has_no_duplicates(self):
        """Test no two initial members are bit-for-bit identical."""
        population = self.manager.create_initial(self.problem.item_count)

        distinct = {tuple(solution.tolist()) for solution in population}
        self.assertEqual(len(distinct), len(population))

    def test_create_initial_without_repair(self):
        """Test rejection-only initialization still yields a valid population."""
        manager = PopulationManager(self.evaluator, population_size=8, rng=self.rng, repair=False)
        population = manager.create_initial(self.problem.item_count)

        self.assertEqual(len(population), 8)
        for solution in population:
            self.assertTrue(self.evaluator.is_feasible(solution))

    def test_create_initial_is_reproducible(self):
        """Test equal seeds give equal populations."""
        first = PopulationManager(self.evaluator, 6, np.random.default_rng(7)).create_initial(6)
        second = PopulationManager(self.evaluator, 6, np.random.default_rng(7)).create_initial(6)

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_create_initial_bounded_when_too_few_distinct_solutions(self):
        """Test initialization terminates when the population cannot be duplicate-free."""
        # Only the empty selection fits
        problem = Problem(profits=[5, 7], constraints=[Constraint(bag_limit=1, weights=[3, 4])])
        evaluator = Evaluator(problem)

        for repair in (True, False):
            manager = PopulationManager(
                evaluator, population_size=3, rng=np.random.default_rng(1),
                repair=repair, max_attempts=20
            )
            with self.assertLogs('mknap_ga.population', level='WARNING'):
                population = manager.create_initial(2)

            self.assertEqual(len(population), 3)
            for solution in population:
                np.testing.assert_array_equal(solution, [0, 0])

    def test_is_valid_and_not_double(self):
        """Test validity combines feasibility and duplicate rejection."""
        member = np.array([1, 0, 0, 0, 0, 0], dtype=np.int8)
        population = [member]

        self.assertTrue(self.manager.is_valid_and_not_double(
            np.array([0, 1, 0, 0, 0, 0], dtype=np.int8), population
        ))
        # Same bits, different array
        self.assertFalse(self.manager.is_valid_and_not_double(member.copy(), population))
        # Infeasible
        self.assertFalse(self.manager.is_valid_and_not_double(np.ones(6, dtype=np.int8), population))

    def test_contains_solution_compares_content(self):
        """Test membership is by content, not identity."""
        population = [np.array([0, 1], dtype=np.int8)]
        self.assertTrue(contains_solution(population, np.array([0, 1], dtype=np.int8)))
        self.assertFalse(contains_solution(population, np.array([1, 0], dtype=np.int8)))
        self.assertFalse(contains_solution([], np.array([1, 0], dtype=np.int8)))


class TestReplaceWorst(unittest.TestCase):
    """Test worst-first survivor replacement."""

    def setUp(self):
        """Set up a manager and a labelled population."""
        problem = Problem(profits=[1, 1, 1], constraints=[Constraint(3, [1, 1, 1])])
        self.manager = PopulationManager(Evaluator(problem), 4, np.random.default_rng(0))
        self.population = [np.full(3, i, dtype=np.int8) for i in range(4)]

    def labels(self, population):
        return [int(solution[0]) for solution in population]

    def test_replaces_lowest_fitness_first(self):
        """Test the lowest-fitness slots are overwritten."""
        fitnesses = [5, 1, 3, 2]
        offsprings = [np.full(3, 7, dtype=np.int8), np.full(3, 8, dtype=np.int8)]

        self.manager.replace_worst(self.population, fitnesses, offsprings)

        self.assertEqual(self.labels(self.population), [0, 7, 2, 8])

    def test_ties_replace_earliest_index_first(self):
        """Test equal fitness is replaced in original index order."""
        fitnesses = [4, 1, 4, 1]
        offsprings = [np.full(3, 7, dtype=np.int8), np.full(3, 8, dtype=np.int8),
                      np.full(3, 9, dtype=np.int8)]

        self.manager.replace_worst(self.population, fitnesses, offsprings)

        self.assertEqual(self.labels(self.population), [9, 7, 2, 8])

    def test_size_unchanged_and_excess_offspring_dropped(self):
        """Test at most len(population) offspring are placed, in their original order."""
        fitnesses = [3, 2, 1, 0]
        offsprings = [np.full(3, 10 + k, dtype=np.int8) for k in range(6)]

        self.manager.replace_worst(self.population, fitnesses, offsprings)

        self.assertEqual(len(self.population), 4)
        self.assertEqual(self.labels(self.population), [13, 12, 11, 10])

    def test_no_offspring_leaves_population(self):
        """Test an empty offspring batch changes nothing."""
        self.manager.replace_worst(self.population, [1, 2, 3, 4], [])
        self.assertEqual(self.labels(self.population), [0, 1, 2, 3])

    def test_replaced_count_is_min_of_sizes(self):
        """Test exactly min(len(offsprings), len(population)) members change."""
        for count in range(0, 7):
            population = [np.full(3, i, dtype=np.int8) for i in range(4)]
            offsprings = [np.full(3, 20 + k, dtype=np.int8) for k in range(count)]

            self.manager.replace_worst(population, [0, 1, 2, 3], offsprings)

            changed = sum(1 for label in self.labels(population) if label >= 20)
            self.assertEqual(changed, min(count, 4))


if __name__ == '__main__':
    unittest.main()
