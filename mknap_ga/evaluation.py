"""
Solution evaluation for the knapsack genetic algorithm.

Scores a binary solution against a bound problem: total profit when every
capacity constraint holds, INFEASIBLE otherwise.
"""

import numpy as np

from .data_models import Problem

INFEASIBLE = -1


class Evaluator:
    """
    Pure scoring function bound to one problem.

    The problem is converted to numpy arrays once; evaluate() keeps no other
    state, so it can be called from several places at once.
    """

    def __init__(self, problem: Problem):
        self.problem = problem
        self.profits = np.asarray(problem.profits, dtype=float)
        self.weights = np.asarray(
            [c.weights for c in problem.constraints], dtype=float
        ).reshape(len(problem.constraints), problem.item_count)
        self.bag_limits = np.asarray(
            [c.bag_limit for c in problem.constraints], dtype=float
        )

    @property
    def item_count(self) -> int:
        return self.problem.item_count

    def total_profit(self, solution: np.ndarray) -> float:
        return float(self.profits @ solution)

    def total_weights(self, solution: np.ndarray) -> np.ndarray:
        """
        Load of each constraint for the given selection.

        Args:
            solution: Binary vector of length item_count

        Returns:
            Array with one total weight per constraint
        """
        return self.weights @ solution

    def evaluate(self, solution: np.ndarray) -> float:
        """
        Compute the fitness of a solution.

        Args:
            solution: Binary vector of length item_count

        Returns:
            Total profit of the selected items, or INFEASIBLE (-1) if any
            constraint's selected weight exceeds its bag limit
        """
        profit = self.total_profit(solution)

        for weights, limit in zip(self.weights, self.bag_limits):
            if weights @ solution > limit:
                return INFEASIBLE

        return profit

    def is_feasible(self, solution: np.ndarray) -> bool:
        return self.evaluate(solution) >= 0
