"""
Genetic algorithm solver for the multi-dimensional 0/1 knapsack problem.

Selects items maximizing total profit subject to several independent
capacity constraints, using a generational genetic algorithm with
roulette-wheel selection, uniform crossover, bit-flip mutation and
worst-first survivor replacement.

Modules:
- data_models: Core data structures (Problem, Constraint, GAParams, SolveResult)
- evaluation: Profit and feasibility scoring
- population: Initial population, repair and survivor replacement
- selection: Fitness-proportional parent selection
- crossover: Uniform crossover
- mutation: Bit-flip mutation (optionally greedy)
- reproduction: Offspring generation for one generation
- controller: GeneticSolver solve loop
- io_utils: OR-Library parsing, config loading, result export
- visualization_utils: Fitness-curve plots
- cli / orchestration: YAML-driven run modes
"""

__version__ = "0.1.0"

from .data_models import Problem, Constraint, GAParams, GenerationStats, FitnessHistory, SolveResult
from .evaluation import Evaluator, INFEASIBLE
from .controller import GeneticSolver

__all__ = [
    "Problem",
    "Constraint",
    "GAParams",
    "GenerationStats",
    "FitnessHistory",
    "SolveResult",
    "Evaluator",
    "INFEASIBLE",
    "GeneticSolver",
]
