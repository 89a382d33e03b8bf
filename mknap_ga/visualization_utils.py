"""
Visualization utilities for the knapsack genetic algorithm.

Plots the fittest and average fitness per generation against the known
optimum of the problem.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

import matplotlib.pyplot as plt

from .data_models import FitnessHistory, GAParams, SolveResult


def describe_run(result: SolveResult, params: GAParams, item_count: int,
                 problem_index: Optional[int] = None) -> str:
    """One-line summary of a run, used as plot subtitle and console output."""
    parts = []
    if problem_index is not None:
        parts.append(f"problem: {problem_index}")
    parts.extend([
        f"variables: {item_count}",
        f"result: {result.best_fitness:g} (optimal: {result.optimal:g})",
        f"time: {result.elapsed_time:.0f} ms",
        f"generations: {params.generations_limit}",
        f"population: {params.population_size}",
        f"mutation: {params.mutate_probability}",
        f"crossover: {params.crossover_probability}",
        f"offsprings: {params.offsprings_proportion}",
    ])
    return " | ".join(parts)


def plot_fitness_history(
    history: FitnessHistory,
    optimal: float = 0,
    output_path: Optional[Union[str, Path]] = None,
    title: str = "Fitness per generation",
    subtitle: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6)
):
    """
    Plot best and average fitness per generation.

    Args:
        history: Statistics collected during the run
        optimal: Known optimum; drawn as a horizontal line when non-zero
        output_path: Optional path to save the figure (figure is closed after saving)
        title: Plot title
        subtitle: Optional run description shown under the title
        figsize: Figure size (width, height)

    Returns:
        The matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(history.generations, history.best_fitness, linewidth=1, label="fittest solution")
    ax.plot(history.generations, history.average_fitness, linewidth=1,
            label="average fitness of population")

    if optimal:
        ax.axhline(optimal, color="#3c763d", linewidth=1, linestyle="--", label="optimal solution")

    ax.set_xlabel("generation")
    ax.set_ylabel("fitness")
    ax.set_title(title if subtitle is None else f"{title}\n{subtitle}", fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="lower right")

    plt.tight_layout()

    if output_path:
        plt.savefig(str(output_path), dpi=150, bbox_inches='tight')
        plt.close(fig)
        print(f"  Saved plot: {output_path}")

    return fig
