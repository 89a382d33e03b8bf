"""
Orchestration module for the knapsack genetic algorithm.

Implements the single-problem and batch run workflows driven by a YAML
run configuration.
"""

import csv
import logging
from dataclasses import replace
from typing import Dict, List, Optional
from pathlib import Path

from .data_models import Problem, GAParams, GenerationStats, SolveResult
from .controller import GeneticSolver
from .io_utils import (
    load_problems,
    prepare_output_dir,
    save_fitness_history,
    save_result,
)
from .visualization_utils import plot_fitness_history, describe_run
from .cli import ConfigValidationError, build_params

logger = logging.getLogger(__name__)


def progress_printer(generations_limit: int, every: Optional[int] = None):
    """
    Build an on_generation callback printing progress roughly every 10%.

    Args:
        generations_limit: Total number of generations of the run
        every: Print interval in generations (default: limit // 10)

    Returns:
        Callback taking GenerationStats
    """
    interval = every or max(1, generations_limit // 10)

    def report(stats: GenerationStats) -> None:
        if stats.generation % interval == 0 or stats.generation == generations_limit:
            print(
                f"  Generation {stats.generation}/{generations_limit}: "
                f"best={stats.best_fitness:g} average={stats.average_fitness:.2f}"
            )

    return report


def solve_problem(
    problem: Problem,
    params: GAParams,
    output_root: Path,
    problem_index: int,
    plot: bool = True,
    overwrite: bool = False,
    metadata: Optional[Dict] = None
) -> SolveResult:
    """
    Solve one problem and write its outputs.

    Writes fitness_history.csv, result.yaml and (optionally)
    fitness_plot.png under output_root.

    Args:
        problem: Problem to solve
        params: Run parameters
        output_root: Existing directory for outputs
        problem_index: Index of the problem in its source file
        plot: Save a fitness plot
        overwrite: Overwrite existing output files
        metadata: Extra keys recorded in result.yaml

    Returns:
        SolveResult of the run
    """
    solver = GeneticSolver(params, log=logger.debug)
    result = solver.solve(problem, on_generation=progress_printer(params.generations_limit))

    history_path = save_fitness_history(
        result.history, output_root / 'fitness_history.csv', overwrite=overwrite
    )

    run_metadata = {'problem_index': problem_index, 'items': problem.item_count,
                    'constraints': len(problem.constraints)}
    run_metadata.update(metadata or {})
    result_path = save_result(
        result, output_root / 'result.yaml', params=params,
        metadata=run_metadata, overwrite=overwrite
    )

    description = describe_run(result, params, problem.item_count, problem_index)
    if plot:
        plot_fitness_history(
            result.history,
            optimal=problem.optimal,
            output_path=output_root / 'fitness_plot.png',
            title=f"Problem {problem_index}",
            subtitle=description
        )

    print(f"  {description}")
    print(f"  History: {history_path}")
    print(f"  Result: {result_path}")

    return result


def run_single_mode(run_config: Dict) -> SolveResult:
    """
    Solve one problem selected from a problem file.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Build GAParams from run_config['ga'] (seed from run_config['random_seed'])
        2. Load problems from run_config['problem_file']
        3. Pick run_config['problem_index'] (default 0)
        4. Create output directory: run_config['output']['root']
        5. Solve and write history, result and plot

    Returns:
        SolveResult of the run
    """
    print("=" * 70)
    print("SINGLE PROBLEM MODE")
    print("=" * 70)

    params = build_params(run_config)
    print(f"Random seed: {params.random_seed}")

    problem_file = run_config['problem_file']
    print(f"Loading problems from: {problem_file}")
    problems = load_problems(problem_file)

    problem_index = run_config.get('problem_index', 0)
    if problem_index >= len(problems):
        raise ConfigValidationError(
            f"'problem_index' {problem_index} out of range; "
            f"{problem_file} holds {len(problems)} problems"
        )
    problem = problems[problem_index]
    print(f"Problem {problem_index}: {problem.item_count} items, "
          f"{len(problem.constraints)} constraints, optimal {problem.optimal}")

    output_config = run_config['output']
    overwrite = output_config.get('overwrite', False)
    output_root = prepare_output_dir(output_config['root'], overwrite=overwrite)
    print(f"Output directory: {output_root}\n")

    result = solve_problem(
        problem, params, output_root, problem_index,
        plot=output_config.get('plot', True),
        overwrite=overwrite,
        metadata={'problem_file': str(problem_file)}
    )

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Best fitness: {result.best_fitness:g} (optimal: {result.optimal:g})")
    print(f"Selected items: {result.selected_items()}")
    print(f"Generations: {result.generations}")
    print(f"Total time: {result.elapsed_time:.1f} ms")

    return result


def run_batch_mode(run_config: Dict) -> List[SolveResult]:
    """
    Solve every problem in a problem file.

    Each problem gets its own output_root/problem_{i:03d}/ folder and a
    summary.csv row. When a random seed is configured, problem i is solved
    with seed + i.

    Args:
        run_config: Run configuration dict from YAML

    Returns:
        List of SolveResult, one per problem
    """
    print("=" * 70)
    print("BATCH MODE")
    print("=" * 70)

    params = build_params(run_config)
    print(f"Random seed: {params.random_seed}")

    problem_file = run_config['problem_file']
    print(f"Loading problems from: {problem_file}")
    problems = load_problems(problem_file)
    print(f"Loaded {len(problems)} problems")

    output_config = run_config['output']
    overwrite = output_config.get('overwrite', False)
    output_root = prepare_output_dir(output_config['root'], overwrite=overwrite)
    print(f"Output directory: {output_root}\n")

    results = []
    summary_rows = []

    for i, problem in enumerate(problems):
        print(f"Solving problem {i + 1}/{len(problems)}...")
        problem_params = params
        if params.random_seed is not None:
            problem_params = replace(params, random_seed=params.random_seed + i)

        problem_root = prepare_output_dir(output_root / f"problem_{i:03d}", overwrite=overwrite)
        result = solve_problem(
            problem, problem_params, problem_root, i,
            plot=output_config.get('plot', True),
            overwrite=overwrite,
            metadata={'problem_file': str(problem_file)}
        )
        results.append(result)
        summary_rows.append({
            'problem_index': i,
            'items': problem.item_count,
            'constraints': len(problem.constraints),
            'best_fitness': result.best_fitness,
            'optimal': result.optimal,
            'gap': '' if result.gap() is None else f"{result.gap():.6f}",
            'elapsed_time_ms': f"{result.elapsed_time:.1f}",
        })

    summary_path = output_root / 'summary.csv'
    with open(summary_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=list(summary_rows[0].keys()) if summary_rows else ['problem_index'])
        writer.writeheader()
        writer.writerows(summary_rows)

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Solved: {len(results)} problems")
    reached = sum(1 for r in results if r.optimal and r.best_fitness >= r.optimal)
    print(f"Reached known optimum: {reached}/{len(results)}")
    print(f"Summary: {summary_path}")

    return results
