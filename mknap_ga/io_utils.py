"""
I/O utilities for the knapsack genetic algorithm.

Handles OR-Library problem parsing, YAML configuration loading, and
export of fitness histories and solve results.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Union
from datetime import datetime

import yaml

from .data_models import Problem, Constraint, FitnessHistory, SolveResult, GAParams

logger = logging.getLogger(__name__)


class ProblemFormatError(ValueError):
    """Raised when problem text does not follow the OR-Library layout."""
    pass


def _to_number(token: str) -> Union[int, float]:
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise ProblemFormatError(f"Expected a number, got: {token!r}")


def _to_count(token: str, position: int, what: str) -> int:
    if not token.isdigit():
        raise ProblemFormatError(
            f"Expected a non-negative integer for {what} at position {position}, got: {token!r}"
        )
    return int(token)


def parse_orlib_problems(text: str) -> list[Problem]:
    """
    Parse problems in the OR-Library multi-dimensional knapsack format.

    Format (whitespace separated):
        K                      number of problems
        then for each problem:
        n m optimal            items, constraints, best known profit
        p_1 ... p_n            profits
        w_11 ... w_1n          weights of constraint 1
        ...
        w_m1 ... w_mn          weights of constraint m
        b_1 ... b_m            capacities

    Args:
        text: File contents

    Returns:
        List of Problem objects (empty for blank input)

    Raises:
        ProblemFormatError: If a token is not numeric, a count is not a
            non-negative integer, or the input ends early
    """
    tokens = text.split()
    if not tokens:
        return []

    position = 0

    def take(count: int, what: str) -> list:
        nonlocal position
        if count < 0:
            raise ProblemFormatError(f"Negative token count {count} while reading {what}")
        if position + count > len(tokens):
            raise ProblemFormatError(
                f"Unexpected end of input while reading {what} "
                f"(needed {count} tokens at position {position}, {len(tokens) - position} left)"
            )
        values = [_to_number(t) for t in tokens[position:position + count]]
        position += count
        return values

    def take_count(what: str) -> int:
        nonlocal position
        if position >= len(tokens):
            raise ProblemFormatError(f"Unexpected end of input while reading {what}")
        count = _to_count(tokens[position], position, what)
        position += 1
        return count

    num_problems = take_count("problem count")
    problems = []

    for index in range(num_problems):
        num_items = take_count(f"item count of problem {index}")
        num_constraints = take_count(f"constraint count of problem {index}")
        (optimal,) = take(1, f"optimum of problem {index}")

        profits = take(num_items, f"profits of problem {index}")
        weight_rows = [
            take(num_items, f"weights {k} of problem {index}")
            for k in range(num_constraints)
        ]
        bag_limits = take(num_constraints, f"capacities of problem {index}")

        problems.append(Problem(
            profits=profits,
            constraints=[
                Constraint(bag_limit=limit, weights=weights)
                for limit, weights in zip(bag_limits, weight_rows)
            ],
            optimal=optimal
        ))

    if position < len(tokens):
        logger.warning("Ignoring %d trailing tokens after %d problems",
                       len(tokens) - position, len(problems))

    return problems


def load_problems(path: Union[str, Path]) -> list[Problem]:
    """
    Load all problems from an OR-Library file.

    Args:
        path: Path to problem file

    Returns:
        List of Problem objects

    Raises:
        FileNotFoundError: If the file doesn't exist
        ProblemFormatError: If the file is malformed
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Problem file not found: {path}")

    with open(path, 'r') as f:
        problems = parse_orlib_problems(f.read())

    logger.info("Parsed %d problems from %s", len(problems), path)
    return problems


def load_config(config_path: Union[str, Path]) -> dict:
    """
    Load a YAML configuration file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    return config


def prepare_output_dir(root: Union[str, Path], overwrite: bool = False) -> Path:
    """
    Create the output directory of a run.

    Raises:
        FileExistsError: If the directory exists and overwrite=False
    """
    root = Path(root)

    if root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    root.mkdir(parents=True, exist_ok=overwrite)
    return root


def save_fitness_history(
    history: FitnessHistory,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save per-generation statistics to CSV.

    Args:
        history: Statistics collected during the run
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['generation', 'best_fitness', 'average_fitness'])
        for stats in history.rows():
            writer.writerow([stats.generation, stats.best_fitness, stats.average_fitness])

    return output_path


def load_fitness_history(csv_path: Union[str, Path]) -> FitnessHistory:
    """
    Read a CSV written by save_fitness_history().

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If the header is wrong
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    history = FitnessHistory()
    with open(csv_path, 'r') as f:
        reader = csv.DictReader(f)

        required = {'generation', 'best_fitness', 'average_fitness'}
        if not required.issubset(set(reader.fieldnames or [])):
            raise ValueError(f"Invalid history format in {csv_path}. Expected columns: {sorted(required)}")

        for row in reader:
            history.generations.append(int(row['generation']))
            history.best_fitness.append(float(row['best_fitness']))
            history.average_fitness.append(float(row['average_fitness']))

    return history


def save_result(
    result: SolveResult,
    output_path: Union[str, Path],
    params: Optional[GAParams] = None,
    metadata: Optional[dict] = None,
    overwrite: bool = False
) -> Path:
    """
    Save a solve result to a YAML file.

    Args:
        result: Result to save
        output_path: Path for output YAML
        params: Run parameters to record alongside the result
        metadata: Extra keys (problem file, problem index, ...)
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved YAML file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Result file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    document = {'result': result.to_dict()}
    if params is not None:
        document['parameters'] = params.to_dict()
    if metadata:
        document['metadata'] = metadata
    document['saved_at'] = datetime.now().isoformat()

    with open(output_path, 'w') as f:
        yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)

    return output_path
