"""
CLI module for the knapsack genetic algorithm.

Handles run configuration loading, validation, and mode dispatching.
"""

from typing import Dict, Any
from pathlib import Path
import yaml

from .data_models import GAParams
from .io_utils import load_config


class ConfigValidationError(Exception):
    """Raised when run configuration is invalid."""
    pass


MODES = ['single', 'batch']


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    try:
        config = load_config(config_path)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration file must contain a mapping")

    return config


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    mode = config.get('mode', 'single')
    if mode not in MODES:
        raise ConfigValidationError(
            f"Invalid mode: '{mode}'. Must be one of {MODES}"
        )

    for field in ['problem_file', 'output']:
        if field not in config:
            raise ConfigValidationError(f"Missing required field: '{field}'")

    problem_file = Path(config['problem_file'])
    if not problem_file.exists():
        raise ConfigValidationError(f"Problem file not found: {problem_file}")

    if not isinstance(config['output'], dict):
        raise ConfigValidationError("'output' must be a dictionary")

    if 'root' not in config['output']:
        raise ConfigValidationError("Missing required field: 'output.root'")

    if mode == 'single':
        problem_index = config.get('problem_index', 0)
        if not isinstance(problem_index, int) or problem_index < 0:
            raise ConfigValidationError(
                f"'problem_index' must be a non-negative integer, got: {problem_index}"
            )

    seed = config.get('random_seed')
    if seed is not None and (not isinstance(seed, int) or seed < 0):
        raise ConfigValidationError(
            f"'random_seed' must be a non-negative integer, got: {seed}"
        )

    ga_section = config.get('ga', {})
    if not isinstance(ga_section, dict):
        raise ConfigValidationError("'ga' must be a dictionary")

    unknown = set(ga_section) - set(GAParams.__dataclass_fields__)
    if unknown:
        raise ConfigValidationError(f"Unknown 'ga' parameters: {sorted(unknown)}")

    try:
        build_params(config)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"Invalid 'ga' parameters: {e}")


def build_params(config: Dict[str, Any]) -> GAParams:
    """
    Create GAParams from the 'ga' section; a top-level random_seed wins
    over ga.random_seed.
    """
    section = dict(config.get('ga') or {})
    if config.get('random_seed') is not None:
        section['random_seed'] = config['random_seed']
    return GAParams.from_dict(section)


def run_from_config(config_path: str) -> None:
    """
    Load run configuration and execute appropriate mode.

    This is the main entry point called by ga_cli.py.

    Args:
        config_path: Path to run configuration YAML file

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
        Various exceptions from mode implementations
    """
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    print("Validating configuration...")
    validate_run_config(config)

    mode = config.get('mode', 'single')
    print(f"Mode: {mode}\n")

    if mode == 'single':
        from .orchestration import run_single_mode
        run_single_mode(config)
    elif mode == 'batch':
        from .orchestration import run_batch_mode
        run_batch_mode(config)
    else:
        # Should never reach here due to validation
        raise ConfigValidationError(f"Invalid mode: {mode}")

    print("\nRun completed successfully!")
