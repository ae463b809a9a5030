"""
Configuration file support for the tsnorm CLI.

Supports YAML and JSON config files with CLI argument override.

Example (``normalize.yaml``)::

    input: HCTSA.mat
    output: results/HCTSA_N.mat
    norm_function: scaledRobustSigmoid
    filter_options: [0.8, 1.0]
    class_var_filter: true
    subset:
      rows: [0, 1, 2, 3]
    export_csv: results/HCTSA_N
"""

import json
from argparse import Namespace
from numbers import Integral
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from tsnorm.core.exceptions import InvalidConfigurationError
from tsnorm.core.options import FilterOptions
from tsnorm.stats.normalization import get_strategy

KNOWN_KEYS = (
    'input',
    'output',
    'norm_function',
    'filter_options',
    'class_var_filter',
    'subset',
    'export_csv',
)

# Config key -> argparse destination
SIMPLE_MAPPINGS = {
    'input': 'input',
    'output': 'output',
    'norm_function': 'norm_function',
    'filter_options': 'filter_options',
    'class_var_filter': 'class_var_filter',
    'export_csv': 'export_csv',
}

PATH_ARGS = ('input', 'output', 'export_csv')

SHORT_TO_LONG = {
    'i': 'input',
    'o': 'output',
    'n': 'norm_function',
    'c': 'config',
    'v': 'verbose',
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("normalize.yaml"))
        >>> print(config['norm_function'])
        scaledRobustSigmoid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def _explicit_args(cli_args: Optional[List[str]]) -> set:
    """Argparse destinations the user set explicitly on the command line."""
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in SHORT_TO_LONG:
            explicit.add(SHORT_TO_LONG[arg[1]])
    return explicit


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


def merge_config_with_args(
    config: Dict[str, Any],
    args: Namespace,
    cli_args: Optional[List[str]] = None,
) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values

    Examples:
        >>> config = {"norm_function": "zscore", "input": "a.mat"}
        >>> args = parser.parse_args(["normalize", "--input", "b.mat"])
        >>> merged = merge_config_with_args(config, args, ["--input", "b.mat"])
        >>> merged.input, merged.norm_function
        (PosixPath('b.mat'), 'zscore')
    """
    explicit = _explicit_args(cli_args)
    merged = Namespace(**vars(args))

    for config_key, arg_name in SIMPLE_MAPPINGS.items():
        if config_key not in config:
            continue
        config_value = config[config_key]
        if config_value is not None and arg_name in PATH_ARGS:
            config_value = Path(config_value)
        if config_value is not None and arg_name == 'filter_options':
            config_value = [float(v) for v in config_value]
        setattr(
            merged,
            arg_name,
            _merge_value(getattr(merged, arg_name, None), config_value, arg_name in explicit),
        )

    subset = config.get('subset') or {}
    for axis in ('rows', 'columns'):
        if axis in subset:
            setattr(
                merged,
                axis,
                _merge_value(getattr(merged, axis, None), subset[axis], axis in explicit),
            )

    return merged


def _check_positions(value: Any, label: str) -> None:
    if value is None:
        return
    if not isinstance(value, list):
        raise InvalidConfigurationError(f"subset.{label} must be a list of positions")
    bad = [v for v in value if isinstance(v, bool) or not isinstance(v, Integral) or v < 0]
    if bad:
        raise InvalidConfigurationError(
            f"subset.{label} must contain non-negative integer positions, got {bad[:5]}"
        )


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Performs basic validation:
    - No unknown keys
    - Known normalization method
    - Filter thresholds as a [row, column] pair in [0, 1]
    - Subset positions as lists of non-negative integers

    Parameters:
        config: Configuration dictionary

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    unknown = sorted(set(config) - set(KNOWN_KEYS))
    if unknown:
        raise InvalidConfigurationError(
            f"Unknown config keys: {', '.join(unknown)}. "
            f"Valid keys: {', '.join(KNOWN_KEYS)}"
        )

    if config.get('norm_function') is not None:
        get_strategy(config['norm_function'])

    if config.get('filter_options') is not None:
        filter_options = config['filter_options']
        if not isinstance(filter_options, (list, tuple)):
            raise InvalidConfigurationError(
                f"filter_options must be a [row, column] list, got: {filter_options!r}"
            )
        FilterOptions.from_sequence(filter_options).validate()

    if 'class_var_filter' in config and not isinstance(config['class_var_filter'], bool):
        raise InvalidConfigurationError(
            f"class_var_filter must be true or false, got: {config['class_var_filter']!r}"
        )

    subset = config.get('subset')
    if subset is not None:
        if not isinstance(subset, dict):
            raise InvalidConfigurationError("subset must be a mapping with 'rows' and/or 'columns'")
        extra = sorted(set(subset) - {'rows', 'columns'})
        if extra:
            raise InvalidConfigurationError(f"Unknown subset keys: {', '.join(extra)}")
        _check_positions(subset.get('rows'), 'rows')
        _check_positions(subset.get('columns'), 'columns')
