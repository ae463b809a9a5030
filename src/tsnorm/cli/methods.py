"""
tsnorm methods command - List available normalization methods.

Usage:
    tsnorm methods
"""

import argparse

from tsnorm.core.options import DEFAULT_NORM_FUNCTION
from tsnorm.stats.normalization import available_strategies, get_strategy


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the methods subcommand."""
    parser = subparsers.add_parser(
        "methods",
        help="List available normalization methods",
        description="List every registered normalization method",
    )
    parser.set_defaults(func=run_methods)


def run_methods(args: argparse.Namespace) -> int:
    """Print registered normalization methods, one per line."""
    names = available_strategies()
    width = max(len(name) for name in names)
    for name in names:
        strategy = get_strategy(name)
        marker = " (default)" if name == DEFAULT_NORM_FUNCTION else ""
        print(f"  {name:<{width}}  {strategy.description}{marker}")
    return 0
