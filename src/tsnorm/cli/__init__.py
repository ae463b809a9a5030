"""
tsnorm CLI - Command-line interface for trimming and normalizing feature matrices.

Commands:
    tsnorm normalize   - Remove poor-quality rows/columns, then normalize
    tsnorm methods     - List available normalization methods
"""

import argparse
import sys
from typing import List, Optional


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for tsnorm."""
    from tsnorm import __version__

    parser = argparse.ArgumentParser(
        prog="tsnorm",
        description="Trim and normalize time-series feature matrices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  normalize     Remove poor-quality time series/operations, then normalize
  methods       List available normalization methods

Examples:
  tsnorm normalize --input HCTSA.mat
  tsnorm normalize --input HCTSA.mat --norm-function zscore --filter-options 0.8 1
  tsnorm normalize --config normalize.yaml --export-csv results/HCTSA_N
  tsnorm methods
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Import and register subcommands
    from tsnorm.cli import methods, normalize
    normalize.register_parser(subparsers)
    methods.register_parser(subparsers)

    argv = list(sys.argv[1:] if args is None else args)
    parsed_args = parser.parse_args(argv)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Raw subcommand arguments, for config-file override detection
    parsed_args.argv = argv[1:]

    # Dispatch to subcommand
    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
