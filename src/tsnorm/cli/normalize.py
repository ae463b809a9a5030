"""
tsnorm normalize command - Trim and normalize a feature matrix.

Usage:
    tsnorm normalize --input HCTSA.mat
    tsnorm normalize --input HCTSA.mat --norm-function zscore --filter-options 0.8 0.9
    tsnorm normalize --config normalize.yaml --class-var-filter
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from tsnorm.cli._validators import _non_negative_int, _unit_interval
from tsnorm.core.exceptions import TsNormError
from tsnorm.core.options import (
    DEFAULT_INPUT,
    DEFAULT_NORM_FUNCTION,
    FilterOptions,
    NormalizeOptions,
)
from tsnorm.io.loaders import load_dataset
from tsnorm.io.writers import save_normalized, write_csv_matrix, write_metadata
from tsnorm.pipeline import NormalizationPipeline, normalized_output_path
from tsnorm.utils.fileio import atomic_write_json


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the normalize subcommand."""
    parser = subparsers.add_parser(
        "normalize",
        help="Trim and normalize a time-series feature matrix",
        description="Remove poor-quality time series and operations, then normalize "
                    "each operation column-wise"
    )

    # Configuration file support
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="Path to YAML/JSON config file (optional, CLI args override config values)")

    parser.add_argument("--input", "-i", type=Path, default=Path(DEFAULT_INPUT),
                        help=f"Input .mat dataset (default: {DEFAULT_INPUT})")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Output .mat file (default: input name with _N.mat suffix)")
    parser.add_argument("--norm-function", "-n", default=DEFAULT_NORM_FUNCTION,
                        help=f"Normalization method (default: {DEFAULT_NORM_FUNCTION}); "
                             "see 'tsnorm methods'")
    parser.add_argument("--filter-options", nargs=2, type=_unit_interval,
                        metavar=("ROW", "COL"), default=FilterOptions().as_list(),
                        help="Minimum proportion of good values for time series (ROW) and "
                             "operations (COL) to be kept (default: 0.70 1.0)")
    parser.add_argument("--class-var-filter", action="store_true", default=False,
                        help="Also remove operations that are constant within any class "
                             "(requires a Group column in TimeSeries)")
    parser.add_argument("--rows", nargs="+", type=_non_negative_int, default=None,
                        help="0-based time-series positions to keep before filtering")
    parser.add_argument("--columns", nargs="+", type=_non_negative_int, default=None,
                        help="0-based operation positions to keep before filtering")
    parser.add_argument("--export-csv", type=Path, default=None,
                        help="Also export data/quality/metadata CSVs to this base path")
    parser.add_argument("--summary-json", type=Path, default=None,
                        help="Write a JSON summary of every pipeline stage to this path")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    parser.set_defaults(func=run_normalize)


def _summary(args: argparse.Namespace, output: Path, pipeline: NormalizationPipeline, result) -> dict:
    return {
        'input': str(args.input),
        'output': str(output),
        'norm_function': result.normalization_info.norm_function,
        'filter_options': result.normalization_info.filter_options.as_list(),
        'class_var_filter': bool(args.class_var_filter),
        'code_to_run': result.normalization_info.code_to_run,
        'stages': [
            {
                'stage': record.stage.value,
                'n_time_series': record.shape[0],
                'n_operations': record.shape[1],
            }
            for record in pipeline.history
        ],
        'final_shape': list(result.matrix.shape),
    }


def run_normalize(args: argparse.Namespace) -> int:
    """Execute the normalize command."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    logger = logging.getLogger(__name__)

    # Load and merge config file if provided
    if args.config:
        from tsnorm.cli.config import load_config, merge_config_with_args, validate_config

        logger.info(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
            validate_config(config)

            # Raw CLI args, to detect explicit overrides
            cli_args = getattr(args, 'argv', None)
            if cli_args is None:
                cli_args = sys.argv[2:]  # Skip 'tsnorm normalize'

            args = merge_config_with_args(config, args, cli_args)
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Config file error: {e}")
            return 1

    start_time = datetime.now()
    output = args.output if args.output is not None else normalized_output_path(args.input)

    try:
        options = NormalizeOptions(
            norm_function=args.norm_function,
            filter_options=FilterOptions.from_sequence(args.filter_options),
            input=str(args.input),
            class_var_filter=args.class_var_filter,
            row_subset=args.rows,
            column_subset=args.columns,
        )
        pipeline = NormalizationPipeline(options, logger=logger)

        dataset = load_dataset(args.input)
        result = pipeline.run(dataset)

        logger.info(f"Saving the trimmed, normalized data to {output}...")
        save_normalized(result, output)

        if args.export_csv:
            write_csv_matrix(result.matrix, args.export_csv)
            write_metadata(result.matrix, args.export_csv)

        if args.summary_json:
            atomic_write_json(args.summary_json, _summary(args, output, pipeline, result))
            logger.info(f"Wrote stage summary to {args.summary_json}")
    except TsNormError as e:
        logger.error(f"Normalization failed: {e}")
        return 1
    except (FileNotFoundError, ValueError, OSError) as e:
        logger.error(f"ERROR: {e}")
        return 1

    elapsed = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"Done. {result.matrix.n_time_series} time series x {result.matrix.n_operations} "
        f"operations written in {elapsed:.1f}s"
    )
    return 0
