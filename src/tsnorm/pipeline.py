"""
Trim-and-normalize pipeline for feature matrices.

Sequences every stage between raw feature extraction and analysis:

    Load -> Subset (optional) -> Mask -> FilterRows -> FilterColumns
         -> FilterGlobalConstant -> FilterClassConstant (optional)
         -> Normalize -> FilterPostTransformAllMissing
         -> FilterPostTransformConstant -> Assemble

Stages run strictly in this order and never go back. Each one either
returns a (possibly smaller) FeatureMatrix or raises a TsNormError, which
aborts the whole run: nothing is saved from a failed run.

Examples:
    >>> from tsnorm.pipeline import trim_and_normalize
    >>>
    >>> # Load HCTSA.mat, trim, normalize and save HCTSA_N.mat
    >>> output_path = trim_and_normalize("HCTSA.mat")
    >>>
    >>> # Keep the result in memory instead
    >>> result = trim_and_normalize(dataset, norm_function="zscore",
    ...                             filter_options=[0.8, 0.9], save=False)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from tsnorm.core.dataset import (
    FeatureDataset,
    NormalizationInfo,
    NormalizedDataset,
    assemble_result,
)
from tsnorm.core.exceptions import InsufficientDataError, InvalidConfigurationError
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.options import (
    DEFAULT_INPUT,
    DEFAULT_NORM_FUNCTION,
    FilterOptions,
    NormalizeOptions,
)
from tsnorm.quality.degeneracy import (
    AllMissingColumnFilter,
    ClassConstantColumnFilter,
    ConstantColumnFilter,
)
from tsnorm.quality.filtering import MissingValueFilter
from tsnorm.quality.masking import QualityMasker, log_good_value_ranges
from tsnorm.stats.normalization import Normalizer

logger = logging.getLogger(__name__)

__all__ = [
    'PipelineStage',
    'StageRecord',
    'NormalizationPipeline',
    'subset_matrix',
    'normalized_output_path',
    'trim_and_normalize',
]


class PipelineStage(Enum):
    """Pipeline stages, in execution order."""

    LOAD = "load"
    SUBSET = "subset"
    MASK = "mask"
    FILTER_ROWS = "filter_rows"
    FILTER_COLUMNS = "filter_columns"
    FILTER_GLOBAL_CONSTANT = "filter_global_constant"
    FILTER_CLASS_CONSTANT = "filter_class_constant"
    NORMALIZE = "normalize"
    FILTER_POST_TRANSFORM_ALL_MISSING = "filter_post_transform_all_missing"
    FILTER_POST_TRANSFORM_CONSTANT = "filter_post_transform_constant"
    ASSEMBLE = "assemble"


@dataclass(frozen=True)
class StageRecord:
    """A completed stage and the matrix shape it produced."""

    stage: PipelineStage
    shape: tuple[int, int]


def _check_positions(positions: Sequence[int], size: int, label: str) -> np.ndarray:
    positions = np.asarray(positions, dtype=np.intp)
    out_of_range = positions[(positions < 0) | (positions >= size)]
    if out_of_range.size:
        raise InvalidConfigurationError(
            f"{label} subset contains positions outside 0..{size - 1}: "
            f"{out_of_range[:5].tolist()}",
            stage=PipelineStage.SUBSET.value,
        )
    unique, counts = np.unique(positions, return_counts=True)
    if (counts > 1).any():
        raise InvalidConfigurationError(
            f"{label} subset contains duplicate positions: {unique[counts > 1][:5].tolist()}",
            stage=PipelineStage.SUBSET.value,
        )
    return positions


def subset_matrix(
    matrix: FeatureMatrix,
    rows: Optional[Sequence[int]] = None,
    columns: Optional[Sequence[int]] = None,
    logger: logging.Logger = logger,
) -> FeatureMatrix:
    """
    Keep only the given time-series and operation positions.

    Positions are 0-based and applied in the order given. None or an empty
    list leaves that axis untouched.

    Raises:
        InvalidConfigurationError: If positions are out of range or repeated
    """
    if rows is not None and len(rows):
        keep = _check_positions(rows, matrix.n_time_series, "Row")
        logger.info(
            f"Filtered down time series by given subset; from {matrix.n_time_series} "
            f"to {len(keep)}."
        )
        matrix = matrix.select_rows(keep)

    if columns is not None and len(columns):
        keep = _check_positions(columns, matrix.n_operations, "Column")
        logger.info(
            f"Filtered down operations by given subset; from {matrix.n_operations} "
            f"to {len(keep)}."
        )
        matrix = matrix.select_columns(keep)

    return matrix


def normalized_output_path(path: Union[str, Path]) -> Path:
    """Output file for a dataset: ``HCTSA.mat`` -> ``HCTSA_N.mat``."""
    path = Path(path)
    return path.with_name(f"{path.stem}_N.mat")


def _log_missing_summary(matrix: FeatureMatrix, logger: logging.Logger, when: str) -> None:
    n_nan = int(matrix.missing_mask().sum())
    pct = 100 * n_nan / matrix.data.size if matrix.data.size else 0.0
    logger.info(
        f"({when}): {n_nan} special-valued entries ({pct:4.2f}%) remain in the "
        f"{matrix.n_time_series}x{matrix.n_operations} data matrix."
    )
    if n_nan:
        log_good_value_ranges(matrix.data, logger, when)


class NormalizationPipeline:
    """
    Run every trimming and normalization stage on a FeatureDataset.

    Attributes:
        options: Validated run configuration
        logger: Diagnostic sink threaded through every stage
        history: Stages completed by the last run, with resulting shapes

    Examples:
        >>> pipeline = NormalizationPipeline(NormalizeOptions(class_var_filter=True))
        >>> result = pipeline.run(dataset)
        >>> [record.stage.value for record in pipeline.history][:3]
        ['load', 'subset', 'mask']
    """

    def __init__(
        self,
        options: Optional[NormalizeOptions] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.options = options or NormalizeOptions()
        self.options.validate()
        self.logger = logger or logging.getLogger(__name__)
        self.history: list[StageRecord] = []

    def _record(self, stage: PipelineStage, matrix: FeatureMatrix) -> None:
        self.history.append(StageRecord(stage=stage, shape=matrix.shape))
        self.logger.debug(f"Stage {stage.value} done: {matrix.shape}")

    def run(self, dataset: FeatureDataset) -> NormalizedDataset:
        """
        Trim and normalize ``dataset``.

        Returns:
            NormalizedDataset ready for saving

        Raises:
            InvalidConfigurationError: Bad subset positions
            AllRemovedError: A missing-value threshold removed everything
            AllDegenerateError: Every operation is constant
            InsufficientDataError: Fewer than two time series before normalizing
            AllColumnsInvalidError: Normalization left every column NaN
        """
        options = self.options
        filter_options = options.filter_options
        log = self.logger
        self.history = []

        log.info(
            f"Removing time series with more than {(1 - filter_options.row_threshold) * 100:.2f}% "
            f"special-valued outputs"
        )
        log.info(
            f"Removing operations with more than {(1 - filter_options.column_threshold) * 100:.2f}% "
            f"special-valued outputs"
        )

        matrix = dataset.matrix
        self._record(PipelineStage.LOAD, matrix)

        matrix = subset_matrix(matrix, options.row_subset, options.column_subset, log)
        self._record(PipelineStage.SUBSET, matrix)

        matrix = QualityMasker(logger=log).apply(matrix)
        self._record(PipelineStage.MASK, matrix)

        matrix = MissingValueFilter(
            filter_options.row_threshold, axis="time_series", logger=log
        ).apply(matrix)
        self._record(PipelineStage.FILTER_ROWS, matrix)

        matrix = MissingValueFilter(
            filter_options.column_threshold, axis="operations", logger=log
        ).apply(matrix)
        self._record(PipelineStage.FILTER_COLUMNS, matrix)

        matrix = ConstantColumnFilter(stage="pre-transform", logger=log).apply(matrix)
        self._record(PipelineStage.FILTER_GLOBAL_CONSTANT, matrix)

        if options.class_var_filter:
            matrix = ClassConstantColumnFilter(logger=log).apply(matrix)
            self._record(PipelineStage.FILTER_CLASS_CONSTANT, matrix)

        if matrix.n_time_series < 2:
            raise InsufficientDataError(
                "Only a single time series remains in the dataset; normalization cannot be applied",
                required=2,
                available=matrix.n_time_series,
                stage=PipelineStage.NORMALIZE.value,
            )

        _log_missing_summary(matrix, log, "post-filtering")

        normalizer = Normalizer(options.norm_function, logger=log)
        matrix = normalizer.apply(matrix)
        self._record(PipelineStage.NORMALIZE, matrix)

        matrix = AllMissingColumnFilter(normalizer.strategy.name, logger=log).apply(matrix)
        self._record(PipelineStage.FILTER_POST_TRANSFORM_ALL_MISSING, matrix)

        matrix = ConstantColumnFilter(stage="post-transform", logger=log).apply(matrix)
        self._record(PipelineStage.FILTER_POST_TRANSFORM_CONSTANT, matrix)

        _log_missing_summary(matrix, log, "post-normalization")

        info = NormalizationInfo.create(normalizer.strategy.name, filter_options)
        result = assemble_result(matrix, dataset, info)
        self._record(PipelineStage.ASSEMBLE, matrix)
        return result


def trim_and_normalize(
    dataset: Union[FeatureDataset, str, Path] = DEFAULT_INPUT,
    norm_function: str = DEFAULT_NORM_FUNCTION,
    filter_options: Union[FilterOptions, Sequence[float], None] = None,
    class_var_filter: bool = False,
    subset: Optional[tuple[Optional[Sequence[int]], Optional[Sequence[int]]]] = None,
    logger: Optional[logging.Logger] = None,
    save: bool = True,
    output: Union[str, Path, None] = None,
) -> Union[Path, NormalizedDataset]:
    """
    Trim and normalize a dataset in one call.

    Options are validated before the dataset is loaded.

    Args:
        dataset: Loaded FeatureDataset or path of a ``.mat`` file
        norm_function: Registered normalization strategy name
        filter_options: ``[row, column]`` minimum good-value fractions
            (default ``[0.70, 1.0]``)
        class_var_filter: Also remove operations constant within a class
        subset: ``(rows, columns)`` 0-based positions to keep first
        logger: Diagnostic sink
        save: Write the result to disk and return its path; otherwise return
            the NormalizedDataset
        output: Output path (default: input name with ``_N.mat`` suffix)

    Returns:
        Output path if ``save``, else the NormalizedDataset
    """
    from tsnorm.io.loaders import load_dataset
    from tsnorm.io.writers import save_normalized

    if filter_options is None:
        filter_options = FilterOptions()
    elif not isinstance(filter_options, FilterOptions):
        filter_options = FilterOptions.from_sequence(filter_options)

    rows, columns = subset if subset is not None else (None, None)
    options = NormalizeOptions(
        norm_function=norm_function,
        filter_options=filter_options,
        input=str(dataset) if not isinstance(dataset, FeatureDataset) else str(dataset.source or DEFAULT_INPUT),
        class_var_filter=class_var_filter,
        row_subset=list(rows) if rows is not None else None,
        column_subset=list(columns) if columns is not None else None,
    )
    pipeline = NormalizationPipeline(options, logger=logger)
    log = pipeline.logger

    if not isinstance(dataset, FeatureDataset):
        dataset = load_dataset(Path(dataset))

    result = pipeline.run(dataset)
    if not save:
        return result

    output_path = Path(output) if output is not None else normalized_output_path(options.input)
    log.info(f"Saving the trimmed, normalized data to {output_path}...")
    save_normalized(result, output_path)
    log.info("Done.")
    return output_path
