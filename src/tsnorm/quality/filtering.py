"""
Missing-value threshold filtering for feature matrices.

Removes time series (rows) and operations (columns) with too few good values.
Implements the Transform interface for composable pipelines.

Engineering Design:
    - One row-oriented computation: columns are filtered by applying the same
      function to the transposed matrix
    - Boundary inclusive: a row whose good-value fraction equals the
      threshold is kept
    - Rows must be filtered before columns, so that column statistics are
      computed only on time series that survive
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

import numpy as np

from tsnorm.core.exceptions import AllRemovedError
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.transform import Transform

logger = logging.getLogger(__name__)

__all__ = ['filter_missing', 'MissingValueFilter']


def filter_missing(
    values: np.ndarray,
    threshold: float,
    label: str,
    logger: logging.Logger = logger,
) -> np.ndarray:
    """
    Compute which rows have at least ``threshold`` fraction of good values.

    Args:
        values: 2D array; NaN marks a missing value
        threshold: Minimum fraction of non-missing values, in [0, 1].
            A threshold of 0 keeps every row without inspecting it.
        label: What the rows are, for messages (e.g. "time series")
        logger: Diagnostic sink

    Returns:
        Boolean keep-mask with one entry per row

    Raises:
        AllRemovedError: If no row meets the threshold
    """
    n_rows = values.shape[0]
    if threshold == 0:
        return np.ones(n_rows, dtype=bool)

    if values.shape[1] == 0:
        good_fraction = np.zeros(n_rows)
    else:
        good_fraction = 1 - np.mean(np.isnan(values), axis=1)
    keep = good_fraction >= threshold

    if not keep.any():
        raise AllRemovedError(
            f"No {label} had more than {threshold * 100:4.2f}% good values. "
            f"Set a more lenient threshold.",
            stage=f"filter {label}",
        )

    if keep.all():
        logger.info(
            f"All {n_rows} {label} have at least {threshold * 100:4.2f}% good values. "
            f"Keeping them all."
        )
    else:
        logger.info(
            f"Removing {int((~keep).sum())} {label} with fewer than {threshold * 100:4.2f}% "
            f"good values: from {n_rows} to {int(keep.sum())}."
        )
    return keep


class MissingValueFilter(Transform):
    """
    Remove time series or operations with too many missing values.

    Params:
        threshold: Minimum fraction of good (non-NaN) values to keep a row/column
        axis: "time_series" filters rows; "operations" filters columns

    Examples:
        >>> rows_kept = MissingValueFilter(0.7, axis="time_series").apply(matrix)
        >>> both_kept = MissingValueFilter(1.0, axis="operations").apply(rows_kept)
    """

    def __init__(
        self,
        threshold: float,
        axis: Literal["time_series", "operations"] = "time_series",
        logger: Optional[logging.Logger] = None,
    ):
        if axis not in ("time_series", "operations"):
            raise ValueError(f"axis must be 'time_series' or 'operations', got '{axis}'")
        super().__init__(
            name="MissingValueFilter",
            params={"threshold": threshold, "axis": axis},
            logger=logger,
        )
        self.threshold = threshold
        self.axis = axis

    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        if self.axis == "time_series":
            keep = filter_missing(matrix.data, self.threshold, "time series", self.logger)
            if keep.all():
                return matrix
            removed = matrix.time_series['Name'][~keep]
            self.logger.info(f"Time series removed: {', '.join(map(str, removed))}.")
            return matrix.select_rows(keep)

        keep = filter_missing(matrix.data.T, self.threshold, "operations", self.logger)
        if keep.all():
            return matrix
        removed = matrix.operations['Name'][~keep]
        self.logger.debug(f"Operations removed: {', '.join(map(str, removed))}.")
        return matrix.select_columns(keep)
