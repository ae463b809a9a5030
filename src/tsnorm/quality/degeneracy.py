"""
Removal of degenerate operations (columns).

An operation whose outputs do not vary across the dataset carries no
information for clustering or classification, and many classifiers fail on
features that are constant within a class. Normalization can also create
degenerate columns (e.g. a scaled sigmoid of a column with zero spread is all
NaN), so the same checks run again after the transform.

Three column-oriented checks:
    - ConstantColumnFilter: standard deviation (ignoring NaN) below tolerance
    - ClassConstantColumnFilter: standard deviation below tolerance within
      ANY class of time series
    - AllMissingColumnFilter: every value of the column is missing

Tolerance is ten times machine epsilon of the matrix's float type.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd

from tsnorm.core.exceptions import AllColumnsInvalidError, AllDegenerateError
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.transform import Transform
from tsnorm.utils.statistics import constant_tolerance, nanstd_columns

__all__ = [
    'constant_columns',
    'class_constant_columns',
    'all_missing_columns',
    'ConstantColumnFilter',
    'ClassConstantColumnFilter',
    'AllMissingColumnFilter',
]


def constant_columns(values: np.ndarray) -> np.ndarray:
    """Boolean mask of columns whose NaN-ignoring std is below tolerance."""
    tol = constant_tolerance(values.dtype)
    with np.errstate(invalid='ignore'):
        return nanstd_columns(values) < tol


def class_constant_columns(values: np.ndarray, labels: pd.Series | np.ndarray) -> np.ndarray:
    """
    Boolean mask of columns that are near-constant within any class.

    Classes are the distinct non-missing labels; rows without a label take no
    part in the computation. A class containing a single time series makes
    every column constant within that class.

    Args:
        values: 2D array (time series x operations)
        labels: Class label of each time series

    Returns:
        Boolean mask with one entry per column
    """
    labels = pd.Series(np.asarray(labels, dtype=object))
    tol = constant_tolerance(values.dtype)
    flagged = np.zeros(values.shape[1], dtype=bool)

    for label in labels.dropna().unique():
        in_class = (labels == label).to_numpy()
        with np.errstate(invalid='ignore'):
            flagged |= nanstd_columns(values[in_class, :]) < tol

    return flagged


def all_missing_columns(values: np.ndarray) -> np.ndarray:
    """Boolean mask of columns where every value is NaN."""
    if values.shape[0] == 0:
        return np.ones(values.shape[1], dtype=bool)
    return np.isnan(values).all(axis=0)


class ConstantColumnFilter(Transform):
    """
    Remove operations with near-constant outputs across all time series.

    Skipped when fewer than two time series remain: with a single time series
    every operation is trivially constant.

    Params:
        stage: "pre-transform" or "post-transform", for messages only

    Raises:
        AllDegenerateError: If every operation is constant
    """

    def __init__(self, stage: str = "pre-transform", logger: Optional[logging.Logger] = None):
        super().__init__(name="ConstantColumnFilter", params={"stage": stage}, logger=logger)
        self.stage = stage

    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        if matrix.n_time_series < 2:
            self.logger.debug(
                f"Only {matrix.n_time_series} time series; skipping constant-output check"
            )
            return matrix

        bad = constant_columns(matrix.data)

        if bad.all():
            raise AllDegenerateError(
                f"All {len(bad)} operations produced constant outputs on the "
                f"{matrix.n_time_series} time series",
                stage=self.stage,
            )
        if bad.any():
            self.logger.info(
                f"Removed {int(bad.sum())} operations with near-constant outputs "
                f"({self.stage}): from {len(bad)} to {int((~bad).sum())}."
            )
            return matrix.select_columns(~bad)

        self.logger.info(f"No operations had near-constant outputs on the dataset ({self.stage})")
        return matrix


class ClassConstantColumnFilter(Transform):
    """
    Remove operations with near-constant outputs within any class.

    Requires class labels in the 'Group' column of the time-series metadata.
    Without labels the check is skipped (reported, not an error).

    Raises:
        AllDegenerateError: If every operation is constant within some class
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(name="ClassConstantColumnFilter", params={}, logger=logger)

    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        if not matrix.has_groups:
            self.logger.info(
                "Group labels not assigned to time series, so cannot filter on class variance"
            )
            return matrix

        bad = class_constant_columns(matrix.data, matrix.groups)

        if bad.all():
            raise AllDegenerateError(
                f"All {len(bad)} operations produced near-constant class-wise outputs",
                stage="class variance",
            )
        if bad.any():
            self.logger.info(
                f"Removed {int(bad.sum())} operations with near-constant class-wise outputs: "
                f"from {len(bad)} to {int((~bad).sum())}."
            )
            return matrix.select_columns(~bad)

        self.logger.info("No operations had near-constant class-wise outputs")
        return matrix


class AllMissingColumnFilter(Transform):
    """
    Remove operations that are entirely NaN after normalization.

    Params:
        norm_function: Name of the transform that ran, for messages

    Raises:
        AllColumnsInvalidError: If every operation is entirely NaN
    """

    def __init__(self, norm_function: str, logger: Optional[logging.Logger] = None):
        super().__init__(
            name="AllMissingColumnFilter",
            params={"norm_function": norm_function},
            logger=logger,
        )
        self.norm_function = norm_function

    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        nan_cols = all_missing_columns(matrix.data)

        if nan_cols.all():
            raise AllColumnsInvalidError(
                f"After {self.norm_function} normalization, all {len(nan_cols)} columns "
                f"were bad values",
                stage="post-transform",
            )
        if nan_cols.any():
            self.logger.info(
                f"Removed {int(nan_cols.sum())} all-NaN columns introduced from "
                f"{self.norm_function} normalization."
            )
            return matrix.select_columns(~nan_cols)
        return matrix
