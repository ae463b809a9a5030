"""
Shared NaN-aware statistics for the filtering and normalization stages.

Functions:
    nanstd_columns: Column standard deviation ignoring missing values
    percent_good: Percentage of non-missing values along an axis
    constant_tolerance: Threshold below which a spread counts as zero
"""

from __future__ import annotations

import warnings

import numpy as np


__all__ = [
    'nanstd_columns',
    'percent_good',
    'constant_tolerance',
]


def constant_tolerance(dtype: np.dtype) -> float:
    """
    Spread below which a column is treated as constant.

    Ten times machine epsilon of the matrix's floating type; integer or
    other non-float dtypes use float64 epsilon.
    """
    dtype = np.dtype(dtype)
    if not np.issubdtype(dtype, np.floating):
        dtype = np.dtype(np.float64)
    return float(10 * np.finfo(dtype).eps)


def nanstd_columns(values: np.ndarray) -> np.ndarray:
    """
    Sample standard deviation of each column, ignoring NaN.

    Uses N-1 normalization. A column with exactly one non-missing value has
    standard deviation 0 (a single observation does not vary); a column with
    no non-missing values has standard deviation NaN.

    Args:
        values: 2D array (rows x columns)

    Returns:
        1D array with one standard deviation per column
    """
    values = np.asarray(values, dtype=float)
    n_valid = np.sum(~np.isnan(values), axis=0)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        std = np.nanstd(values, axis=0, ddof=1)

    std = np.where(n_valid == 1, 0.0, std)
    std = np.where(n_valid == 0, np.nan, std)
    return std


def percent_good(values: np.ndarray, axis: int) -> np.ndarray:
    """
    Percentage of non-missing entries along ``axis``.

    ``axis=1`` gives one percentage per row, ``axis=0`` one per column.
    """
    values = np.asarray(values, dtype=float)
    with warnings.catch_warnings(), np.errstate(invalid='ignore', divide='ignore'):
        warnings.simplefilter("ignore", RuntimeWarning)
        return np.mean(~np.isnan(values), axis=axis) * 100
