"""
Unify missing-value representation using the quality-code matrix.

Upstream feature extraction marks a bad output two ways: the stored value may
be non-finite, or the value may look fine while its quality code records a
failure. Masking collapses both into NaN, so every later stage only needs to
check ``np.isnan``.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.quality import describe_quality, is_invalid
from tsnorm.core.transform import Transform
from tsnorm.utils.statistics import percent_good

__all__ = ['QualityMasker', 'mask_invalid', 'log_good_value_ranges']


def mask_invalid(data: np.ndarray, quality: np.ndarray) -> np.ndarray:
    """
    Return a float copy of ``data`` with invalid entries set to NaN.

    An entry is invalid if it is non-finite (NaN, +/-Inf) or its quality code
    is positive.
    """
    masked = np.array(data, dtype=float, copy=True)
    masked[~np.isfinite(masked)] = np.nan
    masked[is_invalid(quality)] = np.nan
    return masked


def log_good_value_ranges(
    data: np.ndarray,
    logger: logging.Logger,
    when: str,
) -> None:
    """Report the min-max percentage of good values across rows and columns."""
    if data.size == 0:
        return
    rows = percent_good(data, axis=1)
    cols = percent_good(data, axis=0)
    logger.info(
        f"({when}): Time series vary from {rows.min():.2f}--{rows.max():.2f}% good values"
    )
    logger.info(
        f"({when}): Features vary from {cols.min():.2f}--{cols.max():.2f}% good values"
    )


class QualityMasker(Transform):
    """
    Mark non-finite and bad-quality entries as missing.

    The quality matrix itself is left unchanged; only the data values are
    rewritten.

    Examples:
        >>> masked = QualityMasker().apply(matrix)
        >>> assert not np.isinf(masked.data).any()
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(name="QualityMasker", params={}, logger=logger)

    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        errors = self.validate(matrix)
        if errors:
            raise ValueError("Validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        n_special = int(np.sum(is_invalid(matrix.quality)))
        self.logger.info(f"There are {n_special} special values in the data matrix.")
        if n_special:
            self.logger.debug(f"Special values by quality code: {describe_quality(matrix.quality)}")

        masked = matrix.with_data(mask_invalid(matrix.data, matrix.quality))
        log_good_value_ranges(masked.data, self.logger, "pre-filtering")
        return masked
