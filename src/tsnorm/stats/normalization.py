"""
Normalization strategies for feature matrices.

Rescales each operation (column) so that features with wildly different
ranges become comparable for clustering and classification. Every strategy
works column-wise, ignores missing values when estimating its parameters and
keeps NaN entries in place.

Available strategies:
- nothing / none: identity, the matrix is returned untouched
- zscore: (x - mean) / std
- maxmin: linear rescaling to the unit interval
- sigmoid: logistic function of the z-score
- robustSigmoid: logistic function of (x - median) / (IQR / 1.35), which is
  insensitive to outliers
- mixedSigmoid: robustSigmoid, falling back to sigmoid for columns whose
  IQR is zero
- scaledSigmoid / scaledRobustSigmoid / scaledMixedSigmoid: the sigmoid
  variant followed by maxmin, so outputs span [0, 1]

A column whose spread statistic is zero cannot be rescaled and comes back
entirely NaN; the pipeline removes such columns after the transform.

References:
    - Fulcher, Little & Jones (2013) J. R. Soc. Interface 10(83):20130048
      (outlier-robust sigmoidal transform for time-series features)
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray
from scipy.special import expit
from scipy.stats import iqr

from tsnorm.core.exceptions import InvalidConfigurationError
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.transform import Transform
from tsnorm.utils.statistics import nanstd_columns

__all__ = [
    'NormalizationStrategy',
    'Normalizer',
    'register_strategy',
    'get_strategy',
    'available_strategies',
    'normalize_matrix',
    'zscore',
    'maxmin',
    'sigmoid',
    'robust_sigmoid',
    'mixed_sigmoid',
]

# Ratio between the IQR and the standard deviation of a normal distribution
IQR_TO_STD = 1.35


@dataclass(frozen=True)
class NormalizationStrategy:
    """A named column-wise rescaling.

    Attributes:
        name: Registry name (e.g. "scaledRobustSigmoid")
        func: Maps a 2D array to a new array of the same shape
        description: One-line summary for listings
        identity: True for strategies that leave data untouched
    """

    name: str
    func: Callable[[NDArray[np.float64]], NDArray[np.float64]]
    description: str = ""
    identity: bool = False


_REGISTRY: dict[str, NormalizationStrategy] = {}


def register_strategy(
    name: str,
    func: Callable[[NDArray[np.float64]], NDArray[np.float64]],
    description: str = "",
    identity: bool = False,
) -> NormalizationStrategy:
    """
    Add a normalization strategy to the registry.

    Registering an existing name replaces the previous strategy.
    """
    strategy = NormalizationStrategy(
        name=name, func=func, description=description, identity=identity
    )
    _REGISTRY[name] = strategy
    return strategy


def get_strategy(name: str) -> NormalizationStrategy:
    """
    Look up a strategy by name (exact match first, then case-insensitive).

    Raises:
        InvalidConfigurationError: If no strategy has this name
    """
    if not isinstance(name, str):
        raise InvalidConfigurationError(
            f"Normalization method must be a name, got {type(name).__name__} {name!r}"
        )
    if name in _REGISTRY:
        return _REGISTRY[name]
    lowered = {key.lower(): strategy for key, strategy in _REGISTRY.items()}
    if name.lower() in lowered:
        return lowered[name.lower()]
    raise InvalidConfigurationError(
        f"Unknown normalization method '{name}'. "
        f"Choose from: {', '.join(available_strategies())}"
    )


def available_strategies() -> list[str]:
    """Registered strategy names, in registration order."""
    return list(_REGISTRY)


def _as_float(data: NDArray) -> NDArray[np.float64]:
    data = np.asarray(data, dtype=float)
    if data.ndim != 2:
        raise ValueError(f"Expected 2D array, got {data.ndim}D")
    return data


def _blank_columns(values: NDArray[np.float64], usable: NDArray[np.bool_]) -> NDArray[np.float64]:
    values[:, ~usable] = np.nan
    return values


def zscore(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """Standardize each column to zero mean and unit (sample) standard deviation."""
    data = _as_float(data)
    with warnings.catch_warnings(), np.errstate(invalid='ignore', divide='ignore'):
        warnings.simplefilter("ignore", RuntimeWarning)
        mean = np.nanmean(data, axis=0)
        std = nanstd_columns(data)
        out = (data - mean) / std
        usable = std > 0
    return _blank_columns(out, usable)


def maxmin(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """Linearly rescale each column so its minimum is 0 and maximum is 1."""
    data = _as_float(data)
    with warnings.catch_warnings(), np.errstate(invalid='ignore', divide='ignore'):
        warnings.simplefilter("ignore", RuntimeWarning)
        lo = np.nanmin(data, axis=0)
        hi = np.nanmax(data, axis=0)
        spread = hi - lo
        out = (data - lo) / spread
        usable = spread > 0
    return _blank_columns(out, usable)


def sigmoid(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """Logistic function of the column z-score."""
    return expit(zscore(data))


def _robust_parts(data: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    with warnings.catch_warnings(), np.errstate(invalid='ignore', divide='ignore'):
        warnings.simplefilter("ignore", RuntimeWarning)
        median = np.nanmedian(data, axis=0)
        spread = iqr(data, axis=0, nan_policy='omit')
        spread = np.asarray(spread, dtype=float)
        out = expit((data - median) / (spread / IQR_TO_STD))
        usable = spread > 0
    return out, usable


def robust_sigmoid(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Outlier-robust sigmoid: logistic of (x - median) / (IQR / 1.35).

    Columns with zero interquartile range become NaN.
    """
    data = _as_float(data)
    out, usable = _robust_parts(data)
    return _blank_columns(out, usable)


def mixed_sigmoid(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Robust sigmoid, with the standard sigmoid for columns whose IQR is zero.

    Useful for features that take one value most of the time: their IQR is
    zero but they still vary.
    """
    data = _as_float(data)
    out, usable = _robust_parts(data)
    if not usable.all():
        out[:, ~usable] = sigmoid(data[:, ~usable])
    return out


def _identity(data: NDArray[np.float64]) -> NDArray[np.float64]:
    return data


def _scaled(func: Callable[[NDArray[np.float64]], NDArray[np.float64]]):
    def scaled(data: NDArray[np.float64]) -> NDArray[np.float64]:
        return maxmin(func(data))
    scaled.__name__ = f"scaled_{func.__name__}"
    return scaled


register_strategy("nothing", _identity, "No normalization", identity=True)
register_strategy("none", _identity, "No normalization", identity=True)
register_strategy("zscore", zscore, "Standardize to zero mean, unit standard deviation")
register_strategy("maxmin", maxmin, "Linear rescaling to the unit interval")
register_strategy("sigmoid", sigmoid, "Logistic function of the z-score")
register_strategy("scaledSigmoid", _scaled(sigmoid), "Sigmoid, rescaled to the unit interval")
register_strategy("robustSigmoid", robust_sigmoid, "Outlier-robust sigmoid (median/IQR)")
register_strategy(
    "scaledRobustSigmoid",
    _scaled(robust_sigmoid),
    "Outlier-robust sigmoid, rescaled to the unit interval",
)
register_strategy(
    "mixedSigmoid", mixed_sigmoid, "Robust sigmoid, standard sigmoid where IQR is zero"
)
register_strategy(
    "scaledMixedSigmoid",
    _scaled(mixed_sigmoid),
    "Mixed sigmoid, rescaled to the unit interval",
)


def normalize_matrix(data: NDArray[np.float64], method: str) -> NDArray[np.float64]:
    """
    Apply a registered strategy to a raw array.

    Args:
        data: 2D array (time series x operations)
        method: Registered strategy name

    Returns:
        Normalized array with the same shape
    """
    strategy = get_strategy(method)
    if strategy.identity:
        return data
    return strategy.func(data)


class Normalizer(Transform):
    """
    Apply a named normalization strategy to a FeatureMatrix.

    Identity strategies return the input matrix unchanged. All other
    strategies must preserve the matrix shape; they may introduce NaN.

    Examples:
        >>> normalized = Normalizer("scaledRobustSigmoid").apply(trimmed)
        >>> untouched = Normalizer("nothing").apply(trimmed)
        >>> assert untouched is trimmed
    """

    def __init__(
        self,
        method: str | NormalizationStrategy,
        logger: Optional[logging.Logger] = None,
    ):
        strategy = method if isinstance(method, NormalizationStrategy) else get_strategy(method)
        super().__init__(name="Normalizer", params={"method": strategy.name}, logger=logger)
        self.strategy = strategy

    def validate(self, matrix: FeatureMatrix) -> list[str]:
        """Normalization compares values across time series, so needs at least two."""
        errors = super().validate(matrix)
        if matrix.n_time_series < 2:
            errors.append(
                f"Normalization needs at least 2 time series, got {matrix.n_time_series}"
            )
        return errors

    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        errors = self.validate(matrix)
        if errors:
            raise ValueError("Validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        if self.strategy.identity:
            self.logger.info(
                f"You specified '{self.strategy.name}', so no normalization is actually being done."
            )
            return matrix

        self.logger.info(
            f"Normalizing a {matrix.n_time_series} x {matrix.n_operations} object "
            f"using {self.strategy.name}..."
        )
        values = np.asarray(self.strategy.func(matrix.data), dtype=float)
        if values.shape != matrix.shape:
            raise ValueError(
                f"Normalization '{self.strategy.name}' changed the matrix shape "
                f"from {matrix.shape} to {values.shape}"
            )
        self.logger.info(
            f"Normalized! The data matrix contains {int(np.isnan(values).sum())} "
            f"special-valued elements."
        )
        return matrix.with_data(values)
