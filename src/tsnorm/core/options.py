"""
Options controlling trimming and normalization.

All options carry defaults and are validated before any data is loaded, so a
bad threshold or an unknown normalization name fails fast with
InvalidConfigurationError.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Optional, Sequence

from tsnorm.core.exceptions import InvalidConfigurationError

__all__ = [
    'FilterOptions',
    'NormalizeOptions',
    'DEFAULT_NORM_FUNCTION',
    'DEFAULT_INPUT',
]

DEFAULT_NORM_FUNCTION = "scaledRobustSigmoid"
DEFAULT_INPUT = "HCTSA.mat"


@dataclass(frozen=True)
class FilterOptions:
    """
    Minimum proportion of good values required to keep a row or column.

    Attributes:
        row_threshold: Minimum fraction of non-missing values a time series
            needs to survive (default 0.70)
        column_threshold: Minimum fraction of non-missing values an operation
            needs to survive, computed after row filtering (default 1.0, i.e.
            no missing values tolerated in surviving operations)
    """

    row_threshold: float = 0.70
    column_threshold: float = 1.0

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> FilterOptions:
        """Build from a ``[row, column]`` pair, as written in config files."""
        values = list(values)
        if len(values) != 2:
            raise InvalidConfigurationError(
                f"filter_options must be a [row, column] pair, got {len(values)} values"
            )
        return cls(row_threshold=values[0], column_threshold=values[1])

    def validate(self) -> None:
        """
        Check both thresholds lie in the unit interval.

        Raises:
            InvalidConfigurationError: If either threshold is not a number in [0, 1]
        """
        for label, value in (("row", self.row_threshold), ("column", self.column_threshold)):
            if isinstance(value, bool) or not isinstance(value, Real):
                raise InvalidConfigurationError(
                    f"{label} threshold must be a number, got {value!r}"
                )
            if math.isnan(value) or not 0 <= value <= 1:
                raise InvalidConfigurationError(
                    f"Set filter_options as a [row, column] pair with elements in the "
                    f"unit interval; {label} threshold is {value}"
                )

    def as_list(self) -> list[float]:
        return [float(self.row_threshold), float(self.column_threshold)]


@dataclass
class NormalizeOptions:
    """
    Complete configuration of one trim-and-normalize run.

    Attributes:
        norm_function: Name of the registered normalization strategy
        filter_options: Row/column missing-value thresholds
        input: Identifier (path) of the source dataset
        class_var_filter: Also remove operations constant within any class
        row_subset: 0-based time-series positions to keep before filtering
            (None or empty = all)
        column_subset: 0-based operation positions to keep before filtering
            (None or empty = all)
    """

    norm_function: str = DEFAULT_NORM_FUNCTION
    filter_options: FilterOptions = field(default_factory=FilterOptions)
    input: str = DEFAULT_INPUT
    class_var_filter: bool = False
    row_subset: Optional[list[int]] = None
    column_subset: Optional[list[int]] = None

    def validate(self) -> None:
        """
        Validate everything that can be checked without the data.

        Raises:
            InvalidConfigurationError: On any invalid option
        """
        from tsnorm.stats.normalization import get_strategy

        if not isinstance(self.filter_options, FilterOptions):
            self.filter_options = FilterOptions.from_sequence(self.filter_options)
        self.filter_options.validate()

        get_strategy(self.norm_function)

        for label, subset in (("row", self.row_subset), ("column", self.column_subset)):
            if subset is None:
                continue
            bad = [i for i in subset if isinstance(i, bool) or not isinstance(i, Integral)]
            if bad:
                raise InvalidConfigurationError(
                    f"{label} subset must contain integer positions, got {bad[:5]}"
                )
