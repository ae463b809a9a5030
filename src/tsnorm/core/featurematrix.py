"""
Core data structure for time-series feature matrices.

FeatureMatrix unifies the numerical feature matrix (time series x operations)
with its parallel quality-code matrix and the metadata tables describing each
row (time series) and each column (operation).

Context:
    A feature-extraction run applies thousands of operations to each time
    series in a dataset:
    - Rows = time series (one observed sequence each)
    - Columns = operations (one computed statistic each)
    - Values = operation outputs, NaN where missing or invalid

    Trimming such a matrix requires:
    - Every row/column removal applied to data, quality and metadata together
    - Stable identity of rows/columns across successive removals
    - Immutability so each pipeline stage can be tested in isolation

Engineering Design:
    - Immutable: selections return new instances
    - Type-safe: NumPy arrays for values and codes, Pandas for metadata
    - Identity-preserving: metadata DataFrame indexes are never reset, so the
      index of ``time_series``/``operations`` always names the original
      row/column, whatever its current position
    - Validated: constructor checks shape consistency and required columns

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from tsnorm.core.featurematrix import FeatureMatrix
    >>>
    >>> matrix = FeatureMatrix(
    ...     data=np.array([[0.1, 2.0], [0.3, np.nan]]),
    ...     quality=np.array([[0, 0], [0, 2]]),
    ...     time_series=pd.DataFrame({'Name': ['ts_a', 'ts_b']}),
    ...     operations=pd.DataFrame({'Name': ['mean', 'std'], 'MasterID': [1, 2]}),
    ... )
    >>> trimmed = matrix.select_columns(np.array([True, False]))
    >>> trimmed.shape
    (2, 1)
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

__all__ = ['FeatureMatrix', 'Selector']

Selector = Union[np.ndarray, pd.Series, Sequence[int], Sequence[bool]]

TIME_SERIES_REQUIRED = ('Name',)
OPERATIONS_REQUIRED = ('Name', 'MasterID')
GROUP_COLUMN = 'Group'


class FeatureMatrix:
    """
    Immutable container for feature matrix + quality codes + metadata.

    Attributes:
        data: Feature values (time series x operations), NaN = missing
        quality: Integer quality codes, same shape as data (0 = valid)
        time_series: Row metadata, one row per time series ('Name', optional 'Group')
        operations: Column metadata, one row per operation ('Name', 'MasterID')

    Shape Invariants:
        - quality.shape == data.shape
        - len(time_series) == data.shape[0]
        - len(operations) == data.shape[1]
    """

    def __init__(
        self,
        data: np.ndarray,
        quality: np.ndarray,
        time_series: pd.DataFrame,
        operations: pd.DataFrame,
    ):
        """
        Initialize FeatureMatrix with validation.

        Args:
            data: Feature matrix (time series x operations)
            quality: Quality code matrix (same shape as data)
            time_series: Row metadata, must contain a 'Name' column
            operations: Column metadata, must contain 'Name' and 'MasterID'

        Raises:
            TypeError: If any component has the wrong type
            ValueError: If shapes are inconsistent or required columns are missing
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(quality, np.ndarray):
            raise TypeError(f"quality must be np.ndarray, got {type(quality)}")
        if not isinstance(time_series, pd.DataFrame):
            raise TypeError(f"time_series must be pd.DataFrame, got {type(time_series)}")
        if not isinstance(operations, pd.DataFrame):
            raise TypeError(f"operations must be pd.DataFrame, got {type(operations)}")

        if data.ndim != 2:
            raise ValueError(f"data must be 2D, got shape {data.shape}")
        if quality.shape != data.shape:
            raise ValueError(
                f"quality shape {quality.shape} must match data shape {data.shape}"
            )

        n_rows, n_cols = data.shape
        if len(time_series) != n_rows:
            raise ValueError(
                f"time_series length ({len(time_series)}) must match data rows ({n_rows})"
            )
        if len(operations) != n_cols:
            raise ValueError(
                f"operations length ({len(operations)}) must match data columns ({n_cols})"
            )

        missing = [c for c in TIME_SERIES_REQUIRED if c not in time_series.columns]
        if missing:
            raise ValueError(f"time_series is missing required columns: {missing}")
        missing = [c for c in OPERATIONS_REQUIRED if c not in operations.columns]
        if missing:
            raise ValueError(f"operations is missing required columns: {missing}")

        self._data = data
        self._quality = quality
        self._time_series = time_series
        self._operations = operations

    @property
    def data(self) -> np.ndarray:
        """Feature values (time series x operations)."""
        return self._data

    @property
    def quality(self) -> np.ndarray:
        """Quality code matrix (same shape as data)."""
        return self._quality

    @property
    def time_series(self) -> pd.DataFrame:
        """Row metadata."""
        return self._time_series

    @property
    def operations(self) -> pd.DataFrame:
        """Column metadata."""
        return self._operations

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_time_series, n_operations)."""
        return self._data.shape

    @property
    def n_time_series(self) -> int:
        return self._data.shape[0]

    @property
    def n_operations(self) -> int:
        return self._data.shape[1]

    @property
    def groups(self) -> Optional[pd.Series]:
        """Class label of each time series, or None if labels were never assigned."""
        if GROUP_COLUMN not in self._time_series.columns:
            return None
        return self._time_series[GROUP_COLUMN]

    @property
    def has_groups(self) -> bool:
        """True when at least one time series carries a class label."""
        groups = self.groups
        return groups is not None and bool(groups.notna().any())

    def missing_mask(self) -> np.ndarray:
        """Boolean mask of NaN entries."""
        return np.isnan(self._data)

    def _check_selector(self, selector: Selector, size: int, axis_name: str) -> np.ndarray:
        if isinstance(selector, pd.Series):
            selector = selector.values
        selector = np.asarray(selector)
        if selector.dtype == bool and len(selector) != size:
            raise ValueError(
                f"mask length ({len(selector)}) must match n_{axis_name} ({size})"
            )
        if selector.dtype != bool:
            selector = selector.astype(np.intp)
        return selector

    def select(
        self,
        rows: Optional[Selector] = None,
        columns: Optional[Selector] = None,
    ) -> FeatureMatrix:
        """
        Subset rows and/or columns of every component at once.

        Selection is applied to data, quality and both metadata tables in a
        single step, so the four structures can never disagree.

        Args:
            rows: Boolean mask or integer positions of time series to keep
                (None keeps all)
            columns: Boolean mask or integer positions of operations to keep
                (None keeps all)

        Returns:
            New FeatureMatrix with the selection applied

        Raises:
            ValueError: If a boolean mask has the wrong length
            IndexError: If integer positions are out of range

        Examples:
            >>> keep = np.nanstd(matrix.data, axis=0) > 0
            >>> varying = matrix.select(columns=keep)
        """
        data = self._data
        quality = self._quality
        time_series = self._time_series
        operations = self._operations

        if rows is not None:
            rows = self._check_selector(rows, self.n_time_series, "time_series")
            data = data[rows, :]
            quality = quality[rows, :]
            time_series = time_series.iloc[rows]

        if columns is not None:
            columns = self._check_selector(columns, self.n_operations, "operations")
            data = data[:, columns]
            quality = quality[:, columns]
            operations = operations.iloc[columns]

        return FeatureMatrix(
            data=data,
            quality=quality,
            time_series=time_series,
            operations=operations,
        )

    def select_rows(self, rows: Selector) -> FeatureMatrix:
        """Subset time series (rows), keeping all operations."""
        return self.select(rows=rows)

    def select_columns(self, columns: Selector) -> FeatureMatrix:
        """Subset operations (columns), keeping all time series."""
        return self.select(columns=columns)

    def with_data(self, data: np.ndarray) -> FeatureMatrix:
        """
        Return a matrix with replaced values and identical metadata.

        Raises:
            ValueError: If the new values change the matrix shape
        """
        if data.shape != self._data.shape:
            raise ValueError(
                f"Replacement data shape {data.shape} must match {self._data.shape}"
            )
        return FeatureMatrix(
            data=data,
            quality=self._quality,
            time_series=self._time_series,
            operations=self._operations,
        )

    def copy(self, deep: bool = True) -> FeatureMatrix:
        """
        Create a copy of this matrix.

        Args:
            deep: If True, copy all arrays. If False, share arrays (faster but mutable)
        """
        if deep:
            return FeatureMatrix(
                data=self._data.copy(),
                quality=self._quality.copy(),
                time_series=self._time_series.copy(),
                operations=self._operations.copy(),
            )
        return FeatureMatrix(
            data=self._data,
            quality=self._quality,
            time_series=self._time_series,
            operations=self._operations,
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        lines = [f"FeatureMatrix({self.n_time_series} time series × {self.n_operations} operations)"]
        if self.n_time_series:
            names = self._time_series['Name']
            lines.append(f"  Time series: {names.iloc[0]}...{names.iloc[-1]}")
        if self.n_operations:
            names = self._operations['Name']
            lines.append(f"  Operations: {names.iloc[0]}...{names.iloc[-1]}")
        lines.append(f"  Missing values: {int(np.isnan(self._data).sum())}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.__repr__()
