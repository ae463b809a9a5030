"""
Writers for trimmed, normalized datasets.

Two outputs:
    1. ``save_normalized``: the full bundle as a MATLAB ``.mat`` file, readable
       by ``load_dataset`` and by MATLAB-based analysis code
    2. ``write_csv_matrix`` / ``write_metadata``: plain CSV exports of the
       final matrix, quality codes and metadata for R/Excel/pandas users

Engineering Design:
    - Metadata tables are written as a struct whose fields are columns
      (one cell array or numeric vector per field); the DataFrame index is
      written as an 'ID' field when the table has none, so row/column
      identity survives a save/load cycle
    - Clustering orderings are stored 1-based, as MATLAB code expects
    - The .mat file is written to a temporary file and moved into place

Examples:
    >>> from pathlib import Path
    >>> from tsnorm.io.writers import save_normalized, write_csv_matrix
    >>>
    >>> save_normalized(result, Path("HCTSA_N.mat"))
    >>> write_csv_matrix(result.matrix, Path("exports/HCTSA_N"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from scipy.io import savemat

from tsnorm.core.dataset import ClusteringInfo, NormalizedDataset
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.utils.fileio import atomic_path

logger = logging.getLogger(__name__)

__all__ = ['save_normalized', 'write_csv_matrix', 'write_metadata']


def _cell_value(value: Any) -> Any:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return np.empty((0, 0))
    return value


def _column_array(series: pd.Series) -> np.ndarray:
    values = series.to_numpy()
    if values.dtype.kind in 'biuf':
        return values
    cells = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        cells[i] = _cell_value(value)
    return cells


def _struct_of_columns(table: pd.DataFrame) -> Any:
    """Convert a metadata table into a dict savemat writes as a struct."""
    if table.shape[1] == 0:
        return np.empty((0, 0))
    table = table.copy()
    if 'ID' not in table.columns:
        table.insert(0, 'ID', table.index.to_numpy())
    return {str(column): _column_array(table[column]) for column in table.columns}


def _cellstr(values: list[str]) -> np.ndarray:
    cells = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        cells[i] = str(value)
    return cells


def _clustering(info: ClusteringInfo) -> dict[str, Any]:
    return {
        'distanceMetric': info.distance_metric,
        'Dij': np.asarray(info.dij, dtype=float),
        'ord': np.asarray(info.ord) + 1,
        'linkageMethod': info.linkage_method,
    }


def _ensure_parent(path: Path) -> None:
    if path.parent != Path('.') and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def save_normalized(result: NormalizedDataset, path: Path) -> None:
    """
    Save a NormalizedDataset as a ``.mat`` file.

    Args:
        result: Output of the normalization pipeline
        path: Destination file (parent directories are created)

    Raises:
        TypeError: If result is not a NormalizedDataset
        OSError: If the file cannot be written
    """
    if not isinstance(result, NormalizedDataset):
        raise TypeError(f"result must be NormalizedDataset, got {type(result)}")

    if not isinstance(path, Path):
        path = Path(path)
    _ensure_parent(path)

    info = result.normalization_info
    contents = {
        'TS_DataMat': result.matrix.data,
        'TS_Quality': result.matrix.quality,
        'TimeSeries': _struct_of_columns(result.matrix.time_series),
        'Operations': _struct_of_columns(result.matrix.operations),
        'MasterOperations': _struct_of_columns(result.master_operations),
        'fromDatabase': bool(result.from_database),
        'groupNames': _cellstr(result.group_names),
        'normalizationInfo': {
            'normFunction': info.norm_function,
            'filterOptions': np.asarray(info.filter_options.as_list()),
            'codeToRun': info.code_to_run,
        },
        'ts_clust': _clustering(result.ts_clust),
        'op_clust': _clustering(result.op_clust),
    }
    if result.git_info is not None:
        contents['gitInfo'] = {
            key: _cell_value(value) for key, value in result.git_info.items()
        }

    try:
        with atomic_path(path, suffix=".mat") as tmp_path:
            savemat(tmp_path, contents, do_compression=True)
    except OSError as e:
        raise OSError(f"Failed to write normalized dataset {path}: {e}") from e
    logger.info(f"Wrote normalized dataset to {path}")


def write_csv_matrix(matrix: FeatureMatrix, path: Path) -> None:
    """
    Export the feature matrix and quality codes to CSV.

    Output Files:
        1. {path}.data.csv - feature values, NaN written as empty cells
        2. {path}.quality.csv - integer quality codes

    Both files use time-series names as the first column and operation
    names as the header.

    Args:
        matrix: FeatureMatrix to export
        path: Base path (without extension)

    Raises:
        ValueError: If matrix is empty
        OSError: If a file cannot be written
    """
    if matrix.data.size == 0:
        raise ValueError("Cannot write empty matrix")

    if not isinstance(path, Path):
        path = Path(path)
    _ensure_parent(path)

    index = pd.Index(matrix.time_series['Name'].astype(str), name='Name')
    columns = matrix.operations['Name'].astype(str).to_numpy()

    outputs = (
        (Path(str(path) + ".data.csv"), matrix.data, "data matrix"),
        (Path(str(path) + ".quality.csv"), matrix.quality, "quality codes"),
    )
    for out_path, values, what in outputs:
        try:
            pd.DataFrame(values, index=index, columns=columns).to_csv(out_path)
        except OSError as e:
            raise OSError(f"Failed to write {what} file {out_path}: {e}") from e
        logger.info(f"Wrote {what} to {out_path}")


def write_metadata(matrix: FeatureMatrix, path: Path) -> None:
    """
    Export time-series and operation metadata to CSV.

    Output Files:
        1. {path}.time_series.csv
        2. {path}.operations.csv

    Raises:
        OSError: If a file cannot be written
    """
    if not isinstance(path, Path):
        path = Path(path)
    _ensure_parent(path)

    outputs = (
        (Path(str(path) + ".time_series.csv"), matrix.time_series, "time-series metadata"),
        (Path(str(path) + ".operations.csv"), matrix.operations, "operation metadata"),
    )
    for out_path, table, what in outputs:
        try:
            table.to_csv(out_path, index='ID' not in table.columns)
        except OSError as e:
            raise OSError(f"Failed to write {what} file {out_path}: {e}") from e
        logger.info(f"Wrote {what} to {out_path}")
