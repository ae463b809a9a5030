"""
Loader for feature-extraction datasets stored as MATLAB ``.mat`` files.

Expected variables:
    - TS_DataMat: feature values (time series x operations)
    - TS_Quality: integer quality codes, same shape (optional; zeros if absent)
    - TimeSeries: row metadata, one record per time series ('Name', optional 'Group')
    - Operations: column metadata, one record per operation ('Name', 'MasterID')
    - MasterOperations: reference table of operation definitions (optional)
    - fromDatabase: provenance flag (optional; True if absent, for old files)
    - groupNames: class label names (optional; empty if absent)
    - gitInfo: version-control provenance (optional)

Metadata tables may be stored either as MATLAB struct arrays (one struct per
row) or as a single struct whose fields are columns. Both load into a
pandas DataFrame; when an 'ID' field is present it becomes the index, so row
and column identity survives every later selection.

Engineering Design:
    - scipy.io.loadmat with ``simplify_cells=True`` so structs become dicts
    - Values are reshaped using the metadata lengths, so single-row or
      single-column matrices are not mangled by MATLAB-style squeezing
    - Clear validation messages for missing or inconsistent variables

Examples:
    >>> from pathlib import Path
    >>> from tsnorm.io.loaders import load_dataset
    >>>
    >>> dataset = load_dataset(Path("HCTSA.mat"))
    >>> print(dataset.matrix.shape)
    (1000, 7700)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd
from scipy.io import loadmat

from tsnorm.core.dataset import FeatureDataset
from tsnorm.core.featurematrix import FeatureMatrix

logger = logging.getLogger(__name__)

__all__ = ['load_dataset', 'metadata_table']

REQUIRED_VARIABLES = ('TS_DataMat', 'TimeSeries', 'Operations')


def _clean_cell(value: Any) -> Any:
    """Turn MATLAB empties into None and 0-d arrays into Python scalars."""
    if isinstance(value, np.ndarray):
        if value.size == 0:
            return None
        if value.ndim == 0:
            return value.item()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _records_table(records: list[dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(
        [{key: _clean_cell(v) for key, v in record.items()} for record in records]
    )


def _is_struct_of_columns(value: dict[str, Any]) -> bool:
    """True when every field is a 1-D column and all columns share one length."""
    lengths = set()
    for column in value.values():
        if isinstance(column, list):
            lengths.add(len(column))
        elif isinstance(column, np.ndarray) and column.ndim == 1:
            lengths.add(column.shape[0])
        else:
            return False
    return len(lengths) == 1


def metadata_table(value: Any) -> pd.DataFrame:
    """
    Convert a loaded struct array or struct-of-columns into a DataFrame.

    Args:
        value: Output of loadmat for a metadata variable: a list of dicts
            (struct array), a dict (single struct or struct-of-columns), or
            an empty array

    Returns:
        DataFrame with one row per record, indexed by 'ID' when present
    """
    if isinstance(value, np.ndarray) and value.size == 0:
        return pd.DataFrame()

    if isinstance(value, dict):
        if not _is_struct_of_columns(value):
            # a single struct, i.e. a one-row table
            table = _records_table([value])
        else:
            table = pd.DataFrame({
                key: [_clean_cell(v) for v in np.atleast_1d(column)]
                for key, column in value.items()
            })
    elif isinstance(value, (list, tuple, np.ndarray)):
        table = _records_table(list(value))
    else:
        raise ValueError(f"Cannot interpret metadata of type {type(value).__name__}")

    if 'ID' in table.columns and table['ID'].is_unique:
        table.index = pd.Index(table['ID'].to_numpy(), name='ID')
    return table


def _group_names(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in np.atleast_1d(value) if _clean_cell(v) is not None]


def _from_database(value: Any) -> bool:
    if value is None or (isinstance(value, np.ndarray) and value.size == 0):
        return True
    return bool(np.asarray(value).reshape(-1)[0])


def _git_info(value: Any) -> Optional[dict[str, Any]]:
    if isinstance(value, dict):
        return {key: _clean_cell(v) for key, v in value.items()}
    return None


def load_dataset(path: Path) -> FeatureDataset:
    """
    Load a feature-extraction dataset from a ``.mat`` file.

    Args:
        path: Path to a MATLAB v5/v7 ``.mat`` file

    Returns:
        FeatureDataset with matrix, quality codes, metadata and provenance

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file cannot be read, lacks required variables, or
            has inconsistent shapes
    """
    if not isinstance(path, Path):
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    try:
        contents = loadmat(path, simplify_cells=True)
    except NotImplementedError as e:
        raise ValueError(
            f"{path} is a MATLAB v7.3 (HDF5) file; re-save it with '-v7' to load it: {e}"
        ) from e
    except Exception as e:
        raise ValueError(f"Failed to read MAT file {path}: {e}") from e

    missing = [name for name in REQUIRED_VARIABLES if name not in contents]
    if missing:
        raise ValueError(f"{path} is missing required variables: {missing}")

    time_series = metadata_table(contents['TimeSeries'])
    operations = metadata_table(contents['Operations'])
    shape = (len(time_series), len(operations))

    data = np.asarray(contents['TS_DataMat'], dtype=float)
    if data.size != shape[0] * shape[1]:
        raise ValueError(
            f"TS_DataMat has {data.size} values but metadata describes "
            f"{shape[0]} time series x {shape[1]} operations"
        )
    data = data.reshape(shape)

    if 'TS_Quality' in contents:
        quality = np.asarray(contents['TS_Quality']).astype(np.int64).reshape(shape)
    else:
        logger.warning(f"No TS_Quality in {path}; treating every value as good quality")
        quality = np.zeros(shape, dtype=np.int64)

    master_operations = metadata_table(contents.get('MasterOperations', np.empty(0)))

    dataset = FeatureDataset(
        matrix=FeatureMatrix(
            data=data,
            quality=quality,
            time_series=time_series,
            operations=operations,
        ),
        master_operations=master_operations,
        from_database=_from_database(contents.get('fromDatabase')),
        group_names=_group_names(contents.get('groupNames')),
        git_info=_git_info(contents.get('gitInfo')),
        source=path,
    )
    logger.info(
        f"Loaded {dataset.matrix.n_time_series} time series x "
        f"{dataset.matrix.n_operations} operations from {path}"
    )
    return dataset
