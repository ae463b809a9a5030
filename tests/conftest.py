"""
Pytest configuration and shared fixtures for integration tests.

This module provides test data generators and shared fixtures for all test suites.
"""

from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import pytest
from scipy.io import savemat

from tsnorm.core.dataset import FeatureDataset
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.quality import QualityCode


def make_feature_matrix(
    data: np.ndarray,
    quality: Optional[np.ndarray] = None,
    groups: Optional[Sequence] = None,
) -> FeatureMatrix:
    """
    Wrap a raw array as a FeatureMatrix with generated metadata.

    Time series are named ``ts_000``, ``ts_001``...; operations ``op_000``...
    Both metadata tables carry an 'ID' column (starting at 1) that is also
    the index, as loaded datasets do.
    """
    data = np.asarray(data, dtype=float)
    n_ts, n_ops = data.shape
    if quality is None:
        quality = np.where(np.isnan(data), QualityCode.NAN, QualityCode.GOOD).astype(np.int64)

    ts_ids = np.arange(1, n_ts + 1)
    time_series = pd.DataFrame(
        {
            'ID': ts_ids,
            'Name': [f"ts_{i:03d}" for i in range(n_ts)],
            'Keywords': ['synthetic'] * n_ts,
        },
        index=pd.Index(ts_ids, name='ID'),
    )
    if groups is not None:
        time_series['Group'] = list(groups)

    op_ids = np.arange(1, n_ops + 1)
    operations = pd.DataFrame(
        {
            'ID': op_ids,
            'Name': [f"op_{j:03d}" for j in range(n_ops)],
            'MasterID': (op_ids + 1) // 2,
        },
        index=pd.Index(op_ids, name='ID'),
    )

    return FeatureMatrix(
        data=data,
        quality=np.asarray(quality, dtype=np.int64),
        time_series=time_series,
        operations=operations,
    )


def generate_feature_data(
    n_ts: int,
    n_ops: int,
    missing_fraction: float = 0.0,
    seed: int = 42,
) -> np.ndarray:
    """
    Generate a synthetic feature matrix with realistic properties.

    Design:
        - Each operation has its own location and scale, spanning several
          orders of magnitude (as real feature sets do)
        - A few heavy-tailed outliers per column
        - Missing values scattered uniformly at random
    """
    rng = np.random.RandomState(seed)
    locations = rng.uniform(-100, 100, size=n_ops)
    scales = 10 ** rng.uniform(-2, 2, size=n_ops)
    data = locations + scales * rng.standard_t(df=3, size=(n_ts, n_ops))

    n_missing = int(n_ts * n_ops * missing_fraction)
    if n_missing:
        positions = rng.choice(n_ts * n_ops, size=n_missing, replace=False)
        data.flat[positions] = np.nan
    return data


def make_dataset(matrix: FeatureMatrix, **kwargs) -> FeatureDataset:
    """FeatureDataset around ``matrix`` with a small master-operation table."""
    master_ids = sorted(set(matrix.operations['MasterID']))
    master_operations = pd.DataFrame(
        {
            'ID': master_ids,
            'Label': [f"master_{i}" for i in master_ids],
            'Code': [f"CO_Feature(x, {i})" for i in master_ids],
        },
        index=pd.Index(master_ids, name='ID'),
    )
    kwargs.setdefault('master_operations', master_operations)
    kwargs.setdefault('group_names', ['A', 'B'])
    return FeatureDataset(matrix=matrix, **kwargs)


def write_hctsa_file(path: Path, dataset: FeatureDataset) -> Path:
    """
    Write ``dataset`` as a raw feature-extraction ``.mat`` file.

    Metadata tables are written as struct arrays (one struct per row), the
    layout produced by MATLAB feature-extraction runs.
    """
    matrix = dataset.matrix

    def records(table: pd.DataFrame) -> list:
        return [
            {key: (value.item() if isinstance(value, np.generic) else value)
             for key, value in row.items()}
            for row in table.to_dict(orient='records')
        ]

    contents = {
        'TS_DataMat': matrix.data,
        'TS_Quality': matrix.quality,
        'TimeSeries': records(matrix.time_series),
        'Operations': records(matrix.operations),
        'MasterOperations': records(dataset.master_operations),
        'fromDatabase': dataset.from_database,
        'groupNames': np.array(dataset.group_names, dtype=object),
    }
    savemat(str(path), contents)
    return path


@pytest.fixture
def clean_matrix():
    """20 time series x 8 operations, no missing values."""
    return make_feature_matrix(generate_feature_data(20, 8, seed=1))


@pytest.fixture
def grouped_matrix():
    """12 time series in two classes x 6 operations, no missing values."""
    groups = ['A'] * 6 + ['B'] * 6
    return make_feature_matrix(generate_feature_data(12, 6, seed=2), groups=groups)


@pytest.fixture
def gappy_matrix():
    """30 time series x 10 operations with 5% missing values."""
    return make_feature_matrix(generate_feature_data(30, 10, missing_fraction=0.05, seed=3))


@pytest.fixture
def hctsa_file(tmp_path):
    """A raw ``HCTSA.mat`` with 15 time series x 6 operations in two classes."""
    groups = ['A'] * 8 + ['B'] * 7
    matrix = make_feature_matrix(generate_feature_data(15, 6, seed=4), groups=groups)
    return write_hctsa_file(tmp_path / "HCTSA.mat", make_dataset(matrix))
