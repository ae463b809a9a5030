"""
Dataset bundles passed into and out of the trimming pipeline.

FeatureDataset is what the storage layer loads: the feature matrix plus the
dataset-level provenance stored alongside it. NormalizedDataset is what the
pipeline hands back for saving: the trimmed, normalized matrix, the same
provenance, a record of how normalization was run, and empty clustering
placeholders for a later clustering stage to fill in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.options import FilterOptions

__all__ = [
    'FeatureDataset',
    'NormalizationInfo',
    'ClusteringInfo',
    'NormalizedDataset',
    'assemble_result',
]


@dataclass
class FeatureDataset:
    """
    A loaded feature-extraction dataset.

    Attributes:
        matrix: Feature matrix with quality codes and row/column metadata
        master_operations: Reference table of all operation definitions
            (never filtered)
        from_database: Whether the dataset was retrieved from a database
            (True when the stored file predates this flag)
        group_names: Class label names, empty if none assigned
        git_info: Version-control provenance of the extraction code, if kept
        source: Where the dataset was loaded from
    """

    matrix: FeatureMatrix
    master_operations: pd.DataFrame = field(default_factory=pd.DataFrame)
    from_database: bool = True
    group_names: list[str] = field(default_factory=list)
    git_info: Optional[dict[str, Any]] = None
    source: Optional[Path] = None


@dataclass(frozen=True)
class NormalizationInfo:
    """
    Provenance of a normalization run.

    Attributes:
        norm_function: Name of the normalization strategy applied
        filter_options: Thresholds used for trimming
        code_to_run: Call that reproduces the run
    """

    norm_function: str
    filter_options: FilterOptions
    code_to_run: str

    @classmethod
    def create(cls, norm_function: str, filter_options: FilterOptions) -> NormalizationInfo:
        code_to_run = (
            f"trim_and_normalize('{norm_function}', filter_options="
            f"[{filter_options.row_threshold:f}, {filter_options.column_threshold:f}])"
        )
        return cls(
            norm_function=norm_function,
            filter_options=filter_options,
            code_to_run=code_to_run,
        )


@dataclass
class ClusteringInfo:
    """Clustering details, empty until a clustering stage fills them in."""

    distance_metric: str = "none"
    dij: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))
    ord: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=int))
    linkage_method: str = "none"

    @classmethod
    def default(cls, n: int) -> ClusteringInfo:
        """Placeholder with identity ordering over ``n`` objects."""
        return cls(ord=np.arange(n))


@dataclass
class NormalizedDataset:
    """
    Output bundle of the trimming and normalization pipeline.

    Attributes:
        matrix: Final data, quality codes, time series and operations
        master_operations: Unfiltered operation definitions, kept for reproducibility
        from_database: Provenance flag copied from the input dataset
        group_names: Class label names copied from the input dataset
        normalization_info: How the normalization was run
        git_info: Version-control provenance copied from the input dataset
        ts_clust: Clustering placeholder for time series (rows)
        op_clust: Clustering placeholder for operations (columns)
    """

    matrix: FeatureMatrix
    master_operations: pd.DataFrame
    from_database: bool
    group_names: list[str]
    normalization_info: NormalizationInfo
    git_info: Optional[dict[str, Any]]
    ts_clust: ClusteringInfo
    op_clust: ClusteringInfo


def assemble_result(
    matrix: FeatureMatrix,
    dataset: FeatureDataset,
    normalization_info: NormalizationInfo,
) -> NormalizedDataset:
    """
    Bundle the final matrix with dataset provenance for saving.

    Args:
        matrix: Trimmed and normalized feature matrix
        dataset: The dataset the run started from
        normalization_info: Provenance record of the run

    Returns:
        NormalizedDataset with identity clustering placeholders
    """
    return NormalizedDataset(
        matrix=matrix,
        master_operations=dataset.master_operations,
        from_database=dataset.from_database,
        group_names=list(dataset.group_names),
        normalization_info=normalization_info,
        git_info=dataset.git_info,
        ts_clust=ClusteringInfo.default(matrix.n_time_series),
        op_clust=ClusteringInfo.default(matrix.n_operations),
    )
