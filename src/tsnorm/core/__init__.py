"""
Core data structures and abstractions for feature-matrix trimming.

This module provides the foundational types that all other modules build upon:

1. FeatureMatrix: Feature values with quality codes and row/column metadata
2. QualityCode: Integer codes explaining why a value is unusable
3. Transform: Abstract base class for immutable matrix stages
4. FeatureDataset / NormalizedDataset: Input and output bundles

Design Philosophy:
    - Immutability: All operations return new instances
    - Atomic selection: rows/columns are removed from every component at once
    - Explicit errors: every fatal condition has its own exception type

Examples:
    >>> from tsnorm.core import FeatureMatrix, QualityCode
    >>>
    >>> n_bad = np.sum(matrix.quality > QualityCode.GOOD)
"""

from tsnorm.core.dataset import (
    ClusteringInfo,
    FeatureDataset,
    NormalizationInfo,
    NormalizedDataset,
    assemble_result,
)
from tsnorm.core.exceptions import (
    AllColumnsInvalidError,
    AllDegenerateError,
    AllRemovedError,
    InsufficientDataError,
    InvalidConfigurationError,
    TsNormError,
)
from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.options import FilterOptions, NormalizeOptions
from tsnorm.core.quality import QualityCode
from tsnorm.core.transform import Transform

__all__ = [
    'FeatureMatrix',
    'QualityCode',
    'Transform',
    'FeatureDataset',
    'NormalizedDataset',
    'NormalizationInfo',
    'ClusteringInfo',
    'assemble_result',
    'FilterOptions',
    'NormalizeOptions',
    'TsNormError',
    'InvalidConfigurationError',
    'AllRemovedError',
    'AllDegenerateError',
    'AllColumnsInvalidError',
    'InsufficientDataError',
]
