"""
Trimming stages for feature matrices.

Components:
    QualityMasker: Unify non-finite and bad-quality entries as NaN
    MissingValueFilter: Remove time series / operations with too few good values
    ConstantColumnFilter: Remove operations that do not vary across the dataset
    ClassConstantColumnFilter: Remove operations that do not vary within a class
    AllMissingColumnFilter: Remove operations left entirely NaN by normalization

Typical order:
    1. Mask (QualityMasker)
    2. Filter time series, then operations (MissingValueFilter)
    3. Remove constant operations (ConstantColumnFilter, optionally
       ClassConstantColumnFilter)
    4. Normalize (tsnorm.stats.normalization)
    5. Remove all-NaN, then constant operations again

Examples:
    >>> from tsnorm.quality import QualityMasker, MissingValueFilter
    >>>
    >>> masked = QualityMasker().apply(matrix)
    >>> trimmed = MissingValueFilter(0.7, axis="time_series").apply(masked)
"""

from tsnorm.quality.degeneracy import (
    AllMissingColumnFilter,
    ClassConstantColumnFilter,
    ConstantColumnFilter,
    all_missing_columns,
    class_constant_columns,
    constant_columns,
)
from tsnorm.quality.filtering import MissingValueFilter, filter_missing
from tsnorm.quality.masking import QualityMasker, mask_invalid

__all__ = [
    'QualityMasker',
    'mask_invalid',
    'MissingValueFilter',
    'filter_missing',
    'ConstantColumnFilter',
    'ClassConstantColumnFilter',
    'AllMissingColumnFilter',
    'constant_columns',
    'class_constant_columns',
    'all_missing_columns',
]
