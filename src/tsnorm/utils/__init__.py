"""Utility modules for feature-matrix processing."""

from tsnorm.utils.fileio import (
    atomic_path,
    atomic_write_json,
)
from tsnorm.utils.statistics import (
    constant_tolerance,
    nanstd_columns,
    percent_good,
)

__all__ = [
    # Atomic file-write utilities
    'atomic_path',
    'atomic_write_json',
    # Statistical utilities
    'constant_tolerance',
    'nanstd_columns',
    'percent_good',
]
