"""Column-wise normalization strategies for feature matrices."""

from tsnorm.stats.normalization import (
    NormalizationStrategy,
    Normalizer,
    available_strategies,
    get_strategy,
    normalize_matrix,
    register_strategy,
)

__all__ = [
    'NormalizationStrategy',
    'Normalizer',
    'available_strategies',
    'get_strategy',
    'normalize_matrix',
    'register_strategy',
]
