"""
tsnorm - Trimming and Normalization of Time-Series Feature Matrices

Removes time series and operations with too many special values, drops
operations that carry no information, and rescales each operation so that
features computed by thousands of different algorithms become comparable.
"""

__version__ = "0.1.0"

from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.transform import Transform
from tsnorm.core.quality import QualityCode
from tsnorm.pipeline import NormalizationPipeline, trim_and_normalize

__all__ = [
    "FeatureMatrix",
    "Transform",
    "QualityCode",
    "NormalizationPipeline",
    "trim_and_normalize",
]
