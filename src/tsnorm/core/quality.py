"""
Quality code system for marking why a feature value is unusable.

Every entry of a feature matrix carries an integer quality code computed at
feature-extraction time. Zero means the operation returned a usable real
number; any positive code means the value must be treated as missing, for a
documented reason.

Engineering Design:
    Unlike bitwise provenance flags, quality codes are mutually exclusive:
    a value failed for exactly one reason. IntEnum gives readable names while
    keeping plain integer storage in the quality matrix:
    - Fast vectorized checks: quality > 0
    - Compatible with codes written by other tools (unknown codes stay ints)

Examples:
    >>> import numpy as np
    >>> from tsnorm.core.quality import QualityCode, describe_quality
    >>>
    >>> quality = np.array([[0, 2], [3, 0]])
    >>> n_bad = np.sum(quality > QualityCode.GOOD)
    >>> describe_quality(quality)
    {'NAN': 1, 'INF': 1}
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

__all__ = ['QualityCode', 'describe_quality', 'is_invalid']


class QualityCode(IntEnum):
    """
    Per-value quality codes for feature matrices.

    Attributes:
        GOOD: Operation returned a real, finite value (0)
        FATAL_ERROR: Operation raised an error on this time series (1)
        NAN: Operation returned NaN (2)
        INF: Operation returned +Inf (3)
        NEG_INF: Operation returned -Inf (4)
        COMPLEX: Operation returned a complex number (5)
        EMPTY: Operation returned an empty result (6)
        LINK_ERROR: Output could not be linked to its master operation (7)
    """

    GOOD = 0
    FATAL_ERROR = 1
    NAN = 2
    INF = 3
    NEG_INF = 4
    COMPLEX = 5
    EMPTY = 6
    LINK_ERROR = 7


def is_invalid(quality: np.ndarray) -> np.ndarray:
    """Boolean mask of entries whose quality code marks them unusable."""
    return np.asarray(quality) > QualityCode.GOOD


def describe_quality(quality: np.ndarray) -> dict[str, int]:
    """
    Count invalid entries per quality code.

    Codes not defined in QualityCode are reported under their integer value
    so that nothing is silently dropped from the summary.

    Args:
        quality: Integer quality matrix

    Returns:
        Mapping from code name to count, for positive codes only
    """
    codes, counts = np.unique(np.asarray(quality), return_counts=True)
    summary: dict[str, int] = {}
    for code, count in zip(codes, counts):
        if code <= QualityCode.GOOD:
            continue
        try:
            key = QualityCode(int(code)).name
        except ValueError:
            key = str(int(code))
        summary[key] = int(count)
    return summary
