"""
Base transformation framework for immutable feature-matrix operations.

Every trimming and normalization stage is a Transform: a pure function from
one FeatureMatrix to a new FeatureMatrix. Stages never modify their input, so
each can be unit-tested in isolation and the pipeline can keep the matrix
produced by any earlier stage.

Engineering Design:
    Pure Functions:
        - No side effects on the input matrix
        - Deterministic (same input + params -> same output)
        - Composable (chain stages into a pipeline)

    Injected reporting:
        - Each transform writes progress through a ``logging.Logger`` passed
          in by its caller (defaulting to the module logger), so tests can
          capture or silence reporting without touching global output.

Examples:
    >>> from tsnorm.core.transform import Transform
    >>>
    >>> class DropFirstOperation(Transform):
    ...     def __init__(self):
    ...         super().__init__(name="DropFirstOperation", params={})
    ...
    ...     def apply(self, matrix):
    ...         keep = np.ones(matrix.n_operations, dtype=bool)
    ...         keep[0] = False
    ...         return matrix.select_columns(keep)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from tsnorm.core.featurematrix import FeatureMatrix

__all__ = ['Transform']


class Transform(ABC):
    """
    Abstract base class for all matrix transformations.

    Attributes:
        name: Human-readable transformation name (e.g., "MissingValueFilter")
        params: Dictionary of parameters used for this transformation
        logger: Diagnostic sink for progress messages
    """

    def __init__(
        self,
        name: str,
        params: dict[str, Any],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize transformation with name and parameters.

        Args:
            name: Human-readable transformation name
            params: Dictionary of parameters, JSON-serializable for provenance
            logger: Where to report progress (defaults to the subclass's module logger)
        """
        self.name = name
        self.params = params
        self.logger = logger or logging.getLogger(type(self).__module__)

    @abstractmethod
    def apply(self, matrix: FeatureMatrix) -> FeatureMatrix:
        """
        Execute transformation and return new matrix.

        Must never modify the input matrix.

        Raises:
            TsNormError: If the stage cannot produce a usable matrix
        """
        pass

    def validate(self, matrix: FeatureMatrix) -> list[str]:
        """
        Check preconditions before applying transformation.

        Subclasses should override and call super().validate() first.

        Returns:
            List of error messages (empty list = valid)
        """
        errors: list[str] = []

        if matrix.data.size == 0:
            errors.append("Cannot process empty matrix")

        return errors

    def __repr__(self) -> str:
        """
        String representation for logging and debugging.

        Returns:
            String like "MissingValueFilter(threshold=0.7, axis=time_series)"
        """
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"
