"""
Exceptions raised by the trimming and normalization pipeline.

All exceptions inherit from TsNormError, itself a ValueError, so callers that
already guard pipeline calls with ``except ValueError`` keep working. Every
error is fatal: it is raised where the problem is detected and the pipeline
stops without writing partial output.
"""

from __future__ import annotations

__all__ = [
    'TsNormError',
    'InvalidConfigurationError',
    'AllRemovedError',
    'AllDegenerateError',
    'AllColumnsInvalidError',
    'InsufficientDataError',
]


class TsNormError(ValueError):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.args[0]}"
        return self.args[0]


class InvalidConfigurationError(TsNormError):
    """Raised when options are invalid, before any data is touched."""
    pass


class AllRemovedError(TsNormError):
    """Raised when a missing-value threshold would remove every row or column."""
    pass


class AllDegenerateError(TsNormError):
    """Raised when every remaining operation has near-constant outputs."""
    pass


class AllColumnsInvalidError(TsNormError):
    """Raised when every column is entirely missing after normalization."""
    pass


class InsufficientDataError(TsNormError):
    """Raised when too few time series remain to normalize across."""

    def __init__(
        self,
        message: str,
        required: int,
        available: int,
        stage: str | None = None,
    ):
        super().__init__(message, stage=stage)
        self.required = required
        self.available = available

    def __str__(self) -> str:
        return (
            f"{super().__str__()} | "
            f"required={self.required}, available={self.available}"
        )
