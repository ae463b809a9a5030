"""
I/O for feature-extraction datasets.

Key Functions:
    - load_dataset: Read a ``.mat`` dataset (matrix, quality codes, metadata)
    - save_normalized: Write a trimmed, normalized dataset back to ``.mat``
    - write_csv_matrix: Export matrix and quality codes to CSV
    - write_metadata: Export time-series and operation metadata to CSV

Examples:
    >>> from pathlib import Path
    >>> from tsnorm.io import load_dataset
    >>>
    >>> dataset = load_dataset(Path("HCTSA.mat"))
    >>> print(f"Loaded {dataset.matrix.n_time_series} time series")
"""

from tsnorm.io.loaders import load_dataset, metadata_table
from tsnorm.io.writers import save_normalized, write_csv_matrix, write_metadata

__all__ = [
    'load_dataset',
    'metadata_table',
    'save_normalized',
    'write_csv_matrix',
    'write_metadata',
]
