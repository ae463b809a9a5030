"""
Atomic file-write utilities.

Outputs are first written to a temporary file in the destination directory
and then moved into place with ``os.replace()``, so an interrupted save
never leaves a truncated normalized dataset behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Iterator

__all__ = ['atomic_path', 'atomic_write_json']


@contextmanager
def atomic_path(path: str | os.PathLike, suffix: str = ".tmp") -> Iterator[str]:
    """Yield a temporary path that replaces *path* when the block succeeds.

    Parameters
    ----------
    path:
        Destination file path.
    suffix:
        Suffix of the temporary file. Some writers infer the format from the
        extension, so pass e.g. ``".mat"`` when that matters.
    """
    path = str(path)
    dir_path = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(dir=dir_path, suffix=suffix)
    os.close(fd)
    try:
        yield tmp_path
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_write_json(path: str | os.PathLike, data: Any, *, indent: int = 2) -> None:
    """Write *data* as JSON atomically via temp-file + rename."""
    with atomic_path(path) as tmp_path:
        with open(tmp_path, "w") as tmp:
            json.dump(data, tmp, indent=indent)
