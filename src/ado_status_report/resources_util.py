"""Resolve paths to bundled resource files."""

from __future__ import annotations

import importlib.resources
from pathlib import Path


def get_resource_path(filename: str) -> Path:
    """Return the filesystem path to a file inside the ``resources`` package.

    Raises:
        FileNotFoundError: If *filename* does not exist in the resources
            package.
    """
    ref = importlib.resources.files("ado_status_report.resources").joinpath(filename)
    path = Path(str(ref))
    if not path.is_file():
        raise FileNotFoundError(f"Resource not found: {filename}")
    return path
