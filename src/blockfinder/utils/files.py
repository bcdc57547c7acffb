"""Utility helpers for working with region directories."""

from __future__ import annotations

from pathlib import Path
from typing import List

from blockfinder.errors import InvalidParameter, RegionIOError


def list_region_paths(directory: Path) -> List[Path]:
    """Return every file in ``directory``, sorted by name.

    Each entry is treated as a region file; names are validated later, per file.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise InvalidParameter(f"Region directory not found: {directory}")
    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        raise RegionIOError(f"Cannot list {directory}: {exc}") from exc
    return sorted((entry for entry in entries if entry.is_file()), key=lambda entry: entry.name)
