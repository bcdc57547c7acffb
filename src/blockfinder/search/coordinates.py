"""Region filename to world-space origin."""

from __future__ import annotations

import re
from pathlib import Path

from blockfinder.errors import InvalidFilename
from blockfinder.models import RegionOrigin

CHUNK_SIZE = 16
CHUNKS_PER_REGION = 32
REGION_SIZE = CHUNK_SIZE * CHUNKS_PER_REGION

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_REGION_NAME = re.compile(r"r\.(-?\d+)\.(-?\d+)\.mca")


def region_coordinates(filename: str | Path) -> RegionOrigin:
    """Return the world coordinate of block (0, 0) of the region file ``r.X.Z.mca``."""
    name = Path(filename).name
    match = _REGION_NAME.fullmatch(name)
    if match is None:
        raise InvalidFilename(f"Region file must be in the format r.X.Z.mca, got {name!r}")

    region_x, region_z = int(match.group(1)), int(match.group(2))
    x, z = region_x * REGION_SIZE, region_z * REGION_SIZE
    if not (_INT32_MIN <= x <= _INT32_MAX and _INT32_MIN <= z <= _INT32_MAX):
        raise InvalidFilename(f"Region index out of range in {name!r}")
    return RegionOrigin(x, z)
