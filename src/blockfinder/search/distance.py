"""Distance pruning at region and chunk granularity."""

from __future__ import annotations

from typing import Optional

from blockfinder.models import DistanceFilter, Point, RegionOrigin
from blockfinder.search.coordinates import CHUNK_SIZE, REGION_SIZE

# Offset of the last chunk origin inside a region.
_LAST_CHUNK_OFFSET = REGION_SIZE - CHUNK_SIZE


def within(point: Point, distance_filter: Optional[DistanceFilter]) -> bool:
    """Return True when ``point`` lies within the filter's radius (always True without a filter)."""
    if distance_filter is None:
        return True
    origin_x, origin_z = distance_filter.origin
    dx = point[0] - origin_x
    dz = point[1] - origin_z
    return dx * dx + dz * dz <= distance_filter.max_distance**2


def chunk_within(chunk_origin: Point, distance_filter: Optional[DistanceFilter]) -> bool:
    return within(chunk_origin, distance_filter)


def region_within(region: RegionOrigin, distance_filter: Optional[DistanceFilter]) -> bool:
    """Test the point of the region's chunk-origin area closest to the filter origin.

    A region rejected here contains no chunk that ``chunk_within`` would accept,
    so the whole file can be skipped before decoding.
    """
    if distance_filter is None:
        return True
    origin_x, origin_z = distance_filter.origin
    nearest = (
        _clamp(origin_x, region.x, region.x + _LAST_CHUNK_OFFSET),
        _clamp(origin_z, region.z, region.z + _LAST_CHUNK_OFFSET),
    )
    return within(nearest, distance_filter)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))
