"""Core blockfinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from blockfinder.errors import BlockFinderError, InvalidParameter

Point = Tuple[int, int]
Coordinates = Tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class RegionOrigin:
    """World-space coordinate of block (0, 0) of a region file."""

    x: int
    z: int


@dataclass(frozen=True, slots=True)
class DistanceFilter:
    """Horizontal radius around an origin point."""

    origin: Point
    max_distance: int

    def __post_init__(self) -> None:
        if self.max_distance < 0:
            raise InvalidParameter(
                f"Maximum distance must not be negative, got {self.max_distance}"
            )


@dataclass(slots=True)
class DecodedChunk:
    """Block data of one chunk, as produced by the region loader.

    ``block_indices`` is a flat array into ``palette``; linear index ``i``
    sits at local offset ``(i % 16, i // 256, (i // 16) % 16)`` as (x, y, z)
    above ``y_start``.
    """

    x: int
    z: int
    status: str
    y_start: int
    y_end: int
    palette: List[str]
    block_indices: np.ndarray

    def block_name(self, position: int) -> str:
        """Name of the block at linear index ``position``."""
        return self.palette[int(self.block_indices[position])]


@dataclass(frozen=True, slots=True)
class BlockMatch:
    coordinates: Coordinates
    name: str


@dataclass(slots=True)
class ChunkResult:
    """Matching blocks of a single chunk, keyed by the chunk's world origin."""

    chunk: Coordinates
    blocks: List[BlockMatch]


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Parameters of one search run."""

    block: str
    path: Path
    origin: Optional[Point] = None
    max_distance: Optional[int] = None
    show_all: bool = False

    @property
    def distance_filter(self) -> Optional[DistanceFilter]:
        if self.max_distance is None:
            return None
        return DistanceFilter(self.origin or (0, 0), self.max_distance)


@dataclass(slots=True)
class FileOutcome:
    """Result of scanning one region file, or the error that stopped it."""

    path: Path
    region: Optional[RegionOrigin] = None
    results: List[ChunkResult] = field(default_factory=list)
    pruned: bool = False
    error: Optional[BlockFinderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class SearchStats:
    scanned: int = 0
    pruned: int = 0
    failed: int = 0
    chunks: int = 0

    def increment(self, outcome: FileOutcome) -> None:
        if not outcome.ok:
            self.failed += 1
        elif outcome.pruned:
            self.pruned += 1
        else:
            self.scanned += 1
        self.chunks += len(outcome.results)
