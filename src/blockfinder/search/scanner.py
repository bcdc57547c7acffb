"""Per-chunk and per-file block scanning."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional

import numpy as np

from blockfinder.errors import BlockFinderError, RegionIOError
from blockfinder.ingestion.region_loader import iter_chunks
from blockfinder.models import (
    BlockMatch,
    ChunkResult,
    DecodedChunk,
    DistanceFilter,
    FileOutcome,
    RegionOrigin,
)
from blockfinder.search.coordinates import CHUNK_SIZE, region_coordinates
from blockfinder.search.distance import chunk_within, region_within

LOGGER = logging.getLogger(__name__)

FULLY_GENERATED = frozenset({"minecraft:full", "full"})

_LAYER = CHUNK_SIZE * CHUNK_SIZE


def is_fully_generated(chunk: DecodedChunk) -> bool:
    return chunk.status in FULLY_GENERATED


def chunk_origin(chunk: DecodedChunk, region: RegionOrigin) -> tuple[int, int, int]:
    return (
        region.x + chunk.x * CHUNK_SIZE,
        chunk.y_start,
        region.z + chunk.z * CHUNK_SIZE,
    )


def scan_chunk(chunk: DecodedChunk, region: RegionOrigin, block: str) -> Optional[ChunkResult]:
    """Collect every block of ``chunk`` whose name contains ``block``.

    Chunks that are not fully generated are skipped. Returns None when nothing
    matches.
    """
    if not is_fully_generated(chunk):
        return None

    matching = [index for index, name in enumerate(chunk.palette) if block in name]
    if not matching:
        return None

    positions = np.flatnonzero(np.isin(chunk.block_indices, matching))
    if positions.size == 0:
        return None

    origin_x, origin_y, origin_z = chunk_origin(chunk, region)
    blocks: List[BlockMatch] = []
    for position in positions.tolist():
        name = chunk.block_name(position)
        coordinates = (
            origin_x + position % CHUNK_SIZE,
            origin_y + position // _LAYER,
            origin_z + (position // CHUNK_SIZE) % CHUNK_SIZE,
        )
        blocks.append(BlockMatch(coordinates, name))
    return ChunkResult(chunk=(origin_x, origin_y, origin_z), blocks=blocks)


def scan_chunks(
    chunks: Iterable[DecodedChunk],
    region: RegionOrigin,
    block: str,
    distance_filter: Optional[DistanceFilter] = None,
) -> List[ChunkResult]:
    results: List[ChunkResult] = []
    for chunk in chunks:
        origin_x, _, origin_z = chunk_origin(chunk, region)
        if not chunk_within((origin_x, origin_z), distance_filter):
            LOGGER.debug("Chunk at %s %s is out of range", origin_x, origin_z)
            continue
        result = scan_chunk(chunk, region, block)
        if result is not None:
            results.append(result)
    return results


def find_blocks(
    filename: str | Path,
    stream: BinaryIO,
    block: str,
    distance_filter: Optional[DistanceFilter] = None,
) -> List[ChunkResult]:
    """Search one region stream; errors propagate to the caller."""
    region = region_coordinates(filename)
    if not region_within(region, distance_filter):
        return []
    return scan_chunks(iter_chunks(stream), region, block, distance_filter)


def scan_region(
    path: Path,
    block: str,
    distance_filter: Optional[DistanceFilter] = None,
) -> FileOutcome:
    """Scan a single region file, capturing any failure in the outcome."""
    path = Path(path)
    outcome = FileOutcome(path=path)
    try:
        outcome.region = region_coordinates(path)
        if not region_within(outcome.region, distance_filter):
            LOGGER.debug("Skipping %s: region is out of range", path.name)
            outcome.pruned = True
            return outcome

        try:
            with path.open("rb") as handle:
                outcome.results = scan_chunks(
                    iter_chunks(handle), outcome.region, block, distance_filter
                )
        except OSError as exc:
            raise RegionIOError(f"Cannot read {path}: {exc}") from exc
    except BlockFinderError as exc:
        outcome.error = exc
    return outcome
