"""Ordering and formatting of search results."""

from __future__ import annotations

from collections import Counter
from typing import Iterator, List, Optional, Sequence

from blockfinder.models import ChunkResult, Point


def squared_distance(result: ChunkResult, origin: Point) -> int:
    x, _, z = result.chunk
    return (x - origin[0]) ** 2 + (z - origin[1]) ** 2


def sort_results(results: Sequence[ChunkResult], origin: Optional[Point]) -> List[ChunkResult]:
    """Order chunks nearest-first; ties fall back to the chunk coordinates."""
    if origin is None:
        return list(results)
    return sorted(results, key=lambda result: (squared_distance(result, origin), result.chunk))


def group_counts(result: ChunkResult) -> Counter[str]:
    """Count matches per block name, in first-seen order."""
    return Counter(block.name for block in result.blocks)


def iter_lines(results: Sequence[ChunkResult], show_all: bool) -> Iterator[str]:
    for result in results:
        if show_all:
            for block in result.blocks:
                x, y, z = block.coordinates
                yield f"{x} {y} {z} - {block.name}"
        else:
            x, y, z = result.chunk
            for name, count in group_counts(result).items():
                yield f"{x} {y} {z} - {name} ({count})"


def format_results(results: Sequence[ChunkResult], show_all: bool) -> List[str]:
    return list(iter_lines(results, show_all))
