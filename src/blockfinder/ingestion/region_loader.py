"""Region file reading and chunk decoding.

A region file starts with an 8 KiB header: 1024 location entries (3-byte
sector offset, 1-byte sector count) followed by 1024 timestamps. Every present
chunk is a length-prefixed, compressed NBT compound. NBT parsing is delegated
to nbtlib; bit-packed block states are unpacked with numpy.
"""

from __future__ import annotations

import gzip
import io
import logging
import struct
import zlib
from dataclasses import dataclass
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

import nbtlib
import numpy as np

from blockfinder.errors import DecodeError
from blockfinder.models import DecodedChunk
from blockfinder.search.coordinates import CHUNK_SIZE, CHUNKS_PER_REGION

LOGGER = logging.getLogger(__name__)

SECTOR_BYTES = 4096
HEADER_BYTES = 2 * SECTOR_BYTES
SECTION_VOLUME = CHUNK_SIZE * CHUNK_SIZE * CHUNK_SIZE
AIR = "minecraft:air"

COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NONE = 3
# Set on the compression byte when the payload lives in a separate .mcc file.
EXTERNAL_FLAG = 0x80


@dataclass(frozen=True, slots=True)
class ChunkBlob:
    """Raw chunk payload with its local position inside the region."""

    x: int
    z: int
    compression: int
    payload: bytes


def _read_locations(header: bytes) -> List[Tuple[int, int]]:
    locations: List[Tuple[int, int]] = []
    for index in range(CHUNKS_PER_REGION * CHUNKS_PER_REGION):
        entry = header[index * 4 : index * 4 + 4]
        locations.append((int.from_bytes(entry[:3], "big"), entry[3]))
    return locations


def iter_chunk_blobs(stream: BinaryIO) -> Iterator[ChunkBlob]:
    """Yield the raw payload of every chunk present in a region stream."""
    header = stream.read(HEADER_BYTES)
    if not header:
        # The game leaves empty region files behind for never-saved regions.
        return
    if len(header) < HEADER_BYTES:
        raise DecodeError(f"Truncated region header ({len(header)} bytes)")

    for index, (offset, sector_count) in enumerate(_read_locations(header)):
        if offset == 0 or sector_count == 0:
            continue
        x, z = index % CHUNKS_PER_REGION, index // CHUNKS_PER_REGION

        stream.seek(offset * SECTOR_BYTES)
        prefix = stream.read(5)
        if len(prefix) < 5:
            raise DecodeError(f"Chunk ({x}, {z}) points past the end of the region file")
        length, compression = struct.unpack(">IB", prefix)
        if length < 1:
            raise DecodeError(f"Chunk ({x}, {z}) has an empty payload")

        payload = stream.read(length - 1)
        if len(payload) < length - 1:
            raise DecodeError(f"Chunk ({x}, {z}) payload is truncated")
        yield ChunkBlob(x=x, z=z, compression=compression, payload=payload)


def decompress(blob: ChunkBlob) -> bytes:
    if blob.compression & EXTERNAL_FLAG:
        raise DecodeError(
            f"Chunk ({blob.x}, {blob.z}) is stored in an external .mcc file, which is not supported"
        )
    try:
        if blob.compression == COMPRESSION_GZIP:
            return gzip.decompress(blob.payload)
        if blob.compression == COMPRESSION_ZLIB:
            return zlib.decompress(blob.payload)
    except (OSError, EOFError, zlib.error) as exc:
        raise DecodeError(f"Chunk ({blob.x}, {blob.z}) failed to decompress: {exc}") from exc
    if blob.compression == COMPRESSION_NONE:
        return blob.payload
    raise DecodeError(f"Chunk ({blob.x}, {blob.z}) uses unknown compression type {blob.compression}")


def decode_chunk(blob: ChunkBlob) -> DecodedChunk:
    """Decompress and parse a chunk payload into its block data."""
    raw = decompress(blob)
    try:
        root = nbtlib.File.parse(io.BytesIO(raw), byteorder="big")
    except Exception as exc:
        raise DecodeError(f"Chunk ({blob.x}, {blob.z}) has malformed NBT data: {exc}") from exc
    return chunk_from_nbt(root, blob.x, blob.z)


def iter_chunks(stream: BinaryIO) -> Iterator[DecodedChunk]:
    for blob in iter_chunk_blobs(stream):
        yield decode_chunk(blob)


def chunk_from_nbt(root: nbtlib.Compound, x: int, z: int) -> DecodedChunk:
    """Build a DecodedChunk from a chunk's root compound.

    Handles the 1.18+ layout (top-level ``Status`` and ``sections`` with
    ``block_states``) and the 1.16/1.17 layout (everything under ``Level``,
    with ``Palette`` and ``BlockStates`` per section). Any tag of the wrong
    type is reported as a DecodeError.
    """
    palette: List[str] = []
    palette_positions: Dict[str, int] = {}

    def palette_index(name: str) -> int:
        if name not in palette_positions:
            palette_positions[name] = len(palette)
            palette.append(name)
        return palette_positions[name]

    sections_by_y: Dict[int, np.ndarray] = {}
    try:
        _expect_tag(root, nbtlib.Compound, "root")
        legacy = "Level" in root
        if legacy:
            container = _expect_tag(root["Level"], nbtlib.Compound, "Level")
            sections = container.get("Sections")
        else:
            container = root
            sections = container.get("sections")

        status_tag = container.get("Status")
        status = ""
        if status_tag is not None:
            status = _expect_tag(status_tag, nbtlib.String, "Status").unpack()

        if sections is not None:
            _expect_tag(sections, nbtlib.List, "sections")
        for section in sections or []:
            _expect_tag(section, nbtlib.Compound, "section")
            states = _section_states(section, legacy)
            if states is None:
                continue
            names, data = states
            local_indices = unpack_block_states(data, len(names))
            remap = np.array([palette_index(name) for name in names], dtype=np.int64)
            sections_by_y[int(section["Y"])] = remap[local_indices]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise DecodeError(f"Chunk ({x}, {z}) has malformed chunk data: {exc}") from exc

    if not sections_by_y:
        return DecodedChunk(
            x=x,
            z=z,
            status=status,
            y_start=0,
            y_end=0,
            palette=palette,
            block_indices=np.empty(0, dtype=np.int64),
        )

    bottom, top = min(sections_by_y), max(sections_by_y)
    air_section: Optional[np.ndarray] = None
    layers: List[np.ndarray] = []
    for section_y in range(bottom, top + 1):
        layer = sections_by_y.get(section_y)
        if layer is None:
            if air_section is None:
                air_section = np.full(SECTION_VOLUME, palette_index(AIR), dtype=np.int64)
            layer = air_section
        layers.append(layer)

    LOGGER.debug("Decoded chunk (%s, %s) with status %s", x, z, status)
    return DecodedChunk(
        x=x,
        z=z,
        status=status,
        y_start=bottom * CHUNK_SIZE,
        y_end=(top + 1) * CHUNK_SIZE,
        palette=palette,
        block_indices=np.concatenate(layers),
    )


def _section_states(section: nbtlib.Compound, legacy: bool):
    if legacy:
        palette = section.get("Palette")
        data = section.get("BlockStates")
    else:
        block_states = section.get("block_states")
        if block_states is None:
            return None
        _expect_tag(block_states, nbtlib.Compound, "block_states")
        palette = block_states.get("palette")
        data = block_states.get("data")
    if not palette:
        return None
    _expect_tag(palette, nbtlib.List, "palette")
    names = []
    for entry in palette:
        entry = _expect_tag(entry, nbtlib.Compound, "palette entry")
        names.append(_expect_tag(entry["Name"], nbtlib.String, "Name").unpack())
    return names, data


def _expect_tag(tag, kind: type, what: str):
    if not isinstance(tag, kind):
        raise TypeError(f"{what} should be a {kind.__name__}, got {type(tag).__name__}")
    return tag


def unpack_block_states(data, palette_size: int) -> np.ndarray:
    """Unpack a section's long array into 4096 palette indices.

    Entries never span two longs; each long holds ``64 // bits`` entries,
    lowest bits first.
    """
    if data is None or palette_size <= 1:
        return np.zeros(SECTION_VOLUME, dtype=np.int64)

    bits = max(4, (palette_size - 1).bit_length())
    per_long = 64 // bits
    needed = -(-SECTION_VOLUME // per_long)

    longs = np.asarray(data, dtype=np.int64).view(np.uint64)
    if len(longs) < needed:
        raise DecodeError(f"Block state array too short: {len(longs)} longs, expected {needed}")

    shifts = np.arange(per_long, dtype=np.uint64) * np.uint64(bits)
    mask = np.uint64((1 << bits) - 1)
    values = (longs[:needed, None] >> shifts) & mask
    indices = values.reshape(-1)[:SECTION_VOLUME].astype(np.int64)
    if int(indices.max()) >= palette_size:
        raise DecodeError("Block state index outside of the section palette")
    return indices
