"""Error kinds raised while searching region files."""

from __future__ import annotations


class BlockFinderError(Exception):
    """Base class for every error blockfinder reports."""


class InvalidFilename(BlockFinderError):
    """Region filename does not follow ``r.<X>.<Z>.mca``."""


class RegionIOError(BlockFinderError):
    """A region file could not be opened or read."""


class DecodeError(BlockFinderError):
    """Region or chunk payload is malformed."""


class MissingParameter(BlockFinderError):
    """A required search parameter was supplied neither on the CLI nor in the config."""


class InvalidParameter(BlockFinderError):
    """A search parameter or configuration value is out of range or of the wrong type."""
