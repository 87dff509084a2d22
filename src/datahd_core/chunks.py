"""Chunk addressing for the flat data store."""
from __future__ import annotations

from .protocol import CHUNK_SIZE


def offset_of(chunk_index: int) -> int:
    """Byte offset of the first byte of ``chunk_index``."""
    return chunk_index * CHUNK_SIZE


def chunk_count_of(byte_length: int) -> int:
    """Number of chunks needed to hold ``byte_length`` bytes."""
    return -(-byte_length // CHUNK_SIZE)
