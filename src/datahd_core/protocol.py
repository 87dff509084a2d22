"""DATA.HD protocol constants.

Single source of truth for the table-of-contents record layouts and the
flat store addressing. Keep this file stable. Scanner, codec and the
sample-archive tool must remain synchronized.
"""
from __future__ import annotations

from enum import Enum

# Flat store addressing unit; every logical file starts on a chunk boundary.
CHUNK_SIZE = 2048

# Canonical file names as found on disc
DATA_FILE_NAME = "DATA.DAT"
HEADER_FILE_STEM = "DATA"

# Legacy double-byte codepage used for non-ASCII names and text assets
DEFAULT_NAME_ENCODING = "cp932"

# Default safety bounds
DEFAULT_MAX_NAME_BYTES = 1024  # a single name run; real names are < 64 bytes

# Extraction copy buffer
COPY_BUFFER_SIZE = 8 * 1024


class FormatVersion(Enum):
    """Table-of-contents layout generation.

    V2 is data.hd2 (Dark Cloud), V3 and V4 are data.hd3 / data.hd4
    (Dark Chronicle).
    """

    V2 = 2
    V3 = 3
    V4 = 4

    @property
    def record_format(self) -> str:
        return RECORD_FORMATS[self]

    @property
    def record_size(self) -> int:
        return RECORD_SIZES[self]

    @property
    def stores_byte_offset(self) -> bool:
        return self is FormatVersion.V2

    @property
    def stores_chunk_count(self) -> bool:
        return self is not FormatVersion.V4

    @property
    def extension(self) -> str:
        return f".hd{self.value}"

    @property
    def header_file_name(self) -> str:
        return f"{HEADER_FILE_STEM}.HD{self.value}"


# All fields are little-endian signed 32-bit, sequential, no padding.
# V2: nameOffset, 3 x reserved, byteOffset, byteLength, chunkOffset, chunkCount
# V3: nameOffset, byteLength, chunkOffset, chunkCount
# V4: nameOffset, byteLength, chunkOffset
RECORD_FORMATS = {
    FormatVersion.V2: "<8i",
    FormatVersion.V3: "<4i",
    FormatVersion.V4: "<3i",
}
RECORD_SIZES = {
    FormatVersion.V2: 32,
    FormatVersion.V3: 16,
    FormatVersion.V4: 12,
}

EXTENSIONS = {v.extension: v for v in FormatVersion}
