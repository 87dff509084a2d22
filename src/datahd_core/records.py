"""Fixed-size table-of-contents record codec."""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from .errors import TruncatedTable, UnsupportedVersion
from .protocol import EXTENSIONS, FormatVersion


@dataclass(frozen=True)
class RawRecord:
    """One table-of-contents record, normalized across layouts.

    Fields the active layout does not store are ``None``; they are derived
    when the catalog is built.
    """

    name_offset: int
    byte_length: int
    chunk_offset: int
    byte_offset: int | None = None
    chunk_count: int | None = None


def coerce_version(value) -> FormatVersion:
    """Accept a FormatVersion, 2/3/4, "V3", "3", "hd3" or ".hd3"."""
    if isinstance(value, FormatVersion):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return FormatVersion(value)
        except ValueError:
            raise UnsupportedVersion(str(value)) from None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in EXTENSIONS:
            return EXTENSIONS[text]
        for prefix in (".hd", "hd", "v"):
            if text.startswith(prefix):
                text = text[len(prefix):]
                break
        if text.isdigit():
            return coerce_version(int(text))
    raise UnsupportedVersion(repr(value))


class RecordCodec:
    """Decode and encode records of one layout.

    One buffer is reused for every ``read``/``encode`` call, so an instance
    must not be shared between interleaved readers and writers.
    """

    def __init__(self, version):
        self.version = coerce_version(version)
        self._struct = struct.Struct(self.version.record_format)
        self._buffer = bytearray(self._struct.size)
        self._view = memoryview(self._buffer)

    @property
    def record_size(self) -> int:
        return self._struct.size

    def decode(self, data) -> RawRecord:
        if len(data) != self._struct.size:
            raise ValueError(
                f"{self.version.name} record needs {self._struct.size} bytes, got {len(data)}"
            )
        fields = self._struct.unpack(data)

        if self.version is FormatVersion.V2:
            name_off, _r0, _r1, _r2, byte_off, byte_len, chunk_off, chunk_cnt = fields
            return RawRecord(name_off, byte_len, chunk_off, byte_off, chunk_cnt)
        if self.version is FormatVersion.V3:
            name_off, byte_len, chunk_off, chunk_cnt = fields
            return RawRecord(name_off, byte_len, chunk_off, None, chunk_cnt)
        name_off, byte_len, chunk_off = fields
        return RawRecord(name_off, byte_len, chunk_off)

    def encode(self, record: RawRecord) -> bytes:
        byte_off = record.byte_offset or 0
        chunk_cnt = record.chunk_count or 0

        if self.version is FormatVersion.V2:
            values = (record.name_offset, 0, 0, 0, byte_off, record.byte_length, record.chunk_offset, chunk_cnt)
        elif self.version is FormatVersion.V3:
            values = (record.name_offset, record.byte_length, record.chunk_offset, chunk_cnt)
        else:
            values = (record.name_offset, record.byte_length, record.chunk_offset)

        self._struct.pack_into(self._buffer, 0, *values)
        return bytes(self._buffer)

    def read(self, stream: BinaryIO) -> RawRecord | None:
        """Read the next record.

        Returns None on clean EOF. A partial block raises TruncatedTable.
        """
        start = stream.tell()
        size = self._struct.size
        got = 0
        while got < size:
            n = stream.readinto(self._view[got:])
            if not n:
                break
            got += n

        if got == 0:
            return None
        if got < size:
            raise TruncatedTable(start, got, size)
        return self.decode(self._view)

    def write(self, stream: BinaryIO, record: RawRecord) -> int:
        return stream.write(self.encode(record))

    def is_sentinel(self, record: RawRecord) -> bool:
        """True for the all-zero record that closes a table."""
        if record.byte_length != 0 or record.chunk_offset != 0:
            return False
        if self.version.stores_chunk_count:
            return record.chunk_count == 0
        return True
