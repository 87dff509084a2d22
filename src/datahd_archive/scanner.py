from __future__ import annotations

import os
from typing import BinaryIO, Iterator
from warnings import warn

from datahd_core.errors import InvalidNameOffset, NameOffsetOutOfRange, StreamCapabilityError
from datahd_core.names import NameResolver
from datahd_core.records import RawRecord, RecordCodec


class TableScanner:
    """Walk a headers stream once and yield ``(record, name)`` pairs.

    The table ends at whichever comes first:
      - clean EOF,
      - the layout's all-zero sentinel record,
      - a record whose name is empty,
      - a record whose name was already emitted (the packer repeats the
        final entry; the repeat is dropped and the first one kept).
    A partial record raises TruncatedTable.
    """

    def __init__(self, stream: BinaryIO, version, resolver: NameResolver):
        if not (stream.readable() and stream.seekable()):
            raise StreamCapabilityError("headers stream must be readable and seekable")
        self.stream = stream
        start = stream.tell()
        self.stream_size = stream.seek(0, os.SEEK_END)
        stream.seek(start)
        self.codec = RecordCodec(version)
        self.resolver = resolver
        self.scan_stats = {
            "records": 0,
            "entries": 0,
            "empty_entries": 0,
            "discarded": 0,
            "terminated_by": None,
            "table_bytes": 0,
        }

    @property
    def version(self):
        return self.codec.version

    def _stop(self, reason: str) -> None:
        self.scan_stats["terminated_by"] = reason
        self.scan_stats["table_bytes"] = self.scan_stats["records"] * self.codec.record_size

    def scan(self) -> Iterator[tuple[RawRecord, str]]:
        f = self.stream
        emitted: dict[str, RawRecord] = {}

        while True:
            record = self.codec.read(f)

            # Clean EOF
            if record is None:
                self._stop("eof")
                return

            self.scan_stats["records"] += 1

            if self.codec.is_sentinel(record):
                self._stop("sentinel")
                return

            position = f.tell()
            if record.name_offset <= 0 or record.name_offset < position:
                raise InvalidNameOffset(record.name_offset, position)
            # An offset exactly at EOF reads as an empty name.
            if record.name_offset > self.stream_size:
                raise NameOffsetOutOfRange(record.name_offset, position, self.stream_size)

            name = self.resolver.resolve(record.name_offset)
            if not name:
                self._stop("empty_name")
                return

            first = emitted.get(name)
            if first is not None:
                self.scan_stats["discarded"] += 1
                if first != record:
                    warn(
                        f"Trailing record for {name!r} differs from its first occurrence; "
                        "keeping the first."
                    )
                self._stop("duplicate_name")
                return

            emitted[name] = record
            self.scan_stats["entries"] += 1
            if record.byte_length == 0:
                self.scan_stats["empty_entries"] += 1
            yield record, name

    def __iter__(self) -> Iterator[tuple[RawRecord, str]]:
        return self.scan()

    def get_scan_stats(self) -> dict:
        return dict(self.scan_stats)
