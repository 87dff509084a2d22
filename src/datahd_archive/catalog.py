from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator

from datahd_core.chunks import chunk_count_of, offset_of
from datahd_core.errors import DuplicateEntryName, EntryNotFound, InvalidRecord
from datahd_core.protocol import FormatVersion
from datahd_core.records import RawRecord


@dataclass(frozen=True)
class ArchiveEntry:
    """One logical file in the flat store.

    ``index`` is the entry's slot in its catalog. Entries are plain values;
    the owning archive checks them against its catalog when they are used.
    """

    name: str
    byte_offset: int
    byte_length: int
    chunk_offset: int
    chunk_count: int
    index: int = -1

    @property
    def is_empty(self) -> bool:
        return self.byte_length == 0

    @property
    def end_offset(self) -> int:
        return self.byte_offset + self.byte_length

    def __str__(self) -> str:
        return self.name


class Catalog:
    """Ordered, name-indexed, immutable set of entries."""

    def __init__(self, version: FormatVersion, entries: Iterable[ArchiveEntry]):
        self.version = version
        self._entries = tuple(entries)
        by_name: dict[str, ArchiveEntry] = {}
        for e in self._entries:
            if e.name in by_name:
                raise DuplicateEntryName(e.name)
            by_name[e.name] = e
        self._by_name = MappingProxyType(by_name)

    @property
    def entries(self) -> tuple[ArchiveEntry, ...]:
        return self._entries

    @property
    def by_name(self):
        return self._by_name

    def names(self) -> list[str]:
        return [e.name for e in self._entries]

    def get(self, name: str) -> ArchiveEntry:
        try:
            return self._by_name[name]
        except KeyError:
            raise EntryNotFound(name) from None

    def entry(self, index: int) -> ArchiveEntry:
        if not 0 <= index < len(self._entries):
            raise EntryNotFound(f"#{index}")
        return self._entries[index]

    def owns(self, entry: ArchiveEntry) -> bool:
        return 0 <= entry.index < len(self._entries) and self._entries[entry.index] == entry

    def total_bytes(self) -> int:
        return sum(e.byte_length for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self._entries)

    def __contains__(self, name) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"<Catalog {self.version.name} entries={len(self._entries)}>"


def make_entry(version: FormatVersion, record: RawRecord, name: str, index: int) -> ArchiveEntry:
    """Apply the layout's stored-or-derived rules to one record."""
    if record.byte_length < 0 or record.chunk_offset < 0:
        raise InvalidRecord(
            f"{name!r}: byte_length={record.byte_length} chunk_offset={record.chunk_offset}"
        )

    if version.stores_byte_offset:
        byte_offset = record.byte_offset
    else:
        byte_offset = offset_of(record.chunk_offset)

    if version.stores_chunk_count:
        chunk_count = record.chunk_count
    else:
        chunk_count = chunk_count_of(record.byte_length)

    if byte_offset is None or byte_offset < 0 or chunk_count is None or chunk_count < 0:
        raise InvalidRecord(f"{name!r}: byte_offset={byte_offset} chunk_count={chunk_count}")

    return ArchiveEntry(
        name=name,
        byte_offset=byte_offset,
        byte_length=record.byte_length,
        chunk_offset=record.chunk_offset,
        chunk_count=chunk_count,
        index=index,
    )


def build_catalog(version: FormatVersion, pairs: Iterable[tuple[RawRecord, str]]) -> Catalog:
    """Consume scanner output into a Catalog; any error discards everything."""
    entries: list[ArchiveEntry] = []
    seen: set[str] = set()
    for record, name in pairs:
        if name in seen:
            raise DuplicateEntryName(name)
        seen.add(name)
        entries.append(make_entry(version, record, name, len(entries)))
    return Catalog(version, entries)
