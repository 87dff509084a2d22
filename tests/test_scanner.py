import io
import warnings

import pytest

from datahd_archive.catalog import build_catalog
from datahd_archive.scanner import TableScanner
from datahd_core.errors import (
    InvalidNameOffset,
    NameOffsetOutOfRange,
    StreamCapabilityError,
    TruncatedTable,
)
from datahd_core.names import NameResolver, resolve_codec
from datahd_core.protocol import FormatVersion
from datahd_core.records import RawRecord, RecordCodec


def scanner_for(data: bytes, version) -> TableScanner:
    f = io.BytesIO(data)
    return TableScanner(f, version, NameResolver(f, resolve_codec()))


def two_file_v3(tail: RawRecord) -> bytes:
    codec = RecordCodec(3)
    a = RawRecord(100, 10, 0, None, 1)
    b = RawRecord(120, 5000, 1, None, 3)
    table = codec.encode(a) + codec.encode(b) + codec.encode(tail)
    table += b"\x00" * (100 - len(table)) + b"a.bin\x00"
    table += b"\x00" * (120 - len(table)) + b"b.bin\x00"
    return table


def test_sentinel_terminated_table():
    s = scanner_for(two_file_v3(RawRecord(0, 0, 0, None, 0)), 3)
    catalog = build_catalog(s.version, s)
    assert catalog.names() == ["a.bin", "b.bin"]
    assert catalog.get("b.bin").byte_offset == 2048
    assert catalog.get("b.bin").chunk_count == 3
    assert s.get_scan_stats()["terminated_by"] == "sentinel"
    assert s.get_scan_stats()["table_bytes"] == 48


def test_duplicate_tail_is_dropped():
    s = scanner_for(two_file_v3(RawRecord(120, 5000, 1, None, 3)), 3)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        catalog = build_catalog(s.version, s)
    assert len(catalog) == 2
    assert catalog.names() == ["a.bin", "b.bin"]
    stats = s.get_scan_stats()
    assert stats["terminated_by"] == "duplicate_name"
    assert stats["discarded"] == 1


def test_differing_duplicate_warns_and_keeps_first():
    s = scanner_for(two_file_v3(RawRecord(120, 7, 4, None, 1)), 3)
    with pytest.warns(UserWarning, match="keeping the first"):
        catalog = build_catalog(s.version, s)
    assert catalog.get("b.bin").byte_length == 5000


def test_empty_name_terminates(headers):
    data = headers(3, [("x.bin", 3, 0), ("y.bin", 4, 1)], tail="empty")
    s = scanner_for(data, 3)
    assert [n for _, n in s] == ["x.bin", "y.bin"]
    assert s.scan_stats["terminated_by"] == "empty_name"


def test_empty_table_is_clean_eof():
    s = scanner_for(b"", 3)
    assert len(build_catalog(s.version, s)) == 0
    assert s.scan_stats["terminated_by"] == "eof"
    assert s.scan_stats["records"] == 0


@pytest.mark.parametrize("version", list(FormatVersion))
def test_each_layout(headers, version):
    entries = [("a", 10, 0), ("b", 0, 1), ("c", 4097, 1)]
    s = scanner_for(headers(version, entries), version)
    catalog = build_catalog(s.version, s)
    assert catalog.names() == ["a", "b", "c"]
    assert catalog.get("c").byte_offset == 2048
    assert catalog.get("c").chunk_count == 3
    assert catalog.get("b").byte_length == 0
    assert s.scan_stats["empty_entries"] == 1


def test_v2_byte_offset_is_stored_not_derived():
    codec = RecordCodec(2)
    table = codec.encode(RawRecord(64, 10, 5, 4096, 1)) + codec.encode(RawRecord(0, 0, 0, 0, 0))
    table += b"x\x00"
    s = scanner_for(table, 2)
    entry = build_catalog(s.version, s).get("x")
    assert entry.byte_offset == 4096
    assert entry.chunk_offset == 5


def test_v4_chunk_count_is_derived(headers):
    s = scanner_for(headers(4, [("a", 2049, 0)]), 4)
    assert build_catalog(s.version, s).get("a").chunk_count == 2


def test_backward_name_offset():
    codec = RecordCodec(3)
    table = codec.encode(RawRecord(20, 1, 0, None, 1)) + codec.encode(RawRecord(4, 1, 1, None, 1))
    table += b"\x00" * 8 + b"ok\x00"
    s = scanner_for(table, 3)
    with pytest.raises(InvalidNameOffset) as exc:
        build_catalog(s.version, s)
    assert exc.value.name_offset == 4
    assert exc.value.position == 32


@pytest.mark.parametrize("offset", [0, -16])
def test_non_positive_name_offset(offset):
    table = RecordCodec(3).encode(RawRecord(offset, 1, 1, None, 1))
    with pytest.raises(InvalidNameOffset):
        list(scanner_for(table, 3))


def test_name_offset_past_end():
    table = RecordCodec(3).encode(RawRecord(400, 1, 1, None, 1)) + b"\x00" * 4
    with pytest.raises(NameOffsetOutOfRange) as exc:
        list(scanner_for(table, 3))
    assert isinstance(exc.value, InvalidNameOffset)
    assert exc.value.code == "E_NAME_OFFSET_RANGE"
    assert exc.value.table_size == 20


def test_name_at_end_of_table_ends_scan():
    codec = RecordCodec(3)
    table = codec.encode(RawRecord(32, 3, 0, None, 1)) + codec.encode(RawRecord(34, 1, 1, None, 1))
    table += b"a\x00"
    assert len(table) == 34
    s = scanner_for(table, 3)
    assert [n for _, n in s] == ["a"]
    assert s.scan_stats["terminated_by"] == "empty_name"


def test_truncated_final_record():
    codec = RecordCodec(3)
    table = codec.encode(RawRecord(16, 3, 0, None, 1)) + b"AB\x00" + b"\x01" * 7
    s = scanner_for(table, 3)
    with pytest.raises(TruncatedTable) as exc:
        build_catalog(s.version, s)
    assert exc.value.got == 10
    assert exc.value.expected == 16


def test_scan_leaves_stream_after_last_record(headers):
    data = headers(3, [("a", 1, 0), ("b", 1, 1)])
    f = io.BytesIO(data)
    s = TableScanner(f, 3, NameResolver(f, resolve_codec()))
    list(s)
    assert f.tell() == 48


class NoSeek(io.BytesIO):
    def seekable(self):
        return False


def test_requires_seekable_stream():
    f = NoSeek(b"")
    with pytest.raises(StreamCapabilityError):
        TableScanner(f, 3, NameResolver(f, resolve_codec()))
