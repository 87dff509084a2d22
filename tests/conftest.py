import random

import pytest

from datahd_core.chunks import chunk_count_of, offset_of
from datahd_core.protocol import CHUNK_SIZE, DATA_FILE_NAME, FormatVersion
from datahd_core.records import RawRecord, RecordCodec


def build_headers(version, entries, tail="sentinel", encoding="cp932"):
    """Lay out records followed by the NUL-terminated name pool.

    ``entries`` holds (name, byte_length, chunk_offset) tuples; stored
    offsets and counts are derived the way the packer writes them.
    """
    codec = RecordCodec(version)
    v = codec.version
    n_records = len(entries) + 1
    base = n_records * codec.record_size

    pool = bytearray()
    records = []
    for name, length, chunk in entries:
        raw = name if isinstance(name, bytes) else name.encode(encoding)
        records.append(RawRecord(
            base + len(pool), length, chunk,
            offset_of(chunk) if v.stores_byte_offset else None,
            chunk_count_of(length) if v.stores_chunk_count else None,
        ))
        pool += raw + b"\x00"

    if tail == "sentinel":
        records.append(RawRecord(0, 0, 0,
                                 0 if v.stores_byte_offset else None,
                                 0 if v.stores_chunk_count else None))
    elif tail == "duplicate":
        records.append(records[-1])
    elif tail == "empty":
        records.append(RawRecord(base + len(pool), 1, 1, 1, 1))
        pool += b"\x00"

    return b"".join(codec.encode(r) for r in records) + bytes(pool)


def build_store(payloads):
    """Concatenate payloads on chunk boundaries; return (data, layout)."""
    data = bytearray()
    layout = []
    for name, payload in payloads:
        chunk = len(data) // CHUNK_SIZE
        data += payload
        data += b"\x00" * (chunk_count_of(len(payload)) * CHUNK_SIZE - len(payload))
        layout.append((name, len(payload), chunk))
    return bytes(data), layout


@pytest.fixture
def headers():
    return build_headers


@pytest.fixture
def payloads():
    rng = random.Random(1234)
    return [
        ("menu\\0\\neta2.lst", rng.randbytes(100)),
        ("menu\\cfg7\\comdatmes1.cfg", rng.randbytes(CHUNK_SIZE)),
        ("map\\s40\\big.bin", rng.randbytes(5000)),
        ("menu\\placeholder.cfg", b""),
        ("text\\剣.cfg", b"STR 1,\"x\";\n"),
    ]


@pytest.fixture
def make_archive(tmp_path, payloads):
    """Write DATA.HDx + DATA.DAT into a directory and return it."""

    def _make(version=FormatVersion.V3, tail="sentinel", files=None, root=None):
        files = payloads if files is None else files
        root = tmp_path / "disc" if root is None else root
        root.mkdir(parents=True, exist_ok=True)
        data, layout = build_store(files)
        v = RecordCodec(version).version
        (root / v.header_file_name).write_bytes(build_headers(v, layout, tail))
        (root / DATA_FILE_NAME).write_bytes(data)
        return root

    return _make
