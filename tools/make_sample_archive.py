"""Generate a synthetic DATA.HDx / DATA.DAT pair.

Usage:
  python tools/make_sample_archive.py OUT_DIR [--version 3] [--count 12]
      [--tail sentinel|duplicate|empty] [--seed 7]

The layout matches what the stock packer emits: records first, then the
NUL-terminated name pool, every payload starting on a chunk boundary.
"""
import random
import sys
from pathlib import Path

from datahd_core.chunks import chunk_count_of, offset_of
from datahd_core.protocol import CHUNK_SIZE, DATA_FILE_NAME, DEFAULT_NAME_ENCODING
from datahd_core.records import RawRecord, RecordCodec, coerce_version

TAILS = ("sentinel", "duplicate", "empty")


def sample_files(count: int, seed: int) -> list[tuple[str, bytes]]:
    rng = random.Random(seed)
    files = []
    for i in range(count):
        size = rng.choice([1, 17, CHUNK_SIZE - 1, CHUNK_SIZE, CHUNK_SIZE + 1, 5000])
        files.append((f"menu\\{i % 3}\\file{i:03d}.bin", rng.randbytes(size)))
    # A zero-length placeholder and a non-ASCII name, both seen on real discs.
    files.append(("menu\\placeholder.cfg", b""))
    files.append(("text\\テスト.cfg", "STR 1,\"剣\";\n".encode(DEFAULT_NAME_ENCODING)))
    return files


def build_archive(files, version, tail: str = "sentinel") -> tuple[bytes, bytes]:
    """Return (headers, data) for ``files`` as a list of (name, payload)."""
    codec = RecordCodec(version)
    if tail not in TAILS:
        raise ValueError(f"unknown tail style {tail!r}")

    data = bytearray()
    layout = []
    for name, payload in files:
        chunk = len(data) // CHUNK_SIZE
        data += payload
        data += b"\x00" * (chunk_count_of(len(payload)) * CHUNK_SIZE - len(payload))
        layout.append((name, len(payload), chunk))

    n_records = len(files) + 1
    pool = bytearray()
    name_base = n_records * codec.record_size

    records = []
    for name, length, chunk in layout:
        name_off = name_base + len(pool)
        pool += name.encode(DEFAULT_NAME_ENCODING) + b"\x00"
        records.append(
            RawRecord(
                name_offset=name_off,
                byte_length=length,
                chunk_offset=chunk,
                byte_offset=offset_of(chunk) if codec.version.stores_byte_offset else None,
                chunk_count=chunk_count_of(length) if codec.version.stores_chunk_count else None,
            )
        )

    if tail == "sentinel":
        records.append(RawRecord(0, 0, 0, 0 if codec.version.stores_byte_offset else None,
                                 0 if codec.version.stores_chunk_count else None))
    elif tail == "duplicate":
        records.append(records[-1])
    elif tail == "empty":
        records.append(RawRecord(name_base + len(pool), 1, 1, 1, 1))
        pool += b"\x00"

    headers = b"".join(codec.encode(r) for r in records) + bytes(pool)
    return headers, bytes(data)


def generate(out_dir, version=3, count: int = 12, tail: str = "sentinel", seed: int = 7) -> Path:
    v = coerce_version(version)
    headers, data = build_archive(sample_files(count, seed), v, tail)

    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    (out / v.header_file_name).write_bytes(headers)
    (out / DATA_FILE_NAME).write_bytes(data)
    print(f"GENERATED: {out} ({v.header_file_name}, {len(data)} data bytes)")
    return out


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a]

    def pop_value(arg_list: list[str], flag: str, default):
        """Remove ``flag VALUE`` from an argv-style list."""
        if flag not in arg_list:
            return default, arg_list
        i = arg_list.index(flag)
        if i + 1 >= len(arg_list):
            raise SystemExit(f"{flag} requires a value")
        return arg_list[i + 1], arg_list[:i] + arg_list[i + 2:]

    version, args = pop_value(args, "--version", "3")
    count, args = pop_value(args, "--count", "12")
    tail, args = pop_value(args, "--tail", "sentinel")
    seed, args = pop_value(args, "--seed", "7")

    out = args[0] if args else "sample_archive"
    generate(out, version=version, count=int(count), tail=tail, seed=int(seed))
