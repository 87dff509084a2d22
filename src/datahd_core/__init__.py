"""DATA.HD core - record layouts, addressing and name decoding."""
from .chunks import chunk_count_of, offset_of
from .protocol import CHUNK_SIZE, DEFAULT_NAME_ENCODING, FormatVersion
from .records import RawRecord, RecordCodec, coerce_version
from .names import NameResolver, decode_name, resolve_codec

__all__ = [
    "CHUNK_SIZE",
    "DEFAULT_NAME_ENCODING",
    "FormatVersion",
    "RawRecord",
    "RecordCodec",
    "NameResolver",
    "chunk_count_of",
    "coerce_version",
    "decode_name",
    "offset_of",
    "resolve_codec",
]
