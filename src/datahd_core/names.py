"""File name resolution for table-of-contents records.

Names are not stored inline: each record carries the byte offset of a
NUL-terminated run somewhere later in the same stream. Resolving a name
therefore seeks away from the record being scanned and must put the
stream back exactly where it was.
"""
from __future__ import annotations

import codecs
from typing import BinaryIO

from .errors import EncodingUnavailable, InvalidName
from .protocol import DEFAULT_MAX_NAME_BYTES, DEFAULT_NAME_ENCODING


def resolve_codec(encoding: str = DEFAULT_NAME_ENCODING) -> codecs.CodecInfo:
    """Look up the legacy codepage once, before any scan starts."""
    try:
        return codecs.lookup(encoding)
    except LookupError:
        raise EncodingUnavailable(encoding) from None


def decode_name(raw: bytes, codec: codecs.CodecInfo, name_offset: int = -1) -> str:
    """Decode one name run.

    7-bit clean runs are ASCII; anything with a high byte goes through the
    legacy codec in strict mode.
    """
    if raw.isascii():
        return raw.decode("ascii")
    try:
        text, _ = codec.decode(raw, "strict")
    except UnicodeDecodeError as e:
        raise InvalidName(name_offset, f"not valid {codec.name}: {e.reason}") from e
    return text


class NameResolver:
    def __init__(
        self,
        stream: BinaryIO,
        codec: codecs.CodecInfo,
        max_name_bytes: int = DEFAULT_MAX_NAME_BYTES,
    ):
        self.stream = stream
        self.codec = codec
        self.max_name_bytes = max_name_bytes

    def read_run(self, name_offset: int) -> bytes:
        """Bytes from ``name_offset`` up to a NUL or EOF; position is restored."""
        f = self.stream
        saved = f.tell()
        out = bytearray()
        try:
            f.seek(name_offset)
            while True:
                b = f.read(1)
                if not b or b == b"\x00":
                    break
                if len(out) >= self.max_name_bytes:
                    raise InvalidName(name_offset, f"longer than {self.max_name_bytes} bytes")
                out += b
        finally:
            f.seek(saved)
        return bytes(out)

    def resolve(self, name_offset: int) -> str:
        """Return the name at ``name_offset``; "" is a valid result."""
        return decode_name(self.read_run(name_offset), self.codec, name_offset)
