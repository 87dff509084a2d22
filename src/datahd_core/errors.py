"""Error taxonomy shared by the reader, the CLI and the verifier."""
from __future__ import annotations

import io

ERRORS = {
    "E_ARCHIVE": "Archive error",
    "E_MISSING_SOURCE": "Required input stream could not be opened",
    "E_UNSUPPORTED_VERSION": "Unknown table-of-contents layout",
    "E_ENCODING_UNAVAILABLE": "Legacy codepage is not available",
    "E_STRUCTURE": "Table of contents is corrupt",
    "E_TRUNCATED_TABLE": "Table of contents ends mid-record",
    "E_INVALID_NAME_OFFSET": "File name offset points into already scanned data",
    "E_NAME_OFFSET_RANGE": "File name offset is past the end of the table",
    "E_INVALID_NAME": "File name bytes are invalid",
    "E_INVALID_RECORD": "Record field out of range",
    "E_DUPLICATE_ENTRY": "Entry name appears twice in the catalog",
    "E_ENTRY_NOT_FOUND": "No such entry",
    "E_PATH_COLLISION": "Two entries extract to the same path",
    "E_WINDOW_RANGE": "Position outside of the view window",
    "E_UNSUPPORTED_OPERATION": "Operation not supported by a fixed-size view",
    "E_STREAM_CAPABILITY": "Stream lacks a required capability",
    "E_ARCHIVE_CLOSED": "Archive is closed",
    "E_SESSION_MISUSE": "Shared session used outside its contract",
}


class ArchiveError(Exception):
    """Base class; every subclass maps to one entry of ``ERRORS``."""

    code = "E_ARCHIVE"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        base = ERRORS[self.code]
        return f"{base}: {self.detail}" if self.detail else base

    def __str__(self) -> str:
        return self.message


class OpenError(ArchiveError):
    """Fatal while opening an archive; no catalog is returned."""


class MissingSource(OpenError, FileNotFoundError):
    code = "E_MISSING_SOURCE"

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)


class UnsupportedVersion(OpenError, ValueError):
    code = "E_UNSUPPORTED_VERSION"


class EncodingUnavailable(OpenError, LookupError):
    code = "E_ENCODING_UNAVAILABLE"

    def __init__(self, encoding: str):
        self.encoding = encoding
        super().__init__(repr(encoding))


class StructuralError(OpenError, ValueError):
    code = "E_STRUCTURE"


class TruncatedTable(StructuralError):
    code = "E_TRUNCATED_TABLE"

    def __init__(self, offset: int, got: int, expected: int):
        self.offset = offset
        self.got = got
        self.expected = expected
        super().__init__(f"record at offset {offset} has {got} of {expected} bytes")


class InvalidNameOffset(StructuralError):
    code = "E_INVALID_NAME_OFFSET"

    def __init__(self, name_offset: int, position: int, reason: str = ""):
        self.name_offset = name_offset
        self.position = position
        super().__init__(reason or f"offset {name_offset} is behind scan position {position}")


class NameOffsetOutOfRange(InvalidNameOffset):
    code = "E_NAME_OFFSET_RANGE"

    def __init__(self, name_offset: int, position: int, table_size: int):
        self.table_size = table_size
        super().__init__(name_offset, position, f"offset {name_offset}, table is {table_size} bytes")


class InvalidName(StructuralError):
    code = "E_INVALID_NAME"

    def __init__(self, name_offset: int, reason: str):
        self.name_offset = name_offset
        super().__init__(f"at offset {name_offset}: {reason}")


class InvalidRecord(StructuralError):
    code = "E_INVALID_RECORD"


class DuplicateEntryName(StructuralError):
    code = "E_DUPLICATE_ENTRY"

    def __init__(self, name: str):
        self.name = name
        super().__init__(repr(name))


class EntryNotFound(ArchiveError, KeyError):
    code = "E_ENTRY_NOT_FOUND"

    def __init__(self, name: str):
        self.name = name
        super().__init__(repr(name))


class ExtractPathCollision(ArchiveError):
    code = "E_PATH_COLLISION"

    def __init__(self, path: str, first: str, second: str):
        self.path = path
        self.names = (first, second)
        super().__init__(f"{path}: {first!r} and {second!r}")


class WindowOutOfRange(ArchiveError, ValueError):
    code = "E_WINDOW_RANGE"


class UnsupportedOperation(ArchiveError, io.UnsupportedOperation):
    code = "E_UNSUPPORTED_OPERATION"


class StreamCapabilityError(ArchiveError, ValueError):
    code = "E_STREAM_CAPABILITY"


class ArchiveClosedError(ArchiveError, ValueError):
    code = "E_ARCHIVE_CLOSED"


class SessionMisuse(ArchiveError, RuntimeError):
    code = "E_SESSION_MISUSE"
