"""Named byte-stream providers.

The reader only ever asks a source to open a name for reading. A directory
on disk is the built-in provider; anything exposing ``open``/``exists``
(a disc-image reader, a zip, an in-memory dict) can stand in for it.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Protocol

from datahd_core.errors import MissingSource


class StreamSource(Protocol):
    def open(self, name: str) -> BinaryIO: ...

    def exists(self, name: str) -> bool: ...


class DirectorySource:
    """Files in one directory, matched case-insensitively."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve(self, name: str) -> Path | None:
        exact = self.root / name
        if exact.is_file():
            return exact
        if not self.root.is_dir():
            return None
        wanted = name.lower()
        for p in self.root.iterdir():
            if p.name.lower() == wanted and p.is_file():
                return p
        return None

    def exists(self, name: str) -> bool:
        return self._resolve(name) is not None

    def open(self, name: str) -> BinaryIO:
        p = self._resolve(name)
        if p is None:
            raise MissingSource(str(self.root / name))
        try:
            return open(p, "rb")
        except FileNotFoundError:
            raise MissingSource(str(p)) from None


class MemorySource:
    """Named in-memory blobs; each open returns an independent stream."""

    def __init__(self, blobs: dict[str, bytes]):
        self.blobs = {k.lower(): bytes(v) for k, v in blobs.items()}

    def exists(self, name: str) -> bool:
        return name.lower() in self.blobs

    def open(self, name: str) -> BinaryIO:
        try:
            return io.BytesIO(self.blobs[name.lower()])
        except KeyError:
            raise MissingSource(name) from None
