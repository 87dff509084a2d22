from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterator

from datahd_core.errors import (
    ArchiveClosedError,
    EntryNotFound,
    ExtractPathCollision,
    MissingSource,
    UnsupportedVersion,
)
from datahd_core.names import NameResolver, resolve_codec
from datahd_core.protocol import (
    COPY_BUFFER_SIZE,
    DATA_FILE_NAME,
    DEFAULT_MAX_NAME_BYTES,
    DEFAULT_NAME_ENCODING,
    EXTENSIONS,
    FormatVersion,
)
from datahd_core.records import coerce_version
from datahd_verify.const import MANIFEST_NAME

from .catalog import ArchiveEntry, Catalog, build_catalog
from .scanner import TableScanner
from .sources import DirectorySource, StreamSource
from .view import BoundedView, SharedSession


def detect_version(header_name: str) -> FormatVersion:
    ext = Path(header_name).suffix.lower()
    if ext not in EXTENSIONS:
        raise UnsupportedVersion(f"cannot tell the layout of {header_name!r} from its extension")
    return EXTENSIONS[ext]


def safe_relative_path(name: str) -> Path:
    """Map an entry name to a relative path that cannot leave its root."""
    parts = [p for p in name.replace("\\", "/").split("/") if p not in ("", ".", "..")]
    if not parts:
        parts = [name.replace("/", "_").replace("\\", "_").strip(".") or "_"]
    return Path(*parts)


class Archive:
    """A DATA.HDx table of contents bound to its DATA.DAT flat store.

    The catalog is built completely when the archive is opened and never
    changes afterwards. Every ``open`` hands out a BoundedView over a fresh
    handle to the data store; ``session`` and ``extract_to`` reuse a single
    handle for sequential access.
    """

    @classmethod
    def open(
        cls,
        headers_path,
        data_path=None,
        *,
        version=None,
        encoding: str = DEFAULT_NAME_ENCODING,
        max_name_bytes: int = DEFAULT_MAX_NAME_BYTES,
    ) -> "Archive":
        headers_path = Path(headers_path)
        data_path = Path(data_path) if data_path is not None else headers_path.parent / DATA_FILE_NAME
        source = DirectorySource(headers_path.parent)
        data_source = None
        if data_path.parent != headers_path.parent:
            data_source = DirectorySource(data_path.parent)
        return cls(source, headers_path.name, data_path.name,
                   version=version, encoding=encoding, max_name_bytes=max_name_bytes,
                   data_source=data_source)

    @classmethod
    def open_directory(
        cls,
        root,
        *,
        version=None,
        encoding: str = DEFAULT_NAME_ENCODING,
        max_name_bytes: int = DEFAULT_MAX_NAME_BYTES,
    ) -> "Archive":
        source = DirectorySource(Path(root))
        headers_name = find_headers(source, version)
        return cls(source, headers_name, DATA_FILE_NAME,
                   version=version, encoding=encoding, max_name_bytes=max_name_bytes)

    def __init__(
        self,
        source: StreamSource,
        headers_name: str,
        data_name: str = DATA_FILE_NAME,
        *,
        version=None,
        encoding: str = DEFAULT_NAME_ENCODING,
        max_name_bytes: int = DEFAULT_MAX_NAME_BYTES,
        data_source: StreamSource | None = None,
    ):
        # Configuration problems surface before any record is read.
        codec = resolve_codec(encoding)
        self.version = coerce_version(version) if version is not None else detect_version(headers_name)
        self.encoding = codec.name

        self._source = source
        self._data_source = data_source or source
        self.headers_name = headers_name
        self.data_name = data_name
        self._closed = False

        headers = source.open(headers_name)
        try:
            if not self._data_source.exists(data_name):
                raise MissingSource(data_name)
            resolver = NameResolver(headers, codec, max_name_bytes)
            scanner = TableScanner(headers, self.version, resolver)
            self.catalog: Catalog = build_catalog(self.version, scanner)
        except BaseException:
            headers.close()
            raise

        self._headers = headers
        self._scan_stats = scanner.get_scan_stats()

    # -- lifecycle --

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ArchiveClosedError(self.headers_name)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._headers.close()

    def __enter__(self) -> "Archive":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"entries={len(self.catalog)}"
        return f"<Archive {self.headers_name} {self.version.name} {state}>"

    # -- catalog queries --

    @property
    def entries(self) -> tuple[ArchiveEntry, ...]:
        self._check_open()
        return self.catalog.entries

    def names(self) -> list[str]:
        self._check_open()
        return self.catalog.names()

    def get(self, name: str) -> ArchiveEntry:
        self._check_open()
        return self.catalog.get(name)

    def entry(self, index: int) -> ArchiveEntry:
        self._check_open()
        return self.catalog.entry(index)

    def get_scan_stats(self) -> dict:
        return dict(self._scan_stats)

    def __len__(self) -> int:
        self._check_open()
        return len(self.catalog)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        self._check_open()
        return iter(self.catalog)

    def __contains__(self, name) -> bool:
        self._check_open()
        return name in self.catalog

    def _resolve(self, entry_or_name) -> ArchiveEntry:
        self._check_open()
        if isinstance(entry_or_name, ArchiveEntry):
            if not self.catalog.owns(entry_or_name):
                raise EntryNotFound(entry_or_name.name)
            return entry_or_name
        return self.catalog.get(entry_or_name)

    # -- data access --

    def open_data(self):
        """A new handle to the flat store."""
        self._check_open()
        return self._data_source.open(self.data_name)

    def open_entry(self, entry_or_name) -> BoundedView:
        """Independent view; owns (and closes) its own store handle."""
        entry = self._resolve(entry_or_name)
        return BoundedView(self.open_data(), entry.byte_offset, entry.byte_length, owns_stream=True)

    def read_bytes(self, entry_or_name) -> bytes:
        with self.open_entry(entry_or_name) as v:
            return v.read()

    def session(self) -> SharedSession:
        """Sequential views over one store handle; see SharedSession."""
        return SharedSession(self.open_data(), owns_stream=True)

    def extract_to(self, target, names=None, manifest: bool = True) -> list[Path]:
        """Write entries below ``target`` mirroring their names.

        Returns the written paths in catalog order. With ``manifest`` a
        manifest.json with per-file integrity is written next to them.
        Every output path is checked before anything is written; two
        entries mapping to one path raise ExtractPathCollision.
        """
        self._check_open()
        target = Path(target)

        selected = self.catalog.entries if names is None else [self._resolve(n) for n in names]

        claimed: dict[Path, str] = {}
        if manifest:
            claimed[Path(MANIFEST_NAME)] = "<manifest>"
        plan: list[tuple[ArchiveEntry, Path]] = []
        for entry in selected:
            rel = safe_relative_path(entry.name)
            if rel in claimed:
                raise ExtractPathCollision(rel.as_posix(), claimed[rel], entry.name)
            claimed[rel] = entry.name
            plan.append((entry, target / rel))

        target.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        with self.session() as session:
            for entry, out in plan:
                out.parent.mkdir(parents=True, exist_ok=True)
                with session.open(entry) as src, open(out, "wb") as dst:
                    shutil.copyfileobj(src, dst, COPY_BUFFER_SIZE)
                written.append(out)

        if manifest:
            from .export import write_extraction_manifest

            write_extraction_manifest(self, target, written)
        return written


def find_headers(source: DirectorySource, version=None) -> str:
    """Pick the DATA.HDx file in a directory source."""
    if version is not None:
        name = coerce_version(version).header_file_name
        if not source.exists(name):
            raise MissingSource(str(source.root / name))
        return name

    found = [v.header_file_name for v in FormatVersion if source.exists(v.header_file_name)]
    if not found:
        raise MissingSource(str(source.root / "DATA.HD?"))
    if len(found) > 1:
        raise UnsupportedVersion(f"several header files in {source.root}: {', '.join(found)}; pass a version")
    return found[0]
