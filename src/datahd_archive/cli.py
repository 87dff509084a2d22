"""DATA.HD archive tool."""
from __future__ import annotations

import json
import shutil
from pathlib import Path

import click

from datahd_core.errors import ArchiveError
from datahd_core.protocol import COPY_BUFFER_SIZE, DEFAULT_NAME_ENCODING

from .archive import Archive
from .export import export_catalog


def open_archive(path: Path, data: Path | None, version: str | None, encoding: str) -> Archive:
    if path.is_dir():
        if data is not None:
            raise click.UsageError("--data only applies when ARCHIVE is a header file")
        return Archive.open_directory(path, version=version, encoding=encoding)
    return Archive.open(path, data, version=version, encoding=encoding)


def fatal(e: Exception) -> None:
    # Fail closed with a single-line reason.
    click.echo(f"FATAL: {e}", err=True)
    raise SystemExit(1)


archive_argument = click.argument("archive", type=click.Path(exists=True, path_type=Path))


def archive_options(f):
    f = click.option("--data", type=click.Path(dir_okay=False, path_type=Path), default=None,
                     help="Flat store file (default: DATA.DAT beside the header file)")(f)
    f = click.option("--version", "version", default=None,
                     help="Header layout: 2, 3 or 4 (default: from the file extension)")(f)
    f = click.option("--encoding", default=DEFAULT_NAME_ENCODING, show_default=True,
                     help="Codepage for non-ASCII names")(f)
    return f


@click.group()
def main() -> None:
    """Read DATA.HDx / DATA.DAT archives."""


@main.command("list")
@archive_argument
@archive_options
@click.option("--long", "long_", is_flag=True, help="Show offsets and sizes")
def list_cmd(archive: Path, data, version, encoding, long_: bool) -> None:
    try:
        with open_archive(archive, data, version, encoding) as a:
            for e in a:
                if long_:
                    click.echo(f"{e.byte_offset:>12} {e.byte_length:>10} {e.chunk_count:>6}  {e.name}")
                else:
                    click.echo(e.name)
    except ArchiveError as e:
        fatal(e)


@main.command("info")
@archive_argument
@archive_options
def info_cmd(archive: Path, data, version, encoding) -> None:
    try:
        with open_archive(archive, data, version, encoding) as a:
            result = {
                "version": a.version.name,
                "encoding": a.encoding,
                "entries": len(a),
                "total_bytes": a.catalog.total_bytes(),
                "scan": a.get_scan_stats(),
            }
    except ArchiveError as e:
        fatal(e)
    click.echo(json.dumps(result, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


@main.command("cat")
@archive_argument
@click.argument("name")
@archive_options
def cat_cmd(archive: Path, name: str, data, version, encoding) -> None:
    try:
        with open_archive(archive, data, version, encoding) as a:
            with a.open_entry(name) as src:
                out = click.get_binary_stream("stdout")
                shutil.copyfileobj(src, out, COPY_BUFFER_SIZE)
                out.flush()
    except ArchiveError as e:
        fatal(e)


@main.command("extract")
@archive_argument
@click.argument("out", type=click.Path(file_okay=False, path_type=Path))
@archive_options
@click.option("--no-manifest", is_flag=True, help="Skip writing manifest.json")
def extract_cmd(archive: Path, out: Path, data, version, encoding, no_manifest: bool) -> None:
    try:
        with open_archive(archive, data, version, encoding) as a:
            written = a.extract_to(out, manifest=not no_manifest)
    except (ArchiveError, OSError) as e:
        fatal(e)
    click.echo(f"PASS: extracted {len(written)} files to {out}")


@main.command("export")
@archive_argument
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
@archive_options
def export_cmd(archive: Path, out: Path, data, version, encoding) -> None:
    try:
        with open_archive(archive, data, version, encoding) as a:
            written = export_catalog(a.catalog, out)
    except (ArchiveError, OSError) as e:
        fatal(e)
    if written is None:
        click.echo("catalog is empty; nothing written", err=True)
    else:
        click.echo(f"PASS: catalog written to {written}")


if __name__ == "__main__":
    main()
