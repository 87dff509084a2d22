"""Catalog parquet export and extraction manifests."""
from __future__ import annotations

from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from datahd_verify.const import INTEGRITY_SCHEMA, MANIFEST_FORMAT, MANIFEST_NAME
from datahd_verify.logic import canonical_json_bytes
from datahd_verify.merkle import compute_integrity_root

from .catalog import Catalog

CATALOG_SCHEMA = pa.schema(
    [
        ("index", pa.int32()),
        ("name", pa.string()),
        ("byte_offset", pa.int64()),
        ("byte_length", pa.int64()),
        ("chunk_offset", pa.int32()),
        ("chunk_count", pa.int32()),
    ]
)


def catalog_frame(catalog: Catalog) -> pd.DataFrame:
    rows = [
        {
            "index": e.index,
            "name": e.name,
            "byte_offset": e.byte_offset,
            "byte_length": e.byte_length,
            "chunk_offset": e.chunk_offset,
            "chunk_count": e.chunk_count,
        }
        for e in catalog
    ]
    return pd.DataFrame(rows, columns=CATALOG_SCHEMA.names)


def export_catalog(catalog: Catalog, out_path: Path) -> Path | None:
    """Write one parquet row per entry, in table order."""
    df = catalog_frame(catalog)
    if df.empty:
        return None

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.Table.from_pandas(df, schema=CATALOG_SCHEMA, preserve_index=False)
    pq.write_table(table, out_path)
    return out_path


def write_extraction_manifest(archive, target: Path, written: list[Path]) -> Path:
    target = Path(target)
    files_rel = sorted(p.relative_to(target).as_posix() for p in written)
    integrity_root = compute_integrity_root(target, files_rel)

    manifest = {
        "format": MANIFEST_FORMAT,
        "archive": {
            "headers": archive.headers_name,
            "data": archive.data_name,
            "version": archive.version.name,
            "encoding": archive.encoding,
            "entries": len(archive.catalog),
        },
        "integrity": {
            "schema": INTEGRITY_SCHEMA,
            "algorithm": "sha256",
            "files": files_rel,
            "merkle_root": integrity_root,
        },
    }

    path = target / MANIFEST_NAME
    path.write_bytes(canonical_json_bytes(manifest))
    return path
