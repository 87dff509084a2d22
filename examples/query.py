"""Query an exported catalog - largest entries below a path prefix."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 3:
        print("Usage: python query.py <catalog.parquet> <prefix> [limit]")
        print("Example: python query.py catalog.parquet 'menu\\0\\' 20")
        sys.exit(1)

    catalog = Path(sys.argv[1])
    prefix = sys.argv[2]
    limit = int(sys.argv[3]) if len(sys.argv) > 3 else 20

    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW entries AS SELECT * FROM read_parquet('{catalog}')")

    sql = """
    SELECT name, byte_length, chunk_offset, chunk_count
    FROM entries
    WHERE starts_with(name, ?)
    ORDER BY byte_length DESC, name
    LIMIT ?
    """

    print(f"--- Entries under {prefix!r} ---\n")

    df = con.execute(sql, [prefix, limit]).fetchdf()
    if df.empty:
        print("No entries found.")
    else:
        for _, row in df.iterrows():
            print(f"{row['byte_length']:>10}  chunk {row['chunk_offset']:>6} x{row['chunk_count']:<4} {row['name']}")


if __name__ == "__main__":
    main()
