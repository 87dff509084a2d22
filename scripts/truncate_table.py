import sys
from pathlib import Path

def main():
    if len(sys.argv) != 3:
        print("Usage: truncate_table.py <DATA.HDx> <keep_bytes>")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    keep = int(sys.argv[2])
    b = p.read_bytes()
    if keep >= len(b):
        print("Nothing to truncate.")
        raise SystemExit(2)

    # Keeping a length that is not a multiple of the record size leaves
    # a partial record, which the reader must reject.
    p.write_bytes(b[:keep])
    print(f"Truncated {p} to {keep} of {len(b)} bytes")

if __name__ == "__main__":
    main()
