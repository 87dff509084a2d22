from pathlib import Path
import hashlib

READ_SIZE = 64 * 1024

def leaf_hash(rel_path: str, path: Path) -> bytes:
    h = hashlib.sha256()
    h.update(rel_path.encode("utf-8"))
    h.update(b"\x00")
    with open(path, "rb") as f:
        while True:
            block = f.read(READ_SIZE)
            if not block:
                break
            h.update(block)
    return h.digest()

def compute_integrity_root(root_dir: Path, rel_files: list[str]) -> str:
    acc = hashlib.sha256()
    for rel in sorted(rel_files):
        acc.update(leaf_hash(rel, root_dir / rel))
    return acc.hexdigest()
