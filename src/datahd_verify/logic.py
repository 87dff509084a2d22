import json
from pathlib import Path
from .const import ERRORS, MANIFEST_NAME
from .merkle import compute_integrity_root

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

def _load_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))

def canonical_json_bytes(obj) -> bytes:
    return json.dumps(obj, **CANONICAL_JSON_KW).encode("utf-8")

def _fail(errors: list) -> dict:
    return {"status":"FAIL","error_count":len(errors),"errors":errors}

def verify_extraction(out_dir: Path) -> dict:
    errors = []
    out_dir = Path(out_dir)
    manifest_path = out_dir / MANIFEST_NAME

    if not manifest_path.exists():
        errors.append({"code":"E_LAYOUT_MISSING","message":ERRORS["E_LAYOUT_MISSING"],"path":str(manifest_path)})
        return _fail(errors)

    try:
        manifest_obj = _load_json(manifest_path)
        integrity = manifest_obj["integrity"]
        expected_root = integrity["merkle_root"]
        rel_files = list(integrity["files"])
    except Exception as e:
        errors.append({"code":"E_MANIFEST_JSON","message":ERRORS["E_MANIFEST_JSON"],"detail":str(e)})
        return _fail(errors)

    # Report every missing file, not just the first.
    for rel in rel_files:
        p = out_dir / rel
        if not p.is_file():
            errors.append({"code":"E_FILE_MISSING","message":ERRORS["E_FILE_MISSING"],"path":rel})
    if errors:
        return _fail(errors)

    computed = compute_integrity_root(out_dir, rel_files)
    if expected_root != computed:
        errors.append({"code":"E_INTEGRITY_MISMATCH","message":ERRORS["E_INTEGRITY_MISMATCH"],"expected":expected_root,"computed":computed})
        return _fail(errors)

    return {"status":"PASS","error_count":0,"errors":[],"file_count":len(rel_files)}
