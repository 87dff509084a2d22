ERRORS = {
  "E_LAYOUT_MISSING": "Required file or directory missing",
  "E_MANIFEST_JSON": "Manifest JSON invalid",
  "E_FILE_MISSING": "Extracted file listed in manifest is missing",
  "E_INTEGRITY_MISMATCH": "Integrity root does not match manifest",
}

MANIFEST_NAME = "manifest.json"
MANIFEST_FORMAT = "datahd-extract-v1"
INTEGRITY_SCHEMA = "datahd-merkle-v1"
