"""
Provenance helpers: file and config digests plus metadata sidecars.

Each output CSV gets a `<stem>_metadata.json` sidecar under
data/processed/metadata/ recording input hashes, the config digest, the
git commit (when available), library versions and the run id.
"""

import hashlib
import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from precinct_typology.io_utils import atomic_write_json, read_json
from precinct_typology.logging_utils import get_versions
from precinct_typology.paths import METADATA_DIR

CHUNK_SIZE = 1 << 16


def hash_file(path: Union[str, Path], algorithm: str = "sha256") -> str:
    """Hex digest of a file's contents, read in chunks."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cannot hash non-existent file: {path}")

    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def hash_dict(d: Dict[str, Any], algorithm: str = "sha256") -> str:
    """Digest of a dict via key-sorted JSON, so key order never matters."""
    payload = json.dumps(d, sort_keys=True, default=str)
    return hashlib.new(algorithm, payload.encode("utf-8")).hexdigest()


def get_git_commit() -> Optional[str]:
    """Current git commit hash, or None outside a repository."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def sidecar_path_for(output_path: Union[str, Path], metadata_dir: Optional[Path] = None) -> Path:
    """Location of the metadata sidecar that belongs to output_path."""
    metadata_dir = metadata_dir if metadata_dir is not None else METADATA_DIR
    return Path(metadata_dir) / f"{Path(output_path).stem}_metadata.json"


def create_metadata_sidecar(
    output_path: Union[str, Path],
    inputs: Dict[str, str],
    config: Dict[str, Any],
    run_id: str,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the metadata record for an output file.

    Missing inputs are recorded with hash None and missing=True rather than
    failing, since upstream raw files may have been cleaned up.
    """
    input_hashes = {}
    for name, path in inputs.items():
        path = Path(path)
        if path.exists():
            input_hashes[name] = {"path": str(path), "hash": hash_file(path)}
        else:
            input_hashes[name] = {"path": str(path), "hash": None, "missing": True}

    metadata = {
        "output_file": str(output_path),
        "run_id": run_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "inputs": input_hashes,
        "config_digest": hash_dict(config),
        "config": config,
        "git_commit": get_git_commit(),
        "versions": get_versions(),
    }
    if extra:
        metadata["extra"] = extra
    return metadata


def write_metadata_sidecar(
    output_path: Union[str, Path],
    inputs: Dict[str, str],
    config: Dict[str, Any],
    run_id: str,
    extra: Optional[Dict[str, Any]] = None,
    metadata_dir: Optional[Path] = None,
) -> Path:
    """Write the sidecar for output_path and return the sidecar's path."""
    metadata = create_metadata_sidecar(output_path, inputs, config, run_id, extra)
    sidecar_path = sidecar_path_for(output_path, metadata_dir)
    atomic_write_json(metadata, sidecar_path)
    return sidecar_path


def read_metadata_sidecar(
    output_path: Union[str, Path],
    metadata_dir: Optional[Path] = None,
) -> Optional[Dict[str, Any]]:
    """Read the sidecar for output_path, or None if it was never written."""
    sidecar_path = sidecar_path_for(output_path, metadata_dir)
    if sidecar_path.exists():
        return read_json(sidecar_path)
    return None
