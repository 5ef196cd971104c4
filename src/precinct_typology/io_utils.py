"""
I/O utilities with atomic writes and safe reads.

Outputs are written to a hidden temp file in the destination directory
and then renamed over the target, so a failed run never leaves a
half-written CSV behind.
"""

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
import yaml


# =============================================================================
# Atomic Writes
# =============================================================================

def _temp_sibling(target_path: Path, suffix: str) -> Path:
    """Create an empty temp file next to target_path and return its path."""
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(
        suffix=suffix,
        prefix=f".{target_path.stem}_",
        dir=target_path.parent,
    )
    os.close(fd)
    return Path(temp_path)


@contextmanager
def atomic_write(
    target_path: Union[str, Path],
    mode: str = "w",
    suffix: Optional[str] = None,
):
    """
    Context manager for atomic text/binary writes.

    Example:
        with atomic_write("reports/summary.txt") as f:
            f.write("done")
    """
    target_path = Path(target_path)
    temp_path = _temp_sibling(target_path, suffix or target_path.suffix or ".tmp")

    try:
        encoding = None if "b" in mode else "utf-8"
        with open(temp_path, mode, encoding=encoding) as f:
            yield f
        temp_path.replace(target_path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def atomic_write_df(
    df: pd.DataFrame,
    target_path: Union[str, Path],
    **kwargs,
) -> None:
    """
    Atomically write a DataFrame to CSV or Parquet (chosen by extension).

    CSV output defaults to index=False unless the caller says otherwise.
    """
    target_path = Path(target_path)
    suffix = target_path.suffix.lower()
    if suffix not in (".csv", ".parquet"):
        raise ValueError(f"Unsupported format: {suffix}")

    temp_path = _temp_sibling(target_path, suffix)

    try:
        if suffix == ".parquet":
            df.to_parquet(temp_path, **kwargs)
        else:
            kwargs.setdefault("index", False)
            df.to_csv(temp_path, **kwargs)
        temp_path.replace(target_path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def atomic_write_json(
    data: Any,
    target_path: Union[str, Path],
    **kwargs,
) -> None:
    """Atomically write JSON data (indented, non-serializable values via str)."""
    kwargs.setdefault("indent", 2)
    kwargs.setdefault("default", str)

    with atomic_write(target_path, mode="w", suffix=".json") as f:
        json.dump(data, f, **kwargs)


def atomic_write_yaml(
    data: Any,
    target_path: Union[str, Path],
    **kwargs,
) -> None:
    """Atomically write YAML data, preserving key order."""
    kwargs.setdefault("default_flow_style", False)
    kwargs.setdefault("sort_keys", False)

    with atomic_write(target_path, mode="w", suffix=".yml") as f:
        yaml.safe_dump(data, f, **kwargs)


# =============================================================================
# Reads
# =============================================================================

def read_yaml(path: Union[str, Path]) -> dict:
    """Read a YAML file. An empty file reads as an empty dict."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def read_json(path: Union[str, Path]) -> Any:
    """Read a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def read_df(
    path: Union[str, Path],
    **kwargs,
) -> pd.DataFrame:
    """
    Read a DataFrame from CSV or Parquet.

    Args:
        path: Path to data file
        **kwargs: Additional arguments passed to the pandas reader

    Returns:
        DataFrame
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".parquet":
        return pd.read_parquet(path, **kwargs)
    elif suffix == ".csv":
        kwargs.setdefault("low_memory", False)
        return pd.read_csv(path, **kwargs)
    else:
        raise ValueError(f"Unsupported format: {suffix}")


def latest_file(directory: Union[str, Path], pattern: str) -> Optional[Path]:
    """Return the most recently modified file matching pattern, or None."""
    candidates = [p for p in Path(directory).glob(pattern) if p.is_file()]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)
