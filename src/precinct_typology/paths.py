"""
Canonical path resolution for the precinct typology project.

Every script resolves data, config, log and report locations from here
instead of building relative '../' paths.

The root is found by walking upward from this file until one of the
marker files is present (`.project-root` first, then `pyproject.toml`,
then `.git`).
"""

from pathlib import Path
from typing import Optional

ROOT_MARKERS = [".project-root", "pyproject.toml", ".git"]


def find_project_root(start_path: Optional[Path] = None) -> Path:
    """
    Find the project root by searching upward for marker files.

    Args:
        start_path: Starting directory for search. Defaults to this file's location.

    Returns:
        Path to project root directory.

    Raises:
        FileNotFoundError: If no root marker is found.
    """
    if start_path is None:
        start_path = Path(__file__).resolve().parent

    for candidate in [start_path, *start_path.parents]:
        if any((candidate / marker).exists() for marker in ROOT_MARKERS):
            return candidate

    raise FileNotFoundError(
        f"Could not find project root. Searched for markers {ROOT_MARKERS} "
        f"starting from {start_path}"
    )


# =============================================================================
# Canonical paths (resolved at import time)
# =============================================================================

PROJECT_ROOT = find_project_root()

CONFIG_DIR = PROJECT_ROOT / "configs"
PARAMS_FILE = CONFIG_DIR / "params.yml"

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
RAW_DIR = DATA_DIR / "raw"
PROCESSED_DIR = DATA_DIR / "processed"

INCIDENTS_RAW_DIR = RAW_DIR / "shooting_incidents"
CLEAN_DIR = PROCESSED_DIR / "clean"
FEATURES_DIR = PROCESSED_DIR / "features"
TYPOLOGY_DIR = PROCESSED_DIR / "typology"
METADATA_DIR = PROCESSED_DIR / "metadata"

LOGS_DIR = PROJECT_ROOT / "logs"

REPORTS_DIR = PROJECT_ROOT / "reports"
FIGURES_DIR = REPORTS_DIR / "figures"

SRC_DIR = PROJECT_ROOT / "src"
SCRIPTS_DIR = PROJECT_ROOT / "scripts"
TESTS_DIR = PROJECT_ROOT / "tests"


def ensure_dirs_exist() -> None:
    """Create all canonical output directories if they don't exist."""
    dirs = [
        CONFIG_DIR,
        INCIDENTS_RAW_DIR,
        CLEAN_DIR, FEATURES_DIR, TYPOLOGY_DIR, METADATA_DIR,
        LOGS_DIR,
        FIGURES_DIR,
    ]
    for d in dirs:
        d.mkdir(parents=True, exist_ok=True)


if __name__ == "__main__":
    print(f"PROJECT_ROOT:  {PROJECT_ROOT}")
    print(f"RAW_DIR:       {RAW_DIR}")
    print(f"PROCESSED_DIR: {PROCESSED_DIR}")
    print(f"PARAMS_FILE:   {PARAMS_FILE}")
    print(f"LOGS_DIR:      {LOGS_DIR}")
