"""
Tests for the paths module.

Project root detection and canonical paths.
"""

import pytest

from precinct_typology.paths import (
    CLEAN_DIR,
    CONFIG_DIR,
    FEATURES_DIR,
    FIGURES_DIR,
    INCIDENTS_RAW_DIR,
    LOGS_DIR,
    METADATA_DIR,
    PARAMS_FILE,
    PROCESSED_DIR,
    PROJECT_ROOT,
    RAW_DIR,
    TYPOLOGY_DIR,
    find_project_root,
)


class TestProjectRoot:
    """Tests for project root detection."""

    def test_project_root_exists(self):
        assert PROJECT_ROOT.exists()
        assert PROJECT_ROOT.is_dir()

    def test_project_root_marker_exists(self):
        marker = PROJECT_ROOT / ".project-root"
        assert marker.exists(), "Missing .project-root marker file"

    def test_find_project_root_from_subdir(self):
        subdir = PROJECT_ROOT / "src" / "precinct_typology"
        assert find_project_root(subdir) == PROJECT_ROOT

    def test_find_project_root_from_marker_dir(self, tmp_path):
        (tmp_path / ".project-root").touch()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path


class TestCanonicalPaths:
    """Tests for canonical path definitions."""

    def test_data_dirs(self):
        assert RAW_DIR == PROJECT_ROOT / "data" / "raw"
        assert PROCESSED_DIR == PROJECT_ROOT / "data" / "processed"
        assert INCIDENTS_RAW_DIR.parent == RAW_DIR

    @pytest.mark.parametrize("directory", [CLEAN_DIR, FEATURES_DIR, TYPOLOGY_DIR, METADATA_DIR])
    def test_processed_subdirs(self, directory):
        assert directory.parent == PROCESSED_DIR

    def test_config(self):
        assert PARAMS_FILE.parent == CONFIG_DIR
        assert CONFIG_DIR.exists()

    def test_outputs_outside_data(self):
        assert LOGS_DIR.parent == PROJECT_ROOT
        assert FIGURES_DIR.parent.parent == PROJECT_ROOT
