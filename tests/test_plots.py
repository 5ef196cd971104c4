"""
Tests for the descriptive figures: each chart writes a non-empty PNG.
"""

import pandas as pd
import pytest

from precinct_typology.clustering import feature_columns, fit_clusters, sweep_dispersion
from precinct_typology.plots import (
    centroid_chart,
    elbow_chart,
    hourly_chart,
    value_count_chart,
    yearly_chart,
)


def assert_png(path):
    assert path.exists()
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


class TestIncidentCharts:

    def test_value_counts_with_missing(self, tmp_path, logger):
        values = pd.Series(["STREET", "STREET", None, "ATM"])
        path = value_count_chart(values, tmp_path / "loc.png", "Locations", logger, top_n=2, dpi=50)
        assert_png(path)

    def test_hourly(self, tmp_path, logger, params):
        hours = pd.Series([0, 2, 2, 13, 20, 23])
        path = hourly_chart(hours, tmp_path / "hours.png", logger,
                            bins=params["categorization"]["time_bins"], dpi=50)
        assert_png(path)

    def test_yearly(self, tmp_path, logger):
        path = yearly_chart(pd.Series([2020, 2021, 2021, None]), tmp_path / "years.png", logger, dpi=50)
        assert_png(path)


class TestTypologyCharts:

    @pytest.fixture
    def scores(self, feature_table, logger):
        X = feature_table[feature_columns(feature_table, "precinct")]
        return sweep_dispersion(X, 1, 4, 12345, logger)

    def test_elbow(self, tmp_path, logger, scores):
        path = elbow_chart(scores, tmp_path / "figures" / "elbow.png", logger, chosen_k=2, dpi=50)
        assert_png(path)

    def test_elbow_chosen_k_outside_sweep(self, tmp_path, logger, scores):
        path = elbow_chart(scores, tmp_path / "elbow.png", logger, chosen_k=9, dpi=50)
        assert_png(path)

    def test_centroids(self, tmp_path, logger, feature_table):
        _, centroids = fit_clusters(feature_table, 2, "precinct", 12345, logger)
        cols = feature_columns(feature_table, "precinct")
        path = centroid_chart(centroids, cols, feature_table[cols].mean(),
                              tmp_path / "centroids.png", logger, dpi=50)
        assert_png(path)
