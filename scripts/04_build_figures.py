#!/usr/bin/env python3
"""
04_build_figures.py

Descriptive figures for the incident data and the precinct typology.

Outputs (reports/figures/):
- incidents_by_boro.png
- incidents_by_location_desc.png (top N raw descriptions)
- incidents_by_location_bucket.png
- incidents_by_hour.png
- incidents_by_year.png
- elbow_curve.png
- cluster_centroids.png
"""

from precinct_typology.clustering import feature_columns
from precinct_typology.config import load_params
from precinct_typology.io_utils import read_df
from precinct_typology.logging_utils import get_logger
from precinct_typology.paths import CLEAN_DIR, FEATURES_DIR, FIGURES_DIR, TYPOLOGY_DIR
from precinct_typology.plots import (
    centroid_chart,
    elbow_chart,
    hourly_chart,
    value_count_chart,
    yearly_chart,
)

INPUT_INCIDENTS = CLEAN_DIR / "incidents_bucketed.parquet"
INPUT_FEATURES = FEATURES_DIR / "precinct_features_pruned.csv"
INPUT_K_SCORES = TYPOLOGY_DIR / "k_dispersion_scores.csv"
INPUT_CENTROIDS = TYPOLOGY_DIR / "precinct_centroids.csv"


def require(path, script: str) -> None:
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {path}. Run {script} first.")


def main():
    """Main entry point."""
    with get_logger("04_build_figures") as logger:
        logger.info("Starting 04_build_figures.py")

        params = load_params()
        figures = params["figures"]
        dpi = figures["dpi"]
        group_key = params["columns"]["group_key"]

        try:
            require(INPUT_INCIDENTS, "02_build_precinct_features.py")
            require(INPUT_FEATURES, "02_build_precinct_features.py")
            require(INPUT_K_SCORES, "03_build_precinct_clusters.py")
            require(INPUT_CENTROIDS, "03_build_precinct_clusters.py")

            incidents = read_df(INPUT_INCIDENTS)
            features = read_df(INPUT_FEATURES)
            scores = read_df(INPUT_K_SCORES)
            centroids = read_df(INPUT_CENTROIDS)

            outputs = {
                "incidents_by_boro": value_count_chart(
                    incidents["boro"], FIGURES_DIR / "incidents_by_boro.png",
                    "Incidents by borough", logger, dpi=dpi,
                ),
                "incidents_by_location_desc": value_count_chart(
                    incidents["location_desc"], FIGURES_DIR / "incidents_by_location_desc.png",
                    "Incidents by location description", logger,
                    top_n=figures["top_n_locations"], dpi=dpi,
                ),
                "incidents_by_location_bucket": value_count_chart(
                    incidents["location_bucket"], FIGURES_DIR / "incidents_by_location_bucket.png",
                    "Incidents by location bucket", logger,
                    top_n=figures["top_n_locations"], dpi=dpi,
                ),
                "incidents_by_hour": hourly_chart(
                    incidents["occur_hour"], FIGURES_DIR / "incidents_by_hour.png", logger,
                    bins=params["categorization"]["time_bins"], dpi=dpi,
                ),
                "incidents_by_year": yearly_chart(
                    incidents["occur_year"], FIGURES_DIR / "incidents_by_year.png", logger, dpi=dpi,
                ),
                "elbow_curve": elbow_chart(
                    scores, FIGURES_DIR / "elbow_curve.png", logger,
                    chosen_k=params["clustering"]["k"], dpi=dpi,
                ),
            }

            cols = feature_columns(features, group_key)
            outputs["cluster_centroids"] = centroid_chart(
                centroids, cols, features[cols].mean(),
                FIGURES_DIR / "cluster_centroids.png", logger, dpi=dpi,
            )

            logger.log_outputs({name: str(path) for name, path in outputs.items()})
            logger.info(f"SUCCESS: Built {len(outputs)} figures")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
