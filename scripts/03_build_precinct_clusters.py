#!/usr/bin/env python3
"""
03_build_precinct_clusters.py

Cluster precincts on their pruned feature shares with K-Means.

- Features are shares on a common [0, 1] scale and are NOT standardized
- Sweep K in [k_min..k_max] and log the within-cluster sum of squares per K
  (elbow curve; K is chosen by reading it, then set in params.yml)
- Sanity check: dispersion at K=1 equals the total sum of squares
- Fit the configured K, verify the fit reproduces with the same seed
- Report centroids, per-cluster mean/median and distinguishing features

Outputs:
- data/processed/typology/k_dispersion_scores.csv
- data/processed/typology/precinct_clusters.csv
- data/processed/typology/precinct_centroids.csv
- data/processed/typology/precinct_cluster_summary.csv
- data/processed/metadata/precinct_clusters_metadata.json
"""

import numpy as np

from precinct_typology.clustering import (
    as_points,
    baseline_dispersion,
    distinguishing_features,
    feature_columns,
    fit_clusters,
    n_distinct_points,
    summarize_clusters,
    sweep_dispersion,
    verify_reproducibility,
)
from precinct_typology.config import load_params
from precinct_typology.io_utils import atomic_write_df, read_df
from precinct_typology.logging_utils import get_logger
from precinct_typology.paths import FEATURES_DIR, TYPOLOGY_DIR
from precinct_typology.provenance import hash_dict, write_metadata_sidecar
from precinct_typology.schemas import ASSIGNMENTS_SCHEMA, validate_schema


# =============================================================================
# Constants
# =============================================================================

INPUT_FEATURES = FEATURES_DIR / "precinct_features_pruned.csv"

OUTPUT_K_SCORES = TYPOLOGY_DIR / "k_dispersion_scores.csv"
OUTPUT_CLUSTERS = TYPOLOGY_DIR / "precinct_clusters.csv"
OUTPUT_CENTROIDS = TYPOLOGY_DIR / "precinct_centroids.csv"
OUTPUT_SUMMARY = TYPOLOGY_DIR / "precinct_cluster_summary.csv"


def load_features(logger):
    """Load the pruned precinct feature table from script 02."""
    if not INPUT_FEATURES.exists():
        raise FileNotFoundError(
            f"Pruned features not found: {INPUT_FEATURES}. "
            "Run 02_build_precinct_features.py first."
        )

    df = read_df(INPUT_FEATURES)
    logger.info(f"Loaded features: {len(df)} precincts, {len(df.columns) - 1} features")
    return df


def main():
    """Main entry point."""
    with get_logger("03_build_precinct_clusters") as logger:
        logger.info("Starting 03_build_precinct_clusters.py")

        params = load_params()
        logger.log_config(params, config_digest=hash_dict(params))

        group_key = params["columns"]["group_key"]
        clustering = params["clustering"]
        k = clustering["k"]
        k_min = clustering["k_min"]
        k_max = clustering["k_max"]
        n_init = clustering["n_init"]
        max_iter = clustering["max_iter"]
        random_seed = params["random_seeds"]["clustering"]

        logger.info(f"K range: {k_min}..{k_max}, final K: {k}, random seed: {random_seed}")

        try:
            features = load_features(logger)
            logger.log_inputs({"precinct_features_pruned": str(INPUT_FEATURES)})

            cols = feature_columns(features, group_key)
            X = as_points(features[cols])
            logger.info(f"Feature columns used: {cols}")

            baseline = baseline_dispersion(X)
            logger.info(f"Total sum of squares (K=1 baseline): {baseline:.6f}")

            k_max_effective = min(k_max, n_distinct_points(X))
            if k_max_effective < k_max:
                logger.warning(f"Capping k_max at {k_max_effective} distinct precinct profiles")
            scores = sweep_dispersion(
                X, k_min, k_max_effective, random_seed, logger, n_init=n_init, max_iter=max_iter
            )

            if k_min == 1:
                k1 = float(scores.loc[scores["k"] == 1, "dispersion"].iloc[0])
                if not np.isclose(k1, baseline, rtol=1e-6):
                    logger.warning(f"K=1 dispersion {k1:.6f} differs from baseline {baseline:.6f}")

            assignments, centroids = fit_clusters(
                features, k, group_key, random_seed, logger, n_init=n_init, max_iter=max_iter
            )
            validate_schema(assignments, ASSIGNMENTS_SCHEMA, context="precinct clusters")

            repro_ok = verify_reproducibility(
                features, k, group_key, random_seed, assignments, logger,
                n_init=n_init, max_iter=max_iter,
            )

            summary = summarize_clusters(features, assignments, group_key)
            distinguishing = distinguishing_features(centroids, features, group_key)
            for cid, feats in distinguishing.items():
                logger.info(f"  Cluster {cid}: {feats}")

            atomic_write_df(scores, OUTPUT_K_SCORES)
            atomic_write_df(assignments, OUTPUT_CLUSTERS)
            atomic_write_df(centroids, OUTPUT_CENTROIDS)
            atomic_write_df(summary, OUTPUT_SUMMARY)
            for output in (OUTPUT_K_SCORES, OUTPUT_CLUSTERS, OUTPUT_CENTROIDS, OUTPUT_SUMMARY):
                logger.info(f"Wrote: {output}")

            logger.log_outputs({
                "k_dispersion_scores": str(OUTPUT_K_SCORES),
                "precinct_clusters": str(OUTPUT_CLUSTERS),
                "precinct_centroids": str(OUTPUT_CENTROIDS),
                "precinct_cluster_summary": str(OUTPUT_SUMMARY),
            })

            cluster_sizes = {int(c): int(n) for c, n in zip(centroids["cluster_id"], centroids["n_groups"])}
            metrics = {
                "k": k,
                "baseline_dispersion": baseline,
                "k_scores": scores.to_dict(orient="records"),
                "features_used": cols,
                "random_seed": random_seed,
                "reproducibility_verified": repro_ok,
                "cluster_sizes": cluster_sizes,
                "distinguishing_features": {str(c): f for c, f in distinguishing.items()},
            }
            logger.log_metrics(metrics)

            write_metadata_sidecar(
                output_path=OUTPUT_CLUSTERS,
                inputs={"precinct_features_pruned": str(INPUT_FEATURES)},
                config=params,
                run_id=logger.run_id,
                extra=metrics,
            )

            logger.info("=" * 70)
            logger.info("Precinct Typology Summary:")
            logger.info(f"  K: {k}")
            logger.info(f"  Features used: {len(cols)}")
            logger.info(f"  Cluster sizes: {cluster_sizes}")
            logger.info("=" * 70)
            logger.info("NOTE: K is set by hand from the elbow curve in k_dispersion_scores.csv.")
            logger.info("SUCCESS: Built precinct typology")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
