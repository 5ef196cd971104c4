#!/usr/bin/env python3
"""
02_build_precinct_features.py

Clean the raw shooting incident extract, bucket location and time of day,
and build the per-precinct feature table.

Steps:
- Keep/rename the analysis columns, derive occur_hour and NYC timestamps
- location_desc -> location_bucket (ordered rules, last match wins)
- occur_hour -> time_bucket (DAWN / MORNING / AFTERNOON / NIGHT)
- Per precinct: location-bucket shares, time-bucket shares, volume share
- Prune feature columns whose lower median across precincts is not > threshold

Outputs:
- data/processed/clean/incidents_bucketed.parquet
- data/processed/features/precinct_features.csv (all feature columns)
- data/processed/features/precinct_features_pruned.csv (clustering input)
- data/processed/metadata/*_metadata.json (provenance sidecars)
"""

from precinct_typology.categorize import add_bucket_columns, rules_from_params
from precinct_typology.cleaning import prepare_incidents
from precinct_typology.config import load_params
from precinct_typology.features import build_feature_table, validate_features
from precinct_typology.io_utils import atomic_write_df, latest_file, read_df
from precinct_typology.logging_utils import get_logger
from precinct_typology.paths import CLEAN_DIR, FEATURES_DIR, INCIDENTS_RAW_DIR
from precinct_typology.provenance import hash_dict, write_metadata_sidecar
from precinct_typology.pruning import column_statistics, prune_columns
from precinct_typology.schemas import FEATURES_SCHEMA, validate_schema
from precinct_typology.time_utils import get_year_range


# =============================================================================
# Constants
# =============================================================================

OUTPUT_INCIDENTS = CLEAN_DIR / "incidents_bucketed.parquet"
OUTPUT_FEATURES = FEATURES_DIR / "precinct_features.csv"
OUTPUT_FEATURES_PRUNED = FEATURES_DIR / "precinct_features_pruned.csv"


def load_raw_incidents(logger):
    """Load the most recent raw incident snapshot."""
    raw_path = latest_file(INCIDENTS_RAW_DIR, "raw_shooting_incidents_*.csv")
    if raw_path is None:
        raise FileNotFoundError(
            f"No raw incident files found in {INCIDENTS_RAW_DIR}. "
            "Run 01_fetch_incidents.py first."
        )

    logger.info(f"Loading raw incidents from: {raw_path}")
    df = read_df(raw_path, dtype={"OCCUR_DATE": str, "OCCUR_TIME": str, "LOCATION_DESC": str})
    logger.info(f"Loaded {len(df):,} raw records")
    return df, raw_path


def main():
    """Main entry point."""
    with get_logger("02_build_precinct_features") as logger:
        logger.info("Starting 02_build_precinct_features.py")

        params = load_params()
        logger.log_config(params, config_digest=hash_dict(params))

        columns = params["columns"]
        group_key = columns["group_key"]
        pruning = params["pruning"]

        try:
            raw, raw_path = load_raw_incidents(logger)
            logger.log_inputs({"raw_incidents": str(raw_path)})

            incidents = prepare_incidents(
                raw, params["categorization"].get("missing_tokens", []), logger
            )
            year_min, year_max = get_year_range(incidents, "occur_ts")
            logger.info(f"Incident years covered: {year_min}-{year_max}")

            location_rules, time_rules = rules_from_params(params)
            incidents = add_bucket_columns(
                incidents,
                location_col=columns["location"],
                hour_col=columns["hour"],
                location_rules=location_rules,
                time_rules=time_rules,
            )

            bucket_counts = incidents["location_bucket"].value_counts()
            logger.info(f"Distinct location buckets: {len(bucket_counts)}")
            logger.info(f"Top location buckets: {bucket_counts.head(6).to_dict()}")
            logger.info(f"Time buckets: {incidents['time_bucket'].value_counts().to_dict()}")

            features = build_feature_table(
                incidents, group_key, "location_bucket", "time_bucket", logger
            )
            validate_schema(features, FEATURES_SCHEMA, context="precinct features")
            qa_stats = validate_features(features, logger)

            stats = column_statistics(features, pruning["statistic"], key_col=group_key)
            pruned = prune_columns(
                features, pruning["statistic"], pruning["threshold"], group_key, logger
            )
            kept_features = [c for c in pruned.columns if c != group_key]
            logger.info(f"Retained features: {kept_features}")

            atomic_write_df(incidents, OUTPUT_INCIDENTS, index=False)
            logger.info(f"Wrote: {OUTPUT_INCIDENTS} ({len(incidents):,} rows)")

            atomic_write_df(features, OUTPUT_FEATURES)
            logger.info(f"Wrote: {OUTPUT_FEATURES} ({len(features)} rows)")

            atomic_write_df(pruned, OUTPUT_FEATURES_PRUNED)
            logger.info(f"Wrote: {OUTPUT_FEATURES_PRUNED} ({len(pruned.columns) - 1} features)")

            logger.log_outputs({
                "incidents_bucketed": str(OUTPUT_INCIDENTS),
                "precinct_features": str(OUTPUT_FEATURES),
                "precinct_features_pruned": str(OUTPUT_FEATURES_PRUNED),
            })

            metrics = {
                "clean_records": len(incidents),
                "precincts": len(features),
                "feature_columns": len(features.columns) - 1,
                "retained_columns": len(kept_features),
                "pruning_statistics": stats.round(6).to_dict(),
                "qa_stats": qa_stats,
            }
            logger.log_metrics(metrics)

            for output in (OUTPUT_FEATURES, OUTPUT_FEATURES_PRUNED):
                write_metadata_sidecar(
                    output_path=output,
                    inputs={"raw_incidents": str(raw_path)},
                    config=params,
                    run_id=logger.run_id,
                    extra=metrics,
                )

            logger.info("=" * 70)
            logger.info("Precinct Features Summary:")
            logger.info(f"  Clean records: {len(incidents):,}")
            logger.info(f"  Precincts: {len(features)}")
            logger.info(f"  Feature columns: {len(features.columns) - 1} -> {len(kept_features)} after pruning")
            logger.info("=" * 70)
            logger.info("SUCCESS: Built precinct features")

        except Exception as e:
            logger.error(f"FAILED: {e}")
            raise


if __name__ == "__main__":
    main()
