"""
Per-precinct feature construction.

For each group key (precinct) three tables are built from the bucketed
incident table and inner-joined on the key:

    loc_<value>    share of the group's incidents in each location bucket
                   (one column per bucket value seen anywhere in the data)
    time_<bucket>  share of the group's incidents in each time bucket
    volume_share   group incident count / total incident count

Within a group the loc_* columns sum to 1, as do the time_* columns.
High-cardinality location values each get a column here; discarding the
uninformative ones is the pruning stage's job.
"""

from typing import Dict, List

import numpy as np
import pandas as pd

from precinct_typology.table import count_by, join_on_key, join_stats, pivot

LOCATION_PREFIX = "loc_"
TIME_PREFIX = "time_"
VOLUME_SHARE_COL = "volume_share"

SHARE_SUM_TOLERANCE = 1e-9


def build_frequency_features(
    table: pd.DataFrame,
    group_key: str,
    category_col: str,
    prefix: str = "",
) -> pd.DataFrame:
    """
    Normalized category frequencies per group, one column per category.

    Args:
        table: Record-level table
        group_key: Grouping column
        category_col: Categorical column to distribute over
        prefix: Prefix for the generated column names

    Returns:
        One row per group; absent group/category combinations are 0.
    """
    counts = count_by(table, [group_key, category_col], name="count")
    if counts.empty:
        return pd.DataFrame(columns=[group_key])

    group_totals = counts.groupby(group_key)["count"].transform("sum")
    counts["frequency"] = counts["count"] / group_totals
    return pivot(counts, group_key, category_col, "frequency", fill_value=0.0, prefix=prefix)


def build_volume_share(table: pd.DataFrame, group_key: str) -> pd.DataFrame:
    """Each group's share of the total record count, in column `volume_share`."""
    counts = count_by(table, group_key, name="count")
    if counts.empty:
        return pd.DataFrame(columns=[group_key, VOLUME_SHARE_COL])

    counts[VOLUME_SHARE_COL] = counts["count"] / len(table)
    return counts[[group_key, VOLUME_SHARE_COL]]


def build_feature_table(
    table: pd.DataFrame,
    group_key: str,
    location_col: str,
    time_col: str,
    logger,
) -> pd.DataFrame:
    """
    Join location frequencies, time frequencies and volume share on group_key.

    The join is inner: a key missing from any of the three tables is
    dropped (logged, not repaired).
    """
    logger.info(f"Building features per {group_key} from {len(table):,} records...")

    location_features = build_frequency_features(table, group_key, location_col, LOCATION_PREFIX)
    time_features = build_frequency_features(table, group_key, time_col, TIME_PREFIX)
    volume = build_volume_share(table, group_key)

    logger.info(
        f"Location columns: {len(location_features.columns) - 1}, "
        f"time columns: {len(time_features.columns) - 1}"
    )

    stats = {
        "location_vs_time": join_stats(location_features, time_features, group_key),
        "with_volume": join_stats(time_features, volume, group_key),
    }
    features = join_on_key(location_features, time_features, group_key, context="location/time")
    features = join_on_key(features, volume, group_key, context="volume share")

    all_keys = set(location_features[group_key]) | set(time_features[group_key]) | set(volume[group_key])
    dropped = len(all_keys) - len(features)
    if dropped:
        logger.warning(f"Inner join dropped {dropped} {group_key} keys missing from a feature table")
    logger.log_join_stats(stats)

    features = features.sort_values(group_key).reset_index(drop=True)
    logger.info(f"Feature table: {len(features)} rows x {len(features.columns)} columns")
    return features


def location_columns(features: pd.DataFrame) -> List[str]:
    return [c for c in features.columns if str(c).startswith(LOCATION_PREFIX)]


def time_columns(features: pd.DataFrame) -> List[str]:
    return [c for c in features.columns if str(c).startswith(TIME_PREFIX)]


def validate_features(features: pd.DataFrame, logger) -> Dict:
    """Check share sums and volume share; return QA stats."""
    logger.info("Validating feature table...")

    qa_stats: Dict = {"row_count": len(features)}

    for label, cols in (("location", location_columns(features)), ("time", time_columns(features))):
        if not cols or features.empty:
            continue
        sums = features[cols].sum(axis=1)
        qa_stats[f"{label}_share_sum_min"] = float(sums.min())
        qa_stats[f"{label}_share_sum_max"] = float(sums.max())
        bad = ~np.isclose(sums, 1.0, atol=SHARE_SUM_TOLERANCE)
        qa_stats[f"{label}_share_sum_violations"] = int(bad.sum())
        if bad.any():
            logger.warning(f"{label} share sums not 1 for {int(bad.sum())} groups")

    if VOLUME_SHARE_COL in features.columns and not features.empty:
        qa_stats["volume_share_total"] = float(features[VOLUME_SHARE_COL].sum())

    logger.info(f"QA Stats: {qa_stats}")
    return qa_stats
