"""
Cleaning of the raw NYPD shooting incident extract.

Keeps the columns the analysis uses, renames them to snake_case, blanks
out "(null)" style placeholders in descriptive columns, derives the
occurrence hour and a localized timestamp, and drops rows that cannot be
assigned to a precinct or an hour. Every drop is logged with counts.
"""

from typing import Iterable

import pandas as pd

from precinct_typology.schemas import (
    INCIDENTS_SCHEMA,
    RAW_COLUMN_MAP,
    REQUIRED_RAW_COLUMNS,
    require_columns,
    validate_schema,
)
from precinct_typology.time_utils import add_calendar_parts, parse_hour, to_nyc_timestamps

TEXT_COLUMNS = [
    "boro", "location_desc",
    "perp_age_group", "perp_sex", "perp_race",
    "vic_age_group", "vic_sex", "vic_race",
]


def select_and_rename(raw: pd.DataFrame) -> pd.DataFrame:
    """Keep known raw columns and rename them; missing optional columns are skipped."""
    require_columns(raw, REQUIRED_RAW_COLUMNS, context="raw incidents")
    keep = [c for c in RAW_COLUMN_MAP if c in raw.columns]
    return raw[keep].rename(columns=RAW_COLUMN_MAP)


def blank_placeholders(df: pd.DataFrame, tokens: Iterable[str]) -> pd.DataFrame:
    """Strip text columns and turn empty strings and `tokens` into NaN."""
    df = df.copy()
    tokens = set(tokens) | {""}
    for col in TEXT_COLUMNS:
        if col not in df.columns:
            continue
        text = df[col].astype(object).map(lambda v: v.strip() if isinstance(v, str) else v)
        df[col] = text.mask(text.isin(tokens)).astype(object)
    return df


def prepare_incidents(
    raw: pd.DataFrame,
    missing_tokens: Iterable[str],
    logger,
) -> pd.DataFrame:
    """
    Clean the raw extract into the incident table used downstream.

    Returns:
        One row per incident with precinct (int), occur_hour (int 0-23),
        location_desc (nullable), occur_ts and calendar parts.
    """
    logger.info(f"Cleaning {len(raw):,} raw incident records...")

    df = select_and_rename(raw)
    df = blank_placeholders(df, missing_tokens)

    df["occur_hour"] = parse_hour(df["occur_time"])
    df["occur_ts"] = to_nyc_timestamps(df["occur_date"], df["occur_time"])
    df = add_calendar_parts(df, "occur_ts")

    df["precinct"] = pd.to_numeric(df["precinct"], errors="coerce").astype("Int64")

    valid = df["precinct"].notna() & df["occur_hour"].notna()
    n_dropped = int((~valid).sum())
    if n_dropped:
        logger.warning(f"Dropping {n_dropped:,} records without a precinct or parseable hour")
    df = df[valid].copy()

    df["precinct"] = df["precinct"].astype("int64")
    df["occur_hour"] = df["occur_hour"].astype("int64")

    n_missing_location = int(df["location_desc"].isna().sum())
    logger.info(
        f"Clean records: {len(df):,}; missing location_desc: {n_missing_location:,} "
        f"({n_missing_location / max(len(df), 1):.1%})"
    )
    n_bad_ts = int(df["occur_ts"].isna().sum())
    if n_bad_ts:
        logger.warning(f"{n_bad_ts:,} records have no valid localized timestamp")

    validate_schema(df, INCIDENTS_SCHEMA, context="cleaned incidents")
    return df.reset_index(drop=True)
