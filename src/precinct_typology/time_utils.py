"""
Timezone-aware time helpers for the incident table.

OCCUR_DATE ("MM/DD/YYYY") and OCCUR_TIME ("HH:MM:SS") are local New York
wall-clock values. The hour used for time-of-day buckets is read straight
from the clock string, so DST gaps and overlaps never shift a bucket;
the localized timestamp is only used for calendar features (year, month,
weekday) in the descriptive figures.
"""

from typing import Tuple

import pandas as pd
import pytz

NYC_TZ = pytz.timezone("America/New_York")

DATE_FORMAT = "%m/%d/%Y"
DATETIME_FORMAT = f"{DATE_FORMAT} %H:%M:%S"


def parse_hour(times: pd.Series) -> pd.Series:
    """
    Hour of day (0-23) from "HH:MM[:SS]" strings.

    Unparseable or out-of-range values become <NA>.
    """
    parts = times.astype(str).str.strip().str.split(":").str[0]
    hours = pd.to_numeric(parts, errors="coerce")
    valid = hours.between(0, 23) & (hours % 1 == 0)
    return hours.where(valid).astype("Int64")


def to_nyc_timestamps(dates: pd.Series, times: pd.Series) -> pd.Series:
    """
    Combine local date and time strings into America/New_York timestamps.

    Ambiguous (fall-back) and nonexistent (spring-forward) wall times map
    to NaT rather than being guessed.
    """
    combined = dates.astype(str).str.strip() + " " + times.astype(str).str.strip()
    naive = pd.to_datetime(combined, format=DATETIME_FORMAT, errors="coerce")
    return naive.dt.tz_localize(NYC_TZ, ambiguous="NaT", nonexistent="NaT")


def add_calendar_parts(df: pd.DataFrame, timestamp_column: str) -> pd.DataFrame:
    """Copy of df with year, month and weekday (Mon=0) columns."""
    ts = df[timestamp_column]
    return df.assign(
        occur_year=ts.dt.year.astype("Int64"),
        occur_month=ts.dt.month.astype("Int64"),
        occur_dow=ts.dt.weekday.astype("Int64"),
    )


def get_year_range(df: pd.DataFrame, timestamp_column: str) -> Tuple[int, int]:
    """(min_year, max_year) covered by the timestamp column."""
    timestamps = df[timestamp_column].dropna()
    if timestamps.empty:
        raise ValueError(f"No valid timestamps in {timestamp_column}")
    return int(timestamps.min().year), int(timestamps.max().year)
