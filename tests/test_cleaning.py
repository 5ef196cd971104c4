"""
Tests for cleaning the raw incident extract and the time helpers.
"""

import pandas as pd
import pytest

from precinct_typology.cleaning import blank_placeholders, prepare_incidents, select_and_rename
from precinct_typology.schemas import SchemaError
from precinct_typology.time_utils import (
    NYC_TZ,
    add_calendar_parts,
    get_year_range,
    parse_hour,
    to_nyc_timestamps,
)

MISSING_TOKENS = ["(null)", "NONE"]


class TestParseHour:

    def test_clock_strings(self):
        out = parse_hour(pd.Series(["00:00:00", "02:15:00", "23:59:59", "7:05"]))
        assert out.tolist() == [0, 2, 23, 7]
        assert str(out.dtype) == "Int64"

    def test_bad_values_become_na(self):
        out = parse_hour(pd.Series(["bad", "24:00:00", None, "-1:00"]))
        assert out.isna().all()


class TestTimestamps:

    def test_localized_to_new_york(self):
        ts = to_nyc_timestamps(pd.Series(["07/04/2021"]), pd.Series(["20:05:00"]))
        assert str(ts.dt.tz) == str(NYC_TZ)
        assert ts.iloc[0].hour == 20
        assert ts.iloc[0].utcoffset() == pd.Timedelta(hours=-4)

    def test_dst_gap_is_nat(self):
        ts = to_nyc_timestamps(pd.Series(["03/13/2022"]), pd.Series(["02:30:00"]))
        assert ts.isna().all()

    def test_unparseable_is_nat(self):
        ts = to_nyc_timestamps(pd.Series(["12/31/2020"]), pd.Series(["bad"]))
        assert ts.isna().all()

    def test_calendar_parts(self):
        df = pd.DataFrame({"ts": to_nyc_timestamps(
            pd.Series(["01/05/2022", "07/04/2021"]), pd.Series(["02:15:00", "20:05:00"])
        )})
        out = add_calendar_parts(df, "ts")
        assert out["occur_year"].tolist() == [2022, 2021]
        assert out["occur_month"].tolist() == [1, 7]
        assert out["occur_dow"].tolist() == [2, 6]

    def test_year_range(self):
        df = pd.DataFrame({"ts": to_nyc_timestamps(
            pd.Series(["01/05/2022", "07/04/2019"]), pd.Series(["02:15:00", "20:05:00"])
        )})
        assert get_year_range(df, "ts") == (2019, 2022)

    def test_year_range_empty(self):
        df = pd.DataFrame({"ts": pd.Series([pd.NaT])})
        with pytest.raises(ValueError):
            get_year_range(df, "ts")


class TestSelectAndBlank:

    def test_rename_and_drop_unknown_columns(self, raw_incidents):
        out = select_and_rename(raw_incidents)
        assert "location_desc" in out.columns
        assert "precinct" in out.columns
        assert "X_COORD_CD" not in out.columns

    def test_missing_required_column(self, raw_incidents):
        with pytest.raises(SchemaError, match="LOCATION_DESC"):
            select_and_rename(raw_incidents.drop(columns=["LOCATION_DESC"]))

    def test_placeholders_blanked(self):
        df = pd.DataFrame({"location_desc": ["(null)", "  ", " STREET ", None, "NONE"]})
        out = blank_placeholders(df, MISSING_TOKENS)
        assert out["location_desc"].isna().tolist() == [True, True, False, True, True]
        assert out.loc[2, "location_desc"] == "STREET"


class TestPrepareIncidents:

    @pytest.fixture
    def incidents(self, raw_incidents, logger):
        return prepare_incidents(raw_incidents, MISSING_TOKENS, logger)

    def test_rows_without_precinct_or_hour_dropped(self, incidents):
        assert len(incidents) == 5
        assert incidents["precinct"].tolist() == [40, 40, 75, 75, 105]
        assert incidents["occur_hour"].tolist() == [2, 14, 20, 23, 2]

    def test_dtypes(self, incidents):
        assert incidents["precinct"].dtype == "int64"
        assert incidents["occur_hour"].dtype == "int64"

    def test_location_placeholders_are_missing(self, incidents):
        assert incidents["location_desc"].isna().tolist() == [False, True, True, False, False]
        assert incidents.loc[3, "location_desc"] == "GROCERY/BODEGA"

    def test_dst_gap_keeps_row_with_clock_hour(self, incidents):
        row = incidents.iloc[4]
        assert row["occur_hour"] == 2
        assert pd.isna(row["occur_ts"])
        assert pd.isna(row["occur_year"])

    def test_drop_logged(self, incidents, logger):
        logged = logger.log_file.read_text(encoding="utf-8")
        assert "Dropping 2 records without a precinct or parseable hour" in logged
