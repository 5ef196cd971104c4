"""Shared fixtures: a quiet JSONL logger and small synthetic incident tables."""

import pandas as pd
import pytest

from precinct_typology.categorize import add_bucket_columns, rules_from_params
from precinct_typology.config import DEFAULT_PARAMS, load_params
from precinct_typology.logging_utils import JSONLLogger


@pytest.fixture
def logger(tmp_path):
    """JSONL logger writing into the test's temp dir, no console output."""
    log = JSONLLogger("test_run", log_dir=tmp_path / "logs", console=False)
    yield log
    log.close()


@pytest.fixture
def params(tmp_path):
    """Default parameters, independent of any configs/params.yml on disk."""
    empty = tmp_path / "params.yml"
    empty.write_text("{}\n", encoding="utf-8")
    params = load_params(empty)
    assert params == DEFAULT_PARAMS
    return params


@pytest.fixture
def rules(params):
    """(location_rules, time_rules) built from the default parameters."""
    return rules_from_params(params)


@pytest.fixture
def four_records():
    """Two groups, two incidents each, covering four location buckets."""
    return pd.DataFrame({
        "precinct": ["A", "A", "B", "B"],
        "location_desc": ["DWELLING", "GROCERY STORE", "", "ATM"],
        "occur_hour": [2, 14, 20, 20],
    })


@pytest.fixture
def four_records_bucketed(four_records, rules):
    location_rules, time_rules = rules
    return add_bucket_columns(
        four_records, "location_desc", "occur_hour", location_rules, time_rules
    )


@pytest.fixture
def raw_incidents():
    """Raw NYPD-style extract with upper-case columns and placeholder values."""
    return pd.DataFrame({
        "INCIDENT_KEY": [1, 2, 3, 4, 5, 6, 7],
        "OCCUR_DATE": ["01/05/2022", "01/05/2022", "07/04/2021", "07/04/2021", "12/31/2020", "06/01/2022", "03/13/2022"],
        "OCCUR_TIME": ["02:15:00", "14:30:00", "20:05:00", "23:59:59", "bad", "09:00:00", "02:30:00"],
        "BORO": ["BRONX", "BRONX", "BROOKLYN", "BROOKLYN", "QUEENS", " MANHATTAN ", "QUEENS"],
        "PRECINCT": [40, 40, 75, 75, 105, None, 105],
        "LOCATION_DESC": ["MULTI DWELL - PUBLIC HOUS", "(null)", None, " GROCERY/BODEGA ", "ATM", "BAR/NIGHT CLUB", "STREET"],
        "STATISTICAL_MURDER_FLAG": [False, True, False, False, True, False, False],
        "X_COORD_CD": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0],
    })


@pytest.fixture
def feature_table():
    """Six precincts in two well-separated groups (residential, business)."""
    return pd.DataFrame({
        "precinct": [1, 2, 3, 4, 5, 6],
        "loc_RESIDENCE": [0.9, 0.8, 0.85, 0.1, 0.15, 0.05],
        "loc_BUSINESS": [0.1, 0.2, 0.15, 0.9, 0.85, 0.95],
        "time_NIGHT": [0.5, 0.6, 0.55, 0.2, 0.25, 0.3],
        "volume_share": [0.2, 0.2, 0.2, 0.15, 0.15, 0.1],
    })
