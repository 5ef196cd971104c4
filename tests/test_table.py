"""
Tests for the table operations: filter, group-by-aggregate, pivot, join.
"""

import pandas as pd
import pytest

from precinct_typology.table import (
    count_by,
    filter_rows,
    group_by_aggregate,
    join_on_key,
    join_stats,
    pivot,
)


@pytest.fixture
def long_table():
    return pd.DataFrame({
        "precinct": [1, 1, 2, 3, 3, 3],
        "bucket": ["X", "Y", "X", "X", "Y", "Z"],
        "value": [0.5, 0.5, 1.0, 0.2, 0.3, 0.5],
    })


class TestFilterAndAggregate:
    """filter_rows, group_by_aggregate and count_by."""

    def test_filter_rows(self, long_table):
        out = filter_rows(long_table, lambda t: t["value"] >= 0.5)
        assert len(out) == 4
        assert (out["value"] >= 0.5).all()

    def test_filter_does_not_mutate(self, long_table):
        before = long_table.copy()
        out = filter_rows(long_table, lambda t: t["precinct"] == 1)
        out["value"] = 0
        pd.testing.assert_frame_equal(long_table, before)

    def test_group_by_aggregate(self, long_table):
        out = group_by_aggregate(long_table, "precinct", {"total": ("value", "sum"), "n": ("value", "size")})
        assert list(out.columns) == ["precinct", "total", "n"]
        assert out.set_index("precinct")["total"].to_dict() == pytest.approx({1: 1.0, 2: 1.0, 3: 1.0})
        assert out.set_index("precinct")["n"].to_dict() == {1: 2, 2: 1, 3: 3}

    def test_count_by_multiple_keys(self, long_table):
        out = count_by(long_table, ["precinct", "bucket"])
        assert len(out) == 6
        assert (out["count"] == 1).all()

    def test_empty_input(self):
        empty = pd.DataFrame(columns=["precinct", "bucket"])
        assert count_by(empty, ["precinct", "bucket"]).empty
        assert list(count_by(empty, "precinct").columns) == ["precinct", "count"]
        assert group_by_aggregate(empty, "precinct", {"n": ("bucket", "size")}).empty


class TestPivot:
    """Long-to-wide reshape with fill."""

    def test_one_row_per_index_one_column_per_name(self, long_table):
        wide = pivot(long_table, "precinct", "bucket", "value", prefix="b_")
        assert list(wide.columns) == ["precinct", "b_X", "b_Y", "b_Z"]
        assert list(wide["precinct"]) == [1, 2, 3]

    def test_absent_combinations_filled(self, long_table):
        wide = pivot(long_table, "precinct", "bucket", "value", fill_value=0.0).set_index("precinct")
        assert wide.loc[2, "Y"] == 0.0
        assert wide.loc[2, "Z"] == 0.0
        assert wide.loc[1, "Z"] == 0.0
        assert not wide.isna().any().any()

    def test_values_preserved(self, long_table):
        wide = pivot(long_table, "precinct", "bucket", "value").set_index("precinct")
        assert wide.loc[3, "Z"] == pytest.approx(0.5)
        assert wide.loc[1, "X"] == pytest.approx(0.5)

    def test_empty_pivot_keeps_index_column(self):
        empty = pd.DataFrame(columns=["precinct", "bucket", "value"])
        wide = pivot(empty, "precinct", "bucket", "value")
        assert wide.empty
        assert list(wide.columns) == ["precinct"]


class TestJoinOnKey:
    """Inner join validated one-to-one."""

    def test_inner_join_drops_unmatched_keys(self):
        left = pd.DataFrame({"precinct": [1, 2, 3], "a": [0.1, 0.2, 0.3]})
        right = pd.DataFrame({"precinct": [2, 3, 4], "b": [1, 2, 3]})
        out = join_on_key(left, right, "precinct")
        assert sorted(out["precinct"]) == [2, 3]
        assert list(out.columns) == ["precinct", "a", "b"]

    def test_duplicate_key_rejected(self):
        left = pd.DataFrame({"precinct": [1, 1], "a": [0.1, 0.2]})
        right = pd.DataFrame({"precinct": [1], "b": [1]})
        with pytest.raises(ValueError, match="Merge validation failed"):
            join_on_key(left, right, "precinct")

    def test_join_stats(self):
        left = pd.DataFrame({"precinct": [1, 2, 3]})
        right = pd.DataFrame({"precinct": [2, 3, 4, 5]})
        stats = join_stats(left, right, "precinct")
        assert stats == {
            "left_keys": 3,
            "right_keys": 4,
            "matched": 2,
            "dropped_left_only": 1,
            "dropped_right_only": 2,
        }
