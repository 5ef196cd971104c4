"""
Table operations used by the feature pipeline.

Thin, pure wrappers over pandas: every function returns a new DataFrame
and leaves its input untouched.
"""

from typing import Any, Callable, Dict, List, Tuple, Union

import pandas as pd

from precinct_typology.schemas import validate_merge

Keys = Union[str, List[str]]


def _as_list(keys: Keys) -> List[str]:
    return [keys] if isinstance(keys, str) else list(keys)


def filter_rows(
    table: pd.DataFrame,
    predicate: Callable[[pd.DataFrame], pd.Series],
) -> pd.DataFrame:
    """Rows of `table` for which predicate(table) is True."""
    mask = predicate(table)
    return table.loc[mask].copy()


def group_by_aggregate(
    table: pd.DataFrame,
    keys: Keys,
    aggregations: Dict[str, Tuple[str, Any]],
) -> pd.DataFrame:
    """
    Group by `keys` and apply named aggregations.

    Args:
        table: Input table
        keys: Grouping column(s)
        aggregations: output column -> (input column, aggregation function)

    Returns:
        One row per key combination, keys as ordinary columns.
    """
    keys = _as_list(keys)
    if table.empty:
        return pd.DataFrame(columns=keys + list(aggregations))
    return table.groupby(keys, sort=True).agg(**aggregations).reset_index()


def count_by(table: pd.DataFrame, keys: Keys, name: str = "count") -> pd.DataFrame:
    """Number of rows per key combination, in column `name`."""
    keys = _as_list(keys)
    if table.empty:
        return pd.DataFrame(columns=keys + [name])
    return table.groupby(keys, sort=True).size().reset_index(name=name)


def pivot(
    table: pd.DataFrame,
    index_cols: Keys,
    name_col: str,
    value_col: str,
    fill_value: Any = 0,
    prefix: str = "",
) -> pd.DataFrame:
    """
    Reshape long to wide: one row per index, one column per `name_col` value.

    Index/name combinations absent from `table` are filled with
    `fill_value`, so every row carries every column. Duplicate
    combinations are summed. New columns are named f"{prefix}{value}".
    """
    index_cols = _as_list(index_cols)
    if table.empty:
        return pd.DataFrame(columns=index_cols)

    wide = (
        table.groupby(index_cols + [name_col], sort=True)[value_col]
        .sum()
        .unstack(name_col, fill_value=fill_value)
    )
    wide.columns = [f"{prefix}{c}" for c in wide.columns]
    return wide.reset_index()


def join_on_key(
    left: pd.DataFrame,
    right: pd.DataFrame,
    key: str,
    context: str = "",
) -> pd.DataFrame:
    """
    Inner join on `key`, each key unique on both sides.

    A key present on only one side is dropped from the result.
    """
    return validate_merge(left, right, on=key, how="inner", validate="one_to_one", context=context)


def join_stats(left: pd.DataFrame, right: pd.DataFrame, key: str) -> Dict[str, int]:
    """Counts of keys kept and dropped by an inner join of left and right."""
    left_keys = set(left[key])
    right_keys = set(right[key])
    return {
        "left_keys": len(left_keys),
        "right_keys": len(right_keys),
        "matched": len(left_keys & right_keys),
        "dropped_left_only": len(left_keys - right_keys),
        "dropped_right_only": len(right_keys - left_keys),
    }
