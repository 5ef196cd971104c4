"""
Drop feature columns whose typical value across groups is uninformative.

A numeric column is kept iff statistic(column) > threshold. The key
column and non-numeric columns are never tested and always kept.

With the default lower median and threshold 0, a column is dropped
exactly when at least half of the groups have 0 in it.
"""

from typing import Callable, Dict, List, Optional, Union

import pandas as pd

Statistic = Callable[[pd.Series], float]


def median_low(values: pd.Series) -> float:
    """Median that picks the lower middle value for even-length input."""
    return float(values.quantile(0.5, interpolation="lower"))


STATISTICS: Dict[str, Statistic] = {
    "median_low": median_low,
    "median": lambda values: float(values.median()),
    "mean": lambda values: float(values.mean()),
}


def resolve_statistic(statistic: Union[str, Statistic]) -> Statistic:
    """Look up a named statistic, or pass a callable through."""
    if callable(statistic):
        return statistic
    if statistic not in STATISTICS:
        raise ValueError(f"Unknown pruning statistic: {statistic}. Available: {list(STATISTICS)}")
    return STATISTICS[statistic]


def candidate_columns(table: pd.DataFrame, key_col: Optional[str]) -> List[str]:
    """Numeric columns other than the key: the ones subject to pruning."""
    return [
        c for c in table.columns
        if c != key_col and pd.api.types.is_numeric_dtype(table[c])
    ]


def column_statistics(
    table: pd.DataFrame,
    statistic: Union[str, Statistic],
    key_col: Optional[str] = None,
) -> pd.Series:
    """Statistic value per candidate column."""
    stat_fn = resolve_statistic(statistic)
    cols = candidate_columns(table, key_col)
    return pd.Series({c: stat_fn(table[c]) for c in cols}, dtype=float)


def prune_columns(
    table: pd.DataFrame,
    statistic: Union[str, Statistic],
    threshold: float,
    key_col: Optional[str],
    logger,
) -> pd.DataFrame:
    """
    Return a copy of table without the columns failing statistic > threshold.

    Args:
        table: Feature table
        statistic: Name in STATISTICS or a callable over a column
        threshold: Strict lower bound a column's statistic must exceed
        key_col: Column exempt from pruning
        logger: Run logger
    """
    stats = column_statistics(table, statistic, key_col)
    dropped = [c for c, value in stats.items() if not value > threshold]
    kept = [c for c in table.columns if c not in dropped]

    logger.info(
        f"Pruning: kept {len(kept)} of {len(table.columns)} columns "
        f"(statistic={statistic if isinstance(statistic, str) else statistic.__name__}, "
        f"threshold={threshold})"
    )
    if dropped:
        logger.debug(f"Dropped columns: {dropped}")

    return table[kept].copy()
