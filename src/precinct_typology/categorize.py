"""
Rule-based re-categorization of location text and hour of day.

A rule set is an ordered list of (predicate, label) pairs folded over a
value: the accumulator starts as the raw value and every rule whose
predicate matches overwrites it. The LAST matching rule therefore wins,
which matters because location patterns overlap (e.g. "WAREHOUSE"
matches the residence pattern "HOUS" and the business pattern
"WAREHOUSE"; the business rule comes later, so the result is BUSINESS).

Location buckets:
    MISSING    null, blank or a configured missing token such as "(null)"
    RESIDENCE  dwellings, houses, apartments
    BUSINESS   shops, food, bars and clubs
    SERVICE    banks/ATMs, hospitals, schools, ...
    otherwise  the original text is kept as its own bucket

Time buckets are half-open [start, end) hour ranges that must cover
0..23 exactly once.
"""

from functools import reduce
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Sequence

import pandas as pd

MISSING = "MISSING"
RESIDENCE = "RESIDENCE"
BUSINESS = "BUSINESS"
SERVICE = "SERVICE"

DAWN = "DAWN"
MORNING = "MORNING"
AFTERNOON = "AFTERNOON"
NIGHT = "NIGHT"
TIME_BUCKETS = [DAWN, MORNING, AFTERNOON, NIGHT]

HOURS_PER_DAY = 24

_KEEP_RAW = object()


class Rule(NamedTuple):
    """A predicate and the label it assigns when it matches."""
    predicate: Callable[[Any], bool]
    label: str


def categorize(value: Any, rules: Sequence[Rule], default: Any = _KEEP_RAW) -> Any:
    """
    Fold `rules` over `value`; the last matching rule's label is returned.

    Args:
        value: Raw value to categorize
        rules: Ordered rules
        default: Result when no rule matches. Defaults to the raw value itself.
    """
    initial = value if default is _KEEP_RAW else default
    return reduce(
        lambda acc, rule: rule.label if rule.predicate(value) else acc,
        rules,
        initial,
    )


# =============================================================================
# Location rules
# =============================================================================

def is_missing_text(value: Any, missing_tokens: Iterable[str] = ()) -> bool:
    """True for None/NaN, blank strings and any of `missing_tokens`."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return True
    text = str(value).strip()
    return text == "" or text in set(missing_tokens)


def contains_any(patterns: Sequence[str], missing_tokens: Iterable[str] = ()) -> Callable[[Any], bool]:
    """Case-sensitive substring predicate; never matches missing text."""
    patterns = list(patterns)
    missing_tokens = list(missing_tokens)

    def predicate(value: Any) -> bool:
        if is_missing_text(value, missing_tokens):
            return False
        text = str(value)
        return any(p in text for p in patterns)

    return predicate


def build_location_rules(
    rule_config: List[Dict[str, Any]],
    missing_tokens: Iterable[str] = (),
) -> List[Rule]:
    """
    Build the ordered location rules.

    Args:
        rule_config: [{"label": ..., "patterns": [...]}, ...] in application order
        missing_tokens: Strings treated the same as null

    Returns:
        MISSING rule followed by one substring rule per config entry.
    """
    missing_tokens = list(missing_tokens)
    rules = [Rule(lambda v: is_missing_text(v, missing_tokens), MISSING)]
    for entry in rule_config:
        rules.append(Rule(contains_any(entry["patterns"], missing_tokens), entry["label"]))
    return rules


def categorize_location(series: pd.Series, rules: Sequence[Rule]) -> pd.Series:
    """Location bucket for every value in series (unmatched text kept as-is)."""
    return series.map(lambda v: categorize(v, rules)).astype(object)


# =============================================================================
# Time rules
# =============================================================================

def in_hour_range(start: int, end: int) -> Callable[[Any], bool]:
    """Predicate for start <= hour < end."""
    def predicate(hour: Any) -> bool:
        if hour is None or pd.isna(hour):
            return False
        return start <= hour < end

    return predicate


def validate_time_bins(bins: List[Dict[str, Any]]) -> None:
    """
    Check that time bins cover every hour 0..23 exactly once.

    Raises:
        ValueError: naming uncovered or multiply-covered hours.
    """
    coverage = {hour: [] for hour in range(HOURS_PER_DAY)}
    for b in bins:
        for hour in range(HOURS_PER_DAY):
            if b["start"] <= hour < b["end"]:
                coverage[hour].append(b["name"])

    uncovered = [h for h, names in coverage.items() if not names]
    overlapping = {h: names for h, names in coverage.items() if len(names) > 1}
    if uncovered or overlapping:
        raise ValueError(
            f"Time bins must partition hours 0-23: uncovered={uncovered}, "
            f"overlapping={overlapping}"
        )


def build_time_rules(bins: List[Dict[str, Any]]) -> List[Rule]:
    """Rules for [{"name", "start", "end"}, ...] after checking they partition the day."""
    validate_time_bins(bins)
    return [Rule(in_hour_range(b["start"], b["end"]), b["name"]) for b in bins]


def categorize_time(hours: pd.Series, rules: Sequence[Rule]) -> pd.Series:
    """Time bucket for every hour; hours matching no rule become None."""
    return hours.map(lambda h: categorize(h, rules, default=None)).astype(object)


# =============================================================================
# Stage
# =============================================================================

def add_bucket_columns(
    table: pd.DataFrame,
    location_col: str,
    hour_col: str,
    location_rules: Sequence[Rule],
    time_rules: Sequence[Rule],
    location_bucket_col: str = "location_bucket",
    time_bucket_col: str = "time_bucket",
) -> pd.DataFrame:
    """Return a copy of table with location and time bucket columns added."""
    return table.assign(**{
        location_bucket_col: categorize_location(table[location_col], location_rules),
        time_bucket_col: categorize_time(table[hour_col], time_rules),
    })


def rules_from_params(params: Dict[str, Any]):
    """Build (location_rules, time_rules) from the `categorization` params section."""
    section = params["categorization"]
    location_rules = build_location_rules(
        section["location_rules"], section.get("missing_tokens", [])
    )
    time_rules = build_time_rules(section["time_bins"])
    return location_rules, time_rules
