"""
Schema validation for the incident table and derived outputs.

Raw NYPD column names are upper-case (OCCUR_DATE, LOCATION_DESC, ...);
cleaning renames them to snake_case. The schemas here describe the
cleaned incident table and the per-precinct outputs so that drift in the
source file fails loudly instead of producing empty features.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

import pandas as pd


# =============================================================================
# Schema Definition
# =============================================================================

@dataclass
class ColumnSpec:
    """Specification for a single column."""
    name: str
    dtype: Optional[str] = None  # "int", "float", "str"
    nullable: bool = True
    unique: bool = False
    allowed_values: Optional[Set[Any]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None


@dataclass
class Schema:
    """Schema specification for a DataFrame."""
    name: str
    columns: List[ColumnSpec]
    required_columns: List[str] = field(default_factory=list)
    min_rows: int = 0

    def __post_init__(self):
        if not self.required_columns:
            self.required_columns = [c.name for c in self.columns]


class SchemaError(Exception):
    """Raised when schema validation fails."""
    pass


# =============================================================================
# Raw column mapping
# =============================================================================

RAW_COLUMN_MAP: Dict[str, str] = {
    "INCIDENT_KEY": "incident_key",
    "OCCUR_DATE": "occur_date",
    "OCCUR_TIME": "occur_time",
    "BORO": "boro",
    "PRECINCT": "precinct",
    "LOCATION_DESC": "location_desc",
    "STATISTICAL_MURDER_FLAG": "statistical_murder_flag",
    "PERP_AGE_GROUP": "perp_age_group",
    "PERP_SEX": "perp_sex",
    "PERP_RACE": "perp_race",
    "VIC_AGE_GROUP": "vic_age_group",
    "VIC_SEX": "vic_sex",
    "VIC_RACE": "vic_race",
}

REQUIRED_RAW_COLUMNS = ["OCCUR_DATE", "OCCUR_TIME", "PRECINCT", "LOCATION_DESC"]


# =============================================================================
# Predefined Schemas
# =============================================================================

INCIDENTS_SCHEMA = Schema(
    name="incidents",
    columns=[
        ColumnSpec("precinct", dtype="int", nullable=False),
        ColumnSpec("occur_hour", dtype="int", nullable=False, min_value=0, max_value=23),
        ColumnSpec("location_desc", dtype="str", nullable=True),
    ],
)

FEATURES_SCHEMA = Schema(
    name="precinct_features",
    columns=[
        ColumnSpec("precinct", nullable=False, unique=True),
        ColumnSpec("volume_share", dtype="float", nullable=False, min_value=0, max_value=1),
    ],
)

ASSIGNMENTS_SCHEMA = Schema(
    name="precinct_clusters",
    columns=[
        ColumnSpec("precinct", nullable=False, unique=True),
        ColumnSpec("cluster_id", dtype="int", nullable=False, min_value=0),
    ],
    min_rows=1,
)


# =============================================================================
# Validation Functions
# =============================================================================

def validate_column(df: pd.DataFrame, spec: ColumnSpec) -> List[str]:
    """
    Validate a single column against its specification.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    col_name = spec.name

    if col_name not in df.columns:
        errors.append(f"Missing column: {col_name}")
        return errors

    col = df[col_name]

    if spec.dtype == "int" and not pd.api.types.is_integer_dtype(col):
        errors.append(f"Column {col_name}: expected integer dtype, got {col.dtype}")
    elif spec.dtype == "float" and not pd.api.types.is_float_dtype(col):
        errors.append(f"Column {col_name}: expected float dtype, got {col.dtype}")
    elif spec.dtype == "str" and not (
        pd.api.types.is_object_dtype(col) or pd.api.types.is_string_dtype(col)
    ):
        errors.append(f"Column {col_name}: expected string dtype, got {col.dtype}")

    if not spec.nullable and col.isna().any():
        errors.append(f"Column {col_name}: {col.isna().sum()} NA values not allowed")

    if spec.unique and col.duplicated().any():
        errors.append(f"Column {col_name}: {col.duplicated().sum()} duplicate values not allowed")

    if spec.allowed_values is not None:
        invalid = ~col.isin(spec.allowed_values) & col.notna()
        if invalid.any():
            errors.append(f"Column {col_name}: invalid values {list(col[invalid].unique()[:5])}")

    if spec.min_value is not None and ((col < spec.min_value) & col.notna()).any():
        errors.append(f"Column {col_name}: values below min {spec.min_value}")

    if spec.max_value is not None and ((col > spec.max_value) & col.notna()).any():
        errors.append(f"Column {col_name}: values above max {spec.max_value}")

    return errors


def validate_schema(
    df: pd.DataFrame,
    schema: Schema,
    context: str = "",
    raise_on_error: bool = True,
) -> List[str]:
    """
    Validate a DataFrame against a schema.

    Args:
        df: DataFrame to validate
        schema: Schema specification
        context: Optional context for error messages
        raise_on_error: If True, raise SchemaError on validation failure

    Returns:
        List of error messages (empty if valid)

    Raises:
        SchemaError: If raise_on_error=True and validation fails
    """
    errors = []
    ctx = f" ({context})" if context else ""

    if len(df) < schema.min_rows:
        errors.append(f"Expected at least {schema.min_rows} rows, got {len(df)}{ctx}")

    missing = [c for c in schema.required_columns if c not in df.columns]
    if missing:
        errors.append(f"Missing required columns: {missing}{ctx}")

    for col_spec in schema.columns:
        if col_spec.name in missing:
            continue
        errors.extend(validate_column(df, col_spec))

    if errors and raise_on_error:
        raise SchemaError(f"Schema validation failed for '{schema.name}':\n" + "\n".join(errors))

    return errors


def require_columns(df: pd.DataFrame, columns: List[str], context: str = "") -> None:
    """Raise SchemaError naming every column in `columns` that df lacks."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        ctx = f" ({context})" if context else ""
        raise SchemaError(f"Missing required columns: {missing}{ctx}")


# =============================================================================
# Merge Validation
# =============================================================================

def validate_merge(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: Union[str, List[str]],
    how: str = "inner",
    validate: str = "one_to_one",
    context: str = "",
) -> pd.DataFrame:
    """
    Perform a merge with pandas' cardinality validation.

    Raises:
        ValueError: If a key is duplicated on a side that must be unique.
    """
    try:
        return pd.merge(left, right, on=on, how=how, validate=validate)
    except pd.errors.MergeError as e:
        raise ValueError(f"Merge validation failed ({context}): {e}") from e
