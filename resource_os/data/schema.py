"""
Schema validation and column type coercion for the three record tables.
"""
import logging

import pandas as pd
from typing import List, Tuple, Dict

from resource_os.config import REQUIRED_COLUMNS, OPTIONAL_COLUMNS, EMPLOYEE_TYPES
from resource_os.engine.calendar import normalize_dates


logger = logging.getLogger(__name__)


class SchemaValidationError(Exception):
    """Raised when required columns are missing."""
    pass


TRUE_STRINGS = {"true", "t", "yes", "y", "1"}

DATE_COLUMNS = ["start_date", "end_date", "join_date"]
BOOL_COLUMNS = ["is_tentative", "non_bill"]
ID_COLUMNS = ["id", "employee_id", "project_id"]


def validate_required_columns(df: pd.DataFrame, table_name: str) -> Tuple[bool, List[str]]:
    """
    Validate that required columns exist in dataframe.
    Returns (is_valid, missing_columns).
    """
    if table_name not in REQUIRED_COLUMNS:
        return True, []

    required = REQUIRED_COLUMNS[table_name]
    missing = [col for col in required if col not in df.columns]

    return len(missing) == 0, missing


def check_optional_columns(df: pd.DataFrame, table_name: str) -> List[str]:
    """
    Check which optional columns are missing.
    Returns list of missing optional columns.
    """
    if table_name not in OPTIONAL_COLUMNS:
        return []

    optional = OPTIONAL_COLUMNS[table_name]
    return [col for col in optional if col not in df.columns]


def validate_schema(df: pd.DataFrame, table_name: str, strict: bool = True) -> Dict:
    """
    Full schema validation.

    Args:
        df: DataFrame to validate
        table_name: 'employees', 'projects' or 'assignments'
        strict: If True, raise error on missing required columns

    Returns:
        Dict with validation results
    """
    is_valid, missing_required = validate_required_columns(df, table_name)
    missing_optional = check_optional_columns(df, table_name)

    result = {
        "is_valid": is_valid,
        "missing_required": missing_required,
        "missing_optional": missing_optional,
        "total_columns": len(df.columns),
        "total_rows": len(df),
    }

    if strict and not is_valid:
        raise SchemaValidationError(
            f"Missing required columns in {table_name}: {missing_required}"
        )

    if missing_optional:
        logger.info("%s: missing optional columns %s", table_name, missing_optional)

    return result



def coerce_bool(values: pd.Series) -> pd.Series:
    """Booleans from bool/int/'true'/'false' style values; missing is False."""
    if values.dtype == bool:
        return values

    def _one(v) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in TRUE_STRINGS
        if pd.isna(v):
            return False
        return bool(v)

    return values.map(_one).astype(bool)


def ensure_column_types(df: pd.DataFrame) -> pd.DataFrame:
    """Ensure consistent column types."""
    df = df.copy()

    # Identifiers compare as strings across tables
    for col in ID_COLUMNS:
        if col in df.columns:
            df[col] = df[col].map(lambda v: None if pd.isna(v) else str(v))

    # Boolean columns
    for col in BOOL_COLUMNS:
        if col in df.columns:
            df[col] = coerce_bool(df[col])

    # Date columns, local calendar day only
    for col in DATE_COLUMNS:
        if col in df.columns:
            df[col] = normalize_dates(df[col])

    if "employee_type" in df.columns:
        df["employee_type"] = df["employee_type"].map(
            lambda v: v.strip().lower() if isinstance(v, str) else v
        )

    return df


def validate_employee_types(df: pd.DataFrame) -> List[str]:
    """Employee types outside the known set (those employees carry no capacity)."""
    if "employee_type" not in df.columns:
        return []
    unknown = set(df["employee_type"].dropna()) - set(EMPLOYEE_TYPES)
    return sorted(str(v) for v in unknown)


def validate_assignment_dates(df: pd.DataFrame) -> pd.DataFrame:
    """
    Assignments the engine will treat as empty: end before start, or a
    missing/unparseable date. Reported, never raised.
    """
    if len(df) == 0 or "start_date" not in df.columns or "end_date" not in df.columns:
        return df.iloc[0:0].copy()

    start = normalize_dates(df["start_date"])
    end = normalize_dates(df["end_date"])
    mask = start.isna() | end.isna() | (end < start)

    if mask.any():
        logger.warning("%d assignment(s) with missing or reversed dates contribute 0 MM", int(mask.sum()))

    return df[mask].copy()


def empty_table(table_name: str) -> pd.DataFrame:
    """Typed empty frame for a table."""
    columns = REQUIRED_COLUMNS[table_name] + OPTIONAL_COLUMNS.get(table_name, [])
    return ensure_column_types(pd.DataFrame(columns=columns))
