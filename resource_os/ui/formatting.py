"""
Consistent number and display formatting.
"""
import pandas as pd
from typing import Union

from resource_os.config import FORMAT_MM, FORMAT_COUNT


# =============================================================================
# NUMBER FORMATTERS
# =============================================================================

def fmt_mm(value: Union[float, int, None]) -> str:
    """Format person-months: 1.25 (rounded for display only)"""
    if value is None or pd.isna(value):
        return "—"
    return FORMAT_MM.format(value)


def fmt_percent(value: Union[float, int, None], decimals: int = 1) -> str:
    """Format percentage: 12.3%"""
    if value is None or pd.isna(value):
        return "—"
    return f"{value:,.{decimals}f}%"


def fmt_count(value: Union[float, int, None]) -> str:
    """Format count: 1,234"""
    if value is None or pd.isna(value):
        return "—"
    return FORMAT_COUNT.format(int(value))


def fmt_date(value) -> str:
    """Format date: 2025-03-01"""
    if value is None or pd.isna(value):
        return "—"
    return pd.Timestamp(value).strftime("%Y-%m-%d")


def fmt_date_range(start, end) -> str:
    """Format inclusive date range: 2025-03-01 → 2025-03-31"""
    return f"{fmt_date(start)} → {fmt_date(end)}"


# =============================================================================
# DATAFRAME FORMATTERS
# =============================================================================

MM_COLS = [
    "mm", "billable_mm", "non_billable_mm", "tentative_mm", "total_mm",
    "billable", "non_billable", "tentative", "allocation", "capacity",
]

PERCENT_COLS = [
    "utilisation", "billable_pct", "non_billable_pct", "tentative_pct", "total_pct",
]

DATE_COLS = ["start_date", "end_date", "day"]


def format_metric_df(df: pd.DataFrame) -> pd.DataFrame:
    """
    Format a metrics dataframe for display.

    Applies appropriate formatting to known column types.
    """
    df = df.copy()

    for col in df.columns:
        if col in MM_COLS:
            df[col] = df[col].apply(fmt_mm)
        elif col in PERCENT_COLS:
            df[col] = df[col].apply(fmt_percent)
        elif col in DATE_COLS:
            df[col] = df[col].apply(fmt_date)

    return df
