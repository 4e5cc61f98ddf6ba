"""
Assignment filtering and fractional allocation.

Single source of truth for: period overlap, person-month (MM) allocation of
an assignment inside a window, per-row MM totals.

One calendar day contributes 1 / days_in_month(day) MM, so a full month is
1.0 MM whatever its length and a day in February weighs more than a day in
January. Values are never rounded here.
"""
from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from resource_os.engine.calendar import (
    LAST_INSTANT,
    day_end,
    day_start,
    each_day,
    normalize_dates,
)
from resource_os.engine.periods import Period, column_window


logger = logging.getLogger(__name__)


def _field(record: Any, name: str) -> Any:
    """Read a field from a dataclass, namedtuple, dict or DataFrame row."""
    if hasattr(record, "get"):
        return record.get(name)
    return getattr(record, name, None)


def exact_allocation(assignment: Any, window_start, window_end) -> float:
    """
    MM contributed by one assignment inside [window_start, window_end].

    Both ranges are taken as whole days. No overlap (including a reversed
    assignment range or missing dates) gives 0.
    """
    overlap_start = max_or_nat(day_start(_field(assignment, "start_date")), day_start(window_start))
    overlap_end = min_or_nat(day_end(_field(assignment, "end_date")), day_end(window_end))

    if pd.isna(overlap_start) or pd.isna(overlap_end) or overlap_start > overlap_end:
        return 0.0

    days = each_day(overlap_start, overlap_end)
    return float((1.0 / days.days_in_month.to_numpy(dtype=float)).sum())


def max_or_nat(a: pd.Timestamp, b: pd.Timestamp) -> pd.Timestamp:
    if pd.isna(a) or pd.isna(b):
        return pd.NaT
    return max(a, b)


def min_or_nat(a: pd.Timestamp, b: pd.Timestamp) -> pd.Timestamp:
    if pd.isna(a) or pd.isna(b):
        return pd.NaT
    return min(a, b)


def overlap_mask(assignments: pd.DataFrame, start, end) -> pd.Series:
    """Boolean mask of assignments whose whole-day range touches [start, end]."""
    if len(assignments) == 0:
        return pd.Series(False, index=assignments.index, dtype=bool)

    a_start = normalize_dates(assignments["start_date"])
    a_end = normalize_dates(assignments["end_date"]) + LAST_INSTANT

    return (a_start <= day_end(end)) & (a_end >= day_start(start)) & (a_start <= a_end)


def filter_by_period(assignments: pd.DataFrame, period: Period) -> pd.DataFrame:
    """
    Assignments overlapping the period, in their original order.
    """
    mask = overlap_mask(assignments, period.start, period.end)
    result = assignments[mask].copy()
    logger.debug("filter_by_period %s %s: %d of %d assignments",
                 period.mode, period.start.date(), len(result), len(assignments))
    return result


def allocation_frame(assignments: pd.DataFrame, window_start, window_end,
                     col: str = "mm") -> pd.DataFrame:
    """
    Copy of assignments with the MM each contributes to the window.
    """
    df = assignments.copy()
    if len(df) == 0:
        df[col] = pd.Series(dtype=float)
        return df

    df[col] = [
        exact_allocation(row, window_start, window_end)
        for row in df.to_dict("records")
    ]
    return df


def row_totals(assignments: pd.DataFrame, period: Period,
               key: str = "employee_id") -> pd.DataFrame:
    """
    Billable vs non-billable MM per display row in the active period.

    Args:
        assignments: Assignment frame (filtered or not)
        period: Active period
        key: 'employee_id' for the employee view, 'project_id' for the project view

    Returns DataFrame with:
    - billable_mm (non_bill is False)
    - non_billable_mm (non_bill is True)
    - total_mm
    """
    columns = [key, "billable_mm", "non_billable_mm", "total_mm"]
    if len(assignments) == 0:
        return pd.DataFrame(columns=columns)

    df = allocation_frame(filter_by_period(assignments, period), period.start, period.end)
    if len(df) == 0:
        return pd.DataFrame(columns=columns)

    non_bill = _bool_column(df, "non_bill")
    df["billable_mm"] = np.where(non_bill, 0.0, df["mm"])
    df["non_billable_mm"] = np.where(non_bill, df["mm"], 0.0)

    result = df.groupby(key).agg(
        billable_mm=("billable_mm", "sum"),
        non_billable_mm=("non_billable_mm", "sum"),
    ).reset_index()
    result["total_mm"] = result["billable_mm"] + result["non_billable_mm"]

    return result[columns]


def covers_column(assignment: Any, period: Period, column) -> bool:
    """Whether an assignment bar occupies a display column."""
    col_start, col_end = column_window(period, column)
    a_start = day_start(_field(assignment, "start_date"))
    a_end = day_end(_field(assignment, "end_date"))
    if pd.isna(a_start) or pd.isna(a_end) or a_start > a_end:
        return False
    return a_start <= col_end and a_end >= col_start


def _bool_column(df: pd.DataFrame, col: str, default: bool = False) -> pd.Series:
    if col not in df.columns:
        return pd.Series(default, index=df.index, dtype=bool)
    return df[col].fillna(default).astype(bool)


def total_allocation(assignments: pd.DataFrame, window_start, window_end) -> float:
    """Sum of MM over all assignments in the window."""
    if len(assignments) == 0:
        return 0.0
    return float(allocation_frame(assignments, window_start, window_end)["mm"].sum())
