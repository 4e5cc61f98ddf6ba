"""
Daily allocation map and over-allocation detection.

The map is a Series indexed by (employee_id, day) holding the summed
per-day MM unit of every assignment covering that employee on that day.
"""
from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from resource_os.config import config
from resource_os.engine.allocation import max_or_nat, min_or_nat
from resource_os.engine.calendar import day_end, day_start, each_day, to_day
from resource_os.engine.periods import Period


logger = logging.getLogger(__name__)

MAP_INDEX = ["employee_id", "day"]


def _empty_map() -> pd.Series:
    index = pd.MultiIndex.from_arrays(
        [pd.Index([], dtype=object), pd.DatetimeIndex([])],
        names=MAP_INDEX,
    )
    return pd.Series([], index=index, dtype=float, name="allocation")


def build_daily_allocation_map(assignments: pd.DataFrame, period: Period) -> pd.Series:
    """
    Sum of 1 / days_in_month(day) per employee per day inside the period.

    Each assignment is clipped to the period as in exact_allocation, so the
    map can be fed the full assignment frame or a period-filtered one.
    """
    if len(assignments) == 0:
        return _empty_map()

    parts = []
    for rec in assignments.to_dict("records"):
        start = max_or_nat(day_start(rec.get("start_date")), period.start)
        end = min_or_nat(day_end(rec.get("end_date")), period.end)
        if pd.isna(start) or pd.isna(end) or start > end:
            continue

        days = each_day(start, end)
        parts.append(pd.DataFrame({
            "employee_id": rec.get("employee_id"),
            "day": days,
            "allocation": 1.0 / days.days_in_month.to_numpy(dtype=float),
        }))

    if not parts:
        return _empty_map()

    daily = pd.concat(parts, ignore_index=True)
    result = daily.groupby(MAP_INDEX)["allocation"].sum()
    logger.debug("daily allocation map %s %s: %d employee-days",
                 period.mode, period.start.date(), len(result))
    return result


def _threshold(tolerance: Optional[float]) -> float:
    if tolerance is None:
        tolerance = config.overallocation_tolerance
    return 1.0 + tolerance


def is_overallocated(daily_map: pd.Series, employee_id, day,
                     tolerance: Optional[float] = None) -> bool:
    """
    True when the employee's allocation on that day exceeds 1.0 + tolerance.

    Exactly one full-time assignment (1.0) is never over-allocated; unknown
    employee/day pairs are not either.

    Map values are per-day MM units, not FTE: a day inside a full-month
    assignment holds 1 / days_in_month, so k overlapping full-month
    assignments sum to k / days_in_month and stay under the threshold until
    k exceeds the length of the month.
    """
    value = daily_map.get((employee_id, to_day(day)), 0.0)
    return bool(value > _threshold(tolerance))


def overallocated_days(daily_map: pd.Series,
                       tolerance: Optional[float] = None) -> pd.DataFrame:
    """
    Every over-allocated employee-day.

    Returns DataFrame with employee_id, day, allocation sorted by employee then day.
    """
    over = daily_map[daily_map > _threshold(tolerance)]
    return over.reset_index().sort_values(MAP_INDEX).reset_index(drop=True)


def overallocated_columns(daily_map: pd.Series, period: Period,
                          tolerance: Optional[float] = None) -> pd.DataFrame:
    """
    Over-allocation flag per employee per display column.

    In the year view a month column is flagged when any of its days is.

    Returns boolean DataFrame indexed by employee_id with the period columns.
    """
    over = overallocated_days(daily_map, tolerance)
    employees = daily_map.index.get_level_values("employee_id").unique()
    flags = pd.DataFrame(False, index=employees, columns=period.columns)
    flags.index.name = "employee_id"

    if len(over) == 0:
        return flags

    if period.mode == "year":
        over["column"] = over["day"].dt.to_period("M").dt.to_timestamp()
    else:
        over["column"] = over["day"]

    for employee_id, column in over[["employee_id", "column"]].drop_duplicates().itertuples(index=False):
        if column in flags.columns:
            flags.loc[employee_id, column] = True

    return flags


def daily_allocation_matrix(daily_map: pd.Series, period: Period) -> pd.DataFrame:
    """Employee x day matrix of allocations for the period (0 where unassigned)."""
    days = pd.date_range(day_start(period.start), day_start(period.end), freq="D")
    if len(daily_map) == 0:
        return pd.DataFrame(columns=days, dtype=float)
    matrix = daily_map.unstack("day", fill_value=0.0)
    return matrix.reindex(columns=days, fill_value=0.0)
