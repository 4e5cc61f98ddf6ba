"""
Period resolution for the week / month / year views.

A period is the inclusive [start, end] window shown on screen plus its
ordered display columns: days for week and month views, month starts for
the year view.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from resource_os.config import config
from resource_os.engine.calendar import (
    day_end,
    day_start,
    each_day,
    each_month,
    month_end,
    to_day,
)


VIEW_MODES = ("week", "month", "year")


@dataclass
class Period:
    """Resolved viewing window."""
    mode: str
    anchor: pd.Timestamp
    start: pd.Timestamp
    end: pd.Timestamp
    columns: pd.DatetimeIndex

    def __len__(self) -> int:
        return len(self.columns)


def _check_mode(mode: str) -> str:
    if mode not in VIEW_MODES:
        raise ValueError(f"Unknown view mode: {mode!r} (expected one of {VIEW_MODES})")
    return mode


def week_floor(value, week_start: Optional[str] = None) -> pd.Timestamp:
    """First day of the week containing value."""
    day = to_day(value)
    week_start = week_start or config.week_start
    wd = day.weekday()  # Mon=0..Sun=6
    if week_start.lower().startswith("sun"):
        return day - pd.Timedelta(days=(wd + 1) % 7)
    return day - pd.Timedelta(days=wd)


def resolve_period(mode: str, anchor, week_start: Optional[str] = None) -> Period:
    """
    Compute the period boundary and display columns for a view.

    Args:
        mode: 'week', 'month' or 'year'
        anchor: Any date inside the wanted period
        week_start: 'sunday' or 'monday' (defaults to config.week_start)

    Returns:
        Period with start at 00:00:00.000 of the first day and end at
        23:59:59.999 of the last day
    """
    _check_mode(mode)
    anchor = to_day(anchor)

    if mode == "week":
        first = week_floor(anchor, week_start)
        last = first + pd.Timedelta(days=6)
        columns = each_day(first, last)
    elif mode == "month":
        first = anchor.replace(day=1)
        last = month_end(anchor)
        columns = each_day(first, last)
    else:
        first = anchor.replace(month=1, day=1)
        last = anchor.replace(month=12, day=31)
        columns = each_month(first, last)

    return Period(
        mode=mode,
        anchor=anchor,
        start=day_start(first),
        end=day_end(last),
        columns=columns,
    )


def shift_anchor(mode: str, anchor, steps: int = 1) -> pd.Timestamp:
    """
    Move the anchor by whole units of the view mode.

    Month and year steps clamp to the end of shorter months
    (31 Jan + 1 month -> 28/29 Feb).
    """
    _check_mode(mode)
    anchor = to_day(anchor)
    if mode == "week":
        return anchor + pd.DateOffset(weeks=steps)
    if mode == "month":
        return anchor + pd.DateOffset(months=steps)
    return anchor + pd.DateOffset(years=steps)


def today_anchor() -> pd.Timestamp:
    """Current local date."""
    return to_day(pd.Timestamp.now())


def column_window(period: Period, column) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Instant window covered by one display column."""
    if period.mode == "year":
        return day_start(to_day(column).replace(day=1)), day_end(month_end(column))
    return day_start(column), day_end(column)


def is_current_column(period: Period, column, today=None) -> bool:
    """Whether a column holds today (same month in the year view)."""
    today = to_day(today) if today is not None else today_anchor()
    column = to_day(column)
    if period.mode == "year":
        return (column.year, column.month) == (today.year, today.month)
    return column == today


def week_of_month(value, week_start: Optional[str] = None) -> int:
    """1-based week number of a date inside its month."""
    day = to_day(value)
    week_start = week_start or config.week_start
    first = day.replace(day=1)
    start_wd = 6 if week_start.lower().startswith("sun") else 0
    offset = (first.weekday() - start_wd) % 7
    return (day.day + offset - 1) // 7 + 1


def period_label(period: Period, week_start: Optional[str] = None) -> str:
    """Header label: '2025', '2025. 03' or '2025. 03 (W2)'."""
    if period.mode == "year":
        return period.anchor.strftime("%Y")
    if period.mode == "month":
        return period.anchor.strftime("%Y. %m")
    return f"{period.anchor.strftime('%Y. %m')} (W{week_of_month(period.anchor, week_start)})"
