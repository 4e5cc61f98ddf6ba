"""
Calendar-day normalisation.

Every interval comparison in the engine is whole-day inclusive: an
assignment active on a day occupies that entire day. Compare day_start /
day_end instants, never raw timestamps.
"""
from __future__ import annotations

import pandas as pd


LAST_INSTANT = pd.Timedelta(days=1) - pd.Timedelta(milliseconds=1)


def to_day(value) -> pd.Timestamp:
    """Local calendar date of a date/datetime/string as a midnight Timestamp (NaT passes through)."""
    ts = pd.Timestamp(value) if value is not None else pd.NaT
    if pd.isna(ts):
        return pd.NaT
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def day_start(value) -> pd.Timestamp:
    """Same calendar day, 00:00:00.000."""
    return to_day(value)


def day_end(value) -> pd.Timestamp:
    """Same calendar day, 23:59:59.999."""
    day = to_day(value)
    if pd.isna(day):
        return pd.NaT
    return day + LAST_INSTANT


def days_in_month(value) -> int:
    return to_day(value).days_in_month


def each_day(start, end) -> pd.DatetimeIndex:
    """Inclusive calendar days from start to end (empty if start is after end)."""
    first, last = to_day(start), to_day(end)
    if pd.isna(first) or pd.isna(last):
        return pd.DatetimeIndex([])
    return pd.date_range(first, last, freq="D")


def each_month(start, end) -> pd.DatetimeIndex:
    """First day of every month touched by the interval."""
    first, last = to_day(start), to_day(end)
    if pd.isna(first) or pd.isna(last):
        return pd.DatetimeIndex([])
    return pd.date_range(first.replace(day=1), last, freq="MS")


def normalize_dates(values: pd.Series) -> pd.Series:
    """Vectorised to_day for a column of dates; unparseable values become NaT."""
    dates = pd.to_datetime(values, errors="coerce")
    if getattr(dates.dt, "tz", None) is not None:
        dates = dates.dt.tz_localize(None)
    return dates.dt.normalize()


def month_end(value) -> pd.Timestamp:
    """Last calendar day of the value's month (midnight)."""
    day = to_day(value)
    return day.replace(day=day.days_in_month)
