"""
Tests for period filtering and person-month allocation.
"""
import pytest
import pandas as pd
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.data.records import Assignment
from resource_os.engine.allocation import (
    exact_allocation,
    filter_by_period,
    allocation_frame,
    row_totals,
    covers_column,
    total_allocation,
)
from resource_os.engine.periods import resolve_period


def _assignment(start, end, **overrides) -> dict:
    row = {
        "id": "a1",
        "employee_id": "e1",
        "project_id": "p1",
        "start_date": pd.Timestamp(start) if start is not None else pd.NaT,
        "end_date": pd.Timestamp(end) if end is not None else pd.NaT,
        "non_bill": False,
    }
    row.update(overrides)
    return row


class TestExactAllocation:
    """Tests for one assignment clipped to a window."""

    def test_full_month_is_one(self):
        a = _assignment("2025-01-01", "2025-01-31")
        assert exact_allocation(a, "2025-01-01", "2025-01-31") == pytest.approx(1.0)

    def test_full_february_is_one(self):
        a = _assignment("2025-02-01", "2025-02-28")
        assert exact_allocation(a, "2025-01-01", "2025-12-31") == pytest.approx(1.0)

    def test_half_february(self):
        """14 of 28 days."""
        a = _assignment("2025-02-15", "2025-02-28")
        assert exact_allocation(a, "2025-01-01", "2025-12-31") == pytest.approx(0.5)

    def test_day_weight_depends_on_month(self):
        """One February day outweighs one January day."""
        jan = exact_allocation(_assignment("2025-01-10", "2025-01-10"), "2025-01-01", "2025-12-31")
        feb = exact_allocation(_assignment("2025-02-10", "2025-02-10"), "2025-01-01", "2025-12-31")

        assert jan == pytest.approx(1 / 31)
        assert feb == pytest.approx(1 / 28)
        assert feb > jan

    def test_clipped_to_window(self):
        a = _assignment("2025-01-20", "2025-02-10")
        assert exact_allocation(a, "2025-02-01", "2025-02-28") == pytest.approx(10 / 28)

    def test_disjoint_window_is_zero(self):
        a = _assignment("2025-01-01", "2025-01-31")
        assert exact_allocation(a, "2025-03-01", "2025-03-31") == 0.0

    def test_reversed_range_is_zero(self):
        a = _assignment("2025-01-31", "2025-01-01")
        assert exact_allocation(a, "2025-01-01", "2025-12-31") == 0.0

    def test_missing_dates_are_zero(self):
        a = _assignment(None, "2025-01-31")
        assert exact_allocation(a, "2025-01-01", "2025-12-31") == 0.0

    def test_time_of_day_ignored(self):
        """A timestamp late on the last day still counts that whole day."""
        a = _assignment("2025-01-01 17:00", "2025-01-31 08:00")
        assert exact_allocation(a, "2025-01-31 23:00", "2025-01-31 23:30") == pytest.approx(1 / 31)

    def test_additive_across_months(self):
        """Sum over month windows equals the whole-year allocation."""
        a = _assignment("2025-01-15", "2025-11-20")
        year = exact_allocation(a, "2025-01-01", "2025-12-31")
        months = sum(
            exact_allocation(a, m, m + pd.offsets.MonthEnd(0))
            for m in pd.date_range("2025-01-01", "2025-12-01", freq="MS")
        )
        assert months == pytest.approx(year)

    def test_whole_year(self):
        a = _assignment("2024-06-01", "2026-06-30")
        assert exact_allocation(a, "2025-01-01", "2025-12-31") == pytest.approx(12.0)

    def test_accepts_dataclass(self):
        a = Assignment(
            id="a1", employee_id="e1", project_id="p1",
            start_date=pd.Timestamp("2025-03-01"), end_date=pd.Timestamp("2025-03-31"),
        )
        assert exact_allocation(a, "2025-01-01", "2025-12-31") == pytest.approx(1.0)


class TestFilterByPeriod:
    """Tests for period overlap filtering."""

    def test_keeps_overlapping_in_order(self):
        df = pd.DataFrame([
            _assignment("2025-03-01", "2025-03-31", id="inside"),
            _assignment("2024-01-01", "2024-12-31", id="before"),
            _assignment("2024-12-15", "2025-01-05", id="spans_start"),
            _assignment("2025-05-10", "2025-05-01", id="reversed"),
            _assignment("2026-01-01", "2026-01-31", id="after"),
        ])
        period = resolve_period("year", "2025-06-01")

        result = filter_by_period(df, period)

        assert list(result["id"]) == ["inside", "spans_start"]

    def test_single_day_touching_boundary(self):
        df = pd.DataFrame([_assignment("2025-03-31", "2025-03-31", id="last_day")])
        period = resolve_period("month", "2025-03-01")
        assert list(filter_by_period(df, period)["id"]) == ["last_day"]

    def test_does_not_mutate_input(self):
        df = pd.DataFrame([_assignment("2025-03-01", "2025-03-31")])
        before = df.copy()
        filter_by_period(df, resolve_period("month", "2025-03-01"))
        pd.testing.assert_frame_equal(df, before)

    def test_empty(self):
        df = pd.DataFrame(columns=["id", "employee_id", "project_id", "start_date", "end_date", "non_bill"])
        assert len(filter_by_period(df, resolve_period("week", "2025-03-01"))) == 0


class TestRowTotals:
    """Tests for billable vs non-billable totals per row."""

    def test_split_by_non_bill(self):
        df = pd.DataFrame([
            _assignment("2025-01-01", "2025-01-31", id="a1"),
            _assignment("2025-02-01", "2025-02-28", id="a2", non_bill=True),
            _assignment("2025-03-01", "2025-03-31", id="a3", employee_id="e2"),
        ])
        period = resolve_period("year", "2025-01-01")

        result = row_totals(df, period).set_index("employee_id")

        assert result.loc["e1", "billable_mm"] == pytest.approx(1.0)
        assert result.loc["e1", "non_billable_mm"] == pytest.approx(1.0)
        assert result.loc["e1", "total_mm"] == pytest.approx(2.0)
        assert result.loc["e2", "billable_mm"] == pytest.approx(1.0)

    def test_by_project(self):
        df = pd.DataFrame([
            _assignment("2025-01-01", "2025-01-31", id="a1", employee_id="e1"),
            _assignment("2025-01-01", "2025-01-15", id="a2", employee_id="e2"),
        ])
        period = resolve_period("month", "2025-01-01")

        result = row_totals(df, period, key="project_id")

        assert list(result["project_id"]) == ["p1"]
        assert result["total_mm"].iloc[0] == pytest.approx(1.0 + 15 / 31)

    def test_clipped_to_active_period(self):
        df = pd.DataFrame([_assignment("2025-01-01", "2025-12-31")])
        period = resolve_period("month", "2025-02-01")

        result = row_totals(df, period)

        assert result["billable_mm"].iloc[0] == pytest.approx(1.0)

    def test_no_assignments_in_period(self):
        df = pd.DataFrame([_assignment("2024-01-01", "2024-01-31")])
        result = row_totals(df, resolve_period("year", "2025-01-01"))
        assert len(result) == 0
        assert "total_mm" in result.columns


class TestCoversColumn:
    """Tests for bar placement in display columns."""

    def test_year_mode_month_columns(self):
        period = resolve_period("year", "2025-01-01")
        a = _assignment("2025-01-20", "2025-02-10")

        assert covers_column(a, period, pd.Timestamp("2025-01-01"))
        assert covers_column(a, period, pd.Timestamp("2025-02-01"))
        assert not covers_column(a, period, pd.Timestamp("2025-03-01"))

    def test_day_columns(self):
        period = resolve_period("week", "2025-03-12", week_start="sunday")
        a = _assignment("2025-03-11", "2025-03-11")

        covered = [c for c in period.columns if covers_column(a, period, c)]
        assert covered == [pd.Timestamp("2025-03-11")]

    def test_reversed_never_drawn(self):
        period = resolve_period("month", "2025-03-01")
        a = _assignment("2025-03-20", "2025-03-10")
        assert not any(covers_column(a, period, c) for c in period.columns)


def test_allocation_frame_adds_column():
    df = pd.DataFrame([
        _assignment("2025-01-01", "2025-01-31", id="a1"),
        _assignment("2025-02-15", "2025-02-28", id="a2"),
    ])

    result = allocation_frame(df, "2025-01-01", "2025-12-31")

    assert list(result["mm"]) == pytest.approx([1.0, 0.5])
    assert "mm" not in df.columns


def test_total_allocation():
    df = pd.DataFrame([
        _assignment("2025-01-01", "2025-01-31", id="a1"),
        _assignment("2025-02-15", "2025-02-28", id="a2"),
    ])
    assert total_allocation(df, "2025-01-01", "2025-12-31") == pytest.approx(1.5)
    assert total_allocation(df.iloc[0:0], "2025-01-01", "2025-12-31") == 0.0
