"""
Utilisation metrics pack.

Single source of truth for: capacity, billable / non-billable / tentative
MM for a calendar year, utilisation percentages, category drill-down.

Classification is an ordered list of (category, predicate) rules; the first
matching rule wins, so an assignment lands in at most one category.
Assignments whose employee or project cannot be resolved are dropped.
"""
from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from resource_os.config import UTILISATION_CATEGORIES, config
from resource_os.engine.allocation import allocation_frame
from resource_os.engine.calendar import day_end, day_start


logger = logging.getLogger(__name__)


Rule = Tuple[str, Callable[[pd.DataFrame], pd.Series]]

# Evaluated top-down against the assignment/employee/project join
CLASSIFICATION_RULES: List[Rule] = [
    ("tentative", lambda df: df["is_tentative"] & (df["employee_type"] == "billable")),
    ("non_billable", lambda df: ~df["is_tentative"] & df["non_bill"]
        & (df["employee_type"] == "billable")),
    ("billable", lambda df: ~df["is_tentative"] & ~df["non_bill"]
        & df["employee_type"].isin(["billable", "internal"])),
]

# Bar colouring in the timeline ignores employee type
STATUS_RULES: List[Rule] = [
    ("tentative", lambda df: df["is_tentative"]),
    ("non_billable", lambda df: df["non_bill"]),
    ("billable", lambda df: pd.Series(True, index=df.index)),
]


@dataclass
class UtilisationSnapshot:
    """Year-level utilisation against billable capacity."""
    year: int
    billable_employees: int
    capacity: float
    billable_mm: float = 0.0
    non_billable_mm: float = 0.0
    tentative_mm: float = 0.0

    def _pct(self, mm: float) -> float:
        if self.capacity <= 0:
            return 0.0
        return mm / self.capacity * 100

    @property
    def billable_pct(self) -> float:
        return self._pct(self.billable_mm)

    @property
    def non_billable_pct(self) -> float:
        return self._pct(self.non_billable_mm)

    @property
    def tentative_pct(self) -> float:
        return self._pct(self.tentative_mm)

    @property
    def total_mm(self) -> float:
        return self.billable_mm + self.non_billable_mm + self.tentative_mm

    @property
    def total_pct(self) -> float:
        return self.billable_pct + self.non_billable_pct + self.tentative_pct

    def to_dict(self) -> Dict[str, float]:
        return {
            "year": self.year,
            "billable_employees": self.billable_employees,
            "capacity": self.capacity,
            "billable_mm": self.billable_mm,
            "non_billable_mm": self.non_billable_mm,
            "tentative_mm": self.tentative_mm,
            "total_mm": self.total_mm,
            "billable_pct": self.billable_pct,
            "non_billable_pct": self.non_billable_pct,
            "tentative_pct": self.tentative_pct,
            "total_pct": self.total_pct,
        }


@dataclass
class DrillDownItem:
    employee_name: str
    period: str
    mm: float


@dataclass
class DrillDownGroup:
    project_name: str
    items: List[DrillDownItem] = field(default_factory=list)

    @property
    def total_mm(self) -> float:
        return sum(item.mm for item in self.items)


def year_window(year: int) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """1 Jan 00:00:00.000 to 31 Dec 23:59:59.999."""
    return day_start(pd.Timestamp(year=year, month=1, day=1)), day_end(pd.Timestamp(year=year, month=12, day=31))


def collation_key(value) -> str:
    """
    Case- and width-insensitive sort key for display names.

    NFKC plus casefold only; this is not locale-aware collation, so accented
    and non-Latin names sort by code point after folding.
    """
    return unicodedata.normalize("NFKC", str(value)).casefold()


def _apply_rules(df: pd.DataFrame, rules: List[Rule]) -> pd.Series:
    if len(df) == 0:
        return pd.Series([], index=df.index, dtype=object)
    conditions = [predicate(df).fillna(False).astype(bool).to_numpy() for _, predicate in rules]
    choices = [category for category, _ in rules]
    selected = np.select(conditions, choices, default="")
    return pd.Series(np.where(selected == "", None, selected), index=df.index, dtype=object)


def _bool(values: pd.Series) -> pd.Series:
    return values.fillna(False).astype(bool)


def capacity_for(employees: pd.DataFrame) -> Tuple[int, float]:
    """(billable employee count, capacity MM for one year)."""
    if len(employees) == 0 or "employee_type" not in employees.columns:
        return 0, 0.0
    billable = int((employees["employee_type"] == "billable").sum())
    return billable, float(billable * config.capacity_months_per_employee)


def classify_assignments(employees: pd.DataFrame,
                         projects: pd.DataFrame,
                         assignments: pd.DataFrame,
                         rules: Optional[List[Rule]] = None) -> pd.DataFrame:
    """
    Join assignments to their employee and project and tag each with a category.

    Returns the joined frame (employee_name, employee_type, project_name,
    is_tentative added) with a category column; None marks assignments that
    belong to no utilisation category. Dangling references are dropped.
    """
    rules = rules or CLASSIFICATION_RULES

    emp = employees[["id", "name", "employee_type"]].rename(
        columns={"id": "employee_id", "name": "employee_name"}
    )
    proj = projects[["id", "name", "is_tentative"]].rename(
        columns={"id": "project_id", "name": "project_name"}
    )

    df = assignments.merge(emp, on="employee_id", how="inner")
    df = df.merge(proj, on="project_id", how="inner")

    dropped = len(assignments) - len(df)
    if dropped:
        logger.debug("classify_assignments: %d assignment(s) with unresolved references excluded", dropped)

    df["is_tentative"] = _bool(df["is_tentative"])
    df["non_bill"] = _bool(df["non_bill"]) if "non_bill" in df.columns else False
    df["category"] = _apply_rules(df, rules)

    return df


def assignment_status(assignments: pd.DataFrame, projects: pd.DataFrame) -> pd.Series:
    """
    Display status per assignment id: tentative > non_billable > billable.

    Assignments with an unknown project fall back to their own billing flag.
    """
    if len(assignments) == 0:
        return pd.Series([], dtype=object, name="status")

    proj = projects[["id", "is_tentative"]].rename(columns={"id": "project_id"})
    df = assignments[["id", "project_id", "non_bill"]].merge(proj, on="project_id", how="left")
    df["is_tentative"] = _bool(df["is_tentative"])
    df["non_bill"] = _bool(df["non_bill"])

    status = _apply_rules(df, STATUS_RULES)
    status.index = df["id"]
    status.name = "status"
    return status


def compute_utilisation(employees: pd.DataFrame,
                        projects: pd.DataFrame,
                        assignments: pd.DataFrame,
                        year: int) -> UtilisationSnapshot:
    """
    Compute utilisation for a calendar year.

    Capacity is 12 MM per billable employee. Each classified assignment
    contributes its MM clipped to 1 Jan - 31 Dec of the year. Percentages are
    0 when there is no capacity.
    """
    billable_employees, capacity = capacity_for(employees)
    snapshot = UtilisationSnapshot(year=year, billable_employees=billable_employees, capacity=capacity)

    if len(assignments) == 0 or len(employees) == 0 or len(projects) == 0:
        return snapshot

    classified = classify_assignments(employees, projects, assignments)
    classified = classified[classified["category"].notna()]
    if len(classified) == 0:
        return snapshot

    start, end = year_window(year)
    classified = allocation_frame(classified, start, end)
    totals = classified.groupby("category")["mm"].sum()

    snapshot.billable_mm = float(totals.get("billable", 0.0))
    snapshot.non_billable_mm = float(totals.get("non_billable", 0.0))
    snapshot.tentative_mm = float(totals.get("tentative", 0.0))

    logger.debug("utilisation %d: capacity=%.0f billable=%.3f non_billable=%.3f tentative=%.3f",
                 year, capacity, snapshot.billable_mm, snapshot.non_billable_mm, snapshot.tentative_mm)
    return snapshot


def compute_employee_utilisation(employees: pd.DataFrame,
                                 projects: pd.DataFrame,
                                 assignments: pd.DataFrame,
                                 year: int) -> pd.DataFrame:
    """
    Per-employee MM by category for a year.

    Returns DataFrame with employee_id, employee_name, employee_type and one
    column per category plus total_mm and utilisation (% of 12 MM).
    """
    columns = ["employee_id", "employee_name", "employee_type"] + UTILISATION_CATEGORIES + ["total_mm", "utilisation"]
    if len(assignments) == 0 or len(employees) == 0 or len(projects) == 0:
        return pd.DataFrame(columns=columns)

    classified = classify_assignments(employees, projects, assignments)
    classified = classified[classified["category"].notna()]
    if len(classified) == 0:
        return pd.DataFrame(columns=columns)

    start, end = year_window(year)
    classified = allocation_frame(classified, start, end)

    result = classified.pivot_table(
        index=["employee_id", "employee_name", "employee_type"],
        columns="category",
        values="mm",
        aggfunc="sum",
        fill_value=0.0,
    ).reindex(columns=UTILISATION_CATEGORIES, fill_value=0.0).reset_index()
    result.columns.name = None

    result["total_mm"] = result[UTILISATION_CATEGORIES].sum(axis=1)
    result["utilisation"] = result["total_mm"] / config.capacity_months_per_employee * 100

    return result[columns].sort_values("total_mm", ascending=False).reset_index(drop=True)


def drill_down(category: str,
               employees: pd.DataFrame,
               projects: pd.DataFrame,
               assignments: pd.DataFrame,
               year: int) -> List[DrillDownGroup]:
    """
    Assignments behind one utilisation category, grouped by project.

    Zero-contribution assignments are dropped. Groups are ordered by project
    name, items by employee name. Each item carries its year MM and a
    'MM.dd~MM.dd' label of the assignment's own dates.
    """
    if category not in UTILISATION_CATEGORIES:
        raise ValueError(f"Unknown utilisation category: {category!r}")

    if len(assignments) == 0 or len(employees) == 0 or len(projects) == 0:
        return []

    classified = classify_assignments(employees, projects, assignments)
    selected = classified[classified["category"] == category]

    start, end = year_window(year)
    selected = allocation_frame(selected, start, end)
    selected = selected[selected["mm"] > 0]
    if len(selected) == 0:
        return []

    groups = []
    for project_name, rows in selected.groupby("project_name", sort=False):
        rows = rows.sort_values("employee_name", key=lambda s: s.map(collation_key), kind="stable")
        items = [
            DrillDownItem(
                employee_name=row["employee_name"],
                period=fmt_assignment_period(row["start_date"], row["end_date"]),
                mm=float(row["mm"]),
            )
            for _, row in rows.iterrows()
        ]
        groups.append(DrillDownGroup(project_name=project_name, items=items))

    return sorted(groups, key=lambda g: collation_key(g.project_name))


def drill_down_frame(groups: List[DrillDownGroup]) -> pd.DataFrame:
    """Flatten drill-down groups for table display."""
    rows = [
        {"project_name": g.project_name, "employee_name": i.employee_name, "period": i.period, "mm": i.mm}
        for g in groups for i in g.items
    ]
    return pd.DataFrame(rows, columns=["project_name", "employee_name", "period", "mm"])


def fmt_assignment_period(start, end) -> str:
    """'03.01~03.31' label of an assignment's dates."""
    start, end = day_start(start), day_start(end)
    if pd.isna(start) or pd.isna(end):
        return "—"
    return f"{start.strftime('%m.%d')}~{end.strftime('%m.%d')}"
