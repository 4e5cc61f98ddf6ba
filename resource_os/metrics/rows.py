"""
Timeline display rows and project activity status.
"""
from __future__ import annotations

from typing import Dict

import pandas as pd

from resource_os.config import EMPLOYEE_TYPE_PRIORITY
from resource_os.metrics.utilisation import collation_key


VIEW_TYPES = ("project", "employee")

ROW_COLUMNS = ["id", "name", "type"]


def display_rows(view_type: str, employees: pd.DataFrame, projects: pd.DataFrame) -> pd.DataFrame:
    """
    Rows of the timeline grid.

    Project view: every project by name. Employee view: employees ordered
    by type (billable, internal, other_unit, outsourcing, anything else
    last) then by name.
    """
    if view_type not in VIEW_TYPES:
        raise ValueError(f"Unknown view type: {view_type!r} (expected one of {VIEW_TYPES})")

    if view_type == "project":
        if len(projects) == 0:
            return pd.DataFrame(columns=ROW_COLUMNS)
        rows = projects[["id", "name"]].copy()
        rows["type"] = "project"
        rows["_name_key"] = rows["name"].map(collation_key)
        rows = rows.sort_values("_name_key", kind="stable")
        return rows[ROW_COLUMNS].reset_index(drop=True)

    if len(employees) == 0:
        return pd.DataFrame(columns=ROW_COLUMNS)

    rows = employees[["id", "name", "employee_type"]].copy()
    rows["type"] = "employee"
    rows["_priority"] = rows["employee_type"].map(EMPLOYEE_TYPE_PRIORITY).fillna(99)
    rows["_name_key"] = rows["name"].map(collation_key)
    rows = rows.sort_values(["_priority", "_name_key"], kind="stable")
    return rows[ROW_COLUMNS].reset_index(drop=True)


def project_status(projects: pd.DataFrame, assignments: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """
    Split projects into active (at least one assignment) and idle.
    """
    if len(projects) == 0:
        empty = pd.DataFrame(columns=projects.columns)
        return {"active": empty, "idle": empty.copy()}

    assigned = set(assignments["project_id"]) if len(assignments) > 0 else set()
    mask = projects["id"].isin(assigned)

    return {
        "active": projects[mask].copy(),
        "idle": projects[~mask].copy(),
    }


def row_assignments(assignments: pd.DataFrame, row_type: str, row_id) -> pd.DataFrame:
    """Assignments drawn on one grid row."""
    key = "project_id" if row_type == "project" else "employee_id"
    return assignments[assignments[key] == row_id]


def record_options(df: pd.DataFrame) -> Dict[str, str]:
    """Id to name for a select box, ordered by name."""
    if len(df) == 0:
        return {}
    ordered = df.assign(_name_key=df["name"].map(collation_key)).sort_values("_name_key", kind="stable")
    return dict(zip(ordered["id"], ordered["name"]))


def assignment_options(assignments: pd.DataFrame, employees: pd.DataFrame,
                       projects: pd.DataFrame) -> Dict[str, str]:
    """
    Id to "Employee · Project (start → end)" for picking an assignment to edit.

    Ordered by start date, then employee name. Dangling references show the raw id.
    """
    if len(assignments) == 0:
        return {}

    employee_names = dict(zip(employees["id"], employees["name"]))
    project_names = dict(zip(projects["id"], projects["name"]))

    df = assignments.copy()
    df["_employee"] = df["employee_id"].map(lambda i: employee_names.get(i, i))
    df["_project"] = df["project_id"].map(lambda i: project_names.get(i, i))
    df["_name_key"] = df["_employee"].map(collation_key)
    df = df.sort_values(["start_date", "_name_key"], kind="stable")

    return {
        rec["id"]: (
            f"{rec['_employee']} · {rec['_project']} "
            f"({pd.Timestamp(rec['start_date']):%Y-%m-%d} → {pd.Timestamp(rec['end_date']):%Y-%m-%d})"
        )
        for rec in df.to_dict("records")
    }
