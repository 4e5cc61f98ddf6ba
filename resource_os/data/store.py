"""
In-memory data-access collaborator.

Holds the employee / project / assignment tables, applies create, update and
delete commands, and notifies subscribers with a fresh snapshot after every
change. Tables are replaced wholesale on each command, never patched in
place, so a snapshot handed out earlier stays valid.

Usage:
    store = ResourceStore.from_data_dir(config.data_dir)
    unsubscribe = store.subscribe(lambda snap: print(snap.version))

    emp = store.add_employee("Kim")
    proj = store.add_project("Portal", is_tentative=False)
    store.add_assignment(emp.id, proj.id, "2025-01-01", "2025-01-31")
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd

from resource_os.data.loader import read_table
from resource_os.data.records import (
    RECORD_TYPES,
    Assignment,
    Employee,
    EmployeeType,
    Project,
    frame_to_records,
    records_to_frame,
)
from resource_os.data.schema import ensure_column_types, empty_table
from resource_os.engine.calendar import to_day


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for rejected store commands."""
    pass


class RecordNotFoundError(StoreError):
    """Raised when a command references an unknown record id."""

    def __init__(self, table_name: str, record_id):
        super().__init__(f"{table_name}: no record with id {record_id!r}")
        self.table_name = table_name
        self.record_id = record_id


class InvalidRecordError(StoreError):
    """Raised when a command would store an invalid record."""
    pass


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Immutable view of all three tables at one store version."""
    employees: pd.DataFrame
    projects: pd.DataFrame
    assignments: pd.DataFrame
    version: int
    taken_at: pd.Timestamp = field(default_factory=pd.Timestamp.now)


Subscriber = Callable[[Snapshot], None]


def _new_id() -> str:
    return uuid.uuid4().hex


def _employee_type(value) -> str:
    try:
        return EmployeeType(value).value
    except ValueError:
        raise InvalidRecordError(f"Unknown employee_type {value!r}") from None


class ResourceStore:
    """Thread-safe in-memory store with change notification."""

    def __init__(self,
                 employees: Optional[pd.DataFrame] = None,
                 projects: Optional[pd.DataFrame] = None,
                 assignments: Optional[pd.DataFrame] = None):
        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        self._version = 0
        self._tables: Dict[str, pd.DataFrame] = {
            "employees": self._typed(employees, "employees"),
            "projects": self._typed(projects, "projects"),
            "assignments": self._typed(assignments, "assignments"),
        }

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_frames(cls, employees: pd.DataFrame, projects: pd.DataFrame,
                    assignments: pd.DataFrame) -> "ResourceStore":
        return cls(employees, projects, assignments)

    @classmethod
    def from_records(cls, employees: Iterable = (), projects: Iterable = (),
                     assignments: Iterable = ()) -> "ResourceStore":
        return cls(
            records_to_frame(employees, "employees"),
            records_to_frame(projects, "projects"),
            records_to_frame(assignments, "assignments"),
        )

    @classmethod
    def from_data_dir(cls, data_dir: Optional[Path] = None) -> "ResourceStore":
        return cls(
            read_table("employees", data_dir),
            read_table("projects", data_dir),
            read_table("assignments", data_dir),
        )

    @staticmethod
    def _typed(df: Optional[pd.DataFrame], table_name: str) -> pd.DataFrame:
        if df is None:
            return empty_table(table_name)
        df = ensure_column_types(df)
        for col in empty_table(table_name).columns:
            if col not in df.columns:
                df[col] = None
        return ensure_column_types(df).reset_index(drop=True)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    def list_employees(self) -> pd.DataFrame:
        with self._lock:
            return self._tables["employees"].copy()

    def list_projects(self) -> pd.DataFrame:
        with self._lock:
            return self._tables["projects"].copy()

    def list_assignments(self) -> pd.DataFrame:
        with self._lock:
            return self._tables["assignments"].copy()

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                employees=self._tables["employees"].copy(),
                projects=self._tables["projects"].copy(),
                assignments=self._tables["assignments"].copy(),
                version=self._version,
            )

    def get(self, table_name: str, record_id):
        """Single record as its dataclass."""
        with self._lock:
            df = self._tables[table_name]
            match = df[df["id"] == str(record_id)]
            if len(match) == 0:
                raise RecordNotFoundError(table_name, record_id)
            return frame_to_records(match, table_name)[0]

    # -------------------------------------------------------------------------
    # Change notification
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, changes: Dict[str, pd.DataFrame], action: str) -> Snapshot:
        """Swap in the changed tables and bump the version. Caller holds the lock."""
        for table_name, df in changes.items():
            self._tables[table_name] = df.reset_index(drop=True)
        self._version += 1
        logger.info("store v%d: %s", self._version, action)
        return self.snapshot()

    def _notify(self, snap: Optional[Snapshot]) -> None:
        """Call subscribers with a committed snapshot. Must run without the lock held."""
        if snap is None:
            return
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(snap)
            except Exception:
                logger.exception("Store subscriber %r failed on v%d", callback, snap.version)

    # -------------------------------------------------------------------------
    # Internal row helpers
    # -------------------------------------------------------------------------

    def _require(self, table_name: str, record_id) -> pd.Series:
        df = self._tables[table_name]
        mask = df["id"] == str(record_id)
        if not mask.any():
            raise RecordNotFoundError(table_name, record_id)
        return mask

    def _append(self, table_name: str, record) -> pd.DataFrame:
        row = self._typed(records_to_frame([record], table_name), table_name)
        current = self._tables[table_name]
        if len(current) == 0:
            return row
        return pd.concat([current, row], ignore_index=True)

    def _updated(self, table_name: str, record_id, changes: dict) -> pd.DataFrame:
        allowed = {f.name for f in fields(RECORD_TYPES[table_name])} - {"id"}
        unknown = set(changes) - allowed
        if unknown:
            raise InvalidRecordError(f"{table_name}: unknown or read-only field(s) {sorted(unknown)}")

        mask = self._require(table_name, record_id)
        df = self._tables[table_name].copy()
        for col, value in changes.items():
            if col not in df.columns:
                df[col] = None
            df[col] = df[col].astype(object)
            for idx in df.index[mask]:
                df.at[idx, col] = value
        return ensure_column_types(df)

    @staticmethod
    def _check_dates(start_date, end_date) -> None:
        start, end = to_day(start_date), to_day(end_date)
        if pd.isna(start) or pd.isna(end):
            raise InvalidRecordError("Assignment start_date and end_date are required")
        if end < start:
            raise InvalidRecordError(
                f"Assignment end_date {end.date()} is before start_date {start.date()}"
            )

    # -------------------------------------------------------------------------
    # Employees
    # -------------------------------------------------------------------------

    def add_employee(self, name: str, employee_type: str = EmployeeType.BILLABLE.value,
                     **extra) -> Employee:
        if not name:
            raise InvalidRecordError("Employee name is required")
        employee = Employee(id=_new_id(), name=name, employee_type=_employee_type(employee_type), **extra)
        with self._lock:
            snap = self._commit({"employees": self._append("employees", employee)},
                                f"add employee {employee.id}")
        self._notify(snap)
        return employee

    def update_employee(self, employee_id, **changes) -> Employee:
        if "employee_type" in changes:
            changes["employee_type"] = _employee_type(changes["employee_type"])
        with self._lock:
            df = self._updated("employees", employee_id, changes)
            snap = self._commit({"employees": df}, f"update employee {employee_id}")
            employee = self.get("employees", employee_id)
        self._notify(snap)
        return employee

    def update_employee_type(self, employee_id, employee_type: str) -> Employee:
        return self.update_employee(employee_id, employee_type=employee_type)

    def remove_employee(self, employee_id) -> None:
        """Delete an employee and every assignment that references them."""
        with self._lock:
            mask = self._require("employees", employee_id)
            employees = self._tables["employees"][~mask]
            assignments = self._tables["assignments"]
            assignments = assignments[assignments["employee_id"] != str(employee_id)]
            snap = self._commit(
                {"employees": employees, "assignments": assignments},
                f"remove employee {employee_id}",
            )
        self._notify(snap)

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def add_project(self, name: str, is_tentative: bool = True,
                    start_date=None, end_date=None, **extra) -> Project:
        """New projects are tentative and span today unless told otherwise."""
        if not name:
            raise InvalidRecordError("Project name is required")
        today = to_day(pd.Timestamp.now())
        project = Project(
            id=_new_id(),
            name=name,
            is_tentative=bool(is_tentative),
            start_date=start_date if start_date is not None else today,
            end_date=end_date if end_date is not None else today,
            **extra,
        )
        with self._lock:
            snap = self._commit({"projects": self._append("projects", project)},
                                f"add project {project.id}")
        self._notify(snap)
        return project

    def update_project(self, project_id, **changes) -> Project:
        with self._lock:
            df = self._updated("projects", project_id, changes)
            snap = self._commit({"projects": df}, f"update project {project_id}")
            project = self.get("projects", project_id)
        self._notify(snap)
        return project

    def delete_project(self, project_id) -> None:
        """Delete a project and every assignment on it."""
        with self._lock:
            mask = self._require("projects", project_id)
            projects = self._tables["projects"][~mask]
            assignments = self._tables["assignments"]
            assignments = assignments[assignments["project_id"] != str(project_id)]
            snap = self._commit(
                {"projects": projects, "assignments": assignments},
                f"delete project {project_id}",
            )
        self._notify(snap)

    # -------------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------------

    def add_assignment(self, employee_id, project_id, start_date, end_date,
                       non_bill: bool = False, task: str = "") -> Assignment:
        self._check_dates(start_date, end_date)
        with self._lock:
            self._require("employees", employee_id)
            self._require("projects", project_id)
            assignment = Assignment(
                id=_new_id(),
                employee_id=str(employee_id),
                project_id=str(project_id),
                start_date=to_day(start_date),
                end_date=to_day(end_date),
                non_bill=bool(non_bill),
                task=task or "",
            )
            snap = self._commit({"assignments": self._append("assignments", assignment)},
                                f"add assignment {assignment.id}")
        self._notify(snap)
        return assignment

    def update_assignment(self, assignment_id, **changes) -> Assignment:
        with self._lock:
            current = self.get("assignments", assignment_id)
            self._check_dates(
                changes.get("start_date", current.start_date),
                changes.get("end_date", current.end_date),
            )
            if "employee_id" in changes:
                self._require("employees", changes["employee_id"])
            if "project_id" in changes:
                self._require("projects", changes["project_id"])

            df = self._updated("assignments", assignment_id, changes)
            snap = self._commit({"assignments": df}, f"update assignment {assignment_id}")
            assignment = self.get("assignments", assignment_id)
        self._notify(snap)
        return assignment

    def delete_assignment(self, assignment_id) -> None:
        with self._lock:
            mask = self._require("assignments", assignment_id)
            snap = self._commit({"assignments": self._tables["assignments"][~mask]},
                                f"delete assignment {assignment_id}")
        self._notify(snap)

    def delete_assignments(self, assignment_ids: Iterable) -> int:
        """Bulk delete; unknown ids are ignored. Returns the number removed."""
        ids = {str(i) for i in assignment_ids}
        snap = None
        with self._lock:
            df = self._tables["assignments"]
            mask = df["id"].isin(ids)
            removed = int(mask.sum())
            if removed:
                snap = self._commit({"assignments": df[~mask]}, f"delete {removed} assignment(s)")
        self._notify(snap)
        return removed
