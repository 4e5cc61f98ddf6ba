"""
Employee, project and assignment records.

The engine works on DataFrames; these dataclasses are the record shapes the
store accepts and returns one at a time.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

import pandas as pd


class EmployeeType(str, Enum):
    """Staffing type of an employee."""
    BILLABLE = "billable"
    INTERNAL = "internal"
    OTHER_UNIT = "other_unit"
    OUTSOURCING = "outsourcing"


@dataclass
class Employee:
    id: str
    name: str
    employee_type: str = EmployeeType.BILLABLE.value
    job_title: Optional[str] = None
    join_date: Optional[date] = None


@dataclass
class Project:
    id: str
    name: str
    is_tentative: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    solutions: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class Assignment:
    id: str
    employee_id: str
    project_id: str
    start_date: date
    end_date: date
    non_bill: bool = False
    task: str = ""


RECORD_TYPES = {
    "employees": Employee,
    "projects": Project,
    "assignments": Assignment,
}



def to_record(record) -> dict:
    """Dataclass -> plain dict, enums flattened to their values."""
    data = asdict(record)
    for key, value in data.items():
        if isinstance(value, Enum):
            data[key] = value.value
    return data


def records_to_frame(records: Iterable, table_name: str) -> pd.DataFrame:
    """Build a table DataFrame from dataclasses or dicts."""
    rows = [r if isinstance(r, dict) else to_record(r) for r in records]
    columns = [f.name for f in fields(RECORD_TYPES[table_name])]
    return pd.DataFrame(rows, columns=columns)


def frame_to_records(df: pd.DataFrame, table_name: str) -> list:
    """Rebuild dataclasses from a table DataFrame (unknown columns ignored)."""
    record_type = RECORD_TYPES[table_name]
    names = {f.name for f in fields(record_type)}
    records = []
    for row in df.to_dict("records"):
        kwargs = {k: (None if _is_missing(v) else v) for k, v in row.items() if k in names}
        records.append(record_type(**kwargs))
    return records


def _is_missing(value) -> bool:
    if isinstance(value, (list, tuple)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
