"""
Application configuration management.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field


def _default_data_dir() -> Path:
    env_dir = os.getenv("DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path("./data")


@dataclass
class AppConfig:
    """Application configuration with environment overrides."""

    # Paths
    data_dir: Path = field(default_factory=_default_data_dir)

    # Environment
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Calendar
    week_start: str = field(default_factory=lambda: os.getenv("WEEK_START", "sunday"))

    # Allocation model
    capacity_months_per_employee: int = field(
        default_factory=lambda: int(os.getenv("CAPACITY_MONTHS_PER_EMPLOYEE", "12"))
    )
    overallocation_tolerance: float = field(
        default_factory=lambda: float(os.getenv("OVERALLOCATION_TOLERANCE", "0.001"))
    )


# Global config instance
config = AppConfig()


# Table file names (parquet or csv, relative to data_dir)
TABLE_FILES = {
    "employees": "employees",
    "projects": "projects",
    "assignments": "assignments",
}

# Required columns (hard fail if missing)
REQUIRED_COLUMNS = {
    "employees": [
        "id",
        "name",
        "employee_type",
    ],
    "projects": [
        "id",
        "name",
        "is_tentative",
    ],
    "assignments": [
        "id",
        "employee_id",
        "project_id",
        "start_date",
        "end_date",
        "non_bill",
    ],
}

# Optional columns (soft warn if missing)
OPTIONAL_COLUMNS = {
    "employees": [
        "job_title",
        "join_date",
    ],
    "projects": [
        "start_date",
        "end_date",
        "solutions",
        "tags",
    ],
    "assignments": [
        "task",
    ],
}

EMPLOYEE_TYPES = ["billable", "internal", "other_unit", "outsourcing"]

# Display order of employee rows in the timeline
EMPLOYEE_TYPE_PRIORITY = {
    "billable": 1,
    "internal": 2,
    "other_unit": 3,
    "outsourcing": 4,
}

UTILISATION_CATEGORIES = ["billable", "non_billable", "tentative"]

CATEGORY_LABELS = {
    "billable": "Assigned (Billable)",
    "non_billable": "Non-Billable",
    "tentative": "Tentative",
}

# Formatting constants
FORMAT_MM = "{:,.2f}"
FORMAT_COUNT = "{:,}"
