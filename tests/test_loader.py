"""
Tests for reading record tables from a data directory.
"""
import pytest
import pandas as pd
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.data.loader import read_table, get_data_status
from resource_os.data.schema import SchemaValidationError


def _write_csv(path: Path, rows: list, columns: list):
    pd.DataFrame(rows, columns=columns).to_csv(path, index=False)


class TestReadTable:
    """Tests for CSV table loading."""

    def test_csv_is_typed(self, tmp_path):
        _write_csv(
            tmp_path / "assignments.csv",
            [("001", "7", "p1", "2025-01-01", "2025-01-31", "true")],
            ["id", "employee_id", "project_id", "start_date", "end_date", "non_bill"],
        )

        df = read_table("assignments", tmp_path)

        assert df["id"].iloc[0] == "001"
        assert df["employee_id"].iloc[0] == "7"
        assert bool(df["non_bill"].iloc[0]) is True
        assert df["end_date"].iloc[0] == pd.Timestamp("2025-01-31")

    def test_parquet_preferred_over_csv(self, tmp_path):
        _write_csv(tmp_path / "employees.csv", [("e1", "From CSV", "billable")],
                   ["id", "name", "employee_type"])
        pd.DataFrame({"id": ["e1"], "name": ["From parquet"], "employee_type": ["billable"]}).to_parquet(
            tmp_path / "employees.parquet", index=False
        )

        df = read_table("employees", tmp_path)

        assert list(df["name"]) == ["From parquet"]

    def test_missing_file_gives_empty_table(self, tmp_path):
        df = read_table("employees", tmp_path)

        assert len(df) == 0
        assert {"id", "name", "employee_type"} <= set(df.columns)

    def test_missing_required_column_raises(self, tmp_path):
        _write_csv(tmp_path / "projects.csv", [("p1", "Portal")], ["id", "name"])

        with pytest.raises(SchemaValidationError):
            read_table("projects", tmp_path)


def test_data_status(tmp_path):
    _write_csv(tmp_path / "employees.csv", [("e1", "Kim", "billable")], ["id", "name", "employee_type"])

    status = get_data_status(tmp_path)

    assert status["employees"] == {"parquet_exists": False, "csv_exists": True}
    assert status["assignments"] == {"parquet_exists": False, "csv_exists": False}
