"""
Tests for schema validation and type coercion.
"""
import pytest
import pandas as pd
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.data.schema import (
    validate_required_columns,
    check_optional_columns,
    validate_schema,
    coerce_bool,
    ensure_column_types,
    validate_employee_types,
    validate_assignment_dates,
    empty_table,
    SchemaValidationError,
)
from resource_os.config import REQUIRED_COLUMNS, OPTIONAL_COLUMNS


class TestValidateRequiredColumns:
    """Tests for required column validation."""

    def test_all_columns_present(self):
        """All required columns present should return valid."""
        df = pd.DataFrame({
            "id": ["a1"],
            "employee_id": ["e1"],
            "project_id": ["p1"],
            "start_date": ["2025-01-01"],
            "end_date": ["2025-01-31"],
            "non_bill": [False],
        })

        is_valid, missing = validate_required_columns(df, "assignments")

        assert is_valid is True
        assert missing == []

    def test_missing_columns(self):
        """Missing columns should be detected."""
        df = pd.DataFrame({"id": ["e1"], "name": ["Kim"]})

        is_valid, missing = validate_required_columns(df, "employees")

        assert is_valid is False
        assert missing == ["employee_type"]

    def test_unknown_table(self):
        """Unknown table should return valid."""
        df = pd.DataFrame({"col1": [1]})

        is_valid, missing = validate_required_columns(df, "unknown_table")

        assert is_valid is True
        assert missing == []


class TestCheckOptionalColumns:
    """Tests for optional column checking."""

    def test_missing_optional(self):
        df = pd.DataFrame({"id": ["p1"], "name": ["Portal"], "is_tentative": [False]})

        missing = check_optional_columns(df, "projects")

        assert missing == OPTIONAL_COLUMNS["projects"]


class TestValidateSchema:
    """Tests for full schema validation."""

    def test_strict_mode_raises(self):
        """Strict mode should raise on missing required columns."""
        df = pd.DataFrame({"id": ["p1"]})

        with pytest.raises(SchemaValidationError):
            validate_schema(df, "projects", strict=True)

    def test_non_strict_mode_returns(self):
        """Non-strict mode should return result without raising."""
        df = pd.DataFrame({"id": ["p1"]})

        result = validate_schema(df, "projects", strict=False)

        assert result["is_valid"] is False
        assert "name" in result["missing_required"]
        assert result["total_rows"] == 1


class TestCoercion:
    """Tests for column type coercion."""

    def test_coerce_bool_strings(self):
        values = pd.Series(["true", "False", "Y", "0", None, 1])
        assert list(coerce_bool(values)) == [True, False, True, False, False, True]

    def test_ids_become_strings(self):
        df = pd.DataFrame({"id": [1, 2], "employee_id": pd.Series([10, None], dtype=object)})

        result = ensure_column_types(df)

        assert list(result["id"]) == ["1", "2"]
        assert result["employee_id"].iloc[0] == "10"
        assert pd.isna(result["employee_id"].iloc[1])

    def test_dates_normalised(self):
        df = pd.DataFrame({"start_date": ["2025-01-01 09:30"], "end_date": ["2025-01-31"]})

        result = ensure_column_types(df)

        assert result["start_date"].iloc[0] == pd.Timestamp("2025-01-01")

    def test_employee_type_lowercased(self):
        df = pd.DataFrame({"employee_type": [" Billable", "INTERNAL", None]})

        result = ensure_column_types(df)

        assert list(result["employee_type"][:2]) == ["billable", "internal"]

    def test_input_not_mutated(self):
        df = pd.DataFrame({"non_bill": ["true"]})
        ensure_column_types(df)
        assert df["non_bill"].iloc[0] == "true"


class TestDataChecks:
    """Tests for soft data checks."""

    def test_unknown_employee_types(self):
        df = pd.DataFrame({"employee_type": ["billable", "contractor", "intern", "contractor"]})
        assert validate_employee_types(df) == ["contractor", "intern"]

    def test_bad_assignment_dates(self):
        df = pd.DataFrame({
            "id": ["ok", "reversed", "missing"],
            "start_date": ["2025-01-01", "2025-02-10", None],
            "end_date": ["2025-01-31", "2025-02-01", "2025-03-01"],
        })

        bad = validate_assignment_dates(df)

        assert list(bad["id"]) == ["reversed", "missing"]

    def test_empty_table_columns(self):
        df = empty_table("assignments")

        assert len(df) == 0
        assert list(df.columns) == REQUIRED_COLUMNS["assignments"] + OPTIONAL_COLUMNS["assignments"]
