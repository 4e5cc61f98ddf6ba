#!/usr/bin/env python
"""
Validate employee / project / assignment files before loading them into the app.

Usage:
    python scripts/validate_inputs.py
    python scripts/validate_inputs.py --data-dir /path/to/data
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
from resource_os.config import config, TABLE_FILES
from resource_os.data.loader import _load_file
from resource_os.data.schema import (
    ensure_column_types,
    validate_assignment_dates,
    validate_employee_types,
    validate_schema,
)


def validate_file(filepath: Path, table_name: str) -> dict:
    """Validate a single table file."""
    result = {
        "exists": False,
        "format": None,
        "rows": 0,
        "columns": 0,
        "valid": False,
        "missing_required": [],
        "missing_optional": [],
        "warnings": [],
        "errors": [],
        "frame": None,
    }

    if filepath.with_suffix(".parquet").exists():
        result["format"] = "parquet"
    elif filepath.with_suffix(".csv").exists():
        result["format"] = "csv"
    else:
        result["errors"].append(f"File not found: {filepath}.(parquet|csv)")
        return result
    result["exists"] = True

    try:
        df = _load_file(filepath)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        result["errors"].append(f"Failed to load: {e}")
        return result

    result["rows"] = len(df)
    result["columns"] = len(df.columns)

    schema_result = validate_schema(df, table_name, strict=False)
    result["valid"] = schema_result["is_valid"]
    result["missing_required"] = schema_result["missing_required"]
    result["missing_optional"] = schema_result["missing_optional"]

    if not result["valid"]:
        return result

    df = ensure_column_types(df)
    result["frame"] = df

    duplicates = int(df["id"].duplicated().sum())
    if duplicates:
        result["errors"].append(f"{duplicates} duplicate id(s)")

    if table_name == "employees":
        unknown = validate_employee_types(df)
        if unknown:
            result["warnings"].append(f"Unknown employee_type values (no capacity): {unknown}")

    if table_name == "assignments":
        bad = validate_assignment_dates(df)
        if len(bad) > 0:
            result["warnings"].append(
                f"{len(bad)} assignment(s) with missing or reversed dates (count as 0 MM): "
                f"{bad['id'].head(10).tolist()}"
            )

    return result


def check_references(results: dict) -> list:
    """Assignments pointing at employees or projects that do not exist."""
    frames = {k: r["frame"] for k, r in results.items()}
    if any(frames.get(k) is None for k in ("employees", "projects", "assignments")):
        return []

    assignments = frames["assignments"]
    messages = []
    for col, table in (("employee_id", "employees"), ("project_id", "projects")):
        dangling = assignments[~assignments[col].isin(set(frames[table]["id"]))]
        if len(dangling) > 0:
            messages.append(
                f"{len(dangling)} assignment(s) reference unknown {table} (excluded from metrics): "
                f"{dangling['id'].head(10).tolist()}"
            )
    return messages


def main():
    parser = argparse.ArgumentParser(description="Validate input data files")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Override data directory"
    )

    args = parser.parse_args()

    data_dir = Path(args.data_dir) if args.data_dir else config.data_dir

    print("=" * 60)
    print("Data Input Validation")
    print("=" * 60)
    print(f"Source directory: {data_dir}")
    print()

    all_valid = True
    results = {}

    for table_key, filename in TABLE_FILES.items():
        print(f"Validating: {table_key}")
        print("-" * 40)

        result = validate_file(data_dir / filename, table_key)
        results[table_key] = result

        if result["exists"]:
            print(f"  ✓ Found: {filename}.{result['format']}")
            print(f"    Rows: {result['rows']:,}")
            print(f"    Columns: {result['columns']}")

            if result["valid"]:
                print("  ✓ Schema valid")
            else:
                print("  ✗ Schema invalid")
                print(f"    Missing required: {result['missing_required']}")
                all_valid = False

            if result["missing_optional"]:
                print(f"  ⚠ Missing optional: {result['missing_optional']}")
        else:
            # A missing table loads as empty
            print(f"  ⚠ Not found: {filename} (loads as empty)")

        for warning in result["warnings"]:
            print(f"  ⚠ {warning}")

        if result["exists"] and result["errors"]:
            for err in result["errors"]:
                print(f"  ✗ Error: {err}")
            all_valid = False

        print()

    for message in check_references(results):
        print(f"⚠ {message}")

    print("=" * 60)
    if all_valid:
        print("✓ All validations passed")
        sys.exit(0)
    else:
        print("✗ Validation failed - see errors above")
        sys.exit(1)


if __name__ == "__main__":
    main()
