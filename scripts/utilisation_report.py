#!/usr/bin/env python
"""
Print the utilisation summary and over-allocated days for one year.

Usage:
    python scripts/utilisation_report.py --year 2025
    python scripts/utilisation_report.py --year 2025 --data-dir /path/to/data --employees
"""
import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
from resource_os.config import config
from resource_os.data.schema import SchemaValidationError
from resource_os.data.store import ResourceStore
from resource_os.engine.daily import build_daily_allocation_map, overallocated_days
from resource_os.engine.periods import resolve_period, today_anchor
from resource_os.logging import configure_logging
from resource_os.metrics.utilisation import compute_employee_utilisation, compute_utilisation
from resource_os.ui.formatting import fmt_mm, fmt_percent, format_metric_df


logger = logging.getLogger("utilisation_report")


def main():
    parser = argparse.ArgumentParser(description="Yearly utilisation report")
    parser.add_argument("--year", type=int, default=None, help="Calendar year (default: current)")
    parser.add_argument("--data-dir", type=str, default=None, help="Override data directory")
    parser.add_argument("--employees", action="store_true", help="Also print per-employee MM")
    parser.add_argument("--log-level", type=str, default=None, help="Override LOG_LEVEL")

    args = parser.parse_args()
    configure_logging(args.log_level)

    year = args.year or today_anchor().year
    data_dir = Path(args.data_dir) if args.data_dir else config.data_dir

    try:
        store = ResourceStore.from_data_dir(data_dir)
    except SchemaValidationError as e:
        logger.error("Cannot load %s: %s", data_dir, e)
        sys.exit(1)

    snap = store.snapshot()
    result = compute_utilisation(snap.employees, snap.projects, snap.assignments, year)

    print("=" * 60)
    print(f"Utilisation {year}")
    print("=" * 60)
    print(f"Billable employees: {result.billable_employees}")
    print(f"Capacity:           {fmt_mm(result.capacity)} MM")
    print(f"Billable:           {fmt_mm(result.billable_mm)} MM  ({fmt_percent(result.billable_pct)})")
    print(f"Non-billable:       {fmt_mm(result.non_billable_mm)} MM  ({fmt_percent(result.non_billable_pct)})")
    print(f"Tentative:          {fmt_mm(result.tentative_mm)} MM  ({fmt_percent(result.tentative_pct)})")
    print(f"TOTAL:              {fmt_percent(result.total_pct)}")
    print()

    if args.employees:
        per_employee = compute_employee_utilisation(snap.employees, snap.projects, snap.assignments, year)
        with pd.option_context("display.width", 120, "display.max_rows", None):
            print(format_metric_df(per_employee.drop(columns=["employee_id"])).to_string(index=False))
        print()

    period = resolve_period("year", pd.Timestamp(year=year, month=1, day=1))
    over = overallocated_days(build_daily_allocation_map(snap.assignments, period))

    print("Over-allocated days")
    print("-" * 40)
    if len(over) == 0:
        print("  none")
    else:
        names = snap.employees.set_index("id")["name"]
        summary = over.groupby("employee_id").agg(days=("day", "count"))
        for employee_id, row in summary.iterrows():
            print(f"  {names.get(employee_id, employee_id)}: {row['days']} day(s)")


if __name__ == "__main__":
    main()
