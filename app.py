"""
Resource Utilisation OS

Main entry point for Streamlit app.
"""
import streamlit as st
from pathlib import Path
from datetime import datetime, timezone

# Page config must be first Streamlit command
st.set_page_config(
    page_title="Resource Utilisation OS",
    page_icon="📅",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent))

from resource_os.config import config, TABLE_FILES
from resource_os.data.loader import get_data_status
from resource_os.data.schema import SchemaValidationError, validate_assignment_dates, validate_employee_types
from resource_os.logging import configure_logging
from resource_os.metrics.rows import project_status
from resource_os.metrics.utilisation import compute_utilisation
from resource_os.ui.components import kpi_strip, project_chips, utilisation_headline
from resource_os.ui.state import init_state, get_snapshot, get_state


configure_logging()


def main():
    """Main app entry point."""

    # Initialize session state
    init_state()

    # Header
    st.title("Resource Utilisation OS")
    st.caption("Assignments → Timeline → Over-allocation → Utilisation")

    # Check data availability
    status = get_data_status()

    assignments_available = (
        status["assignments"]["parquet_exists"] or
        status["assignments"]["csv_exists"]
    )

    if not assignments_available:
        st.warning("No assignment data found.")
        st.markdown(f"""
        ### Setup

        Place your data files in: `{config.data_dir}`

        Files (parquet or csv):
        - `employees` (id, name, employee_type)
        - `projects` (id, name, is_tentative, optional start_date / end_date)
        - `assignments` (id, employee_id, project_id, start_date, end_date, non_bill)

        Validate them with `python scripts/validate_inputs.py`.
        """)

    with st.expander("Data fingerprint", expanded=False):
        rows = []
        for filename in TABLE_FILES.values():
            for ext in ("parquet", "csv"):
                path = config.data_dir / f"{filename}.{ext}"
                if path.exists():
                    mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                    rows.append({
                        "file": path.name,
                        "size_kb": round(path.stat().st_size / 1024, 1),
                        "modified_utc": mtime.strftime("%Y-%m-%d %H:%M"),
                    })
        if rows:
            st.dataframe(rows, use_container_width=True)
        else:
            st.info(f"No files found in {config.data_dir}.")

    # Load snapshot
    with st.spinner("Loading data..."):
        try:
            snap = get_snapshot()
        except SchemaValidationError as e:
            st.error(f"Error loading data: {e}")
            return

    # Navigation
    st.markdown("---")

    col1, col2 = st.columns([1, 4])

    with col1:
        st.markdown("### Quick Links")
        st.page_link("pages/1_Resource_Timeline.py", label="Resource Timeline", icon="🗓️")
        st.page_link("pages/2_Utilisation.py", label="Utilisation", icon="📊")
        st.page_link("pages/3_Projects_and_Team.py", label="Projects & Team", icon="🧩")

    with col2:
        st.markdown("### Data Overview")

        kpi_strip(
            {
                "Employees": len(snap.employees),
                "Projects": len(snap.projects),
                "Assignments": len(snap.assignments),
                "Snapshot": f"v{snap.version}",
            },
            format_map={"Employees": "count", "Projects": "count",
                        "Assignments": "count", "Snapshot": "text"},
        )

        year = get_state("utilisation_year")
        st.markdown(f"#### Utilisation {year}")
        utilisation_headline(compute_utilisation(snap.employees, snap.projects, snap.assignments, year))

        split = project_status(snap.projects, snap.assignments)
        c1, c2 = st.columns(2)
        with c1:
            project_chips("Active Projects (Assigned)", split["active"]["name"].tolist())
        with c2:
            project_chips("Idle Projects (Unassigned)", split["idle"]["name"].tolist())

    # Data quality
    st.markdown("---")
    with st.expander("Data Status"):
        for key, info in status.items():
            icon = "✅" if info["parquet_exists"] or info["csv_exists"] else "❌"
            format_used = "parquet" if info["parquet_exists"] else "csv" if info["csv_exists"] else "missing"
            st.markdown(f"{icon} `{key}` ({format_used})")

        bad_dates = validate_assignment_dates(snap.assignments)
        if len(bad_dates) > 0:
            st.warning(f"{len(bad_dates)} assignment(s) have missing or reversed dates and count as 0 MM.")

        unknown_types = validate_employee_types(snap.employees)
        if unknown_types:
            st.warning(f"Unknown employee types (no capacity, excluded from utilisation): {unknown_types}")

        if st.button("Reload from disk", key="reload_store"):
            st.cache_resource.clear()
            st.rerun()


if __name__ == "__main__":
    main()
