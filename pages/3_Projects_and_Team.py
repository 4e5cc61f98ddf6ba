"""
Projects & Team Page

Create projects and employees, confirm tentative projects, change employee types.
"""
import streamlit as st
import pandas as pd
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.ui.state import init_state, get_snapshot, get_store
from resource_os.ui.formatting import format_metric_df
from resource_os.ui.components import project_chips
from resource_os.data.records import EmployeeType
from resource_os.data.store import StoreError
from resource_os.engine.periods import today_anchor
from resource_os.metrics.rows import display_rows, project_status, record_options
from resource_os.logging import configure_logging


st.set_page_config(page_title="Projects & Team", page_icon="🧩", layout="wide")

configure_logging()
init_state()


EMPLOYEE_TYPES = [t.value for t in EmployeeType]


def _run(command, *args, **kwargs):
    """Apply one store command; show the rejection or rerun with fresh data."""
    try:
        command(*args, **kwargs)
    except StoreError as e:
        st.error(str(e))
    else:
        st.rerun()


def projects_section(snap):
    st.markdown("### Projects")

    split = project_status(snap.projects, snap.assignments)
    c1, c2 = st.columns(2)
    with c1:
        project_chips("Active Projects (Assigned)", split["active"]["name"].tolist())
    with c2:
        project_chips("Idle Projects (Unassigned)", split["idle"]["name"].tolist())

    with st.form("add_project", clear_on_submit=True):
        name = st.text_input("Project name")
        col1, col2, col3 = st.columns(3)
        with col1:
            start = st.date_input("Start", value=today_anchor().date())
        with col2:
            end = st.date_input("End", value=today_anchor().date())
        with col3:
            tentative = st.checkbox("Tentative", value=True)
        submitted = st.form_submit_button("Create project", type="primary")

    if submitted:
        _run(get_store().add_project, name.strip(), is_tentative=tentative,
             start_date=pd.Timestamp(start), end_date=pd.Timestamp(end))

    tentative_projects = snap.projects[snap.projects["is_tentative"].astype(bool)]
    st.markdown(f"#### Tentative `{len(tentative_projects)}`")
    if len(tentative_projects) == 0:
        st.caption("Every project is confirmed.")
        return

    options = record_options(tentative_projects)
    col1, col2 = st.columns([3, 1])
    with col1:
        project_id = st.selectbox("Project to confirm", options=list(options), format_func=options.get)
    with col2:
        st.write("")
        if st.button("Confirm project", key="confirm_project", use_container_width=True):
            _run(get_store().update_project, project_id, is_tentative=False)


def team_section(snap):
    st.markdown("### Team")

    rows = display_rows("employee", snap.employees, snap.projects)
    if len(rows) > 0:
        team = rows.merge(snap.employees[["id", "employee_type"]], on="id", how="left")
        st.dataframe(
            format_metric_df(team[["name", "employee_type"]]),
            use_container_width=True,
            hide_index=True,
        )

    with st.form("add_employee", clear_on_submit=True):
        col1, col2 = st.columns([2, 1])
        with col1:
            name = st.text_input("Employee name")
        with col2:
            employee_type = st.selectbox("Type", options=EMPLOYEE_TYPES)
        submitted = st.form_submit_button("Add employee", type="primary")

    if submitted:
        _run(get_store().add_employee, name.strip(), employee_type=employee_type)

    employees = record_options(snap.employees)
    if not employees:
        return

    st.markdown("#### Change type")
    current_types = snap.employees.set_index("id")["employee_type"]
    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        employee_id = st.selectbox("Employee", options=list(employees), format_func=employees.get)
    current = current_types.get(employee_id)
    with col2:
        new_type = st.selectbox(
            "New type",
            options=EMPLOYEE_TYPES,
            index=EMPLOYEE_TYPES.index(current) if current in EMPLOYEE_TYPES else 0,
            key=f"employee_type_{employee_id}",
        )
    with col3:
        st.write("")
        if st.button("Update type", key="update_employee_type", disabled=new_type == current,
                     use_container_width=True):
            _run(get_store().update_employee_type, employee_id, new_type)


def main():
    st.title("Projects & Team")

    snap = get_snapshot()

    projects_section(snap)
    st.markdown("---")
    team_section(snap)


if __name__ == "__main__":
    main()
