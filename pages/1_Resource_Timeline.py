"""
Resource Timeline Page

Who is assigned to what, week by week, month by month or across the year.
"""
import streamlit as st
import pandas as pd
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.ui.state import (
    init_state, get_state, set_state, reset_state, get_period, set_view_mode,
    go_prev, go_next, go_today, get_snapshot, get_store,
)
from resource_os.data.store import StoreError
from resource_os.ui.formatting import fmt_mm, fmt_date_range, format_metric_df
from resource_os.ui.charts import assignment_timeline, allocation_heatmap
from resource_os.ui.components import empty_state, download_button
from resource_os.engine.periods import VIEW_MODES, is_current_column, period_label, today_anchor
from resource_os.engine.allocation import covers_column, filter_by_period, row_totals
from resource_os.engine.daily import (
    build_daily_allocation_map, overallocated_columns, overallocated_days, daily_allocation_matrix,
)
from resource_os.metrics.rows import assignment_options, display_rows, record_options, row_assignments
from resource_os.metrics.utilisation import assignment_status
from resource_os.logging import configure_logging


st.set_page_config(page_title="Resource Timeline", page_icon="🗓️", layout="wide")

configure_logging()
init_state()


STATUS_MARKS = {
    "billable": "■",
    "non_billable": "□",
    "tentative": "▒",
}


def column_header(period, column) -> str:
    """Short header for one grid column; today is starred."""
    label = column.strftime("%b") if period.mode == "year" else column.strftime("%a %d")
    return f"{label} *" if is_current_column(period, column) else label


def build_grid(rows: pd.DataFrame, assignments: pd.DataFrame, status: pd.Series,
               period, view_type: str, flags: pd.DataFrame) -> pd.DataFrame:
    """
    One line per display row, one cell per period column.

    Cells hold a status mark per covering assignment; over-allocated employee
    columns are prefixed with a warning sign.
    """
    headers = [column_header(period, c) for c in period.columns]
    lines = []

    for row in rows.itertuples(index=False):
        cells = {}
        drawn = row_assignments(assignments, view_type, row.id)
        for column, header in zip(period.columns, headers):
            marks = "".join(
                STATUS_MARKS.get(status.get(a["id"]), "■")
                for a in drawn.to_dict("records")
                if covers_column(a, period, column)
            )
            over = (
                view_type == "employee"
                and row.id in flags.index
                and bool(flags.loc[row.id, column])
            )
            cells[header] = f"⚠ {marks}" if over else marks
        lines.append({"_id": row.id, "Name": row.name, **cells})

    return pd.DataFrame(lines, columns=["_id", "Name"] + headers)


def _day(value):
    return pd.Timestamp(value).normalize() if value is not None else None


def _date_or_none(value):
    return value.date() if pd.notna(value) else None


def add_assignment_form(snap):
    """Create an assignment from employee, project and an inclusive date range."""
    employees = record_options(snap.employees)
    projects = record_options(snap.projects)
    if not employees or not projects:
        st.info("Add at least one employee and one project before assigning.")
        return

    with st.form("add_assignment", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            employee_id = st.selectbox("Employee", options=list(employees), format_func=employees.get)
            start = st.date_input("Start", value=today_anchor().date())
            non_bill = st.checkbox("Non-billable", value=False)
        with col2:
            project_id = st.selectbox("Project", options=list(projects), format_func=projects.get)
            end = st.date_input("End", value=today_anchor().date())
            task = st.text_input("Task", value="")
        submitted = st.form_submit_button("Add assignment", type="primary")

    if submitted:
        try:
            get_store().add_assignment(employee_id, project_id, _day(start), _day(end),
                                       non_bill=non_bill, task=task)
        except StoreError as e:
            st.error(str(e))
        else:
            st.rerun()


def edit_assignment_form(snap):
    """Change any field of one existing assignment."""
    options = assignment_options(snap.assignments, snap.employees, snap.projects)
    if not options:
        st.info("No assignments to edit.")
        return

    assignment_id = st.selectbox("Assignment", options=list(options), format_func=options.get)
    current = snap.assignments.set_index("id").loc[assignment_id]
    employees = record_options(snap.employees)
    projects = record_options(snap.projects)
    employee_ids = list(employees)
    project_ids = list(projects)

    # Form key carries the id so defaults reload when another assignment is picked
    with st.form(f"edit_assignment_{assignment_id}"):
        col1, col2 = st.columns(2)
        with col1:
            employee_id = st.selectbox(
                "Employee", options=employee_ids, format_func=employees.get,
                index=employee_ids.index(current["employee_id"]) if current["employee_id"] in employees else 0,
            )
            start = st.date_input("Start", value=_date_or_none(current["start_date"]))
            non_bill = st.checkbox("Non-billable", value=bool(current["non_bill"]))
        with col2:
            project_id = st.selectbox(
                "Project", options=project_ids, format_func=projects.get,
                index=project_ids.index(current["project_id"]) if current["project_id"] in projects else 0,
            )
            end = st.date_input("End", value=_date_or_none(current["end_date"]))
            task = st.text_input("Task", value=current["task"] if isinstance(current.get("task"), str) else "")
        submitted = st.form_submit_button("Save changes", type="primary")

    if submitted:
        try:
            get_store().update_assignment(
                assignment_id,
                employee_id=employee_id,
                project_id=project_id,
                start_date=_day(start),
                end_date=_day(end),
                non_bill=non_bill,
                task=task,
            )
        except StoreError as e:
            st.error(str(e))
        else:
            st.rerun()


def main():
    st.title("Resource Timeline")

    with st.sidebar:
        st.button("Reset view", on_click=reset_state, key="reset_view")

    snap = get_snapshot()

    # =========================================================================
    # PERIOD CONTROLS
    # =========================================================================
    col1, col2, col3, col4, col5 = st.columns([2, 1, 1, 1, 2])

    with col1:
        mode = st.radio(
            "View",
            options=list(VIEW_MODES),
            index=list(VIEW_MODES).index(get_state("view_mode")),
            format_func=str.title,
            horizontal=True,
        )
        if mode != get_state("view_mode"):
            set_view_mode(mode)

    with col2:
        st.button("◀ Prev", on_click=go_prev, use_container_width=True)
    with col3:
        st.button("Today", on_click=go_today, use_container_width=True)
    with col4:
        st.button("Next ▶", on_click=go_next, use_container_width=True)

    with col5:
        view_type = st.radio(
            "Group by",
            options=["employee", "project"],
            index=0 if get_state("view_type") == "employee" else 1,
            format_func=str.title,
            horizontal=True,
        )
        set_state("view_type", view_type)

    period = get_period()
    st.subheader(period_label(period))
    st.caption(fmt_date_range(period.start, period.end))

    # =========================================================================
    # DATA FOR PERIOD
    # =========================================================================
    visible = filter_by_period(snap.assignments, period)
    rows = display_rows(view_type, snap.employees, snap.projects)

    if len(rows) == 0:
        empty_state("No employees or projects yet.")
        return

    status = assignment_status(visible, snap.projects)
    daily_map = build_daily_allocation_map(visible, period)
    flags = overallocated_columns(daily_map, period)

    key = "employee_id" if view_type == "employee" else "project_id"
    totals = row_totals(visible, period, key=key)

    # =========================================================================
    # GRID
    # =========================================================================
    st.markdown("### Assignments")
    st.caption("■ Billable · □ Non-billable · ▒ Tentative · ⚠ Over-allocated · * Today")

    grid = build_grid(rows, visible, status, period, view_type, flags)
    if len(totals) > 0:
        grid = grid.merge(
            totals[[key, "billable_mm", "non_billable_mm"]].rename(columns={key: "_id"}),
            on="_id",
            how="left",
        )
        grid["Billable MM"] = grid.pop("billable_mm").map(fmt_mm)
        grid["Non-bill MM"] = grid.pop("non_billable_mm").map(fmt_mm)

    grid = grid.drop(columns=["_id"])

    st.dataframe(grid, use_container_width=True, hide_index=True)

    # =========================================================================
    # ADD / EDIT
    # =========================================================================
    add_tab, edit_tab = st.tabs(["Add assignment", "Edit assignment"])
    with add_tab:
        add_assignment_form(snap)
    with edit_tab:
        edit_assignment_form(snap)

    if len(visible) == 0:
        st.info("No assignments in this period.")
        return

    # =========================================================================
    # TIMELINE CHART
    # =========================================================================
    plot_df = visible.merge(
        snap.employees[["id", "name"]].rename(columns={"id": "employee_id", "name": "employee_name"}),
        on="employee_id",
        how="left",
    ).merge(
        snap.projects[["id", "name"]].rename(columns={"id": "project_id", "name": "project_name"}),
        on="project_id",
        how="left",
    )
    plot_df["status"] = plot_df["id"].map(status)

    row_col, label_col = (
        ("employee_name", "project_name") if view_type == "employee" else ("project_name", "employee_name")
    )
    drawable = plot_df.dropna(subset=[row_col])
    if len(drawable) > 0:
        fig = assignment_timeline(
            drawable,
            row_col=row_col,
            label_col=label_col,
            period_start=period.start,
            period_end=period.end,
        )
        st.plotly_chart(fig, use_container_width=True)

    # =========================================================================
    # OVER-ALLOCATION
    # =========================================================================
    st.markdown("### Over-allocation")

    over = overallocated_days(daily_map)
    if len(over) == 0:
        st.success("No employee is over-allocated in this period.")
    else:
        names = snap.employees.set_index("id")["name"]
        over_summary = over.groupby("employee_id").agg(
            days=("day", "count"),
            first_day=("day", "min"),
            last_day=("day", "max"),
        ).reset_index()
        over_summary.insert(0, "employee", over_summary["employee_id"].map(names))
        st.warning(f"{len(over_summary)} employee(s) over-allocated on {len(over)} employee-day(s).")
        st.dataframe(
            format_metric_df(over_summary.drop(columns=["employee_id"]).rename(
                columns={"first_day": "start_date", "last_day": "end_date"}
            )),
            use_container_width=True,
            hide_index=True,
        )

    if period.mode != "year":
        matrix = daily_allocation_matrix(daily_map, period)
        if len(matrix) > 0:
            fig = allocation_heatmap(matrix, names=snap.employees.set_index("id")["name"])
            st.plotly_chart(fig, use_container_width=True)

    # =========================================================================
    # BULK DELETE
    # =========================================================================
    st.markdown("### Manage Assignments")

    table = plot_df[["id", "employee_name", "project_name", "start_date", "end_date", "status"]].copy()
    checked = get_state("checked_assignments")
    table.insert(0, "delete", table["id"].isin(checked))

    edited = st.data_editor(
        format_metric_df(table),
        use_container_width=True,
        hide_index=True,
        disabled=["id", "employee_name", "project_name", "start_date", "end_date", "status"],
        column_config={"delete": st.column_config.CheckboxColumn("Delete", default=False)},
        key="assignment_editor",
    )
    selected = set(edited.loc[edited["delete"], "id"])
    set_state("checked_assignments", selected)

    col1, col2 = st.columns([1, 4])
    with col1:
        if st.button(f"Delete {len(selected)} selected", disabled=not selected, type="primary"):
            removed = get_store().delete_assignments(selected)
            set_state("checked_assignments", set())
            st.success(f"Deleted {removed} assignment(s).")
            st.rerun()
    with col2:
        download_button(format_metric_df(table.drop(columns=["delete"])),
                        filename=f"assignments_{period.mode}_{period.start:%Y%m%d}.csv",
                        key="download_assignments")


if __name__ == "__main__":
    main()
