"""
Utilisation Page

Billable, non-billable and tentative person-months for a year against
billable capacity, with drill-down to the assignments behind each number.
"""
import streamlit as st
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.ui.state import init_state, get_state, set_state, open_drill, close_drill, get_snapshot
from resource_os.ui.formatting import format_metric_df
from resource_os.ui.charts import utilisation_bar, employee_utilisation_bar
from resource_os.ui.components import kpi_strip, utilisation_headline, drill_down_panel, download_button
from resource_os.metrics.utilisation import (
    compute_utilisation, compute_employee_utilisation, drill_down, drill_down_frame,
)
from resource_os.engine.periods import today_anchor
from resource_os.config import CATEGORY_LABELS, UTILISATION_CATEGORIES
from resource_os.logging import configure_logging


st.set_page_config(page_title="Utilisation", page_icon="📊", layout="wide")

configure_logging()
init_state()


def main():
    st.title("Utilisation")

    snap = get_snapshot()

    # =========================================================================
    # YEAR SELECTOR
    # =========================================================================
    current_year = today_anchor().year
    years = list(range(current_year - 5, current_year + 3))
    selected = get_state("utilisation_year")
    if selected not in years:
        years = sorted(set(years) | {selected})

    year = st.selectbox("Year", options=years, index=years.index(selected), key="utilisation_year_selector")
    if year != selected:
        set_state("utilisation_year", year)
        close_drill()

    # =========================================================================
    # HEADLINE
    # =========================================================================
    snapshot = compute_utilisation(snap.employees, snap.projects, snap.assignments, year)

    if snapshot.billable_employees == 0:
        st.info("No billable employees: capacity is 0 and every percentage reads 0%.")

    utilisation_headline(snapshot)

    kpi_strip(
        {
            "Capacity (MM)": snapshot.capacity,
            "Billable (MM)": snapshot.billable_mm,
            "Non-Billable (MM)": snapshot.non_billable_mm,
            "Tentative (MM)": snapshot.tentative_mm,
            "Total": snapshot.total_pct,
        },
        format_map={"Total": "percent"},
    )

    fig = utilisation_bar(snapshot.billable_pct, snapshot.non_billable_pct, snapshot.tentative_pct)
    st.plotly_chart(fig, use_container_width=True)

    # =========================================================================
    # DRILL-DOWN
    # =========================================================================
    st.markdown("### Drill-down")

    cols = st.columns(len(UTILISATION_CATEGORIES) + 1)
    for col, category in zip(cols, UTILISATION_CATEGORIES):
        with col:
            st.button(
                CATEGORY_LABELS[category],
                on_click=open_drill,
                args=(category,),
                use_container_width=True,
                key=f"drill_{category}",
            )
    with cols[-1]:
        st.button("Close", on_click=close_drill, use_container_width=True, key="drill_close")

    category = get_state("drill_category")
    if category:
        groups = drill_down(category, snap.employees, snap.projects, snap.assignments, year)
        drill_down_panel(category, groups)
        if groups:
            download_button(
                format_metric_df(drill_down_frame(groups)),
                filename=f"utilisation_{year}_{category}.csv",
                key="download_drill",
            )

    # =========================================================================
    # BY EMPLOYEE
    # =========================================================================
    st.markdown("---")
    st.markdown("### By Employee")

    per_employee = compute_employee_utilisation(snap.employees, snap.projects, snap.assignments, year)
    if len(per_employee) == 0:
        st.info(f"No classified assignments in {year}.")
        return

    fig = employee_utilisation_bar(per_employee, title=f"MM by category, {year}")
    st.plotly_chart(fig, use_container_width=True)

    st.dataframe(
        format_metric_df(per_employee.drop(columns=["employee_id"])),
        use_container_width=True,
        hide_index=True,
    )


if __name__ == "__main__":
    main()
