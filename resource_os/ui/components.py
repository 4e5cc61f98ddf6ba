"""
Reusable UI components and blocks.
"""
import streamlit as st
import pandas as pd
from typing import Optional, List, Dict, Any

from resource_os.config import CATEGORY_LABELS, config
from resource_os.metrics.utilisation import DrillDownGroup, UtilisationSnapshot
from resource_os.ui.formatting import fmt_mm, fmt_percent, fmt_count


def kpi_strip(metrics: Dict[str, Any],
              format_map: Optional[Dict[str, str]] = None):
    """
    Render horizontal strip of KPI cards.

    Args:
        metrics: Dict of {label: value}
        format_map: Dict of {label: format_type} where format_type is
                    'mm', 'percent', 'count' or 'text'
    """
    if format_map is None:
        format_map = {}

    cols = st.columns(len(metrics))

    formatters = {
        "mm": fmt_mm,
        "percent": fmt_percent,
        "count": fmt_count,
        "text": lambda x: str(x) if pd.notna(x) else "—",
    }

    for i, (label, value) in enumerate(metrics.items()):
        with cols[i]:
            fmt_type = format_map.get(label, "mm")
            formatter = formatters.get(fmt_type, str)
            st.metric(label=label, value=formatter(value))


def utilisation_headline(snapshot: UtilisationSnapshot):
    """Total utilisation with the per-category breakdown underneath."""
    st.markdown(f"**TOTAL {fmt_percent(snapshot.total_pct)}** · {snapshot.year}")
    st.caption(
        f"{fmt_percent(snapshot.billable_pct)} Billable "
        f"+{fmt_percent(snapshot.non_billable_pct)} Non-bill "
        f"+{fmt_percent(snapshot.tentative_pct)} Tentative · "
        f"Capacity {fmt_mm(snapshot.capacity)} MM "
        f"({fmt_count(snapshot.billable_employees)} billable staff)"
    )


def drill_down_panel(category: str, groups: List[DrillDownGroup]):
    """Assignments behind one utilisation category, one block per project."""
    st.markdown(f"#### {CATEGORY_LABELS.get(category, category)}")

    if not groups:
        st.info("No data")
        return

    for group in groups:
        with st.container(border=True):
            st.markdown(f"**{group.project_name}** · {fmt_mm(group.total_mm)} MM")
            rows = pd.DataFrame([
                {"Employee": item.employee_name, "MM": fmt_mm(item.mm), "Period": item.period}
                for item in group.items
            ])
            st.dataframe(rows, use_container_width=True, hide_index=True)


def project_chips(title: str, names: List[str]):
    """Inline list of project names with a count."""
    st.markdown(f"**{title}** `{len(names)}`")
    st.caption(", ".join(names) if names else "None")


def empty_state(message: str, icon: str = "📭"):
    """Centred placeholder for a page with nothing to draw."""
    _, middle, _ = st.columns([1, 2, 1])
    with middle:
        st.markdown(f"### {icon}")
        st.markdown(f"**{message}**")
        st.caption(f"Add records to the files in `{config.data_dir}` and reload.")


def download_button(df: pd.DataFrame,
                    filename: str,
                    label: str = "Download CSV",
                    key: str = "download"):
    """
    Render download button for dataframe.
    """
    csv = df.to_csv(index=False)
    st.download_button(
        label=label,
        data=csv,
        file_name=filename,
        mime="text/csv",
        key=key
    )
