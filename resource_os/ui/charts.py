"""
Standard chart wrappers using Plotly.
"""
import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import Optional

from resource_os.config import CATEGORY_LABELS


# =============================================================================
# CHART THEME
# =============================================================================

CHART_COLORS = {
    "primary": "#1f77b4",
    "billable": "#3b82f6",
    "non_billable": "#fdba74",
    "tentative": "#9ca3af",
    "danger": "#dc3545",
    "neutral": "#6c757d",
    "light": "#f8f9fa",
}

CHART_TEMPLATE = "plotly_white"

DEFAULT_LAYOUT = {
    "template": CHART_TEMPLATE,
    "font": {"family": "Arial, sans-serif", "size": 12},
    "margin": {"l": 50, "r": 30, "t": 40, "b": 50},
    "hoverlabel": {"bgcolor": "white"},
}


def apply_layout(fig: go.Figure, **kwargs) -> go.Figure:
    """Apply standard layout to figure."""
    layout = {**DEFAULT_LAYOUT, **kwargs}
    fig.update_layout(**layout)
    return fig


# =============================================================================
# UTILISATION
# =============================================================================

def utilisation_bar(billable_pct: float, non_billable_pct: float, tentative_pct: float,
                    title: str = "") -> go.Figure:
    """
    Single stacked bar of capacity use: billable, then non-billable, then tentative.
    """
    fig = go.Figure()

    for category, value in (
        ("billable", billable_pct),
        ("non_billable", non_billable_pct),
        ("tentative", tentative_pct),
    ):
        fig.add_trace(go.Bar(
            name=CATEGORY_LABELS[category],
            x=[value],
            y=["Utilisation"],
            orientation="h",
            marker_color=CHART_COLORS[category],
            customdata=[category],
            hovertemplate="%{x:.1f}%<extra>" + CATEGORY_LABELS[category] + "</extra>",
        ))

    fig.update_layout(
        barmode="stack",
        title=title,
        xaxis={"range": [0, max(100, billable_pct + non_billable_pct + tentative_pct)],
               "ticksuffix": "%"},
        yaxis={"visible": False},
        showlegend=True,
    )

    return apply_layout(fig, height=180)


def employee_utilisation_bar(df: pd.DataFrame, title: str = "") -> go.Figure:
    """
    Horizontal stacked bars of MM by category per employee.
    """
    fig = go.Figure()

    for category in ("billable", "non_billable", "tentative"):
        if category not in df.columns:
            continue
        fig.add_trace(go.Bar(
            name=CATEGORY_LABELS[category],
            x=df[category],
            y=df["employee_name"],
            orientation="h",
            marker_color=CHART_COLORS[category],
        ))

    fig.update_layout(
        barmode="stack",
        title=title,
        xaxis_title="MM",
        yaxis={"categoryorder": "total ascending"},
    )

    return apply_layout(fig, height=max(250, 28 * len(df) + 100))


# =============================================================================
# TIMELINE
# =============================================================================

def assignment_timeline(df: pd.DataFrame, row_col: str, label_col: str,
                        period_start, period_end,
                        title: str = "") -> go.Figure:
    """
    Gantt bars of assignments, coloured by status.

    df needs start_date, end_date, status and the row/label columns.
    """
    plot_df = df.copy()
    # px.timeline treats x_end as exclusive
    plot_df["bar_end"] = pd.to_datetime(plot_df["end_date"]) + pd.Timedelta(days=1)
    plot_df["status_label"] = plot_df["status"].map(CATEGORY_LABELS)

    fig = px.timeline(
        plot_df,
        x_start="start_date",
        x_end="bar_end",
        y=row_col,
        color="status_label",
        hover_name=label_col,
        hover_data={"start_date": True, "end_date": True, "bar_end": False, "status_label": False},
        color_discrete_map={CATEGORY_LABELS[k]: CHART_COLORS[k] for k in CATEGORY_LABELS},
        title=title,
    )
    fig.update_yaxes(autorange="reversed", title="")
    fig.update_xaxes(range=[pd.Timestamp(period_start), pd.Timestamp(period_end)])
    fig.update_layout(legend_title_text="")

    return apply_layout(fig, height=max(250, 30 * plot_df[row_col].nunique() + 120))


def allocation_heatmap(matrix: pd.DataFrame, names: Optional[pd.Series] = None,
                       title: str = "Daily Allocation (MM per day)") -> go.Figure:
    """
    Employee x day heatmap of daily allocation share of a full-time day.

    Values are scaled so 1.0 means fully allocated; cells above 1.0 are
    over-allocated.
    """
    y = matrix.index if names is None else matrix.index.map(lambda i: names.get(i, i))
    # Express each day's MM unit as a share of a full-time day
    share = matrix.mul(matrix.columns.days_in_month.to_numpy(), axis=1) if len(matrix.columns) else matrix

    fig = go.Figure(data=go.Heatmap(
        z=share.values,
        x=matrix.columns,
        y=y,
        zmin=0,
        zmax=2,
        colorscale=[[0, "#f8f9fa"], [0.5, CHART_COLORS["billable"]], [1, CHART_COLORS["danger"]]],
        hovertemplate="%{y}<br>%{x|%Y-%m-%d}<br>Load: %{z:.2f}<extra></extra>",
    ))

    fig.update_layout(
        title=title,
        xaxis_title="Day",
        yaxis_title="",
    )

    return apply_layout(fig, height=max(250, 26 * len(matrix) + 120))
