"""
Session state management for Streamlit app.
"""
import streamlit as st
from typing import Any, Dict

from resource_os.data.store import ResourceStore, Snapshot
from resource_os.engine.periods import Period, resolve_period, shift_anchor, today_anchor


# =============================================================================
# STATE KEYS
# =============================================================================

STATE_KEYS = {
    # Timeline view
    "view_mode": "view_mode",  # week | month | year
    "anchor_date": "anchor_date",
    "view_type": "view_type",  # project | employee

    # Utilisation
    "utilisation_year": "utilisation_year",
    "drill_category": "drill_category",  # billable | non_billable | tentative

    # Assignment selection
    "checked_assignments": "checked_assignments",
}


# =============================================================================
# DEFAULT VALUES
# =============================================================================

def _defaults() -> Dict[str, Any]:
    today = today_anchor()
    return {
        "view_mode": "year",
        "anchor_date": today,
        "view_type": "employee",
        "utilisation_year": today.year,
        "drill_category": None,
        "checked_assignments": set(),
    }


# =============================================================================
# STATE HELPERS
# =============================================================================

def init_state():
    """Initialize all session state keys with defaults."""
    for key, default in _defaults().items():
        if key not in st.session_state:
            st.session_state[key] = default


def get_state(key: str) -> Any:
    """Get state value with default fallback."""
    init_state()
    return st.session_state.get(key, _defaults().get(key))


def set_state(key: str, value: Any):
    """Set state value."""
    st.session_state[key] = value


def reset_state():
    """Reset all state to defaults."""
    for key, default in _defaults().items():
        st.session_state[key] = default


# =============================================================================
# PERIOD NAVIGATION
# =============================================================================

def get_period() -> Period:
    """Period for the current view mode and anchor."""
    return resolve_period(get_state("view_mode"), get_state("anchor_date"))


def set_view_mode(mode: str):
    """Change mode, keeping the anchor."""
    set_state("view_mode", mode)


def go_prev():
    """Move back one unit of the current view mode."""
    set_state("anchor_date", shift_anchor(get_state("view_mode"), get_state("anchor_date"), -1))


def go_next():
    """Move forward one unit of the current view mode."""
    set_state("anchor_date", shift_anchor(get_state("view_mode"), get_state("anchor_date"), 1))


def go_today():
    """Reset the anchor to today without changing mode."""
    set_state("anchor_date", today_anchor())


# =============================================================================
# DRILL-DOWN
# =============================================================================

def open_drill(category: str):
    set_state("drill_category", category)


def close_drill():
    set_state("drill_category", None)


# =============================================================================
# DATA ACCESS
# =============================================================================

@st.cache_resource
def get_store() -> ResourceStore:
    """Process-wide store seeded from the data directory."""
    return ResourceStore.from_data_dir()


def get_snapshot() -> Snapshot:
    """Latest full snapshot; every page recomputes from this on each run."""
    return get_store().snapshot()
