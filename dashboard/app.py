"""
ISS Tracker Dashboard (Streamlit)

- Polls the ISS telemetry endpoint on a background schedule
- Shows latitude / longitude / velocity / altitude as KPIs
- Renders a pydeck map with the ISS marker over OpenStreetMap tiles
- Re-renders every update interval; "Refresh now" forces a tick

Run:
    streamlit run dashboard/app.py
    ISS_TRACKER_CONFIG=my_params.yaml streamlit run dashboard/app.py
"""

from __future__ import annotations

from typing import Tuple

import streamlit as st

from common.config import config_path_from_env, load_config, update_interval_s
from common.logging_setup import setup_logging
from tracker.display import SLOTS, SLOT_LABELS
from tracker.loop import UpdateLoop, build_tracker
from tracker.scheduler import PeriodicTask


# Fixed for the life of the Streamlit server so only one poller ever runs
CONFIG_PATH = config_path_from_env()


@st.cache_resource
def _tracker() -> Tuple[UpdateLoop, PeriodicTask, float]:
    # One tracker + schedule per Streamlit server process
    P = load_config(CONFIG_PATH)
    setup_logging(P.get("logging", {}).get("level"))
    interval_s = update_interval_s(P)
    tracker = build_tracker(P)
    return tracker, tracker.start(interval_s), interval_s


# -------------------------
# UI
# -------------------------
st.set_page_config(page_title="ISS Tracker", layout="wide")
st.title("International Space Station (ISS)")

with st.sidebar:
    st.subheader("Source")
    st.caption(f"Config: `{CONFIG_PATH}`")
    tracker, handle, interval_s = _tracker()
    if st.button("Refresh now"):
        tracker.tick()
    st.caption(f"Updates every {interval_s:g} s.")


@st.fragment(run_every=interval_s)
def live_view() -> None:
    display = tracker.display.snapshot()
    cols = st.columns(len(SLOTS))
    for col, slot in zip(cols, SLOTS):
        col.metric(SLOT_LABELS[slot], display[slot])

    st.pydeck_chart(tracker.map_view.to_deck())

    stats = tracker.stats()
    st.caption(
        f"Ticks: {stats['ticks']} · OK: {stats['successes']} · Errors: {stats['failures']}"
        f" · Last fix: {stats['last_success'] or 'n/a'}"
        + ("" if handle.running else " · update loop stopped")
    )
    if stats["last_error"] and display[SLOTS[0]] == tracker.error_token:
        st.warning(f"Last fetch failed: {stats['last_error']}")


live_view()
