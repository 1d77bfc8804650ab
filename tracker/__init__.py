"""
ISS Tracker: live position of the International Space Station

- TelemetryFetcher: one GET to api.wheretheiss.at per call -> TelemetrySample
- MapView: OSM tile layer + ISS marker, rendered with pydeck
- DisplaySink: latitude/longitude/velocity/altitude text slots
- UpdateLoop: fetch -> marker/display update, recenters once on first fix
- PeriodicTask: fixed-interval scheduler with a cancel handle

Entry points:
    python -m tracker.server           # web page + JSON API
    python -m tracker.service          # headless poller
    streamlit run dashboard/app.py     # dashboard
"""
from .fetcher import FetchError, TelemetryFetcher
from .loop import UpdateLoop, build_tracker
from .scheduler import PeriodicTask

__all__ = ["FetchError", "TelemetryFetcher", "UpdateLoop", "build_tracker", "PeriodicTask"]
