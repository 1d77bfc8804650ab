from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from common.config import update_interval_s
from common.types import TelemetrySample
from common.utils import iso_now_ms
from tracker.display import SLOTS, DisplaySink, format_sample
from tracker.fetcher import FetchError, TelemetryFetcher
from tracker.map_view import IconResolution, MapView, resolve_icon
from tracker.scheduler import PeriodicTask


log = logging.getLogger(__name__)


class UpdateLoop:
    """
    Controller owning the tracker state.

    Each `tick()` fetches one sample and pushes it into the map view and
    the display sink. The first successful sample also recenters the map;
    later samples only move the marker. Fetch failures put `error_token`
    in every display slot and leave the map untouched.

    Overlap policy is skip-if-busy: a tick entered while another is still
    running returns None without fetching.
    """

    def __init__(
        self,
        fetcher: TelemetryFetcher,
        map_view: MapView,
        display: DisplaySink,
        *,
        zoom_level: int = 3,
        error_token: str = "Error",
    ):
        self.fetcher = fetcher
        self.map_view = map_view
        self.display = display
        self.zoom_level = zoom_level
        self.error_token = error_token
        self.first_load = True
        self.icon_resolution: Optional[IconResolution] = None

        self.ticks = 0
        self.successes = 0
        self.failures = 0
        self.skipped = 0
        self.last_error: Optional[str] = None
        self.last_success: Optional[str] = None
        self.last_sample: Optional[TelemetrySample] = None

        self._busy = threading.Lock()
        self._skip_lock = threading.Lock()

    def tick(self) -> Optional[bool]:
        """Run one update. True on success, False on fetch failure, None if skipped."""
        if not self._busy.acquire(blocking=False):
            with self._skip_lock:
                self.skipped += 1
            log.warning("Update already in progress; skipping tick")
            return None
        try:
            self.ticks += 1
            try:
                sample = self.fetcher.fetch()
            except FetchError as e:
                self._apply_failure(e)
                return False
            self._apply_sample(sample)
            return True
        finally:
            self._busy.release()

    def _apply_sample(self, sample: TelemetrySample) -> None:
        self.map_view.set_marker_position(sample.latitude, sample.longitude)
        if self.first_load:
            self.map_view.recenter(sample.latitude, sample.longitude, self.zoom_level)
            self.first_load = False
        for slot, text in format_sample(sample).items():
            self.display.write(slot, text)
        self.successes += 1
        self.last_sample = sample
        self.last_success = iso_now_ms()

    def _apply_failure(self, err: FetchError) -> None:
        for slot in SLOTS:
            self.display.write(slot, self.error_token)
        self.failures += 1
        self.last_error = str(err)
        log.error(
            "Error fetching ISS data: %s",
            err,
            extra={"extra": {"error_type": type(err).__name__, "failures": self.failures}},
        )

    def start(self, interval_s: float) -> PeriodicTask:
        """Schedule `tick` now and every `interval_s`; returns the cancel handle."""
        return PeriodicTask(self.tick, interval_s, name="iss-update-loop").start()

    def stats(self) -> Dict[str, Any]:
        return {
            "ticks": self.ticks,
            "successes": self.successes,
            "failures": self.failures,
            "skipped": self.skipped,
            "last_error": self.last_error,
            "last_success": self.last_success,
            "centered": not self.first_load,
        }


def build_tracker(cfg: Dict[str, Any], fetcher: Optional[TelemetryFetcher] = None) -> UpdateLoop:
    """
    Wire map view, display sink and fetcher from a config dict
    (see common.config.DEFAULTS).
    """
    tcfg = cfg["telemetry"]
    mcfg = cfg["map"]
    kcfg = cfg["marker"]
    dcfg = cfg["display"]

    # validate before any network activity
    update_interval_s(cfg)

    map_view = MapView(
        tile_url=mcfg["tile_url"],
        attribution=mcfg.get("attribution", ""),
        subdomains=mcfg.get("subdomains", "abc"),
    )
    center = mcfg.get("initial_center") or [0.0, 0.0]
    map_view.initialize((float(center[0]), float(center[1])), mcfg["zoom"])

    icon = resolve_icon(kcfg.get("icon_path"), kcfg.get("icon_size", (50, 32)), kcfg.get("icon_anchor", (25, 16)))
    map_view.create_marker((0.0, 0.0), icon.icon, popup=kcfg.get("popup", ""))

    if fetcher is None:
        fetcher = TelemetryFetcher(url=tcfg["url"], timeout=tcfg.get("timeout_s"))

    loop = UpdateLoop(
        fetcher,
        map_view,
        DisplaySink(placeholder=dcfg.get("placeholder", "--")),
        zoom_level=int(mcfg["zoom"]),
        error_token=dcfg.get("error_token", "Error"),
    )
    loop.icon_resolution = icon
    return loop
