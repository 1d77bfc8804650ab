"""
Map surface for the tracker: OSM base tiles plus one ISS marker, rendered
with pydeck.

The view keeps its own state (marker position, viewport, centered flag)
and builds a fresh `pdk.Deck` on every `to_deck()` call, so renderers
(web page, Streamlit) always draw the latest state.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Sequence

import pydeck as pdk

from common.types import LatLon, MarkerIcon, ViewState


log = logging.getLogger(__name__)

MIN_ZOOM = 1
MAX_ZOOM = 19  # OSM standard tiles

# Leaflet's stock marker, used whenever the custom icon cannot be loaded
DEFAULT_ICON = MarkerIcon(
    url="https://unpkg.com/leaflet@1.9.4/dist/images/marker-icon.png",
    width=25,
    height=41,
    anchor_x=12,
    anchor_y=41,
)


@dataclass(frozen=True)
class IconResolution:
    icon: MarkerIcon
    custom: bool
    reason: Optional[str] = None


def resolve_icon(
    path: Optional[str],
    size: Sequence[int] = (50, 32),
    anchor: Sequence[int] = (25, 16),
) -> IconResolution:
    """
    Load a local image as the marker icon, or fall back to DEFAULT_ICON.

    Never raises: a missing, unreadable or empty file produces a default
    resolution with `reason` set and a warning in the log.
    """
    if not path:
        return IconResolution(icon=DEFAULT_ICON, custom=False, reason="no icon configured")

    p = Path(path)
    try:
        raw = p.read_bytes()
    except OSError as e:
        log.warning("ISS icon %s not found or unreadable (%s); using default marker", p, e)
        return IconResolution(icon=DEFAULT_ICON, custom=False, reason=str(e))
    if not raw:
        log.warning("ISS icon %s is empty; using default marker", p)
        return IconResolution(icon=DEFAULT_ICON, custom=False, reason="empty icon file")

    mime = mimetypes.guess_type(p.name)[0] or "image/png"
    url = f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"
    w, h = int(size[0]), int(size[1])
    ax, ay = int(anchor[0]), int(anchor[1])
    return IconResolution(icon=MarkerIcon(url=url, width=w, height=h, anchor_x=ax, anchor_y=ay), custom=True)


def expand_tile_urls(template: str, subdomains: str = "abc") -> List[str]:
    """
    Expand the Leaflet-style `{s}` placeholder over the subdomains.
    `{z}/{x}/{y}` are left for the tile renderer.
    """
    if "{s}" not in template:
        return [template]
    return [template.replace("{s}", s) for s in (subdomains or "a")]


class MapView:
    def __init__(self, tile_url: str, attribution: str = "", subdomains: str = "abc"):
        self.tile_urls = expand_tile_urls(tile_url, subdomains)
        self.attribution = attribution
        self._lock = threading.Lock()
        self._state = ViewState()
        self._icon: Optional[MarkerIcon] = None
        self._popup = ""
        self._initialized = False

    # ----------------------------
    # Surface setup
    # ----------------------------
    def initialize(self, initial_center: LatLon, zoom_level: int) -> None:
        """Center the surface and attach the base tile layer."""
        zoom = _check_zoom(zoom_level)
        with self._lock:
            self._state.center = (float(initial_center[0]), float(initial_center[1]))
            self._state.zoom = zoom
            self._initialized = True
        log.info("Map initialized at %s zoom %d (%d tile hosts)", initial_center, zoom, len(self.tile_urls))

    def create_marker(self, position: LatLon, icon: MarkerIcon, popup: str = "") -> None:
        with self._lock:
            self._state.marker_position = (float(position[0]), float(position[1]))
            self._icon = icon
            self._popup = popup

    # ----------------------------
    # Mutations driven by the update loop
    # ----------------------------
    def set_marker_position(self, lat: float, lon: float) -> None:
        # no range validation here
        with self._lock:
            self._state.marker_position = (lat, lon)

    def recenter(self, lat: float, lon: float, zoom_level: int) -> None:
        zoom = _check_zoom(zoom_level)
        with self._lock:
            self._state.center = (lat, lon)
            self._state.zoom = zoom
            self._state.centered = True
        log.info("Map recentered on ISS at (%.4f, %.4f)", lat, lon)

    # ----------------------------
    # Read side
    # ----------------------------
    @property
    def icon(self) -> Optional[MarkerIcon]:
        return self._icon

    @property
    def popup(self) -> str:
        return self._popup

    def snapshot(self) -> ViewState:
        with self._lock:
            return replace(self._state)

    def to_deck(self, height: int = 500) -> pdk.Deck:
        """Build a pydeck Deck for the current state."""
        if not self._initialized:
            raise RuntimeError("MapView.initialize() must be called before rendering")
        state = self.snapshot()
        lat, lon = state.marker_position
        layers = [
            pdk.Layer(
                "TileLayer",
                id="base-tiles",
                data=self.tile_urls,
                min_zoom=0,
                max_zoom=MAX_ZOOM,
                tile_size=256,
            )
        ]
        if self._icon is not None:
            layers.append(
                pdk.Layer(
                    "IconLayer",
                    id="iss-marker",
                    data=[{"position": [lon, lat], "icon_data": self._icon.to_icon_data()}],
                    get_icon="icon_data",
                    get_position="position",
                    get_size=self._icon.height,
                    size_units="pixels",
                    pickable=True,
                )
            )
        return pdk.Deck(
            map_style=None,
            initial_view_state=pdk.ViewState(
                latitude=state.center[0],
                longitude=state.center[1],
                zoom=state.zoom,
                pitch=0,
                bearing=0,
            ),
            layers=layers,
            tooltip={"html": self._popup} if self._popup else False,
            description=self.attribution or None,
            height=height,
        )


def _check_zoom(zoom_level: int) -> int:
    if isinstance(zoom_level, bool) or int(zoom_level) != zoom_level:
        raise ValueError(f"zoom level must be an integer, got {zoom_level!r}")
    z = int(zoom_level)
    if not MIN_ZOOM <= z <= MAX_ZOOM:
        raise ValueError(f"zoom level must be in [{MIN_ZOOM}, {MAX_ZOOM}], got {z}")
    return z
