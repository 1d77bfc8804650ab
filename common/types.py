from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Optional, Tuple, Any, Dict


LatLon = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class TelemetrySample:
    """
    One decoded ISS telemetry reading.

    Attributes:
        latitude, longitude: WGS84 degrees.
        velocity: ground speed in km/h.
        altitude: altitude above the ellipsoid in km.
        timestamp: unix seconds reported by the endpoint (None if absent).
    """
    latitude: float
    longitude: float
    velocity: float
    altitude: float
    timestamp: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ViewState:
    """
    Mutable view of the map surface.

    `centered` flips to True once, on the first successful sample.
    `marker_position` is overwritten on every successful sample.
    """
    centered: bool = False
    marker_position: LatLon = (0.0, 0.0)
    center: LatLon = (0.0, 0.0)
    zoom: int = 3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "centered": self.centered,
            "marker": {"lat": self.marker_position[0], "lon": self.marker_position[1]},
            "center": {"lat": self.center[0], "lon": self.center[1]},
            "zoom": self.zoom,
        }


@dataclass(frozen=True, slots=True)
class MarkerIcon:
    """Icon handed to the map renderer (pixel size and anchor)."""
    url: str
    width: int
    height: int
    anchor_x: int
    anchor_y: int

    def to_icon_data(self) -> Dict[str, Any]:
        # deck.gl IconLayer icon descriptor
        return {
            "url": self.url,
            "width": self.width,
            "height": self.height,
            "anchorX": self.anchor_x,
            "anchorY": self.anchor_y,
        }
