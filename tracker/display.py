from __future__ import annotations

import threading
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Dict

from common.types import TelemetrySample


SLOTS = ("latitude", "longitude", "velocity", "altitude")

# Element ids used by the HTML page for each slot
SLOT_ELEMENT_IDS = {"latitude": "lat", "longitude": "lon", "velocity": "vel", "altitude": "alt"}

SLOT_LABELS = {
    "latitude": "Latitude",
    "longitude": "Longitude",
    "velocity": "Velocity (km/h)",
    "altitude": "Altitude (km)",
}


def to_fixed(x: float, digits: int) -> str:
    """
    Fixed-point text with ties rounded away from zero (JS `toFixed` rounding).
    Exact -0.0 prints as positive zero.
    """
    if x == 0:
        x = 0.0
    # wide enough for any finite float plus the requested digits
    ctx = Context(prec=400)
    return str(Decimal(x).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP, context=ctx))


def format_sample(sample: TelemetrySample) -> Dict[str, str]:
    """Slot texts for a sample: 4 decimals for lat/lon, 2 for velocity/altitude."""
    return {
        "latitude": to_fixed(sample.latitude, 4),
        "longitude": to_fixed(sample.longitude, 4),
        "velocity": to_fixed(sample.velocity, 2),
        "altitude": to_fixed(sample.altitude, 2),
    }


class DisplaySink:
    """
    Four named text slots. `write` overwrites unconditionally; the sink
    does no formatting of its own.
    """

    def __init__(self, placeholder: str = "--"):
        self._lock = threading.Lock()
        self._slots: Dict[str, str] = {s: placeholder for s in SLOTS}

    def write(self, slot: str, text: str) -> None:
        if slot not in self._slots:
            raise KeyError(f"unknown display slot: {slot!r}")
        with self._lock:
            self._slots[slot] = text

    def read(self, slot: str) -> str:
        with self._lock:
            return self._slots[slot]

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._slots)
