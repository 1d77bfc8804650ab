"""
ISS telemetry client.

Usage:
    fetcher = TelemetryFetcher()  # defaults to api.wheretheiss.at, NORAD 25544
    try:
        sample = fetcher.fetch()
    except FetchError as e:
        ...

One GET per call, no retry. Every failure mode surfaces as a FetchError
subclass so callers only need a single except clause.
"""

from __future__ import annotations

import math
import logging
from typing import Any, Dict, Optional

import requests

from common.types import TelemetrySample


log = logging.getLogger(__name__)

ISS_API_URL = "https://api.wheretheiss.at/v1/satellites/25544"
REQUIRED_FIELDS = ("latitude", "longitude", "velocity", "altitude")


class FetchError(RuntimeError):
    """Base class for every telemetry fetch failure."""


class FetchStatusError(FetchError):
    """Endpoint answered with a non-success HTTP status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = int(status_code)
        self.reason = reason or ""
        super().__init__(f"API error: {self.status_code} {self.reason}".rstrip())


class FetchNetworkError(FetchError):
    """Connection refused, timeout, DNS failure, ..."""


class FetchPayloadError(FetchError):
    """Body is not JSON or lacks the required numeric fields."""


def _numeric(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise FetchPayloadError(f"missing field '{key}'")
    v = payload[key]
    # bool is an int subclass; strings are not coerced
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise FetchPayloadError(f"field '{key}' is not numeric: {v!r}")
    try:
        v = float(v)
    except OverflowError as e:
        raise FetchPayloadError(f"field '{key}' is out of float range") from e
    if not math.isfinite(v):
        raise FetchPayloadError(f"field '{key}' is not finite: {v!r}")
    return v


def parse_sample(payload: Any) -> TelemetrySample:
    """Decode a wheretheiss.at satellite object into a TelemetrySample."""
    if not isinstance(payload, dict):
        raise FetchPayloadError(f"expected a JSON object, got {type(payload).__name__}")
    values = {k: _numeric(payload, k) for k in REQUIRED_FIELDS}
    ts = payload.get("timestamp")
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        ts = None
    return TelemetrySample(timestamp=None if ts is None else float(ts), **values)


class TelemetryFetcher:
    def __init__(
        self,
        url: str = ISS_API_URL,
        timeout: Optional[float] = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Params:
            url: telemetry endpoint returning a JSON object
            timeout: request timeout in seconds (None waits indefinitely)
            session: optional requests.Session for connection reuse
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self) -> TelemetrySample:
        """
        Perform one GET and decode the body.

        Raises:
            FetchStatusError: non-2xx response
            FetchNetworkError: transport-level failure
            FetchPayloadError: malformed body or missing/non-numeric field
        """
        try:
            r = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchNetworkError(f"request to {self.url} failed: {e}") from e

        if not 200 <= r.status_code < 300:
            raise FetchStatusError(r.status_code, r.reason)

        try:
            payload = r.json()
        except ValueError as e:
            raise FetchPayloadError(f"response is not valid JSON: {e}") from e

        sample = parse_sample(payload)
        log.debug("ISS sample lat=%.4f lon=%.4f", sample.latitude, sample.longitude)
        return sample

    def close(self) -> None:
        self.session.close()
