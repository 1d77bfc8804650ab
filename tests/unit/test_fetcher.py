"""
Unit tests for the ISS telemetry fetcher
"""

import pytest
import os
import sys
from unittest.mock import Mock

import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import TelemetrySample
from tracker.fetcher import (
    ISS_API_URL,
    FetchError,
    FetchNetworkError,
    FetchPayloadError,
    FetchStatusError,
    TelemetryFetcher,
    parse_sample,
)

ISS_PAYLOAD = {
    "name": "iss",
    "id": 25544,
    "latitude": 51.50741,
    "longitude": -0.12,
    "altitude": 408.32,
    "velocity": 27600.4,
    "visibility": "daylight",
    "timestamp": 1697040000,
}


def _response(status_code=200, reason="OK", payload=None, json_error=None):
    r = Mock()
    r.status_code = status_code
    r.reason = reason
    if json_error is not None:
        r.json.side_effect = json_error
    else:
        r.json.return_value = payload
    return r


def _fetcher(response=None, error=None):
    session = Mock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return TelemetryFetcher(session=session), session


class TestParseSample:
    """Test cases for payload decoding"""

    def test_parse_full_payload(self):
        """Required fields and timestamp are decoded as floats"""
        s = parse_sample(ISS_PAYLOAD)
        assert s == TelemetrySample(
            latitude=51.50741, longitude=-0.12, velocity=27600.4, altitude=408.32, timestamp=1697040000.0
        )

    def test_integer_fields_accepted(self):
        s = parse_sample({"latitude": 0, "longitude": 10, "velocity": 27000, "altitude": 400})
        assert s.longitude == 10.0
        assert isinstance(s.longitude, float)
        assert s.timestamp is None

    @pytest.mark.parametrize("missing", ["latitude", "longitude", "velocity", "altitude"])
    def test_missing_field(self, missing):
        payload = {k: v for k, v in ISS_PAYLOAD.items() if k != missing}
        with pytest.raises(FetchPayloadError, match=missing):
            parse_sample(payload)

    @pytest.mark.parametrize("bad", ["51.5", None, True, [1.0], float("nan"), float("inf"), 10**400])
    def test_non_numeric_field(self, bad):
        payload = dict(ISS_PAYLOAD, latitude=bad)
        with pytest.raises(FetchPayloadError, match="latitude"):
            parse_sample(payload)

    def test_non_object_payload(self):
        with pytest.raises(FetchPayloadError, match="JSON object"):
            parse_sample([ISS_PAYLOAD])

    def test_non_numeric_timestamp_ignored(self):
        s = parse_sample(dict(ISS_PAYLOAD, timestamp="yesterday"))
        assert s.timestamp is None


class TestTelemetryFetcher:
    """Test cases for TelemetryFetcher.fetch"""

    def test_defaults(self):
        fetcher = TelemetryFetcher()
        assert fetcher.url == ISS_API_URL
        assert fetcher.timeout == 10.0
        assert isinstance(fetcher.session, requests.Session)

    def test_fetch_success(self):
        """One GET to the configured URL, decoded sample returned"""
        fetcher, session = _fetcher(_response(payload=ISS_PAYLOAD))
        sample = fetcher.fetch()

        session.get.assert_called_once_with(ISS_API_URL, timeout=10.0)
        assert sample.latitude == pytest.approx(51.50741)
        assert sample.velocity == pytest.approx(27600.4)

    def test_fetch_http_error(self):
        """Non-2xx status carries code and reason"""
        fetcher, _ = _fetcher(_response(status_code=500, reason="Internal Server Error"))
        with pytest.raises(FetchStatusError) as exc:
            fetcher.fetch()
        assert exc.value.status_code == 500
        assert exc.value.reason == "Internal Server Error"
        assert str(exc.value) == "API error: 500 Internal Server Error"

    def test_fetch_rate_limited(self):
        fetcher, _ = _fetcher(_response(status_code=429, reason="Too Many Requests"))
        with pytest.raises(FetchError):
            fetcher.fetch()

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError("connection refused"),
            requests.Timeout("read timed out"),
        ],
    )
    def test_fetch_network_error(self, error):
        fetcher, _ = _fetcher(error=error)
        with pytest.raises(FetchNetworkError) as exc:
            fetcher.fetch()
        assert exc.value.__cause__ is error

    def test_fetch_malformed_json(self):
        fetcher, _ = _fetcher(_response(json_error=ValueError("Expecting value")))
        with pytest.raises(FetchPayloadError, match="not valid JSON"):
            fetcher.fetch()

    def test_fetch_missing_field(self):
        fetcher, _ = _fetcher(_response(payload={"latitude": 1.0, "longitude": 2.0}))
        with pytest.raises(FetchPayloadError, match="velocity"):
            fetcher.fetch()

    def test_fetch_out_of_range_number(self):
        """Integers too large for a float are a payload error, not an OverflowError"""
        fetcher, _ = _fetcher(_response(payload=dict(ISS_PAYLOAD, altitude=10**400)))
        with pytest.raises(FetchPayloadError, match="altitude"):
            fetcher.fetch()

    def test_close_closes_session(self):
        fetcher, session = _fetcher(_response(payload=ISS_PAYLOAD))
        fetcher.close()
        session.close.assert_called_once_with()

    def test_errors_share_base_class(self):
        for cls in (FetchStatusError, FetchNetworkError, FetchPayloadError):
            assert issubclass(cls, FetchError)
