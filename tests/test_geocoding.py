"""
Tests for the geocoding client.

The HTTP session is replaced with a stub; no network access is made.
Every failure mode must degrade to None rather than raise.
"""

import dataclasses

import pytest
import requests

from core.comp_engine.models import Coordinates
from core.subject.geocoding import GEOCODE_URL, GeocodingClient, attach_coordinates


class StubResponse:
    def __init__(self, payload=None, status_code=200, json_error=False):
        self._payload = payload
        self.status_code = status_code
        self._json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._json_error:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class StubSession:
    """Records calls and returns (or raises) a canned result."""

    def __init__(self, result=None):
        self.headers = {}
        self.calls = []
        self._result = result

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


def ok_payload(lat=40.7128, lng=-74.006):
    return {
        "status": "OK",
        "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}],
    }


# =============================================================================
# Lookups
# =============================================================================

class TestGeocode:
    """Tests for GeocodingClient.geocode."""

    def test_successful_lookup(self):
        session = StubSession(StubResponse(ok_payload()))
        client = GeocodingClient("test-key", timeout=3, session=session)

        coordinates = client.geocode("1 Broadway, New York")

        assert coordinates == Coordinates(latitude=40.7128, longitude=-74.006)
        call = session.calls[0]
        assert call["url"] == GEOCODE_URL
        assert call["params"] == {"address": "1 Broadway, New York", "key": "test-key"}
        assert call["timeout"] == 3

    def test_no_api_key_skips_request(self):
        session = StubSession(StubResponse(ok_payload()))
        client = GeocodingClient(None, session=session)

        assert client.geocode("1 Broadway") is None
        assert session.calls == []

    @pytest.mark.parametrize("status", ["ZERO_RESULTS", "OVER_QUERY_LIMIT", "REQUEST_DENIED"])
    def test_provider_status_returns_none(self, status):
        session = StubSession(StubResponse({"status": status, "results": []}))

        assert GeocodingClient("key", session=session).geocode("nowhere") is None

    @pytest.mark.parametrize("error", [
        requests.Timeout("timed out"),
        requests.ConnectionError("connection refused"),
    ])
    def test_transport_errors_return_none(self, error):
        client = GeocodingClient("key", session=StubSession(error))

        assert client.geocode("1 Broadway") is None

    def test_http_error_returns_none(self):
        client = GeocodingClient("key", session=StubSession(StubResponse({}, status_code=503)))

        assert client.geocode("1 Broadway") is None

    def test_invalid_json_returns_none(self):
        client = GeocodingClient("key", session=StubSession(StubResponse(json_error=True)))

        assert client.geocode("1 Broadway") is None

    @pytest.mark.parametrize("payload", [
        {"status": "OK", "results": []},
        {"status": "OK", "results": [{"geometry": {}}]},
        {"status": "OK", "results": [{"geometry": {"location": {"lat": 120, "lng": 0}}}]},
        ["not", "a", "dict"],
    ])
    def test_malformed_payload_returns_none(self, payload):
        client = GeocodingClient("key", session=StubSession(StubResponse(payload)))

        assert client.geocode("1 Broadway") is None

    def test_failure_is_logged(self, caplog):
        client = GeocodingClient("key", session=StubSession(requests.Timeout("slow")))

        with caplog.at_level("WARNING", logger="core.subject.geocoding"):
            client.geocode("1 Broadway")

        assert "timed out" in caplog.text


# =============================================================================
# Subject Enrichment
# =============================================================================

class TestAttachCoordinates:
    """Tests for attach_coordinates."""

    def test_fills_missing_coordinates(self, subject_property):
        subject = dataclasses.replace(subject_property, coordinates=None)
        client = GeocodingClient("key", session=StubSession(StubResponse(ok_payload(41.0, -74.0))))

        enriched = attach_coordinates(subject, client)

        assert enriched.coordinates == Coordinates(41.0, -74.0)
        assert subject.coordinates is None

    def test_existing_coordinates_kept(self, subject_property):
        session = StubSession(StubResponse(ok_payload(41.0, -74.0)))

        enriched = attach_coordinates(subject_property, GeocodingClient("key", session=session))

        assert enriched is subject_property
        assert session.calls == []

    def test_failed_lookup_returns_subject_unchanged(self, subject_property):
        subject = dataclasses.replace(subject_property, coordinates=None)
        client = GeocodingClient(None, session=StubSession())

        assert attach_coordinates(subject, client) is subject
