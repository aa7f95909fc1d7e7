"""
Geocoding client.

Resolves a street address to coordinates through the Google Geocoding API.
Lookups are best-effort: any failure (no API key, provider status, network
error, timeout, unexpected payload) yields None and is logged, so a
valuation can always proceed without distance information.
"""

import dataclasses
import logging
from typing import Optional

import requests

from core.comp_engine.models import Coordinates, SubjectProperty


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
USER_AGENT = "CompValuationEngine/1.0"
DEFAULT_TIMEOUT_SECONDS = 5.0


class GeocodingClient:
    """
    Address-to-coordinates lookup.

    Args:
        api_key: Google Maps API key. Without one every lookup returns None.
        timeout: Per-request timeout in seconds
        session: Optional requests.Session (injected in tests)
    """

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def geocode(self, address: str) -> Optional[Coordinates]:
        """
        Look up coordinates for an address.

        Returns:
            Coordinates of the first result, or None on any failure
        """
        if not self.api_key:
            logger.warning("Geocoding skipped for %r: no API key configured", address)
            return None
        if not address or not address.strip():
            return None

        try:
            response = self._session.get(
                GEOCODE_URL,
                params={"address": address, "key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout:
            logger.warning("Geocoding timed out after %ss for %r", self.timeout, address)
            return None
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geocoding request failed for %r: %s", address, e)
            return None

        status = payload.get("status") if isinstance(payload, dict) else None
        if status != "OK":
            logger.warning("Geocoding returned status %s for %r", status, address)
            return None

        try:
            location = payload["results"][0]["geometry"]["location"]
            return Coordinates(latitude=float(location["lat"]), longitude=float(location["lng"]))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Geocoding payload for %r was unusable: %s", address, e)
            return None


def attach_coordinates(subject: SubjectProperty, geocoder: GeocodingClient) -> SubjectProperty:
    """
    Return the subject with coordinates filled in from the geocoder.

    A subject that already has coordinates, or whose lookup fails, is
    returned unchanged.
    """
    if subject.coordinates is not None:
        return subject
    coordinates = geocoder.geocode(subject.address)
    if coordinates is None:
        return subject
    return dataclasses.replace(subject, coordinates=coordinates)
