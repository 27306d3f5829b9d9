from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import requests

from ..core.constants import ADDRESS_UNAVAILABLE, GEOCODE_TIMEOUT_SECONDS
from ..core.exceptions import GeocodeError

logger = logging.getLogger(__name__)


class GeocodingProvider(Protocol):
    def reverse(self, latitude: float, longitude: float) -> str:
        """Return a display address or raise GeocodeError."""

        raise NotImplementedError


def format_address(payload: Mapping[str, Any]) -> str:
    """Build "area, city, state, postcode, country" from a reverse lookup.

    Falls back to the provider's display name when fewer than two parts are
    available.
    """
    address = payload.get("address") or {}
    parts = [
        address.get("neighbourhood") or address.get("suburb") or address.get("locality"),
        address.get("city") or address.get("town") or address.get("village") or address.get("county"),
        address.get("state") or address.get("state_district"),
        address.get("postcode"),
        address.get("country"),
    ]
    parts = [str(p) for p in parts if p]
    text = ", ".join(parts)
    if len(parts) < 2 and payload.get("display_name"):
        text = str(payload["display_name"])
    return text.strip()


class LocationIQProvider(GeocodingProvider):
    def __init__(
        self,
        api_key: str,
        *,
        url: str = "https://us1.locationiq.com/v1/reverse",
        timeout: float = GEOCODE_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    def reverse(self, latitude: float, longitude: float) -> str:
        if not self._api_key:
            raise GeocodeError("LOCATIONIQ_API_KEY not configured")
        try:
            resp = self._session.get(
                self._url,
                params={"key": self._api_key, "lat": latitude, "lon": longitude, "format": "json"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodeError(f"Reverse lookup failed: {e}") from e

        if not isinstance(payload, Mapping):
            raise GeocodeError("No geocoding results found")
        text = format_address(payload)
        if not text:
            raise GeocodeError("No geocoding results found")
        return text


class ReverseGeocoder:
    """Single best-effort lookup; never raises to the caller."""

    def __init__(self, provider: Optional[GeocodingProvider], *, fallback: str = ADDRESS_UNAVAILABLE):
        self._provider = provider
        self._fallback = fallback

    @property
    def fallback(self) -> str:
        return self._fallback

    def is_fallback(self, address: str) -> bool:
        return not address or address == self._fallback or address.startswith("Location:")

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        if self._provider is None:
            return self._fallback
        try:
            address = self._provider.reverse(float(latitude), float(longitude))
        except GeocodeError as e:
            logger.warning("Geocoding %s,%s failed: %s", latitude, longitude, e)
            return self._fallback
        except Exception:
            logger.exception("Unexpected geocoder failure for %s,%s", latitude, longitude)
            return self._fallback
        return address or self._fallback
