"""Forward and reverse geocoding against a Nominatim-compatible API.

Neither call raises: a failed forward lookup is ``NOT_FOUND`` and a
failed reverse lookup is an empty string, and the caller treats both as
"ask the user for something more specific".
"""

from __future__ import annotations

import json
import logging
import urllib.parse
import urllib.request
from typing import Any

from pydantic import BaseModel

from greenmap.config import GeocodingSectionConfig
from greenmap.geo.bounds import MapBounds

logger = logging.getLogger(__name__)


class ResolvedLocation(BaseModel):
    """Best match for an address query."""

    lat: float
    lng: float
    display_address: str = ""


class NotFound:
    """No match for an address query."""

    _instance: NotFound | None = None

    def __new__(cls) -> NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound()


class GeocodingService:
    """Thin client for the ``/search`` and ``/reverse`` endpoints."""

    def __init__(
        self,
        config: GeocodingSectionConfig | None = None,
        bounds: MapBounds | None = None,
    ) -> None:
        self.config = config or GeocodingSectionConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.bounds = bounds

    def _get_json(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}{path}?{urllib.parse.urlencode(params)}"
        req = urllib.request.Request(
            url,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept": "application/json",
            },
        )
        with urllib.request.urlopen(req, timeout=self.config.timeout) as resp:
            return json.loads(resp.read().decode("utf-8"))

    def forward_geocode(self, address: str) -> ResolvedLocation | NotFound:
        """Resolve free text to coordinates.

        Returns NOT_FOUND for a blank address, zero matches, a request
        failure, or a payload that does not look like a result list.
        """
        query = (address or "").strip()
        if not query:
            return NOT_FOUND

        params = {"format": "json", "q": query, "limit": "1"}
        if self.config.bounded and self.bounds is not None:
            params["viewbox"] = self.bounds.as_viewbox()
            params["bounded"] = "1"

        try:
            data = self._get_json("/search", params)
        except Exception:
            logger.warning("Forward geocode failed for %r", query, exc_info=True)
            return NOT_FOUND

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return NOT_FOUND

        best = data[0]
        try:
            lat = float(best["lat"])
            lng = float(best["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed geocode result for %r: %s", query, best)
            return NOT_FOUND

        display = best.get("display_name")
        return ResolvedLocation(
            lat=lat,
            lng=lng,
            display_address=display if isinstance(display, str) else query,
        )

    def reverse_geocode(self, lat: float, lng: float) -> str:
        """Resolve coordinates to a display address, or "" on any failure."""
        try:
            data = self._get_json(
                "/reverse", {"format": "json", "lat": str(lat), "lon": str(lng)}
            )
        except Exception:
            logger.warning("Reverse geocode failed for %s,%s", lat, lng, exc_info=True)
            return ""

        if not isinstance(data, dict):
            return ""
        display = data.get("display_name")
        return display if isinstance(display, str) else ""
