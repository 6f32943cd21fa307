"""Device location — a one-shot, user-gated position request.

The sensor is awaited once per request.  A :class:`RequestToken` lets
the owner of a form cancel interest in an outstanding request (for
example when the form is closed) so that a late answer is dropped
instead of being written into stale fields.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel

from greenmap.geo.geocoding import GeocodingService

logger = logging.getLogger(__name__)

UNSUPPORTED_NOTICE = "Geolocation is not supported by your browser."
DENIED_NOTICE = "Unable to get your location."


class Coordinates(BaseModel):
    lat: float
    lng: float


class LocationDenied(BaseModel):
    """The user declined, or the platform call failed."""

    detail: str = ""


class LocationUnsupported(BaseModel):
    """The platform has no location capability."""


LocationResult = Coordinates | LocationDenied | LocationUnsupported


class LocationSensor(Protocol):
    async def current_position(self) -> Coordinates:
        """Return the current position, raising if it cannot be read."""
        ...


class LocationPermissionError(Exception):
    """Raised by a sensor when the user declines the request."""


class FixedLocationSensor:
    """Sensor that always reports the same coordinates."""

    def __init__(self, lat: float, lng: float) -> None:
        self._coords = Coordinates(lat=lat, lng=lng)

    async def current_position(self) -> Coordinates:
        return self._coords


class DeniedLocationSensor:
    """Sensor whose user always says no."""

    async def current_position(self) -> Coordinates:
        raise LocationPermissionError("User denied Geolocation")


class RequestToken:
    """Tracks whether the requester still wants the answer."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


async def request_device_location(sensor: LocationSensor | None) -> LocationResult:
    """Ask the sensor for a position once."""
    if sensor is None:
        return LocationUnsupported()
    try:
        return await sensor.current_position()
    except Exception as exc:
        logger.info("Device location unavailable: %s", exc)
        return LocationDenied(detail=str(exc))


@dataclass
class LocationFields:
    """The address/coordinate inputs of an authoring form."""

    address: str = ""
    lat: float | None = None
    lng: float | None = None
    notice: str = ""
    locating: bool = False


async def use_my_location(
    fields: LocationFields,
    sensor: LocationSensor | None,
    geocoder: GeocodingService,
    token: RequestToken | None = None,
) -> LocationResult | None:
    """Fill ``fields`` from the device position.

    On success the coordinates are set and a reverse lookup fills the
    address when one is found.  On denial or no support a notice is set
    and the existing values are left alone.  Returns None when ``token``
    was cancelled before the position or the address arrived; nothing
    is written then.
    """
    fields.locating = True
    result = await request_device_location(sensor)
    if token is not None and token.cancelled:
        logger.debug("Dropping location result for a cancelled request")
        return None

    fields.locating = False
    if isinstance(result, LocationUnsupported):
        fields.notice = UNSUPPORTED_NOTICE
        return result
    if isinstance(result, LocationDenied):
        fields.notice = DENIED_NOTICE
        return result

    # The lookup blocks on HTTP, so it runs in a worker thread.
    address = await asyncio.to_thread(geocoder.reverse_geocode, result.lat, result.lng)
    if token is not None and token.cancelled:
        logger.debug("Dropping location result cancelled during reverse lookup")
        return None
    fields.lat = result.lat
    fields.lng = result.lng
    fields.notice = ""
    if address:
        fields.address = address
    return result
