"""Turn-by-turn hand-off: build a maps deep link for a destination."""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic import BaseModel

APPLE_MAPS_URL = "http://maps.apple.com/?daddr={lat},{lng}"
GOOGLE_MAPS_URL = "https://www.google.com/maps/dir/?api=1&destination={lat},{lng}"

_APPLE_MOBILE_UA = re.compile(r"iPhone|iPad|iPod")


class PlatformHint(BaseModel):
    """What the client knows about the device it runs on."""

    user_agent: str = ""
    platform: str = ""
    max_touch_points: int = 0

    @property
    def is_apple_mobile(self) -> bool:
        # iPadOS reports itself as a Mac; touch support gives it away.
        if _APPLE_MOBILE_UA.search(self.user_agent):
            return True
        return self.platform == "MacIntel" and self.max_touch_points > 1


APPLE_HINT = PlatformHint(user_agent="Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)")


def _coordinate(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _fmt(value: float) -> str:
    return repr(value) if value != int(value) else str(int(value))


def build_directions_url(lat: Any, lng: Any, hint: PlatformHint | None = None) -> str | None:
    """Return a navigation URL, or None when the coordinates are unusable.

    Apple mobile devices get an Apple Maps link; everything else gets a
    Google Maps web link.
    """
    lat_f = _coordinate(lat)
    lng_f = _coordinate(lng)
    if lat_f is None or lng_f is None:
        return None

    template = APPLE_MAPS_URL if hint is not None and hint.is_apple_mobile else GOOGLE_MAPS_URL
    return template.format(lat=_fmt(lat_f), lng=_fmt(lng_f))
