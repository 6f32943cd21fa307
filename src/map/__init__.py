"""Map view state and marker filtering."""

from greenmap.map.controller import DetailPanel, MapController
from greenmap.map.filters import EventWindow, FilterState, visible_events, visible_places

__all__ = [
    "DetailPanel",
    "EventWindow",
    "FilterState",
    "MapController",
    "visible_events",
    "visible_places",
]
