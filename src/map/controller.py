"""Map state: loaded content, filters, markers, and the open detail panel.

The controller never re-renders anything itself.  It recomputes the
marker list on each state change and calls its subscribers; the panel
listeners hear only open/close transitions, which is what the page uses
to hide its own buttons while a panel covers the map.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from greenmap.content.models import Event, Place, RecordKind
from greenmap.content.store import ContentStore
from greenmap.geo.directions import PlatformHint, build_directions_url
from greenmap.map.filters import EventWindow, FilterState, visible_records

logger = logging.getLogger(__name__)

PanelListener = Callable[[bool], None]


class DetailPanel(BaseModel):
    """What the side panel shows for the selected record."""

    kind: RecordKind
    title: str
    category: str = ""
    description: str | None = None
    vibes: list[str] = Field(default_factory=list)
    address: str = ""
    image_url: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def is_event(self) -> bool:
        return self.kind == RecordKind.EVENT

    @classmethod
    def from_record(cls, record: Place | Event) -> DetailPanel:
        data: dict[str, Any] = {
            "kind": RecordKind(record.kind),
            "title": record.title,
            "category": record.category,
            "description": record.description,
            "vibes": list(record.vibes),
            "address": record.address,
            "image_url": record.image_url,
        }
        if isinstance(record, Event):
            data["start_time"] = record.start_time
            data["end_time"] = record.end_time
        return cls(**data)


class MapController:
    """Owns everything the map view needs between user interactions."""

    def __init__(
        self,
        store: ContentStore,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._clock = clock
        self.places: list[Place] = []
        self.events: list[Event] = []
        self.filters = FilterState()
        self.markers: list[Place | Event] = []
        self._selected: Place | Event | None = None
        self._refresh_token: Hashable | None = None
        self._mounted = False
        self._listeners: list[Callable[[MapController], None]] = []
        self._panel_listeners: list[PanelListener] = []

    # ── Subscriptions ────────────────────────────────────────────

    def subscribe(self, listener: Callable[[MapController], None]) -> Callable[[], None]:
        """Call ``listener`` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def on_panel_toggle(self, listener: PanelListener) -> Callable[[], None]:
        self._panel_listeners.append(listener)
        return lambda: self._panel_listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _recompute(self) -> None:
        self.markers = visible_records(self.filters, self.places, self.events, self._clock())
        self._changed()

    # ── Loading ──────────────────────────────────────────────────

    def mount(self, refresh_token: Hashable | None = None) -> None:
        """Initial load."""
        self._mounted = True
        self._refresh_token = refresh_token
        self._reload()

    def refresh(self, refresh_token: Hashable) -> bool:
        """Reload when the token differs from the last one seen.

        Returns True if a reload happened.
        """
        if self._mounted and refresh_token == self._refresh_token:
            return False
        self._mounted = True
        self._refresh_token = refresh_token
        self._reload()
        return True

    def _reload(self) -> None:
        self.places = self._store.load_places()
        self.events = self._store.load_events()
        logger.debug("Loaded %d places and %d events", len(self.places), len(self.events))
        self._recompute()

    # ── Filters ──────────────────────────────────────────────────

    def set_filters(
        self,
        *,
        show_places: bool | None = None,
        show_events: bool | None = None,
        event_window: EventWindow | str | None = None,
    ) -> None:
        changes: dict[str, Any] = {}
        if show_places is not None:
            changes["show_places"] = show_places
        if show_events is not None:
            changes["show_events"] = show_events
        if event_window is not None:
            changes["event_window"] = EventWindow(event_window)
        updated = self.filters.model_copy(update=changes)
        if updated == self.filters:
            return
        self.filters = updated
        self._recompute()

    def toggle_places(self) -> None:
        self.set_filters(show_places=not self.filters.show_places)

    def toggle_events(self) -> None:
        self.set_filters(show_events=not self.filters.show_events)

    # ── Selection ────────────────────────────────────────────────

    @property
    def selected(self) -> Place | Event | None:
        return self._selected

    @property
    def panel_open(self) -> bool:
        return self._selected is not None

    @property
    def chrome_hidden(self) -> bool:
        """Home button and filter panel are hidden while a panel is open."""
        return self.panel_open

    def select(self, record: Place | Event | None) -> None:
        """Open the panel for ``record``, replacing any open one. None closes."""
        was_open = self.panel_open
        if record is self._selected:
            return
        self._selected = record
        if was_open != self.panel_open:
            for listener in list(self._panel_listeners):
                listener(self.panel_open)
        self._changed()

    def select_by_id(self, kind: RecordKind | str, record_id: str) -> Place | Event | None:
        pool: list[Any] = self.events if RecordKind(kind) == RecordKind.EVENT else self.places
        match = next((r for r in pool if r.id == record_id), None)
        if match is not None:
            self.select(match)
        return match

    def close(self) -> None:
        self.select(None)

    def detail_panel(self) -> DetailPanel | None:
        if self._selected is None:
            return None
        return DetailPanel.from_record(self._selected)

    def directions(self, hint: PlatformHint | None = None) -> str | None:
        """Navigation link for the selected record, or None."""
        if self._selected is None:
            return None
        return build_directions_url(self._selected.lat, self._selected.lng, hint)
