"""Tests for MapController — loading, filters, selection, notifications."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from greenmap.content.models import Event, Place, RecordKind
from greenmap.geo.directions import APPLE_HINT, PlatformHint
from greenmap.map.controller import MapController
from greenmap.map.filters import EventWindow

NOW = datetime(2025, 6, 10, 12, 0)

PARK = Place(id="p1", title="City Park", category="Park", vibes=["Shady"], lat=29.99, lng=-90.09)
LEVEE = Place(id="p2", title="Levee Path", lat=29.93, lng=-90.13)
TONIGHT = Event(
    id="e1",
    title="Bat Watch",
    lat=29.95,
    lng=-90.07,
    start_time=NOW + timedelta(hours=8),
    end_time=NOW + timedelta(hours=10),
    org_id="org-1",
)
NEXT_MONTH = Event(id="e2", title="Fest", lat=29.96, lng=-90.06, start_time=NOW + timedelta(days=30))


@pytest.fixture
def store() -> MagicMock:
    store = MagicMock()
    store.load_places.return_value = [PARK, LEVEE]
    store.load_events.return_value = [TONIGHT, NEXT_MONTH]
    return store


@pytest.fixture
def controller(store: MagicMock) -> MapController:
    controller = MapController(store, clock=lambda: NOW)
    controller.mount(refresh_token=0)
    return controller


class TestLoading:
    def test_mount_loads_everything(self, controller: MapController):
        assert controller.places == [PARK, LEVEE]
        assert controller.events == [TONIGHT, NEXT_MONTH]
        assert [m.id for m in controller.markers] == ["p1", "p2", "e1", "e2"]

    def test_refresh_only_on_new_token(self, controller: MapController, store: MagicMock):
        assert controller.refresh(0) is False
        assert store.load_places.call_count == 1

        assert controller.refresh(1) is True
        assert store.load_places.call_count == 2
        assert store.load_events.call_count == 2

    def test_refresh_picks_up_new_content(self, controller: MapController, store: MagicMock):
        extra = Place(id="p3", title="New Spot", lat=29.9, lng=-90.0)
        store.load_places.return_value = [PARK, LEVEE, extra]
        controller.refresh("after-insert")
        assert "p3" in [m.id for m in controller.markers]

    def test_empty_store(self):
        store = MagicMock()
        store.load_places.return_value = []
        store.load_events.return_value = []
        controller = MapController(store, clock=lambda: NOW)
        controller.mount()
        assert controller.markers == []


class TestFilters:
    def test_hide_places(self, controller: MapController):
        controller.toggle_places()
        assert [m.id for m in controller.markers] == ["e1", "e2"]

    def test_hide_events(self, controller: MapController):
        controller.toggle_events()
        assert [m.id for m in controller.markers] == ["p1", "p2"]

    def test_event_window(self, controller: MapController):
        controller.set_filters(event_window="today")
        assert [m.id for m in controller.markers] == ["p1", "p2", "e1"]
        controller.set_filters(event_window=EventWindow.ALL)
        assert len(controller.markers) == 4

    def test_subscribers_notified_on_change(self, controller: MapController):
        seen = []
        controller.subscribe(lambda c: seen.append(len(c.markers)))
        controller.set_filters(event_window="week")
        assert seen == [3]

    def test_no_notification_when_nothing_changes(self, controller: MapController):
        listener = MagicMock()
        controller.subscribe(listener)
        controller.set_filters(show_places=True)
        listener.assert_not_called()

    def test_unsubscribe(self, controller: MapController):
        listener = MagicMock()
        unsubscribe = controller.subscribe(listener)
        unsubscribe()
        controller.toggle_places()
        listener.assert_not_called()


class TestSelection:
    def test_select_then_select_other(self, controller: MapController):
        controller.select(PARK)
        controller.select(TONIGHT)
        assert controller.selected is TONIGHT

    def test_close(self, controller: MapController):
        controller.select(PARK)
        controller.close()
        assert controller.selected is None
        assert controller.panel_open is False

    def test_close_with_nothing_selected_is_noop(self, controller: MapController):
        listener = MagicMock()
        panel_listener = MagicMock()
        controller.subscribe(listener)
        controller.on_panel_toggle(panel_listener)
        controller.close()
        listener.assert_not_called()
        panel_listener.assert_not_called()

    def test_select_none_closes(self, controller: MapController):
        controller.select(PARK)
        controller.select(None)
        assert controller.selected is None

    def test_panel_toggle_only_on_transitions(self, controller: MapController):
        toggles = []
        controller.on_panel_toggle(toggles.append)
        controller.select(PARK)
        controller.select(LEVEE)
        controller.close()
        assert toggles == [True, False]

    def test_chrome_hidden_while_open(self, controller: MapController):
        assert controller.chrome_hidden is False
        controller.select(PARK)
        assert controller.chrome_hidden is True

    def test_select_by_id(self, controller: MapController):
        assert controller.select_by_id(RecordKind.EVENT, "e1") is TONIGHT
        assert controller.selected is TONIGHT
        assert controller.select_by_id("place", "missing") is None
        assert controller.selected is TONIGHT


class TestDetailPanel:
    def test_none_without_selection(self, controller: MapController):
        assert controller.detail_panel() is None

    def test_place_panel(self, controller: MapController):
        controller.select(PARK)
        panel = controller.detail_panel()
        assert panel.kind == RecordKind.PLACE
        assert panel.is_event is False
        assert panel.title == "City Park"
        assert panel.vibes == ["Shady"]
        assert panel.start_time is None

    def test_event_panel_has_times(self, controller: MapController):
        controller.select(TONIGHT)
        panel = controller.detail_panel()
        assert panel.is_event is True
        assert panel.start_time == TONIGHT.start_time
        assert panel.end_time == TONIGHT.end_time


class TestDirections:
    def test_none_without_selection(self, controller: MapController):
        assert controller.directions(APPLE_HINT) is None

    def test_apple_and_google(self, controller: MapController):
        controller.select(TONIGHT)
        assert controller.directions(APPLE_HINT) == "http://maps.apple.com/?daddr=29.95,-90.07"
        assert controller.directions(PlatformHint()) == (
            "https://www.google.com/maps/dir/?api=1&destination=29.95,-90.07"
        )
