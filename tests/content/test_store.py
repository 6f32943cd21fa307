"""Tests for the JSON record backend and ContentStore loading."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from greenmap.content.backend import STORE_FILENAME, JsonRecordBackend
from greenmap.content.models import Event, Place
from greenmap.content.store import ContentStore
from greenmap.errors import StoreError


def _write_store(tmp_path: Path, **tables: list) -> None:
    (tmp_path / STORE_FILENAME).write_text(json.dumps(tables), encoding="utf-8")


PLACE_ROW = {
    "id": "p1",
    "title": "Bayou St. John",
    "category": "Waterway",
    "vibes": ["Calming"],
    "lat": 29.98,
    "lng": -90.08,
    "address": "",
}

EVENT_ROW = {
    "id": "e1",
    "title": "Cleanup",
    "category": "Volunteer",
    "vibes": '["Community", "Outdoor"]',
    "lat": 29.96,
    "lng": -90.06,
    "start_time": "2025-04-01T09:00:00",
    "end_time": "2025-04-01T12:00:00",
    "org_id": "org-1",
}


class TestJsonRecordBackend:
    def test_missing_file_reads_as_empty(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        assert backend.select_all("places") == []

    def test_insert_assigns_id_and_persists(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        row = backend.insert("places", {"title": "A"})
        assert row["id"]
        data = json.loads((tmp_path / STORE_FILENAME).read_text(encoding="utf-8"))
        assert data["places"][0]["title"] == "A"

    def test_two_inserts_are_distinct_rows(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        a = backend.insert("places", {"title": "Same"})
        b = backend.insert("places", {"title": "Same"})
        assert a["id"] != b["id"]
        assert len(backend.select_all("places")) == 2

    def test_profiles_get_created_at(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        row = backend.insert("profiles", {"email": "a@b.c", "role": "user"})
        assert "created_at" in row

    def test_select_where_and_get(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        backend.insert("profiles", {"id": "u1", "role": "user"})
        backend.insert("profiles", {"id": "o1", "role": "pending_org"})
        assert [r["id"] for r in backend.select_where("profiles", "role", "pending_org")] == ["o1"]
        assert backend.get("profiles", "u1")["role"] == "user"
        assert backend.get("profiles", "nope") is None

    def test_update(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        backend.insert("profiles", {"id": "o1", "role": "pending_org"})
        updated = backend.update("profiles", "o1", {"role": "approved_org"})
        assert updated["role"] == "approved_org"
        assert backend.get("profiles", "o1")["role"] == "approved_org"

    def test_update_missing_returns_none(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        assert backend.update("profiles", "ghost", {"role": "user"}) is None

    def test_upsert_without_id_inserts(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        stored = backend.upsert("places", {"title": "A"})
        assert backend.get("places", stored["id"])["title"] == "A"

    def test_upsert_replaces_by_id(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        backend.upsert("profiles", {"id": "u1", "email": "old@x.y", "role": "user"})
        backend.upsert("profiles", {"id": "u1", "email": "new@x.y", "role": "user"})
        rows = backend.select_all("profiles")
        assert len(rows) == 1
        assert rows[0]["email"] == "new@x.y"

    def test_corrupt_file_raises(self, tmp_path: Path):
        (tmp_path / STORE_FILENAME).write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JsonRecordBackend(tmp_path).select_all("places")

    def test_corrupt_file_is_not_overwritten(self, tmp_path: Path):
        path = tmp_path / STORE_FILENAME
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JsonRecordBackend(tmp_path).insert("places", {"title": "A"})
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_unknown_table(self, tmp_path: Path):
        with pytest.raises(StoreError):
            JsonRecordBackend(tmp_path).select_all("users")

    def test_table_that_is_not_a_list_raises(self, tmp_path: Path):
        (tmp_path / STORE_FILENAME).write_text('{"places": "oops"}', encoding="utf-8")
        with pytest.raises(StoreError):
            JsonRecordBackend(tmp_path).select_all("places")

    def test_lookups_ignore_rows_that_are_not_objects(self, tmp_path: Path):
        _write_store(tmp_path, profiles=[None, 7, {"id": "u1", "role": "user"}])
        backend = JsonRecordBackend(tmp_path)
        assert backend.get("profiles", "u1") == {"id": "u1", "role": "user"}
        assert backend.select_where("profiles", "role", "user") == [{"id": "u1", "role": "user"}]


class TestContentStoreLoad:
    def test_loads_places(self, tmp_path: Path):
        _write_store(tmp_path, places=[PLACE_ROW])
        places = ContentStore(JsonRecordBackend(tmp_path)).load_places()
        assert len(places) == 1
        assert isinstance(places[0], Place)
        assert places[0].vibes == ["Calming"]

    def test_loads_events_with_string_vibes(self, tmp_path: Path):
        _write_store(tmp_path, events=[EVENT_ROW])
        events = ContentStore(JsonRecordBackend(tmp_path)).load_events()
        assert len(events) == 1
        assert isinstance(events[0], Event)
        assert events[0].vibes == ["Community", "Outdoor"]

    def test_list_and_json_encodings_agree(self, tmp_path: Path):
        _write_store(
            tmp_path,
            places=[
                {**PLACE_ROW, "id": "a", "vibes": ["Shady", "Lively"]},
                {**PLACE_ROW, "id": "b", "vibes": '["Shady", "Lively"]'},
                {**PLACE_ROW, "id": "c", "vibes": "[broken"},
            ],
        )
        places = ContentStore(JsonRecordBackend(tmp_path)).load_places()
        assert [p.vibes for p in places] == [["Shady", "Lively"], ["Shady", "Lively"], []]

    def test_bad_rows_are_skipped(self, tmp_path: Path):
        _write_store(tmp_path, places=[PLACE_ROW, {"id": "x", "title": "No coords"}])
        places = ContentStore(JsonRecordBackend(tmp_path)).load_places()
        assert [p.id for p in places] == ["p1"]

    def test_fetch_failure_yields_empty(self, tmp_path: Path):
        (tmp_path / STORE_FILENAME).write_text("garbage", encoding="utf-8")
        store = ContentStore(JsonRecordBackend(tmp_path))
        assert store.load_places() == []
        assert store.load_events() == []

    @pytest.mark.parametrize("places", ["oops", {"id": "p1"}])
    def test_table_of_wrong_shape_yields_empty(self, tmp_path: Path, places):
        _write_store(tmp_path, places=places, events=[EVENT_ROW])
        store = ContentStore(JsonRecordBackend(tmp_path))
        assert store.load_places() == []

    @pytest.mark.parametrize("rows", [[1, 2], [None], ["p1"]])
    def test_rows_that_are_not_objects_are_skipped(self, tmp_path: Path, rows):
        _write_store(tmp_path, places=rows)
        assert ContentStore(JsonRecordBackend(tmp_path)).load_places() == []

    def test_non_object_rows_do_not_hide_good_ones(self, tmp_path: Path, caplog):
        _write_store(tmp_path, places=[None, PLACE_ROW, 3])
        with caplog.at_level("WARNING"):
            places = ContentStore(JsonRecordBackend(tmp_path)).load_places()
        assert [p.id for p in places] == ["p1"]
        assert "not an object" in caplog.text

    def test_backend_error_is_logged(self, caplog):
        backend = MagicMock()
        backend.select_all.side_effect = StoreError("down")
        with caplog.at_level("WARNING"):
            assert ContentStore(backend).load_events() == []
        assert "Failed to fetch events" in caplog.text


class TestContentStoreInsert:
    def test_insert_place_stores_vibes_as_list(self, tmp_path: Path):
        backend = JsonRecordBackend(tmp_path)
        store = ContentStore(backend)
        place = store.insert_place(
            {"title": "Audubon", "vibes": '["Shady"]', "lat": 29.92, "lng": -90.13}
        )
        assert place.vibes == ["Shady"]
        assert backend.select_all("places")[0]["vibes"] == ["Shady"]

    def test_insert_event_serializes_times(self, tmp_path: Path):
        from datetime import datetime

        backend = JsonRecordBackend(tmp_path)
        event = ContentStore(backend).insert_event(
            {
                "title": "Bird walk",
                "lat": 29.92,
                "lng": -90.13,
                "start_time": datetime(2025, 5, 1, 7, 30),
                "end_time": datetime(2025, 5, 1, 9, 0),
                "org_id": "org-1",
            }
        )
        assert event.start_time == datetime(2025, 5, 1, 7, 30)
        assert backend.select_all("events")[0]["start_time"] == "2025-05-01T07:30:00"

    def test_invalid_record_is_not_written(self, tmp_path: Path):
        from pydantic import ValidationError

        backend = JsonRecordBackend(tmp_path)
        with pytest.raises(ValidationError):
            ContentStore(backend).insert_place({"title": "", "lat": 1.0, "lng": 2.0})
        assert backend.select_all("places") == []
