"""Place and event loading on top of a record backend.

Loads never raise: a backend failure is logged and yields an empty
collection, and individual rows that cannot be validated are skipped.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from greenmap.content.backend import RecordBackend
from greenmap.content.models import Event, Place, RecordKind, normalize_vibes, parse_record
from greenmap.errors import StoreError

logger = logging.getLogger(__name__)

_TABLES: dict[RecordKind, str] = {
    RecordKind.PLACE: "places",
    RecordKind.EVENT: "events",
}


class ContentStore:
    """Typed access to the ``places`` and ``events`` collections."""

    def __init__(self, backend: RecordBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> RecordBackend:
        return self._backend

    def _load(self, kind: RecordKind) -> list[Any]:
        table = _TABLES[kind]
        try:
            rows = self._backend.select_all(table)
        except StoreError:
            logger.warning("Failed to fetch %s", table, exc_info=True)
            return []

        records = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning("Skipping %s row that is not an object: %r", table, row)
                continue
            try:
                records.append(parse_record(row, kind))
            except ValidationError as exc:
                logger.warning(
                    "Skipping %s row %s: %s", table, row.get("id"), exc.errors()[0]["msg"]
                )
        return records

    def load_places(self) -> list[Place]:
        """Return all places with vibes normalized. Empty on fetch failure."""
        return self._load(RecordKind.PLACE)

    def load_events(self) -> list[Event]:
        """Return all events with vibes normalized. Empty on fetch failure."""
        return self._load(RecordKind.EVENT)

    # ── Writes ───────────────────────────────────────────────────

    def _insert(self, kind: RecordKind, fields: dict[str, Any]) -> Place | Event:
        row = {k: v for k, v in fields.items() if k != "kind"}
        row["vibes"] = normalize_vibes(row.get("vibes"))
        # Validate before writing so nothing unreadable reaches the store.
        parse_record({"id": "pending", **row}, kind)
        stored = self._backend.insert(_TABLES[kind], _jsonable(row))
        return parse_record(stored, kind)

    def insert_place(self, fields: dict[str, Any]) -> Place:
        """Persist a new place. Raises StoreError or ValidationError."""
        return self._insert(RecordKind.PLACE, fields)  # type: ignore[return-value]

    def insert_event(self, fields: dict[str, Any]) -> Event:
        """Persist a new event. Raises StoreError or ValidationError."""
        return self._insert(RecordKind.EVENT, fields)  # type: ignore[return-value]


def _jsonable(row: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in row.items():
        out[key] = value.isoformat() if hasattr(value, "isoformat") else value
    return out
