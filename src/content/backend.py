"""Record backends — the persistent store collaborator.

The engine only needs bulk reads of ``places`` and ``events``, reads of
``profiles`` by id or by role, inserts, upserts by id, and single-row
updates.
``JsonRecordBackend`` keeps all three tables in one JSON file, re-read on
every call so that writes made by another process are picked up on the
next explicit refresh.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from greenmap.errors import StoreError

logger = logging.getLogger(__name__)

STORE_FILENAME = "greenmap-store.json"
TABLES = ("places", "events", "profiles")

Row = dict[str, Any]


class RecordBackend(ABC):
    """Interface to the persistent record store."""

    @abstractmethod
    def select_all(self, table: str) -> list[Row]:
        """Return every row in a table."""

    @abstractmethod
    def select_where(self, table: str, column: str, value: Any) -> list[Row]:
        """Return rows whose ``column`` equals ``value``."""

    @abstractmethod
    def get(self, table: str, row_id: str) -> Row | None:
        """Return one row by id, or None."""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert a row, assigning an id when absent, and return it."""

    @abstractmethod
    def upsert(self, table: str, row: Row) -> Row:
        """Insert ``row``, replacing any existing row with the same id."""

    @abstractmethod
    def update(self, table: str, row_id: str, changes: Row) -> Row | None:
        """Apply ``changes`` to one row. Returns the new row, or None if missing."""


class JsonRecordBackend(RecordBackend):
    """Single-file JSON implementation of :class:`RecordBackend`.

    Raises StoreError when the file exists but cannot be parsed; the
    file is never silently replaced.
    """

    def __init__(self, directory: Path) -> None:
        self._path = Path(directory) / STORE_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> dict[str, list[Row]]:
        if not self._path.exists():
            return {t: [] for t in TABLES}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreError(f"Cannot read record store at {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StoreError(f"Record store at {self._path} is not a JSON object")
        data: dict[str, list[Row]] = {}
        for table in TABLES:
            rows = raw.get(table) or []
            if not isinstance(rows, list):
                raise StoreError(
                    f"Table {table!r} in {self._path} is not a list", table=table
                )
            data[table] = list(rows)
        return data

    def _save(self, data: dict[str, list[Row]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Cannot write record store at {self._path}: {exc}") from exc

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in TABLES:
            raise StoreError(f"Unknown table: {table!r}", table=table)

    # ── Reads ────────────────────────────────────────────────────

    def select_all(self, table: str) -> list[Row]:
        self._check_table(table)
        return self._load()[table]

    def select_where(self, table: str, column: str, value: Any) -> list[Row]:
        return [
            r for r in self.select_all(table) if isinstance(r, dict) and r.get(column) == value
        ]

    def get(self, table: str, row_id: str) -> Row | None:
        for row in self.select_all(table):
            if _has_id(row, row_id):
                return row
        return None

    # ── Writes ───────────────────────────────────────────────────

    def insert(self, table: str, row: Row) -> Row:
        self._check_table(table)
        data = self._load()
        stored = dict(row)
        stored.setdefault("id", uuid.uuid4().hex)
        if table == "profiles":
            stored.setdefault("created_at", datetime.now(tz=UTC).isoformat())
        data[table].append(stored)
        self._save(data)
        logger.info("Inserted %s row %s", table, stored["id"])
        return stored

    def upsert(self, table: str, row: Row) -> Row:
        """Insert or replace a row by id."""
        self._check_table(table)
        if "id" not in row:
            return self.insert(table, row)
        data = self._load()
        data[table] = [r for r in data[table] if not _has_id(r, row["id"])]
        stored = dict(row)
        if table == "profiles":
            stored.setdefault("created_at", datetime.now(tz=UTC).isoformat())
        data[table].append(stored)
        self._save(data)
        logger.info("Upserted %s row %s", table, stored["id"])
        return stored

    def update(self, table: str, row_id: str, changes: Row) -> Row | None:
        self._check_table(table)
        data = self._load()
        for row in data[table]:
            if _has_id(row, row_id):
                row.update(changes)
                self._save(data)
                return row
        return None


def _has_id(row: Any, row_id: Any) -> bool:
    return isinstance(row, dict) and str(row.get("id")) == str(row_id)
