"""Content domain — place/event records, their backend, and the typed store."""

from greenmap.content.backend import JsonRecordBackend, RecordBackend
from greenmap.content.models import (
    ContentRecord,
    Event,
    Place,
    RecordKind,
    normalize_vibes,
)
from greenmap.content.store import ContentStore

__all__ = [
    "ContentRecord",
    "ContentStore",
    "Event",
    "JsonRecordBackend",
    "Place",
    "RecordBackend",
    "RecordKind",
    "normalize_vibes",
]
