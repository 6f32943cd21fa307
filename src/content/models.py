"""Content domain models — pure Pydantic v2 data types.

Places and events share one record shape and are told apart by the
``kind`` discriminator.  Records come from a store that has persisted
the ``vibes`` column in more than one encoding over time, so every
record normalizes it to a plain list on the way in.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

PLACE_VIBES = ["Calming", "Lively", "Photogenic", "Shady", "Kid-Friendly", "Study Spot"]
EVENT_VIBES = [
    "Community",
    "Relaxed",
    "Lively",
    "Family-Friendly",
    "Educational",
    "Outdoor",
    "Music",
    "Wellness",
]


class RecordKind(StrEnum):
    """Discriminator for the two record variants."""

    PLACE = "place"
    EVENT = "event"


def normalize_vibes(value: Any) -> list[str]:
    """Coerce a stored vibes value into a list of tags.

    Lists (and tuples) pass through; JSON-array strings are decoded.
    Anything else, including malformed JSON, becomes an empty list.
    Duplicates are kept as stored.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return []
    if isinstance(value, (list, tuple)):
        return [v if isinstance(v, str) else str(v) for v in value if v is not None]
    return []


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when it cannot be read."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


class _RecordBase(BaseModel):
    """Fields common to places and events."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = Field(min_length=1)
    category: str = ""
    description: str | None = None
    vibes: list[str] = Field(default_factory=list)
    lat: float
    lng: float
    address: str = ""
    image_url: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("vibes", mode="before")
    @classmethod
    def _normalize_vibes(cls, value: Any) -> list[str]:
        return normalize_vibes(value)

    @field_validator("category", "address", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Place(_RecordBase):
    """A persistent, non-time-bounded location (park, trail, study spot)."""

    kind: Literal["place"] = "place"


class Event(_RecordBase):
    """A location with a start/end window, authored by an approved organization.

    An end time before the start time is accepted as stored.
    """

    kind: Literal["event"] = "event"
    start_time: datetime | None = None
    end_time: datetime | None = None
    org_id: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("org_id", mode="before")
    @classmethod
    def _stringify_org(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


ContentRecord = Annotated[Place | Event, Field(discriminator="kind")]

_record_adapter: TypeAdapter[Place | Event] = TypeAdapter(ContentRecord)


def parse_record(row: dict[str, Any], kind: RecordKind | None = None) -> Place | Event:
    """Validate a raw row as a content record.

    ``kind`` is stamped onto the row when given, so rows read from the
    ``places`` and ``events`` tables do not need to carry it.
    """
    data = dict(row)
    if kind is not None:
        data["kind"] = str(kind)
    return _record_adapter.validate_python(data)
