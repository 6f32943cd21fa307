"""Marker filtering by content type and event time window.

Everything here is a pure function of its inputs, so it is safe to call
on every update.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from greenmap.content.models import Event, Place


class EventWindow(StrEnum):
    """Which events to show, by start time."""

    ALL = "all"
    TODAY = "today"
    WEEK = "week"

    @classmethod
    def _missing_(cls, value: object) -> EventWindow | None:
        if isinstance(value, str) and value.replace("_", "").lower() == "thisweek":
            return cls.WEEK
        return None


WEEK_SPAN = timedelta(days=7)


class FilterState(BaseModel):
    """Session-only filter toggles."""

    model_config = ConfigDict(frozen=True)

    show_places: bool = True
    show_events: bool = True
    event_window: EventWindow = EventWindow.ALL


def _aligned(start: datetime, now: datetime) -> datetime:
    """Express ``start`` in the same clock as ``now``.

    Naive datetimes are read as local time.
    """
    if now.tzinfo is None:
        return start.astimezone().replace(tzinfo=None) if start.tzinfo else start
    return start.astimezone(now.tzinfo)


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """First and last millisecond of ``now``'s calendar day."""
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


def visible_events(
    events: Sequence[Event], window: EventWindow | str, now: datetime
) -> list[Event]:
    """Events whose start time falls in ``window``.

    ``today`` is the local calendar day of ``now``; ``week`` runs from
    ``now`` to seven days later, so events that started earlier today
    are left out.  Events without a readable start time only show under
    ``all``.
    """
    window = EventWindow(window)
    if window == EventWindow.ALL:
        return list(events)

    if window == EventWindow.TODAY:
        lower, upper = day_bounds(now)
    else:
        lower, upper = now, now + WEEK_SPAN

    kept = []
    for event in events:
        if event.start_time is None:
            continue
        start = _aligned(event.start_time, now)
        if lower <= start <= upper:
            kept.append(event)
    return kept


def visible_places(places: Sequence[Place], show_places: bool) -> list[Place]:
    return list(places) if show_places else []


def visible_records(
    state: FilterState,
    places: Sequence[Place],
    events: Sequence[Event],
    now: datetime,
) -> list[Place | Event]:
    """The full marker set for the current filter state, places first."""
    markers: list[Place | Event] = list(visible_places(places, state.show_places))
    if state.show_events:
        markers.extend(visible_events(events, state.event_window, now))
    return markers
