"""Authoring submissions for new places and events.

A submission runs in a fixed order and stops at the first problem:

1. role gate check for the acting account
2. coordinates, typed directly or geocoded from the address
3. photo upload, if a photo was attached
4. insert into the record store

Nothing is written unless every earlier step succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

from greenmap.auth.models import Profile
from greenmap.auth.roles import Action, authorize
from greenmap.content.images import ImageStorage
from greenmap.content.models import Event, Place, RecordKind
from greenmap.content.store import ContentStore
from greenmap.errors import ImageUploadError, StoreError
from greenmap.geo.bounds import MapBounds
from greenmap.geo.geocoding import GeocodingService, NotFound

logger = logging.getLogger(__name__)

ADDRESS_NOT_FOUND = "Could not find that address. Try being more specific."
LOCATION_REQUIRED = "Please enter an address or use your current location."
TITLE_REQUIRED = "Please give it a title."


@dataclass
class Submission:
    """Form values for a new place or event."""

    title: str
    category: str = ""
    description: str = ""
    vibes: list[str] = field(default_factory=list)
    address: str = ""
    lat: float | None = None
    lng: float | None = None
    photo: Path | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class SubmissionResult(BaseModel):
    """What happened to a submission."""

    ok: bool
    notice: str = ""
    record: Place | Event | None = None
    redirect: str | None = None


class ContentAuthor:
    """Runs authoring submissions against the store."""

    def __init__(
        self,
        store: ContentStore,
        geocoder: GeocodingService,
        images: ImageStorage | None = None,
        bounds: MapBounds | None = None,
    ) -> None:
        self.store = store
        self.geocoder = geocoder
        self.images = images
        self.bounds = bounds

    def submit_place(self, profile: Profile | None, submission: Submission) -> SubmissionResult:
        return self._submit(profile, submission, RecordKind.PLACE)

    def submit_event(self, profile: Profile | None, submission: Submission) -> SubmissionResult:
        return self._submit(profile, submission, RecordKind.EVENT)

    def _submit(
        self, profile: Profile | None, submission: Submission, kind: RecordKind
    ) -> SubmissionResult:
        action = Action.AUTHOR_EVENT if kind == RecordKind.EVENT else Action.AUTHOR_PLACE
        decision = authorize(profile, action)
        if not decision.allowed:
            return SubmissionResult(ok=False, notice=decision.reason, redirect=decision.redirect)

        if not submission.title.strip():
            return SubmissionResult(ok=False, notice=TITLE_REQUIRED)

        lat, lng, address = submission.lat, submission.lng, submission.address
        if (lat is None or lng is None) and address.strip():
            resolved = self.geocoder.forward_geocode(address)
            if isinstance(resolved, NotFound):
                return SubmissionResult(ok=False, notice=ADDRESS_NOT_FOUND)
            lat, lng, address = resolved.lat, resolved.lng, resolved.display_address
        if lat is None or lng is None:
            return SubmissionResult(ok=False, notice=LOCATION_REQUIRED)

        if self.bounds is not None and not self.bounds.contains(lat, lng):
            logger.warning("%s %r is outside the map area (%s, %s)", kind, submission.title, lat, lng)

        image_url = None
        if submission.photo is not None:
            if self.images is None:
                return SubmissionResult(ok=False, notice="Image upload failed: no image storage")
            try:
                image_url = self.images.upload(submission.photo, f"{kind}s")
            except ImageUploadError as exc:
                return SubmissionResult(ok=False, notice=f"Image upload failed: {exc}")

        fields = {
            "title": submission.title.strip(),
            "category": submission.category,
            "description": submission.description or None,
            "vibes": list(submission.vibes),
            "lat": lat,
            "lng": lng,
            "address": address,
            "image_url": image_url,
        }
        try:
            if kind == RecordKind.EVENT:
                fields["start_time"] = submission.start_time
                fields["end_time"] = submission.end_time
                fields["org_id"] = profile.id if profile is not None else None
                record: Place | Event = self.store.insert_event(fields)
            else:
                record = self.store.insert_place(fields)
        except (StoreError, ValidationError) as exc:
            logger.warning("Failed to save %s %r", kind, submission.title, exc_info=True)
            return SubmissionResult(ok=False, notice=f"Failed to save {kind}: {exc}")

        logger.info("Saved %s %s (%r)", kind, record.id, record.title)
        return SubmissionResult(ok=True, record=record)
