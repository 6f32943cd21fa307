"""Role gate — who may author what, and the org approval workflow.

Every authoring entry point calls :func:`authorize` before doing any
work.  The decision is a value, not an exception, so callers branch on
``decision.allowed`` and show ``decision.reason`` when denied.

Approval transitions::

    pending_org ──approve──▶ approved_org
    pending_org ──deny─────▶ user

Both are admin-only and there is no way back to ``pending_org``.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from pydantic import BaseModel, ValidationError

from greenmap.auth.models import Profile, Role
from greenmap.content.backend import RecordBackend
from greenmap.errors import AuthorizationError, StoreError

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"
MAP_ROUTE = "/map"
ADMIN_ROUTE = "/admin"
PENDING_ROUTE = "/pending-review"

PENDING_NOTICE = "Your organization is awaiting admin approval."
PENDING_BANNER = (
    "Your organization is awaiting admin approval. "
    "You can explore the map, but cannot post yet."
)


class Action(StrEnum):
    """Gated actions."""

    AUTHOR_PLACE = "author_place"
    AUTHOR_EVENT = "author_event"
    REVIEW_ORGS = "review_orgs"


class Decision(BaseModel):
    """Outcome of an authorization check."""

    allowed: bool
    reason: str = ""
    redirect: str | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, redirect: str | None = None) -> Decision:
        return cls(allowed=False, reason=reason, redirect=redirect)

    def __bool__(self) -> bool:
        return self.allowed


PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.USER: frozenset({Action.AUTHOR_PLACE}),
    Role.PENDING_ORG: frozenset(),
    Role.APPROVED_ORG: frozenset({Action.AUTHOR_PLACE, Action.AUTHOR_EVENT}),
    Role.ADMIN: frozenset({Action.AUTHOR_PLACE, Action.REVIEW_ORGS}),
    Role.UNKNOWN: frozenset(),
}

_DENIALS: dict[tuple[Role, Action], str] = {
    (Role.PENDING_ORG, Action.AUTHOR_PLACE): PENDING_NOTICE,
    (Role.PENDING_ORG, Action.AUTHOR_EVENT): PENDING_NOTICE,
    (Role.USER, Action.AUTHOR_EVENT): "Only approved organizations can post events.",
    (Role.ADMIN, Action.AUTHOR_EVENT): "Admin accounts cannot post events.",
}


def authorize(profile: Profile | None, action: Action) -> Decision:
    """Decide whether ``profile`` may perform ``action``.

    ``None`` means nobody is signed in; the decision then carries a
    redirect to the login route.
    """
    if profile is None:
        return Decision.deny("Please log in to continue.", redirect=LOGIN_ROUTE)

    if action in PERMISSIONS.get(profile.role, frozenset()):
        return Decision.allow()

    if action == Action.REVIEW_ORGS:
        return Decision.deny("You do not have permission to view this page.", redirect=MAP_ROUTE)
    reason = _DENIALS.get((profile.role, action), "Your account is not allowed to do that.")
    return Decision.deny(reason)


def landing_route(profile: Profile | None) -> str:
    """Where to send an account right after it signs in or signs up."""
    if profile is None:
        return LOGIN_ROUTE
    if profile.role == Role.PENDING_ORG:
        return PENDING_ROUTE
    if profile.role == Role.ADMIN:
        return ADMIN_ROUTE
    return MAP_ROUTE


class RoleGate:
    """Profile lookups and the admin approval workflow."""

    def __init__(self, backend: RecordBackend) -> None:
        self._backend = backend

    def load_profile(self, profile_id: str) -> Profile | None:
        """Read one profile. Returns None when missing or unreadable."""
        try:
            row = self._backend.get("profiles", profile_id)
        except StoreError:
            logger.warning("Failed to load profile %s", profile_id, exc_info=True)
            return None
        if row is None:
            return None
        try:
            return Profile.model_validate(row)
        except ValidationError:
            logger.warning("Malformed profile row %s", profile_id, exc_info=True)
            return None

    def check(self, profile_id: str, action: Action) -> Decision:
        """Load a profile by id and authorize ``action`` for it."""
        return authorize(self.load_profile(profile_id), action)

    def _require_admin(self, admin: Profile | None) -> None:
        decision = authorize(admin, Action.REVIEW_ORGS)
        if not decision.allowed:
            raise AuthorizationError("Admin access required", reason=decision.reason)

    def pending_orgs(self, admin: Profile | None) -> list[Profile]:
        """List organizations awaiting review."""
        self._require_admin(admin)
        try:
            rows = self._backend.select_where("profiles", "role", Role.PENDING_ORG.value)
        except StoreError:
            logger.warning("Failed to load pending organizations", exc_info=True)
            return []
        pending = []
        for row in rows:
            try:
                pending.append(Profile.model_validate(row))
            except ValidationError:
                logger.warning("Skipping malformed profile row %s", row.get("id"), exc_info=True)
        return pending

    def _decide(self, admin: Profile | None, profile_id: str, new_role: Role) -> Profile | None:
        self._require_admin(admin)
        current = self.load_profile(profile_id)
        if current is None:
            logger.warning("No profile %s to review", profile_id)
            return None
        if current.role != Role.PENDING_ORG:
            # Already decided; nothing to do.
            return current
        row = self._backend.update("profiles", profile_id, {"role": new_role.value})
        logger.info("Profile %s: %s -> %s", profile_id, current.role, new_role)
        return Profile.model_validate(row) if row is not None else None

    def approve_org(self, admin: Profile | None, profile_id: str) -> Profile | None:
        """Move a pending organization to ``approved_org``."""
        return self._decide(admin, profile_id, Role.APPROVED_ORG)

    def deny_org(self, admin: Profile | None, profile_id: str) -> Profile | None:
        """Move a pending organization back to a plain ``user``."""
        return self._decide(admin, profile_id, Role.USER)
