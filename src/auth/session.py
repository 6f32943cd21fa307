"""Signed-in session context.

Authentication itself (passwords, tokens) happens elsewhere; once the
provider hands back an account id, a :class:`Session` is created and
passed to whatever needs to know who is acting.
"""

from __future__ import annotations

import logging

from greenmap.auth.models import Profile, Role
from greenmap.auth.roles import Action, Decision, RoleGate, authorize, landing_route
from greenmap.content.backend import RecordBackend

logger = logging.getLogger(__name__)


class Session:
    """Holds the profile of the signed-in account, if any."""

    def __init__(self, gate: RoleGate) -> None:
        self._gate = gate
        self._profile: Profile | None = None

    @property
    def profile(self) -> Profile | None:
        return self._profile

    @property
    def is_authenticated(self) -> bool:
        return self._profile is not None

    def sign_in(self, profile_id: str) -> str:
        """Load the profile for ``profile_id`` and return the landing route."""
        self._profile = self._gate.load_profile(profile_id)
        if self._profile is None:
            logger.warning("Sign-in for %s found no profile", profile_id)
        return landing_route(self._profile)

    def sign_out(self) -> None:
        self._profile = None

    def reload(self) -> None:
        """Re-read the profile, e.g. after an admin decision."""
        if self._profile is not None:
            self._profile = self._gate.load_profile(self._profile.id)

    def authorize(self, action: Action) -> Decision:
        return authorize(self._profile, action)


def sign_up(
    backend: RecordBackend,
    email: str,
    *,
    organization: bool = False,
    profile_id: str | None = None,
) -> Profile:
    """Create the profile row for a new account.

    Organizations start as ``pending_org``; everyone else is a ``user``.
    Admin is never assigned here.
    """
    row: dict[str, object] = {
        "email": email.strip(),
        "role": (Role.PENDING_ORG if organization else Role.USER).value,
    }
    if profile_id is None:
        stored = backend.insert("profiles", row)
    else:
        # The auth provider already issued the id; re-running signup replaces the row.
        stored = backend.upsert("profiles", {"id": profile_id, **row})
    return Profile.model_validate(stored)
