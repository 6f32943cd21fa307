"""Accounts, roles, and the authoring gate."""

from greenmap.auth.models import Profile, Role
from greenmap.auth.roles import Action, Decision, RoleGate, authorize, landing_route
from greenmap.auth.session import Session, sign_up

__all__ = [
    "Action",
    "Decision",
    "Profile",
    "Role",
    "RoleGate",
    "Session",
    "authorize",
    "landing_route",
    "sign_up",
]
