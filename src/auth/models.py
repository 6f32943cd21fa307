"""Account profile and role types."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Role(StrEnum):
    """Account role — the only authorization signal.

    ``UNKNOWN`` stands in for any stored value outside the known set and
    is denied every authoring action.
    """

    USER = "user"
    PENDING_ORG = "pending_org"
    APPROVED_ORG = "approved_org"
    ADMIN = "admin"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> Role:
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            raw = value.strip().lower()
            # Early approvals were written as plain "org".
            if raw == "org":
                return cls.APPROVED_ORG
            try:
                return cls(raw)
            except ValueError:
                pass
        return cls.UNKNOWN


class Profile(BaseModel):
    """A row from the ``profiles`` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str = ""
    role: Role = Role.UNKNOWN
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> Role:
        return Role.parse(value)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def is_org(self) -> bool:
        return self.role in (Role.PENDING_ORG, Role.APPROVED_ORG)
