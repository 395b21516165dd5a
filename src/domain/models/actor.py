"""Actor domain model.

The identity provider is external: it hands the core an actor id and a
role. Optional per-user permission overrides travel with the actor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(Enum):
    """Console roles, highest first."""

    SUPER_ADMIN = "SUPER_ADMIN"
    OWNER = "OWNER"
    STAFF = "STAFF"


@dataclass(frozen=True)
class Actor:
    """An authenticated user performing an operation.

    Attributes:
        id: User identifier from the identity provider.
        role: Console role.
        granted: Extra permissions granted to this user only.
        revoked: Permissions withheld from this user despite the role.
        ip_address: Request origin, recorded on audit entries.
        user_agent: Request user agent, recorded on audit entries.
    """

    id: str
    role: Role
    granted: frozenset[str] = field(default_factory=frozenset)
    revoked: frozenset[str] = field(default_factory=frozenset)
    ip_address: str | None = None
    user_agent: str | None = None
