"""
FTW Community Backend — Roles, Permission Flags and the Actor Descriptor
=========================================================================

What:  The canonical role set, the permission flags derived from each role,
       and the immutable `Actor` every authorization decision is made for.
Who:   Built by the identity service from a stored user record; consumed by
       the scope resolver and the content service.

Role hierarchy (highest first):
    super_admin → co_lead → executive_lead → core_team
                → college_lead → coordinator → member

Permission flags are never stored and never accepted from a client. They are
recomputed from the role every time an Actor is built, so a role change is
the only way to change what an actor may manage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
from uuid import UUID


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    CO_LEAD = "co_lead"
    EXECUTIVE_LEAD = "executive_lead"
    CORE_TEAM = "core_team"
    COLLEGE_LEAD = "college_lead"
    COORDINATOR = "coordinator"
    MEMBER = "member"


# Sort key for the team directory: highest role first.
ROLE_RANK: Dict[Role, int] = {role: rank for rank, role in enumerate(Role)}

# Roles with organisation-wide visibility.
LEADERSHIP_ROLES = frozenset({Role.SUPER_ADMIN, Role.CO_LEAD, Role.EXECUTIVE_LEAD})

# Roles whose visibility is bounded by their own college.
COLLEGE_BOUND_ROLES = frozenset({Role.COLLEGE_LEAD, Role.COORDINATOR})


def parse_role(value: object) -> Optional[Role]:
    """Return the Role for `value`, or None when it is missing or unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class PermissionFlags:
    """Independent capability flags for the public-content endpoints."""

    can_manage_videos: bool = False
    can_manage_events: bool = False
    can_manage_top_rated: bool = False
    can_approve_apps: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {
            "can_manage_videos": self.can_manage_videos,
            "can_manage_events": self.can_manage_events,
            "can_manage_top_rated": self.can_manage_top_rated,
            "can_approve_apps": self.can_approve_apps,
        }


_ALL_FLAGS = PermissionFlags(
    can_manage_videos=True,
    can_manage_events=True,
    can_manage_top_rated=True,
    can_approve_apps=True,
)
_NO_FLAGS = PermissionFlags()

ROLE_PERMISSIONS: Dict[Role, PermissionFlags] = {
    Role.SUPER_ADMIN: _ALL_FLAGS,
    Role.CO_LEAD: _ALL_FLAGS,
    Role.EXECUTIVE_LEAD: PermissionFlags(
        can_manage_events=True,
        can_manage_top_rated=True,
        can_approve_apps=True,
    ),
    Role.CORE_TEAM: PermissionFlags(can_manage_events=True),
    Role.COLLEGE_LEAD: _NO_FLAGS,
    Role.COORDINATOR: _NO_FLAGS,
    Role.MEMBER: _NO_FLAGS,
}


def permissions_for(role: Optional[Role]) -> PermissionFlags:
    if role is None:
        return _NO_FLAGS
    return ROLE_PERMISSIONS.get(role, _NO_FLAGS)


@dataclass(frozen=True)
class Actor:
    """
    The authenticated caller, as seen by the authorization model.

    Attributes:
        identity:      Primary key of the user record
        role:          Exactly one Role, or None for a malformed record
                       (every resolver decision denies a None role)
        college_id:    The college the actor is affiliated with, if any
        organization:  Free-text affiliation shown in the UI
        is_active:     False once the account has been locked
        permissions:   Role-derived flags (see ROLE_PERMISSIONS)
    """

    identity: UUID
    role: Optional[Role]
    college_id: Optional[UUID] = None
    organization: str = "Headquarters"
    is_active: bool = True
    permissions: PermissionFlags = field(default=_NO_FLAGS)

    @classmethod
    def build(
        cls,
        identity: UUID,
        role: object,
        college_id: Optional[UUID] = None,
        organization: Optional[str] = None,
        is_active: bool = True,
    ) -> "Actor":
        """Create an Actor, deriving its permission flags from the role."""
        parsed = parse_role(role)
        return cls(
            identity=identity,
            role=parsed,
            college_id=college_id,
            organization=organization or "Headquarters",
            is_active=is_active,
            permissions=permissions_for(parsed),
        )
