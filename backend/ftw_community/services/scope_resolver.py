"""
FTW Community Backend — Scope Resolver
=======================================

What:  Decides which records an actor may read and which mutations it may
       perform, for every hierarchy resource.
How:   A role-dispatch table. Reads return a ScopeFilter the repositories
       apply; writes either return (a college id / a WriteDecision) or raise
       AuthorizationDenial with its fixed message.
Who:   CommunityService calls it before every repository read or write.

Read scopes:

    Resource        leadership*    core_team              college_lead         coordinator   member
    ─────────────── ────────────── ────────────────────── ──────────────────── ───────────── ──────
    colleges        all            id ∈ assignment        lead == self         denied        denied
    tasks, reports  all            college ∈ assignment   college == own       college==own  denied
    team directory  all            denied                 denied               denied        denied
    coordinators    super_admin**  denied                 college == own       denied        denied

    *  super_admin, co_lead, executive_lead
    ** co_lead and executive_lead are denied

Edge policy:
    - A missing CoreTeamAssignment is "no access": an empty filter, never an
      error and never "everything".
    - An actor without a college gets an empty filter, never an error.
    - A malformed actor (no role / unknown role) or an inactive actor is
      denied for every resource.

The resolver keeps no state between calls. Its only collaborator is the
assignment repository, consulted at most once per decision.
"""

import logging
from enum import Enum
from typing import FrozenSet, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.domain.roles import (
    COLLEGE_BOUND_ROLES,
    LEADERSHIP_ROLES,
    Actor,
    Role,
)
from ftw_community.domain.scope import ScopeFilter, WriteDecision
from ftw_community.exceptions import AuthorizationDenial, ValidationError
from ftw_community.models.work import Report, Task
from ftw_community.repositories.colleges import AssignmentRepository

logger = logging.getLogger(__name__)


class Resource(str, Enum):
    COLLEGES = "colleges"
    TASKS = "tasks"
    REPORTS = "reports"
    TEAM_DIRECTORY = "team_directory"
    COORDINATORS = "coordinators"


# Fields each class of actor may change on an existing task.
TASK_FIELDS_ALL = frozenset(
    {"title", "description", "status", "priority", "due_date", "assigned_to_id"}
)
TASK_FIELDS_STATUS_ONLY = frozenset({"status"})
REPORT_REVIEW_FIELDS = frozenset({"status"})

TASK_CREATOR_ROLES = frozenset(Role) - {Role.MEMBER}
REPORT_REVIEWER_ROLES = LEADERSHIP_ROLES | {Role.CORE_TEAM}


def _deny(actor: Actor, action: str) -> AuthorizationDenial:
    logger.info(
        "Denied %s for actor %s (role=%s)",
        action,
        actor.identity,
        actor.role.value if actor.role else None,
    )
    return AuthorizationDenial(context={"action": action})


def _checked_role(actor: Actor, action: str) -> Role:
    """The actor's role, or a denial for malformed / inactive actors."""
    if actor.role is None or not actor.is_active:
        raise _deny(actor, action)
    return actor.role


class ScopeResolver:

    def __init__(self, assignments: AssignmentRepository):
        self.assignments = assignments

    async def _assigned_colleges(self, db: AsyncSession, actor: Actor) -> FrozenSet[UUID]:
        ids = await self.assignments.assigned_college_ids(db, actor.identity)
        return ids if ids is not None else frozenset()

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def read_scope(self, db: AsyncSession, actor: Actor, resource: Resource) -> ScopeFilter:
        """Single entry point: the read predicate for `resource`."""
        if resource is Resource.COLLEGES:
            return await self.college_scope(db, actor)
        if resource in (Resource.TASKS, Resource.REPORTS):
            return await self.work_scope(db, actor, resource)
        if resource is Resource.TEAM_DIRECTORY:
            return self.team_scope(actor)
        if resource is Resource.COORDINATORS:
            return self.coordinator_scope(actor)
        raise _deny(actor, f"read:{resource}")

    async def college_scope(self, db: AsyncSession, actor: Actor) -> ScopeFilter:
        role = _checked_role(actor, "read:colleges")
        if role in LEADERSHIP_ROLES:
            return ScopeFilter.unrestricted()
        if role is Role.CORE_TEAM:
            return ScopeFilter.matching("id", await self._assigned_colleges(db, actor))
        if role is Role.COLLEGE_LEAD:
            return ScopeFilter.matching("college_lead_id", [actor.identity])
        raise _deny(actor, "read:colleges")

    async def work_scope(
        self, db: AsyncSession, actor: Actor, resource: Resource = Resource.TASKS
    ) -> ScopeFilter:
        """Tasks and reports share one predicate over `college_id`."""
        action = f"read:{resource.value}"
        role = _checked_role(actor, action)
        if role in LEADERSHIP_ROLES:
            return ScopeFilter.unrestricted()
        if role is Role.CORE_TEAM:
            return ScopeFilter.matching("college_id", await self._assigned_colleges(db, actor))
        if role in COLLEGE_BOUND_ROLES:
            return ScopeFilter.matching("college_id", [actor.college_id])
        raise _deny(actor, action)

    def team_scope(self, actor: Actor) -> ScopeFilter:
        role = _checked_role(actor, "read:team_directory")
        if role in LEADERSHIP_ROLES:
            return ScopeFilter.unrestricted()
        raise _deny(actor, "read:team_directory")

    def coordinator_scope(self, actor: Actor) -> ScopeFilter:
        role = _checked_role(actor, "read:coordinators")
        if role is Role.SUPER_ADMIN:
            return ScopeFilter.unrestricted()
        if role is Role.COLLEGE_LEAD:
            return ScopeFilter.matching("college_id", [actor.college_id])
        raise _deny(actor, "read:coordinators")

    # ══════════════════════════════════════════════════════════════════════
    # Hierarchy writes
    # ══════════════════════════════════════════════════════════════════════

    def _require_super_admin(self, actor: Actor, action: str) -> None:
        if _checked_role(actor, action) is not Role.SUPER_ADMIN:
            raise _deny(actor, action)

    def authorize_college_creation(self, actor: Actor) -> None:
        self._require_super_admin(actor, "create:college")

    def authorize_college_deletion(self, actor: Actor) -> None:
        self._require_super_admin(actor, "delete:college")

    def authorize_lead_elevation(self, actor: Actor) -> None:
        self._require_super_admin(actor, "elevate:college_lead")

    def authorize_member_creation(self, actor: Actor) -> None:
        self._require_super_admin(actor, "create:team_member")

    def authorize_core_assignment(self, actor: Actor) -> None:
        if _checked_role(actor, "assign:core_team") not in LEADERSHIP_ROLES:
            raise _deny(actor, "assign:core_team")

    def resolve_coordinator_college(self, actor: Actor, requested: Optional[UUID]) -> UUID:
        """
        The college a new coordinator is attached to.

        college_lead: always the lead's own college, whatever was requested.
        super_admin:  the requested college, which must be given.
        """
        role = _checked_role(actor, "create:coordinator")
        if role is Role.COLLEGE_LEAD:
            if actor.college_id is None:
                raise _deny(actor, "create:coordinator")
            if requested is not None and requested != actor.college_id:
                logger.info(
                    "Ignoring requested college %s for coordinator created by lead %s",
                    requested,
                    actor.identity,
                )
            return actor.college_id
        if role is Role.SUPER_ADMIN:
            if requested is None:
                raise ValidationError(
                    message="A college must be specified for the coordinator",
                    field="college_id",
                )
            return requested
        raise _deny(actor, "create:coordinator")

    # ══════════════════════════════════════════════════════════════════════
    # Task & report writes
    # ══════════════════════════════════════════════════════════════════════

    async def resolve_task_college(
        self, db: AsyncSession, actor: Actor, requested: Optional[UUID]
    ) -> Optional[UUID]:
        """The college a new task is filed under, or a denial."""
        role = _checked_role(actor, "create:task")
        if role not in TASK_CREATOR_ROLES:
            raise _deny(actor, "create:task")
        if role in LEADERSHIP_ROLES:
            return requested
        if role is Role.CORE_TEAM:
            if requested is None or requested not in await self._assigned_colleges(db, actor):
                raise _deny(actor, "create:task")
            return requested
        # college_lead / coordinator
        if actor.college_id is None:
            raise _deny(actor, "create:task")
        return actor.college_id

    async def task_update_decision(self, db: AsyncSession, actor: Actor, task: Task) -> WriteDecision:
        scope = await self.work_scope(db, actor, Resource.TASKS)
        if not scope.matches(task):
            raise _deny(actor, "update:task")
        if actor.role in LEADERSHIP_ROLES:
            return WriteDecision(TASK_FIELDS_ALL)
        return WriteDecision(TASK_FIELDS_STATUS_ONLY)

    def report_submission_college(self, actor: Actor) -> UUID:
        role = _checked_role(actor, "create:report")
        if role not in COLLEGE_BOUND_ROLES or actor.college_id is None:
            raise _deny(actor, "create:report")
        return actor.college_id

    async def report_review_decision(
        self, db: AsyncSession, actor: Actor, report: Report
    ) -> WriteDecision:
        role = _checked_role(actor, "review:report")
        if role not in REPORT_REVIEWER_ROLES:
            raise _deny(actor, "review:report")
        if role is Role.CORE_TEAM:
            if report.college_id not in await self._assigned_colleges(db, actor):
                raise _deny(actor, "review:report")
        return WriteDecision(REPORT_REVIEW_FIELDS)

    # ══════════════════════════════════════════════════════════════════════
    # Content permission flags
    # ══════════════════════════════════════════════════════════════════════

    def require_permission(self, actor: Actor, flag: str) -> None:
        """Gate on one of the role-derived PermissionFlags by attribute name."""
        _checked_role(actor, f"permission:{flag}")
        if not getattr(actor.permissions, flag, False):
            raise _deny(actor, f"permission:{flag}")
