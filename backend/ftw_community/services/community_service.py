"""
FTW Community Backend — Community Service (Hierarchy Orchestrator)
===================================================================

What:  Colleges, staff accounts, coordinator and core-team assignments, and
       the college-scoped kanban tasks and weekly reports.
How:   Every operation asks the ScopeResolver first, then talks to the
       repositories. Reads pass the resolver's ScopeFilter straight through;
       writes use the college id / WriteDecision the resolver returned.
Who:   Called by routes/community.py and routes/work.py.

College deletion:
    ┌────────────────┐   ┌────────────────────────────────────────────┐
    │ DELETE college │──▶│ savepoint (tenacity retries on DB errors)  │
    │ (primary write)│   │   1. lock every user with that college_id  │
    └────────────────┘   │   2. drop assignment rows for the college  │
                         └────────────────────────────────────────────┘
    The primary deletion stands even when the cascade finally fails; the
    failure is logged with the college id so it can be replayed.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ftw_community.domain.roles import Actor, Role, parse_role
from ftw_community.exceptions import NotFoundError, ValidationError
from ftw_community.models.college import College, CoreTeamAssignment
from ftw_community.models.user import User
from ftw_community.models.work import Report, Task
from ftw_community.repositories.colleges import AssignmentRepository, CollegeRepository
from ftw_community.repositories.users import UserRepository
from ftw_community.repositories.work import ReportRepository, TaskRepository
from ftw_community.services.passwords import PasswordHasher
from ftw_community.services.scope_resolver import Resource, ScopeResolver

logger = logging.getLogger(__name__)

STAFF_ROLES = [role for role in Role if role is not Role.MEMBER]


class CommunityService:
    """
    Hierarchy and work-item operations.

    Args:
        resolver:          the shared ScopeResolver
        users, colleges, assignments, tasks, reports: repositories
        hasher:            hashes passkeys of accounts created here
        cascade_attempts:  tenacity stop_after_attempt for the deletion cascade
        cascade_min_wait / cascade_max_wait: backoff bounds in seconds
    """

    def __init__(
        self,
        resolver: ScopeResolver,
        users: UserRepository,
        colleges: CollegeRepository,
        assignments: AssignmentRepository,
        tasks: TaskRepository,
        reports: ReportRepository,
        hasher: PasswordHasher,
        cascade_attempts: int = 3,
        cascade_min_wait: float = 0.5,
        cascade_max_wait: float = 5.0,
    ):
        self.resolver = resolver
        self.users = users
        self.colleges = colleges
        self.assignments = assignments
        self.tasks = tasks
        self.reports = reports
        self.hasher = hasher
        self.cascade_attempts = cascade_attempts
        self.cascade_min_wait = cascade_min_wait
        self.cascade_max_wait = cascade_max_wait

    # ── Colleges ──────────────────────────────────────────────────────────

    async def list_colleges(self, db: AsyncSession, actor: Actor) -> List[College]:
        scope = await self.resolver.read_scope(db, actor, Resource.COLLEGES)
        return await self.colleges.list_scoped(db, scope)

    async def create_college(
        self,
        db: AsyncSession,
        actor: Actor,
        name: str,
        college_lead_id: Optional[UUID] = None,
    ) -> College:
        """
        Create a college and, when a lead is named, elevate that user to
        college_lead and affiliate them with the new college.

        Raises:
            AuthorizationDenial: actor is not a super_admin
            NotFoundError:       the named lead does not exist
            ConflictError:       a college with this name exists
        """
        self.resolver.authorize_college_creation(actor)

        lead: Optional[User] = None
        if college_lead_id is not None:
            self.resolver.authorize_lead_elevation(actor)
            lead = await self.users.get(db, college_lead_id)
            if lead is None:
                raise NotFoundError(resource="user", resource_id=str(college_lead_id))

        college = await self.colleges.add(
            db,
            College(name=name.strip(), college_lead_id=college_lead_id, created_by_id=actor.identity),
        )

        if lead is not None:
            lead.role = Role.COLLEGE_LEAD.value
            lead.college_id = college.id
            await db.flush()
            logger.info("User %s elevated to college_lead of %s", lead.id, college.id)

        logger.info("College %s (%s) created by %s", college.id, college.name, actor.identity)
        return college

    async def delete_college(self, db: AsyncSession, actor: Actor, college_id: UUID) -> int:
        """
        Delete a college, then lock its users and drop its assignments.

        Returns:
            Number of accounts deactivated (0 if the cascade failed)
        """
        self.resolver.authorize_college_deletion(actor)
        college = await self.colleges.get(db, college_id)
        if college is None:
            raise NotFoundError(resource="college", resource_id=str(college_id))

        await self.colleges.delete(db, college)
        logger.info("College %s deleted by %s", college_id, actor.identity)

        try:
            return await self._run_cascade(db, college_id)
        except SQLAlchemyError as e:
            logger.error(
                "Deactivation cascade failed for deleted college %s after %d attempts: %s",
                college_id,
                self.cascade_attempts,
                e,
            )
            return 0

    async def _run_cascade(self, db: AsyncSession, college_id: UUID) -> int:
        locked = 0
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(SQLAlchemyError),
            stop=stop_after_attempt(self.cascade_attempts),
            wait=wait_exponential(multiplier=self.cascade_min_wait, max=self.cascade_max_wait)
            + wait_random(0, self.cascade_min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                async with db.begin_nested():
                    locked = await self.users.deactivate_by_college(db, college_id)
                    await self.assignments.prune_college(db, college_id)
        logger.info("Deactivated %d account(s) of deleted college %s", locked, college_id)
        return locked

    # ── Staff ─────────────────────────────────────────────────────────────

    async def list_team(self, db: AsyncSession, actor: Actor) -> List[User]:
        """Every non-member account."""
        scope = await self.resolver.read_scope(db, actor, Resource.TEAM_DIRECTORY)
        return await self.users.list_scoped(db, scope, roles=STAFF_ROLES)

    async def directory(self, db: AsyncSession, actor: Actor) -> List[User]:
        """Every account, highest role first."""
        await self.resolver.read_scope(db, actor, Resource.TEAM_DIRECTORY)
        return await self.users.list_by_rank(db)

    async def create_team_member(
        self,
        db: AsyncSession,
        actor: Actor,
        *,
        team_id: str,
        name: str,
        passkey: str,
        role: str,
        email: Optional[str] = None,
        college_id: Optional[UUID] = None,
        organization: Optional[str] = None,
    ) -> User:
        self.resolver.authorize_member_creation(actor)

        parsed = parse_role(role)
        if parsed is None:
            raise ValidationError(message=f"Unknown role '{role}'", field="role")
        if college_id is not None:
            await self._require_college(db, college_id)

        user = User(
            team_id=team_id,
            name=name,
            email=email,
            passkey_hash=self.hasher.hash(passkey),
            role=parsed.value,
            college_id=college_id,
            organization=organization or "Headquarters",
        )
        await self.users.add(db, user)
        logger.info("User %s (%s) created by %s", user.id, parsed.value, actor.identity)
        return user

    # ── Coordinators ──────────────────────────────────────────────────────

    async def list_coordinators(self, db: AsyncSession, actor: Actor) -> List[User]:
        scope = await self.resolver.read_scope(db, actor, Resource.COORDINATORS)
        return await self.users.list_scoped(db, scope, roles=[Role.COORDINATOR])

    async def create_coordinator(
        self,
        db: AsyncSession,
        actor: Actor,
        *,
        team_id: str,
        name: str,
        passkey: str,
        email: Optional[str] = None,
        college_id: Optional[UUID] = None,
    ) -> User:
        """
        Create a coordinator account and its CoordinatorAssignment.

        A college_lead's coordinator always lands in the lead's own college;
        any `college_id` the lead sends is ignored.
        """
        target_college = self.resolver.resolve_coordinator_college(actor, college_id)
        await self._require_college(db, target_college)

        user = User(
            team_id=team_id,
            name=name,
            email=email,
            passkey_hash=self.hasher.hash(passkey),
            role=Role.COORDINATOR.value,
            college_id=target_college,
        )
        await self.users.add(db, user)
        await self.assignments.add_coordinator_assignment(
            db, user_id=user.id, college_id=target_college, assigned_by_id=actor.identity
        )
        logger.info("Coordinator %s created in college %s by %s", user.id, target_college, actor.identity)
        return user

    # ── Core team ─────────────────────────────────────────────────────────

    async def assign_core_team(
        self,
        db: AsyncSession,
        actor: Actor,
        *,
        user_id: UUID,
        vertical: str,
        college_ids: Iterable[UUID],
        executive_lead_id: Optional[UUID] = None,
    ) -> CoreTeamAssignment:
        """
        Create or replace the college set a core-team member operates on.

        Raises:
            AuthorizationDenial: actor is below executive_lead
            NotFoundError:       target user or executive lead does not exist
            ValidationError:     target is not core_team, or a college is unknown
        """
        self.resolver.authorize_core_assignment(actor)

        member = await self.users.get(db, user_id)
        if member is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        if parse_role(member.role) is not Role.CORE_TEAM:
            raise ValidationError(
                message="Only core_team members can receive a college assignment",
                field="user_id",
            )

        lead_id = executive_lead_id or actor.identity
        if lead_id != actor.identity and await self.users.get(db, lead_id) is None:
            raise NotFoundError(resource="user", resource_id=str(lead_id))

        requested = frozenset(college_ids)
        missing = requested - await self.colleges.existing_ids(db, requested)
        if missing:
            raise ValidationError(
                message="One or more colleges do not exist",
                field="college_ids",
                context={"missing": sorted(str(c) for c in missing)},
            )

        assignment = await self.assignments.upsert_core_assignment(
            db,
            user_id=user_id,
            executive_lead_id=lead_id,
            vertical=vertical,
            college_ids=requested,
        )
        logger.info(
            "Core-team member %s assigned to %d college(s) by %s",
            user_id,
            len(requested),
            actor.identity,
        )
        return assignment

    async def assignment_colleges(self, db: AsyncSession, assignment: CoreTeamAssignment) -> List[UUID]:
        return sorted(await self.assignments.college_ids_for(db, assignment.id), key=str)

    # ── Tasks ─────────────────────────────────────────────────────────────

    async def list_tasks(self, db: AsyncSession, actor: Actor) -> List[Task]:
        scope = await self.resolver.read_scope(db, actor, Resource.TASKS)
        return await self.tasks.list_scoped(db, scope)

    async def create_task(
        self,
        db: AsyncSession,
        actor: Actor,
        fields: Dict[str, Any],
        college_id: Optional[UUID] = None,
    ) -> Task:
        target_college = await self.resolver.resolve_task_college(db, actor, college_id)
        if target_college is not None:
            await self._require_college(db, target_college)
        await self._require_assignee(db, fields.get("assigned_to_id"))

        task = Task(college_id=target_college, **fields)
        await self.tasks.add(db, task)
        logger.info("Task %s created in college %s by %s", task.id, target_college, actor.identity)
        return task

    async def update_task(
        self, db: AsyncSession, actor: Actor, task_id: UUID, changes: Dict[str, Any]
    ) -> Task:
        """
        Apply `changes` to a task within the actor's scope.

        Raises:
            NotFoundError:       no such task, or the new assignee does not exist
            AuthorizationDenial: task out of scope, or a field the actor may not change
        """
        task = await self.tasks.get(db, task_id)
        if task is None:
            raise NotFoundError(resource="task", resource_id=str(task_id))

        decision = await self.resolver.task_update_decision(db, actor, task)
        decision.check_fields(changes.keys())
        await self._require_assignee(db, changes.get("assigned_to_id"))

        for field_name, value in changes.items():
            setattr(task, field_name, value)
        await db.flush()
        return task

    # ── Reports ───────────────────────────────────────────────────────────

    async def list_reports(self, db: AsyncSession, actor: Actor) -> List[Report]:
        scope = await self.resolver.read_scope(db, actor, Resource.REPORTS)
        return await self.reports.list_scoped(db, scope)

    async def submit_report(
        self,
        db: AsyncSession,
        actor: Actor,
        content: str,
        metrics: Optional[Dict[str, Any]] = None,
    ) -> Report:
        college_id = self.resolver.report_submission_college(actor)
        report = Report(
            author_id=actor.identity,
            college_id=college_id,
            content=content,
            metrics=metrics or {},
        )
        await self.reports.add(db, report)
        logger.info("Report %s submitted for college %s", report.id, college_id)
        return report

    async def review_report(
        self, db: AsyncSession, actor: Actor, report_id: UUID, status: str
    ) -> Report:
        report = await self.reports.get(db, report_id)
        if report is None:
            raise NotFoundError(resource="report", resource_id=str(report_id))

        decision = await self.resolver.report_review_decision(db, actor, report)
        decision.check_fields({"status"})

        report.status = status
        report.reviewed_by_id = actor.identity
        await db.flush()
        logger.info("Report %s marked %s by %s", report.id, status, actor.identity)
        return report

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _require_college(self, db: AsyncSession, college_id: UUID) -> College:
        college = await self.colleges.get(db, college_id)
        if college is None:
            raise NotFoundError(resource="college", resource_id=str(college_id))
        return college

    async def _require_assignee(self, db: AsyncSession, user_id: Optional[UUID]) -> None:
        if user_id is not None and await self.users.get(db, user_id) is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
