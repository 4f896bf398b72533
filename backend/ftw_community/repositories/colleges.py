"""
FTW Community Backend — College & Assignment Repositories
==========================================================

What:  Data access for colleges and the two assignment tables.
Who:   ScopeResolver reads core-team assignments to build college sets;
       CommunityService creates, deletes, and assigns.

Absence contract:
    `AssignmentRepository.assigned_college_ids` returns None when the user
    has no CoreTeamAssignment record at all, and an empty frozenset when the
    record exists but lists no colleges. The resolver treats both as
    "no access".
"""

import logging
from typing import FrozenSet, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.domain.scope import ScopeFilter
from ftw_community.exceptions import ConflictError
from ftw_community.models.college import (
    College,
    CoordinatorAssignment,
    CoreTeamAssignment,
    CoreTeamAssignmentCollege,
)
from ftw_community.repositories import apply_scope

logger = logging.getLogger(__name__)


class CollegeRepository:

    async def get(self, db: AsyncSession, college_id: UUID) -> Optional[College]:
        result = await db.execute(select(College).where(College.id == college_id))
        return result.scalar_one_or_none()

    async def get_by_name(self, db: AsyncSession, name: str) -> Optional[College]:
        result = await db.execute(select(College).where(College.name == name))
        return result.scalar_one_or_none()

    async def list_scoped(self, db: AsyncSession, scope: ScopeFilter) -> List[College]:
        if scope.is_empty:
            return []
        query = apply_scope(select(College), College, scope).order_by(College.name)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def existing_ids(self, db: AsyncSession, college_ids: Iterable[UUID]) -> FrozenSet[UUID]:
        ids = list(college_ids)
        if not ids:
            return frozenset()
        result = await db.execute(select(College.id).where(College.id.in_(ids)))
        return frozenset(result.scalars().all())

    async def add(self, db: AsyncSession, college: College) -> College:
        if await self.get_by_name(db, college.name) is not None:
            raise ConflictError(message="A college with this name already exists", field="name")
        db.add(college)
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning("Duplicate college insert for name=%s", college.name)
            raise ConflictError(message="A college with this name already exists") from e
        return college

    async def delete(self, db: AsyncSession, college: College) -> None:
        await db.delete(college)
        await db.flush()


class AssignmentRepository:

    # ── Core Team ─────────────────────────────────────────────────────────

    async def get_core_assignment(
        self, db: AsyncSession, user_id: UUID
    ) -> Optional[CoreTeamAssignment]:
        result = await db.execute(
            select(CoreTeamAssignment).where(CoreTeamAssignment.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def college_ids_for(self, db: AsyncSession, assignment_id: UUID) -> FrozenSet[UUID]:
        result = await db.execute(
            select(CoreTeamAssignmentCollege.college_id).where(
                CoreTeamAssignmentCollege.assignment_id == assignment_id
            )
        )
        return frozenset(result.scalars().all())

    async def assigned_college_ids(
        self, db: AsyncSession, user_id: UUID
    ) -> Optional[FrozenSet[UUID]]:
        """Colleges a core-team member may act upon, or None without an assignment."""
        assignment = await self.get_core_assignment(db, user_id)
        if assignment is None:
            return None
        return await self.college_ids_for(db, assignment.id)

    async def upsert_core_assignment(
        self,
        db: AsyncSession,
        user_id: UUID,
        executive_lead_id: UUID,
        vertical: str,
        college_ids: Iterable[UUID],
    ) -> CoreTeamAssignment:
        """Create or replace the single assignment a core-team member may hold."""
        assignment = await self.get_core_assignment(db, user_id)
        if assignment is None:
            assignment = CoreTeamAssignment(
                user_id=user_id,
                executive_lead_id=executive_lead_id,
                vertical=vertical,
            )
            db.add(assignment)
            await db.flush()
        else:
            assignment.executive_lead_id = executive_lead_id
            assignment.vertical = vertical
            await db.execute(
                delete(CoreTeamAssignmentCollege).where(
                    CoreTeamAssignmentCollege.assignment_id == assignment.id
                )
            )

        for college_id in set(college_ids):
            db.add(CoreTeamAssignmentCollege(assignment_id=assignment.id, college_id=college_id))
        await db.flush()
        return assignment

    # ── Coordinators ──────────────────────────────────────────────────────

    async def add_coordinator_assignment(
        self, db: AsyncSession, user_id: UUID, college_id: UUID, assigned_by_id: UUID
    ) -> CoordinatorAssignment:
        assignment = CoordinatorAssignment(
            user_id=user_id,
            college_id=college_id,
            assigned_by_id=assigned_by_id,
        )
        db.add(assignment)
        await db.flush()
        return assignment

    # ── Cascade ───────────────────────────────────────────────────────────

    async def prune_college(self, db: AsyncSession, college_id: UUID) -> None:
        """Drop every assignment row that points at `college_id`."""
        await db.execute(
            delete(CoreTeamAssignmentCollege).where(
                CoreTeamAssignmentCollege.college_id == college_id
            )
        )
        await db.execute(
            delete(CoordinatorAssignment).where(CoordinatorAssignment.college_id == college_id)
        )
