"""
FTW Community Backend — User Repository
========================================

What:  Queries and writes against the `users` table.
Who:   IdentityService (lookups by team id, last-login stamping),
       ScopeResolver (own-college lookups), CommunityService (hierarchy).
"""

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.domain.roles import ROLE_RANK, Role, parse_role
from ftw_community.domain.scope import ScopeFilter
from ftw_community.exceptions import ConflictError
from ftw_community.models.user import User
from ftw_community.repositories import apply_scope

logger = logging.getLogger(__name__)


class UserRepository:

    async def get(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_team_id(self, db: AsyncSession, team_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.team_id == team_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def add(self, db: AsyncSession, user: User) -> User:
        """
        Insert a new user, enforcing unique team id and email.

        Raises:
            ConflictError: team id or email already taken
        """
        if await self.get_by_team_id(db, user.team_id) is not None:
            raise ConflictError(message="Team ID is already in use", field="team_id")
        if user.email and await self.get_by_email(db, user.email) is not None:
            raise ConflictError(message="Email is already in use", field="email")

        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent insert with the same key
            logger.warning("Duplicate user insert for team_id=%s", user.team_id)
            raise ConflictError(message="Team ID or email is already in use") from e
        return user

    async def list_scoped(
        self,
        db: AsyncSession,
        scope: ScopeFilter,
        roles: Optional[Iterable[Role]] = None,
    ) -> List[User]:
        """Users matching `scope`, optionally restricted to `roles`."""
        if scope.is_empty:
            return []
        query = apply_scope(select(User), User, scope)
        if roles is not None:
            query = query.where(User.role.in_([r.value for r in roles]))
        result = await db.execute(query.order_by(User.name))
        return list(result.scalars().all())

    async def list_by_rank(self, db: AsyncSession) -> List[User]:
        """Every user, highest role first, then by name."""
        result = await db.execute(select(User))
        users = list(result.scalars().all())
        lowest = len(ROLE_RANK)
        users.sort(key=lambda u: (ROLE_RANK.get(parse_role(u.role), lowest), u.name))
        return users

    async def deactivate_by_college(self, db: AsyncSession, college_id: UUID) -> int:
        """Lock every account affiliated with `college_id`; returns rows touched."""
        result = await db.execute(
            update(User)
            .where(User.college_id == college_id)
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(User.id)))
        return result.scalar() or 0
