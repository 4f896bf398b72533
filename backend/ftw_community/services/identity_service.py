"""
FTW Community Backend — Identity & Credential Store
====================================================

What:  Authenticates team id + passkey, issues and verifies sessions, and
       turns a verified session back into a fresh Actor.
Who:   Login route, the `current_actor` dependency, profile routes.

Authentication flow:
    ┌───────────────┐   ┌─────────────────┐   ┌──────────────┐   ┌────────────┐
    │ team id known?│──▶│ passkey verifies│──▶│ account      │──▶│ Actor +    │
    │   (else dummy │   │ against hash?   │   │ active?      │   │ session    │
    │    verify)    │   └─────────────────┘   └──────────────┘   └────────────┘
    └───────────────┘      no → InvalidCredentials   no → AccountLocked

Session resolution reloads the user on every request, so a locked account
or a changed role/college takes effect immediately rather than at token
expiry.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.domain.roles import Actor, Role
from ftw_community.exceptions import (
    AccountLocked,
    AuthorizationDenial,
    InvalidCredentials,
    InvalidSession,
    NotFoundError,
)
from ftw_community.models.user import User
from ftw_community.repositories.users import UserRepository
from ftw_community.services.passwords import PasswordHasher
from ftw_community.services.sessions import SessionClaims, SessionSigner

logger = logging.getLogger(__name__)


def actor_from_user(user: User) -> Actor:
    return Actor.build(
        identity=user.id,
        role=user.role,
        college_id=user.college_id,
        organization=user.organization,
        is_active=user.is_active,
    )


class IdentityService:
    """
    Identity & Credential Store.

    Stateless: every method receives the request's session; the collaborators
    (repository, hasher, signer) are shared, immutable, and built once.
    """

    def __init__(self, users: UserRepository, hasher: PasswordHasher, signer: SessionSigner):
        self.users = users
        self.hasher = hasher
        self.signer = signer

    async def authenticate(self, db: AsyncSession, team_id: str, passkey: str) -> Actor:
        """
        Raises:
            InvalidCredentials: unknown team id or wrong passkey
            AccountLocked:      credentials verified but the account is inactive
        """
        user = await self.users.get_by_team_id(db, team_id)
        if user is None:
            self.hasher.dummy_verify()
            logger.warning("Login failed: unknown team id")
            raise InvalidCredentials()

        if not self.hasher.verify(passkey, user.passkey_hash):
            logger.warning("Login failed: bad passkey for user %s", user.id)
            raise InvalidCredentials()

        if not user.is_active:
            logger.warning("Login refused: account %s is locked", user.id)
            raise AccountLocked()

        await self._record_login(db, user, passkey)
        return actor_from_user(user)

    async def _record_login(self, db: AsyncSession, user: User, passkey: str) -> None:
        """Opportunistic bookkeeping; a failure here never blocks the login."""
        try:
            async with db.begin_nested():
                user.last_login = datetime.now(timezone.utc)
                if self.hasher.needs_rehash(user.passkey_hash):
                    user.passkey_hash = self.hasher.hash(passkey)
        except SQLAlchemyError as e:
            logger.error("Could not record login for user %s: %s", user.id, e)

    def issue_session(self, actor: Actor, now: Optional[float] = None) -> str:
        return self.signer.issue(actor, now=now)

    def verify_session(self, token: str, now: Optional[float] = None) -> SessionClaims:
        return self.signer.verify(token, now=now)

    async def resolve_actor(
        self, db: AsyncSession, token: str, now: Optional[float] = None
    ) -> Actor:
        """
        Verify a session token and rebuild the Actor from the stored user.

        Raises:
            InvalidSession: bad token, or the user no longer exists
            AccountLocked:  the user has been deactivated since login
        """
        claims = self.verify_session(token, now=now)
        user = await self.users.get(db, claims.identity)
        if user is None:
            raise InvalidSession(context={"reason": "unknown_subject"})
        if not user.is_active:
            raise AccountLocked()
        return actor_from_user(user)

    async def load_user(self, db: AsyncSession, actor: Actor) -> User:
        user = await self.users.get(db, actor.identity)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(actor.identity))
        return user

    async def change_passkey(
        self, db: AsyncSession, actor: Actor, current_passkey: str, new_passkey: str
    ) -> None:
        """
        Replace the actor's passkey after verifying the current one through
        the hash verifier.

        Raises:
            InvalidCredentials: current passkey does not verify
        """
        user = await self.load_user(db, actor)
        if not self.hasher.verify(current_passkey, user.passkey_hash):
            logger.warning("Passkey change rejected for user %s", user.id)
            raise InvalidCredentials(message="Current passkey is incorrect")
        user.passkey_hash = self.hasher.hash(new_passkey)
        await db.flush()
        logger.info("Passkey changed for user %s", user.id)

    async def complete_profile(
        self,
        db: AsyncSession,
        actor: Actor,
        new_passkey: Optional[str],
        changes: dict,
    ) -> User:
        """
        First-login onboarding. Coordinators may complete it only once;
        afterwards their profile is locked and changes go through their lead.

        Raises:
            AuthorizationDenial: coordinator whose onboarding is already done
        """
        user = await self.load_user(db, actor)
        if actor.role is Role.COORDINATOR and not user.is_first_login:
            raise AuthorizationDenial(context={"reason": "profile_locked"})

        if new_passkey:
            user.passkey_hash = self.hasher.hash(new_passkey)
        for field_name, value in changes.items():
            setattr(user, field_name, value)
        user.is_first_login = False
        await db.flush()
        return user
