"""
FTW Community Backend — Authentication & Profile Routes
========================================================

What:  POST /api/login, GET /api/me, POST /api/profile/complete,
       PUT /api/profile/password.
How:   Thin handlers over IdentityService. The profile routes act on the
       session's own user only; there is no user id in the body.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.container import ServiceContainer
from ftw_community.database import get_db_session
from ftw_community.dependencies import current_actor, get_container
from ftw_community.domain.roles import Actor
from ftw_community.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PasswordChangeRequest,
    PermissionsOut,
    ProfileCompleteRequest,
    ProfileCompleteResponse,
    UserOut,
)
from ftw_community.schemas.common import ErrorResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Unknown team id or wrong passkey", "model": ErrorResponse},
        403: {"description": "Account locked", "model": ErrorResponse},
    },
    summary="Sign in with team id and passkey",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> LoginResponse:
    actor = await container.identity.authenticate(db, body.team_id, body.passkey)
    user = await container.identity.load_user(db, actor)
    token = container.identity.issue_session(actor)
    logger.info("User %s signed in (%s)", actor.identity, actor.role.value if actor.role else None)
    return LoginResponse(
        token=token,
        user=UserOut.model_validate(user),
        permissions=PermissionsOut.for_actor(actor),
    )


@router.get("/me", response_model=MeResponse, summary="The signed-in user and their permissions")
async def me(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> MeResponse:
    user = await container.identity.load_user(db, actor)
    return MeResponse(user=UserOut.model_validate(user), permissions=PermissionsOut.for_actor(actor))


@router.post(
    "/profile/complete",
    response_model=ProfileCompleteResponse,
    responses={403: {"description": "Coordinator profile already locked", "model": ErrorResponse}},
    summary="Finish first-login onboarding",
)
async def complete_profile(
    body: ProfileCompleteRequest,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> ProfileCompleteResponse:
    user = await container.identity.complete_profile(
        db, actor, new_passkey=body.new_passkey, changes=body.profile_changes()
    )
    return ProfileCompleteResponse(user=UserOut.model_validate(user))


@router.put(
    "/profile/password",
    response_model=MessageResponse,
    responses={401: {"description": "Current passkey is incorrect", "model": ErrorResponse}},
    summary="Change the signed-in user's passkey",
)
async def change_password(
    body: PasswordChangeRequest,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.identity.change_passkey(db, actor, body.current_passkey, body.new_passkey)
    return MessageResponse(message="Passkey updated successfully")
