"""
FTW Community Backend — Colleges & Hierarchy Routes
====================================================

What:  Colleges, staff accounts, coordinators and core-team assignments.
Who:   The admin dashboard's hierarchy screens.

Route Inventory:
    GET    /api/colleges                      scoped college list
    POST   /api/colleges                      create (+ elevate lead)
    DELETE /api/colleges/{id}                 delete + deactivation cascade
    GET    /api/community/users               every non-member account
    POST   /api/community/users               create an account of any role
    GET    /api/community/directory           every account, by role rank
    GET    /api/community/coordinators        scoped coordinator list
    POST   /api/community/coordinators        create a coordinator
    PUT    /api/community/core-assignments    assign colleges to a core-team member

Authorization lives in the ScopeResolver; handlers never inspect roles.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.container import ServiceContainer
from ftw_community.database import get_db_session
from ftw_community.dependencies import current_actor, get_container
from ftw_community.domain.roles import Actor
from ftw_community.schemas.auth import UserOut
from ftw_community.schemas.common import ErrorResponse
from ftw_community.schemas.community import (
    CollegeCreate,
    CollegeDeleteResponse,
    CollegeOut,
    CoordinatorCreate,
    CoreAssignmentOut,
    CoreAssignmentRequest,
    TeamMemberCreate,
)

router = APIRouter(prefix="/api", tags=["Community"])

_DENIED = {403: {"description": "Insufficient permissions", "model": ErrorResponse}}


# ── Colleges ──────────────────────────────────────────────────────────────

@router.get("/colleges", response_model=List[CollegeOut], responses=_DENIED)
async def list_colleges(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.list_colleges(db, actor)


@router.post(
    "/colleges",
    response_model=CollegeOut,
    status_code=status.HTTP_201_CREATED,
    responses={**_DENIED, 409: {"description": "Name taken", "model": ErrorResponse}},
)
async def create_college(
    body: CollegeCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.create_college(
        db, actor, name=body.name, college_lead_id=body.college_lead_id
    )


@router.delete(
    "/colleges/{college_id}",
    response_model=CollegeDeleteResponse,
    responses={**_DENIED, 404: {"description": "No such college", "model": ErrorResponse}},
)
async def delete_college(
    college_id: UUID,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> CollegeDeleteResponse:
    locked = await container.community.delete_college(db, actor, college_id)
    return CollegeDeleteResponse(deactivated_users=locked)


# ── Staff ─────────────────────────────────────────────────────────────────

@router.get("/community/users", response_model=List[UserOut], responses=_DENIED)
async def list_team(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.list_team(db, actor)


@router.post(
    "/community/users",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    responses={**_DENIED, 409: {"description": "Team id or email taken", "model": ErrorResponse}},
)
async def create_team_member(
    body: TeamMemberCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.create_team_member(db, actor, **body.model_dump())


@router.get("/community/directory", response_model=List[UserOut], responses=_DENIED)
async def directory(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.directory(db, actor)


# ── Coordinators ──────────────────────────────────────────────────────────

@router.get("/community/coordinators", response_model=List[UserOut], responses=_DENIED)
async def list_coordinators(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.list_coordinators(db, actor)


@router.post(
    "/community/coordinators",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    responses=_DENIED,
)
async def create_coordinator(
    body: CoordinatorCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.create_coordinator(db, actor, **body.model_dump())


# ── Core team ─────────────────────────────────────────────────────────────

@router.put("/community/core-assignments", response_model=CoreAssignmentOut, responses=_DENIED)
async def assign_core_team(
    body: CoreAssignmentRequest,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> CoreAssignmentOut:
    assignment = await container.community.assign_core_team(db, actor, **body.model_dump())
    return CoreAssignmentOut(
        id=assignment.id,
        user_id=assignment.user_id,
        executive_lead_id=assignment.executive_lead_id,
        vertical=assignment.vertical,
        college_ids=await container.community.assignment_colleges(db, assignment),
    )
