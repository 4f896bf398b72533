"""
FTW Community Backend — Task & Report Routes
=============================================

What:  The college-scoped kanban board and weekly reports.

    GET  /api/tasks                  tasks in the caller's scope, newest first
    POST /api/tasks                  create (college decided by the resolver)
    PUT  /api/tasks/{id}             update the fields the caller may change
    GET  /api/reports                reports in the caller's scope
    POST /api/reports                submit for the caller's own college
    PUT  /api/reports/{id}/status    review
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.container import ServiceContainer
from ftw_community.database import get_db_session
from ftw_community.dependencies import current_actor, get_container
from ftw_community.domain.roles import Actor
from ftw_community.schemas.common import ErrorResponse
from ftw_community.schemas.community import (
    ReportCreate,
    ReportOut,
    ReportStatusUpdate,
    TaskCreate,
    TaskOut,
    TaskUpdate,
)

router = APIRouter(prefix="/api", tags=["Work"])

_DENIED = {403: {"description": "Insufficient permissions", "model": ErrorResponse}}
_MISSING = {404: {"description": "Not found", "model": ErrorResponse}}


@router.get("/tasks", response_model=List[TaskOut], responses=_DENIED)
async def list_tasks(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.list_tasks(db, actor)


@router.post("/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED, responses=_DENIED)
async def create_task(
    body: TaskCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.create_task(
        db, actor, fields=body.task_fields(), college_id=body.college_id
    )


@router.put("/tasks/{task_id}", response_model=TaskOut, responses={**_DENIED, **_MISSING})
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.update_task(db, actor, task_id, body.changes())


@router.get("/reports", response_model=List[ReportOut], responses=_DENIED)
async def list_reports(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.list_reports(db, actor)


@router.post(
    "/reports", response_model=ReportOut, status_code=status.HTTP_201_CREATED, responses=_DENIED
)
async def submit_report(
    body: ReportCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.submit_report(db, actor, body.content, body.metrics)


@router.put(
    "/reports/{report_id}/status", response_model=ReportOut, responses={**_DENIED, **_MISSING}
)
async def review_report(
    report_id: UUID,
    body: ReportStatusUpdate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.community.review_report(db, actor, report_id, body.status)
