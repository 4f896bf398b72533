"""
FTW Community Backend — Public Content Routes
==============================================

What:  Applications, events, videos, top-rated links and stats.
How:   Reads are public (except the application list). Writes take a
       session; the permission flag is checked by ContentService.

Caching Strategy:
    GET /api/videos and GET /api/toprated change rarely and are served with
    a short public cache; everything else is uncached.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.container import ServiceContainer
from ftw_community.database import get_db_session
from ftw_community.dependencies import current_actor, get_container
from ftw_community.domain.roles import Actor
from ftw_community.schemas.common import ErrorResponse, MessageResponse
from ftw_community.schemas.content import (
    ApplicationCreate,
    ApplicationOut,
    ApplicationStatusResponse,
    ApplicationStatusUpdate,
    ApplicationSubmitted,
    EventCreate,
    EventOut,
    StatsResponse,
    TopRatedOut,
    TopRatedWrite,
    VideoCreate,
    VideoOut,
)

router = APIRouter(prefix="/api", tags=["Content"])

_DENIED = {403: {"description": "Insufficient permissions", "model": ErrorResponse}}
_MISSING = {404: {"description": "Not found", "model": ErrorResponse}}
_SHORT_CACHE = "public, max-age=30"


# ── Applications ──────────────────────────────────────────────────────────

@router.post(
    "/applications", response_model=ApplicationSubmitted, status_code=status.HTTP_201_CREATED
)
async def submit_application(
    body: ApplicationCreate,
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> ApplicationSubmitted:
    application = await container.content.submit_application(db, body.model_dump())
    return ApplicationSubmitted(application=ApplicationOut.model_validate(application))


@router.get("/applications", response_model=List[ApplicationOut], responses=_DENIED)
async def list_applications(
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.list_applications(db, actor)


@router.put(
    "/applications/{application_id}/status",
    response_model=ApplicationStatusResponse,
    responses={**_DENIED, **_MISSING},
)
async def set_application_status(
    application_id: UUID,
    body: ApplicationStatusUpdate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> ApplicationStatusResponse:
    application = await container.content.set_application_status(
        db, actor, application_id, body.status
    )
    return ApplicationStatusResponse(application=ApplicationOut.model_validate(application))


@router.delete(
    "/applications/{application_id}",
    response_model=MessageResponse,
    responses={**_DENIED, **_MISSING},
)
async def delete_application(
    application_id: UUID,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.content.delete_application(db, actor, application_id)
    return MessageResponse(message="Application deleted successfully")


# ── Events ────────────────────────────────────────────────────────────────

@router.get("/events", response_model=List[EventOut])
async def list_events(
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.list_upcoming_events(db)


@router.post("/events", response_model=EventOut, status_code=status.HTTP_201_CREATED, responses=_DENIED)
async def create_event(
    body: EventCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.create_event(db, actor, body.model_dump())


@router.delete(
    "/events/{event_id}", response_model=MessageResponse, responses={**_DENIED, **_MISSING}
)
async def delete_event(
    event_id: UUID,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.content.delete_event(db, actor, event_id)
    return MessageResponse(message="Event deleted")


@router.post("/events/{event_id}/rsvp", response_model=EventOut, responses=_MISSING)
async def rsvp(
    event_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.rsvp(db, event_id)


# ── Videos ────────────────────────────────────────────────────────────────

@router.get("/videos", response_model=List[VideoOut])
async def list_videos(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    response.headers["Cache-Control"] = _SHORT_CACHE
    return await container.content.list_videos(db)


@router.post(
    "/videos",
    response_model=VideoOut,
    status_code=status.HTTP_201_CREATED,
    responses={**_DENIED, 400: {"description": "Invalid YouTube URL", "model": ErrorResponse}},
)
async def add_video(
    body: VideoCreate,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.add_video(
        db, actor, title=body.title, youtube_url=body.youtube_url, priority=body.priority
    )


@router.delete(
    "/videos/{video_id}", response_model=MessageResponse, responses={**_DENIED, **_MISSING}
)
async def delete_video(
    video_id: UUID,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.content.delete_video(db, actor, video_id)
    return MessageResponse(message="Video deleted")


# ── Top rated ─────────────────────────────────────────────────────────────

@router.get("/toprated", response_model=List[TopRatedOut])
async def list_top_rated(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    response.headers["Cache-Control"] = _SHORT_CACHE
    return await container.content.list_top_rated(db)


@router.post(
    "/toprated", response_model=TopRatedOut, status_code=status.HTTP_201_CREATED, responses=_DENIED
)
async def create_top_rated(
    body: TopRatedWrite,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.create_top_rated(db, actor, body.card_fields())


@router.put("/toprated/{item_id}", response_model=TopRatedOut, responses={**_DENIED, **_MISSING})
async def update_top_rated(
    item_id: UUID,
    body: TopRatedWrite,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
):
    return await container.content.update_top_rated(db, actor, item_id, body.card_fields())


@router.delete(
    "/toprated/{item_id}", response_model=MessageResponse, responses={**_DENIED, **_MISSING}
)
async def delete_top_rated(
    item_id: UUID,
    actor: Actor = Depends(current_actor),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.content.delete_top_rated(db, actor, item_id)
    return MessageResponse(message="Item deleted")


# ── Stats ─────────────────────────────────────────────────────────────────

@router.get("/stats", response_model=StatsResponse)
async def stats(
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> StatsResponse:
    return StatsResponse(**await container.content.stats(db))
