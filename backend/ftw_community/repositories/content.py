"""
FTW Community Backend — Public Content Repository
==================================================

What:  CRUD for applications, events, videos and top-rated links, plus the
       aggregate counts behind the dashboard stats.
"""

import logging
from datetime import datetime
from typing import List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import asc, desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.database import Base
from ftw_community.exceptions import DatabaseError
from ftw_community.models.content import Application, Event, TopRated, Video

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class ContentRepository:

    # ── Generic helpers ───────────────────────────────────────────────────

    async def get(self, db: AsyncSession, model: Type[ModelT], item_id: UUID) -> Optional[ModelT]:
        result = await db.execute(select(model).where(model.id == item_id))
        return result.scalar_one_or_none()

    async def add(self, db: AsyncSession, item: ModelT) -> ModelT:
        db.add(item)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to insert %s: %s", type(item).__name__, e)
            raise DatabaseError(context={"model": type(item).__name__}) from e
        return item

    async def delete(self, db: AsyncSession, item: Base) -> None:
        await db.delete(item)
        await db.flush()

    # ── Listings ──────────────────────────────────────────────────────────

    async def list_applications(self, db: AsyncSession) -> List[Application]:
        result = await db.execute(select(Application).order_by(desc(Application.applied_at)))
        return list(result.scalars().all())

    async def list_events_from(self, db: AsyncSession, start: datetime) -> List[Event]:
        result = await db.execute(
            select(Event).where(Event.date >= start).order_by(asc(Event.date))
        )
        return list(result.scalars().all())

    async def list_videos(self, db: AsyncSession) -> List[Video]:
        result = await db.execute(
            select(Video).order_by(asc(Video.priority), desc(Video.created_at))
        )
        return list(result.scalars().all())

    async def list_top_rated(self, db: AsyncSession, limit: int) -> List[TopRated]:
        result = await db.execute(
            select(TopRated).order_by(desc(TopRated.created_at)).limit(limit)
        )
        return list(result.scalars().all())

    # ── Counters ──────────────────────────────────────────────────────────

    async def increment_rsvps(self, db: AsyncSession, event_id: UUID) -> None:
        # Single UPDATE so concurrent RSVPs never lose an increment
        await db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(rsvps=Event.rsvps + 1)
            .execution_options(synchronize_session=False)
        )

    async def count_videos(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(Video.id)))
        return result.scalar() or 0

    async def count_applications(self, db: AsyncSession, status: str) -> int:
        result = await db.execute(
            select(func.count(Application.id)).where(Application.status == status)
        )
        return result.scalar() or 0

    async def sum_rsvps_from(self, db: AsyncSession, start: datetime) -> int:
        result = await db.execute(
            select(func.coalesce(func.sum(Event.rsvps), 0)).where(Event.date >= start)
        )
        return int(result.scalar() or 0)
