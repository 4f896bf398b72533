"""
FTW Community Backend — Public Content Service
===============================================

What:  Join applications, events, featured videos, top-rated links and the
       dashboard stats shown on the public site.
How:   Reads are public. Every write first checks the actor's role-derived
       permission flag through the ScopeResolver:

           applications (list/review/delete)  can_approve_apps
           events (create/delete)             can_manage_events
           videos (add/delete)                can_manage_videos
           top rated (create/update/delete)   can_manage_top_rated

       Submitting an application and RSVPing to an event need no session.
"""

import logging
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.domain.roles import Actor
from ftw_community.exceptions import NotFoundError, ValidationError
from ftw_community.models.content import Application, Event, TopRated, Video
from ftw_community.repositories.content import ContentRepository
from ftw_community.repositories.users import UserRepository
from ftw_community.services.scope_resolver import ScopeResolver

logger = logging.getLogger(__name__)

TOP_RATED_LIMIT = 10
DEFAULT_TOP_RATED_TITLE = "Featured Content"
DEFAULT_TOP_RATED_DESCRIPTION = "Check out this link."
DEFAULT_VIDEO_PRIORITY = 2


def extract_youtube_id(url: str) -> str:
    """
    Pull the video id out of a YouTube link.

    Accepted forms:
        https://www.youtube.com/watch?v=ID[&...]
        https://youtu.be/ID[?...]
        https://www.youtube.com/live/ID[?...]
        ID                                  (returned as-is)

    Raises:
        ValidationError: nothing usable remains
    """
    raw = (url or "").strip()
    video_id = raw
    if "youtube.com/watch" in raw:
        video_id = parse_qs(urlparse(raw).query).get("v", [""])[0]
    elif "youtu.be/" in raw:
        video_id = raw.split("youtu.be/", 1)[1].split("?", 1)[0]
    elif "youtube.com/live/" in raw:
        video_id = raw.split("youtube.com/live/", 1)[1].split("?", 1)[0]

    video_id = video_id.strip().strip("/")
    if not video_id:
        raise ValidationError(message="Invalid YouTube URL", field="youtube_url")
    return video_id


def start_of_day(now: Optional[datetime] = None) -> datetime:
    current = now or datetime.now(timezone.utc)
    return datetime.combine(current.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


class ContentService:

    def __init__(self, resolver: ScopeResolver, content: ContentRepository, users: UserRepository):
        self.resolver = resolver
        self.content = content
        self.users = users

    async def _get_or_404(self, db: AsyncSession, model, item_id: UUID, resource: str):
        item = await self.content.get(db, model, item_id)
        if item is None:
            raise NotFoundError(resource=resource, resource_id=str(item_id))
        return item

    # ── Applications ──────────────────────────────────────────────────────

    async def submit_application(self, db: AsyncSession, fields: Dict[str, Any]) -> Application:
        application = await self.content.add(db, Application(**fields))
        logger.info("Application %s received (%s)", application.id, application.role)
        return application

    async def list_applications(self, db: AsyncSession, actor: Actor) -> List[Application]:
        self.resolver.require_permission(actor, "can_approve_apps")
        return await self.content.list_applications(db)

    async def set_application_status(
        self, db: AsyncSession, actor: Actor, application_id: UUID, status: str
    ) -> Application:
        self.resolver.require_permission(actor, "can_approve_apps")
        application = await self._get_or_404(db, Application, application_id, "application")
        application.status = status
        await db.flush()
        logger.info("Application %s marked %s by %s", application.id, status, actor.identity)
        return application

    async def delete_application(self, db: AsyncSession, actor: Actor, application_id: UUID) -> None:
        self.resolver.require_permission(actor, "can_approve_apps")
        application = await self._get_or_404(db, Application, application_id, "application")
        await self.content.delete(db, application)

    # ── Events ────────────────────────────────────────────────────────────

    async def list_upcoming_events(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> List[Event]:
        """Events dated today (UTC) or later, soonest first."""
        return await self.content.list_events_from(db, start_of_day(now))

    async def create_event(self, db: AsyncSession, actor: Actor, fields: Dict[str, Any]) -> Event:
        self.resolver.require_permission(actor, "can_manage_events")
        event = await self.content.add(db, Event(**fields))
        logger.info("Event %s created by %s", event.id, actor.identity)
        return event

    async def delete_event(self, db: AsyncSession, actor: Actor, event_id: UUID) -> None:
        self.resolver.require_permission(actor, "can_manage_events")
        event = await self._get_or_404(db, Event, event_id, "event")
        await self.content.delete(db, event)

    async def rsvp(self, db: AsyncSession, event_id: UUID) -> Event:
        event = await self._get_or_404(db, Event, event_id, "event")
        await self.content.increment_rsvps(db, event_id)
        await db.refresh(event)
        return event

    # ── Videos ────────────────────────────────────────────────────────────

    async def list_videos(self, db: AsyncSession) -> List[Video]:
        return await self.content.list_videos(db)

    async def add_video(
        self,
        db: AsyncSession,
        actor: Actor,
        title: str,
        youtube_url: str,
        priority: Optional[int] = None,
    ) -> Video:
        self.resolver.require_permission(actor, "can_manage_videos")
        video = Video(
            title=title,
            youtube_id=extract_youtube_id(youtube_url),
            priority=priority or DEFAULT_VIDEO_PRIORITY,
        )
        await self.content.add(db, video)
        logger.info("Video %s (%s) added by %s", video.id, video.youtube_id, actor.identity)
        return video

    async def delete_video(self, db: AsyncSession, actor: Actor, video_id: UUID) -> None:
        self.resolver.require_permission(actor, "can_manage_videos")
        video = await self._get_or_404(db, Video, video_id, "video")
        await self.content.delete(db, video)

    # ── Top rated ─────────────────────────────────────────────────────────

    async def list_top_rated(self, db: AsyncSession) -> List[TopRated]:
        return await self.content.list_top_rated(db, TOP_RATED_LIMIT)

    async def create_top_rated(
        self, db: AsyncSession, actor: Actor, fields: Dict[str, Any]
    ) -> TopRated:
        self.resolver.require_permission(actor, "can_manage_top_rated")
        item = TopRated(**_with_card_defaults(fields))
        await self.content.add(db, item)
        logger.info("Top-rated item %s created by %s", item.id, actor.identity)
        return item

    async def update_top_rated(
        self, db: AsyncSession, actor: Actor, item_id: UUID, fields: Dict[str, Any]
    ) -> TopRated:
        self.resolver.require_permission(actor, "can_manage_top_rated")
        item = await self._get_or_404(db, TopRated, item_id, "top rated item")
        for field_name, value in _with_card_defaults(fields).items():
            setattr(item, field_name, value)
        await db.flush()
        return item

    async def delete_top_rated(self, db: AsyncSession, actor: Actor, item_id: UUID) -> None:
        self.resolver.require_permission(actor, "can_manage_top_rated")
        item = await self._get_or_404(db, TopRated, item_id, "top rated item")
        await self.content.delete(db, item)

    # ── Stats ─────────────────────────────────────────────────────────────

    async def stats(self, db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, int]:
        return {
            "total_members": await self.users.count(db),
            "pending_apps": await self.content.count_applications(db, "pending"),
            "upcoming_rsvps": await self.content.sum_rsvps_from(db, start_of_day(now)),
        }


def _with_card_defaults(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Fill the card text a link preview would otherwise have supplied."""
    card = dict(fields)
    card["title"] = card.get("title") or DEFAULT_TOP_RATED_TITLE
    card["description"] = card.get("description") or DEFAULT_TOP_RATED_DESCRIPTION
    card["image_url"] = card.get("image_url") or ""
    return card
