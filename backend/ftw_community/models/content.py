"""
FTW Community Backend — Public Content Models
==============================================

What:  Content shown on the marketing site: join applications, events,
       featured videos, and "top rated" links.
Who:   Written by staff holding the matching permission flag; read publicly
       (except applications, which only `can_approve_apps` may list).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from ftw_community.database import Base
from ftw_community.models.common import TimestampMixin, utcnow, uuid_pk


class Application(Base):
    """A join-form submission."""

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = uuid_pk()
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    # Values: 'founder' | 'engineer' | 'student' | 'investor'
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    social_url: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # Values: 'pending' | 'approved' | 'rejected'
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_applications_applied_at", "applied_at"),
        Index("idx_applications_status", "status"),
    )


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    rsvps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_events_date", "date"),)


class Video(TimestampMixin, Base):
    """A YouTube video. priority 1 = homepage feature, 2+ = gallery."""

    __tablename__ = "videos"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    youtube_id: Mapped[str] = mapped_column(String(64), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=2)


class TopRated(TimestampMixin, Base):
    """A trending-content card (blog post, tweet, ...)."""

    __tablename__ = "top_rated"

    id: Mapped[uuid.UUID] = uuid_pk()
    # e.g. 'BLOG', 'TWEET'
    tag: Mapped[str] = mapped_column(String(50), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="Featured Content")
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default="Check out this link."
    )
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    highlight: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
