"""
FTW Community Backend — Public Content Schemas
===============================================

What:  Bodies and views for applications, events, videos, top-rated links
       and the dashboard stats.
Who:   routes/content.py
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

ApplicantRole = Literal["founder", "engineer", "student", "investor"]
ApplicationStatus = Literal["pending", "approved", "rejected"]


# ── Applications ──────────────────────────────────────────────────────────

class ApplicationCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: ApplicantRole
    social_url: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)


class ApplicationOut(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    role: str
    social_url: str
    description: str
    status: str
    applied_at: datetime

    model_config = {"from_attributes": True}


class ApplicationSubmitted(BaseModel):
    message: str = "Application submitted successfully"
    application: ApplicationOut


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationStatusResponse(BaseModel):
    message: str = "Status updated"
    application: ApplicationOut


# ── Events ────────────────────────────────────────────────────────────────

class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    date: datetime
    description: str = Field(min_length=1)
    location: Optional[str] = Field(default=None, max_length=255)


class EventOut(BaseModel):
    id: uuid.UUID
    title: str
    date: datetime
    description: str
    location: Optional[str] = None
    rsvps: int

    model_config = {"from_attributes": True}


# ── Videos ────────────────────────────────────────────────────────────────

class VideoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    youtube_url: str = Field(description="watch?v=, youtu.be/ or /live/ link, or a bare id")
    priority: Optional[int] = Field(default=None, ge=1, description="1 = homepage feature")


class VideoOut(BaseModel):
    id: uuid.UUID
    title: str
    youtube_id: str
    priority: int
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Top rated ─────────────────────────────────────────────────────────────

class TopRatedWrite(BaseModel):
    """Card text is optional; missing values get the default card copy."""
    tag: str = Field(min_length=1, max_length=50, description="BLOG, TWEET, ...")
    url: str = Field(min_length=1, max_length=1000)
    highlight: bool = False
    title: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1000)

    def card_fields(self) -> Dict[str, Any]:
        return self.model_dump()


class TopRatedOut(BaseModel):
    id: uuid.UUID
    tag: str
    url: str
    title: str
    description: str
    image_url: str
    highlight: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Stats ─────────────────────────────────────────────────────────────────

class StatsResponse(BaseModel):
    total_members: int
    pending_apps: int
    upcoming_rsvps: int
