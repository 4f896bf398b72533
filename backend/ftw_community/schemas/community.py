"""
FTW Community Backend — Hierarchy & Work Schemas
=================================================

What:  Bodies and views for colleges, staff accounts, coordinator and
       core-team assignments, tasks and weekly reports.
Who:   routes/community.py, routes/work.py

College fields sent by a college_lead or coordinator are accepted but the
server decides the effective college (see services/scope_resolver.py).
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

TaskStatus = Literal["todo", "in-progress", "done"]
TaskPriority = Literal["low", "medium", "high"]
ReportStatus = Literal["submitted", "approved", "rejected"]


# ══════════════════════════════════════════════════════════════════════════
# Colleges
# ══════════════════════════════════════════════════════════════════════════


class CollegeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    college_lead_id: Optional[uuid.UUID] = Field(
        default=None,
        description="User to elevate to college_lead of the new college",
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("College name must not be blank")
        return v.strip()


class CollegeOut(BaseModel):
    id: uuid.UUID
    name: str
    college_lead_id: Optional[uuid.UUID] = None
    status: str
    created_by_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class CollegeDeleteResponse(BaseModel):
    message: str = "College deleted and users deactivated"
    deactivated_users: int


# ══════════════════════════════════════════════════════════════════════════
# Staff & assignments
# ══════════════════════════════════════════════════════════════════════════


class TeamMemberCreate(BaseModel):
    team_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    passkey: str = Field(min_length=8, max_length=128)
    role: str = Field(description="One of the canonical roles, e.g. core_team")
    email: Optional[str] = Field(default=None, max_length=255)
    college_id: Optional[uuid.UUID] = None
    organization: Optional[str] = Field(default=None, max_length=255)


class CoordinatorCreate(BaseModel):
    team_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    passkey: str = Field(min_length=8, max_length=128)
    email: Optional[str] = Field(default=None, max_length=255)
    college_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Required for super_admin; ignored for college_lead",
    )


class CoreAssignmentRequest(BaseModel):
    user_id: uuid.UUID = Field(description="The core_team member being assigned")
    vertical: str = Field(min_length=1, max_length=100, description="Operations, Marketing, Tech, ...")
    college_ids: List[uuid.UUID] = Field(default_factory=list)
    executive_lead_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Reporting line; defaults to the caller",
    )


class CoreAssignmentOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    executive_lead_id: uuid.UUID
    vertical: str
    college_ids: List[uuid.UUID]


# ══════════════════════════════════════════════════════════════════════════
# Tasks
# ══════════════════════════════════════════════════════════════════════════


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[uuid.UUID] = None
    college_id: Optional[uuid.UUID] = None

    def task_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"college_id"})


class TaskUpdate(BaseModel):
    """Only the fields actually sent are applied (and authorized)."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[uuid.UUID] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def reject_null(cls, v):
        # Only reached when the client sends an explicit null
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class TaskOut(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[uuid.UUID] = None
    college_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════════


class ReportCreate(BaseModel):
    content: str = Field(min_length=1)
    metrics: Dict[str, Any] = Field(default_factory=dict, description='e.g. {"attendees": 50}')


class ReportStatusUpdate(BaseModel):
    status: ReportStatus


class ReportOut(BaseModel):
    id: uuid.UUID
    author_id: uuid.UUID
    college_id: uuid.UUID
    content: str
    metrics: Dict[str, Any]
    status: str
    reviewed_by_id: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}
