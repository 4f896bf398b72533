"""
FTW Community Backend — Task and Report Models
===============================================

What:  College-scoped work items: kanban tasks and weekly reports.
How:   Both carry a `college_id` column; every read goes through a
       ScopeFilter on that column (see services/scope_resolver.py).

    - Task.college_id is optional (organisation-wide tasks have none and are
      only visible to unrestricted readers).
    - Report.college_id is required; a report also records its author and,
      once reviewed, its reviewer.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ftw_community.database import Base
from ftw_community.models.common import TimestampMixin, uuid_pk


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    college_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    # Values: 'todo' | 'in-progress' | 'done'
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="todo")
    # Values: 'low' | 'medium' | 'high'
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_tasks_college_id", "college_id"),)

    def __repr__(self) -> str:
        return f"<Task(title='{self.title}', status='{self.status}')>"


class Report(TimestampMixin, Base):
    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = uuid_pk()
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    college_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # e.g. {"attendees": 50, "events_held": 2}
    metrics: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    # Values: 'submitted' | 'approved' | 'rejected'
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted")
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )

    __table_args__ = (Index("idx_reports_college_id", "college_id"),)

    def __repr__(self) -> str:
        return f"<Report(college_id={self.college_id}, status='{self.status}')>"
