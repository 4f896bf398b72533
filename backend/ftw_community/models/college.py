"""
FTW Community Backend — College and Assignment Models
======================================================

What:  The college hierarchy: colleges, the core-team assignments that map a
       core-team member onto a set of colleges, and coordinator assignments.

Relationships (no ORM relationship() objects; repositories join explicitly):

    College ──< CoreTeamAssignmentCollege >── CoreTeamAssignment ── User (core_team)
       │                                               └── User (executive_lead)
       └──< CoordinatorAssignment ── User (coordinator)

    College references in these tables are plain columns. The deletion
    cascade removes assignment rows itself.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ftw_community.database import Base
from ftw_community.models.common import TimestampMixin, uuid_pk


class College(TimestampMixin, Base):
    """A college chapter. At most one lead (college_lead_id)."""

    __tablename__ = "colleges"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    college_lead_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    # Values: 'active' | 'inactive'
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    __table_args__ = (Index("idx_colleges_lead", "college_lead_id"),)

    def __repr__(self) -> str:
        return f"<College(name='{self.name}', status='{self.status}')>"


class CoreTeamAssignment(TimestampMixin, Base):
    """One core-team member's vertical and reporting line. One row per user."""

    __tablename__ = "core_team_assignments"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, unique=True
    )
    executive_lead_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    # Operations, Marketing, Tech, ...
    vertical: Mapped[str] = mapped_column(String(100), nullable=False)


class CoreTeamAssignmentCollege(Base):
    """Join row: the colleges a core-team assignment may act upon."""

    __tablename__ = "core_team_assignment_colleges"

    assignment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("core_team_assignments.id", ondelete="CASCADE"), primary_key=True
    )
    college_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)


class CoordinatorAssignment(TimestampMixin, Base):
    """Records which college a coordinator serves and who assigned them."""

    __tablename__ = "coordinator_assignments"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    college_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    assigned_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    __table_args__ = (Index("idx_coordinator_assignments_college", "college_id"),)
