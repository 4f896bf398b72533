"""
FTW Community Backend — User SQLAlchemy Model
==============================================

What:  ORM model for the `users` table: every staff member and community
       member who can sign in.
Who:   Read by the identity service (authentication) and the community
       service (hierarchy management); never serialized directly, the
       passkey hash stays server-side.

Table Design:
    - team_id: the login identifier, unique
    - passkey_hash: salted bcrypt hash, never the raw passkey
    - role: one of ftw_community.domain.roles.Role, stored as its string value
    - college_id: affiliation. A plain column (no foreign key) so that
      deleting a college leaves the reference in place for the
      deactivation cascade to find.
    - is_active: false once the account is locked (e.g. its college was deleted)

    There is no permissions column: flags are derived from the role.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ftw_community.database import Base
from ftw_community.models.common import TimestampMixin, uuid_pk


class User(TimestampMixin, Base):
    """
    A person who can sign in.

    Lifecycle:
        1. Created by a super_admin (any role) or a college_lead (coordinators)
        2. Completes onboarding on first login (is_first_login → False)
        3. May be elevated to college_lead when a college is created for them
        4. Deactivated (is_active → False) when their college is deleted;
           never deleted by the application
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = uuid_pk()

    team_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    passkey_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(String(32), nullable=False, default="member")
    college_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    assigned_core_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    organization: Mapped[str] = mapped_column(
        String(255), nullable=False, default="Headquarters"
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_first_login: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Profile ───────────────────────────────────────────────────────────
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    social_links: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index("idx_users_college_id", "college_id"),
        Index("idx_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(team_id='{self.team_id}', role='{self.role}', active={self.is_active})>"
