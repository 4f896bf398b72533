"""
FTW Community Backend — Authentication & Profile Schemas
=========================================================

What:  Login request/response, the session user view, onboarding and
       passkey-change bodies.
Who:   routes/auth.py
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ftw_community.domain.roles import Actor


class LoginRequest(BaseModel):
    team_id: str = Field(min_length=1, max_length=64, description="Login identifier, e.g. FTWSJ01")
    passkey: str = Field(min_length=1, max_length=128)


class PermissionsOut(BaseModel):
    """Role-derived capability flags. Never accepted as input."""
    can_manage_videos: bool
    can_manage_events: bool
    can_manage_top_rated: bool
    can_approve_apps: bool

    @classmethod
    def for_actor(cls, actor: Actor) -> "PermissionsOut":
        return cls(**actor.permissions.as_dict())


class UserOut(BaseModel):
    """A user record without its passkey hash."""
    id: uuid.UUID
    team_id: str
    name: str
    email: Optional[str] = None
    role: str
    college_id: Optional[uuid.UUID] = None
    organization: str
    is_active: bool
    is_first_login: bool
    last_login: Optional[datetime] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    social_links: Dict[str, Any] = Field(default_factory=dict)
    profile_picture: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str = Field(description="Bearer session token, valid for 24 hours by default")
    user: UserOut
    permissions: PermissionsOut


class MeResponse(BaseModel):
    user: UserOut
    permissions: PermissionsOut


class ProfileCompleteRequest(BaseModel):
    """
    First-login onboarding.

    `skills` accepts a list or a comma-separated string ("python, design").
    """
    new_passkey: Optional[str] = Field(default=None, min_length=8, max_length=128)
    bio: Optional[str] = Field(default=None, max_length=2000)
    skills: Optional[Union[List[str], str]] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    social_links: Optional[Dict[str, str]] = None
    organization: Optional[str] = Field(default=None, max_length=255)

    @field_validator("skills")
    @classmethod
    def split_skills(cls, v: Optional[Union[List[str], str]]) -> Optional[List[str]]:
        if v is None:
            return None
        items = v.split(",") if isinstance(v, str) else v
        return [s.strip() for s in items if s and s.strip()]

    def profile_changes(self) -> Dict[str, Any]:
        """
        The profile columns to update, without the passkey.

        Omitted fields keep their stored value; a new account already starts
        with an empty skills list.
        """
        return self.model_dump(exclude={"new_passkey"}, exclude_none=True)


class ProfileCompleteResponse(BaseModel):
    message: str = "Profile setup complete!"
    user: UserOut


class PasswordChangeRequest(BaseModel):
    current_passkey: str = Field(min_length=1, max_length=128)
    new_passkey: str = Field(min_length=8, max_length=128)
