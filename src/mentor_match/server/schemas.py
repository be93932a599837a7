"""Pydantic models for account service requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from mentor_match.domain.models import CamelModel, Level, Mode, PersonalizedContent, User

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/users/register."""

    name: str = Field(min_length=1, description="User display name")
    email: str = Field(min_length=3, description="User email")
    password: str = Field(min_length=6, description="Plain-text password, at least 6 characters")


class LoginRequest(BaseModel):
    """Request body for POST /api/users/login."""

    email: str
    password: str


class AuthResponse(BaseModel):
    """Response from register and login."""

    user: User
    token: str


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


class ProfileUpdateRequest(CamelModel):
    """Request body for PUT /api/users/profile.

    ``userId`` defaults to the authenticated user; omitted fields are left
    unchanged.
    """

    user_id: str | None = None
    skills: list[str] | None = None
    level: Level | None = None
    location: str | None = None
    mode: Mode | None = None
    bio: str | None = Field(default=None, max_length=500)
    experience: str | None = Field(default=None, max_length=1000)
    goals: str | None = Field(default=None, max_length=1000)
    personalized_content: PersonalizedContent | None = None


class ProfileUpdateResponse(BaseModel):
    message: str
    user: User
