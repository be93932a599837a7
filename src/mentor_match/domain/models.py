"""Domain entities and value objects.

Records that are persisted in the local key-value store or exchanged with the
account service are pydantic models serialized with camelCase keys, so data
written by the mobile client stays readable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ANONYMOUS_USER_ID = "anonymous"
"""Sentinel identity used when nobody is signed in."""

NO_MESSAGES_SENTINEL = "No messages yet"
"""``lastMessage`` stored for a session whose transcript is empty."""

Sender = Literal["user", "mentor"]
LessonStatus = Literal["scheduled", "completed", "cancelled"]
Level = Literal["Beginner", "Intermediate", "Expert"]
Mode = Literal["Online", "In-person", "Hybrid"]


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return uuid.uuid4().hex


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Local chat / lesson records
# ---------------------------------------------------------------------------


class Message(CamelModel):
    """A single chat message between the learner and a mentor."""

    id: str = Field(default_factory=new_id)
    text: str
    sender: Sender
    timestamp: datetime = Field(default_factory=utcnow)
    is_read: bool = False


class ChatSessionSummary(CamelModel):
    """Denormalized index entry for one mentor conversation."""

    id: str
    mentor_name: str
    mentor_skill: str
    last_message: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    unread_count: int = 0


class ScheduledLesson(CamelModel):
    """A lesson booked with a mentor."""

    id: str = Field(default_factory=new_id)
    title: str
    mentor_name: str
    mentor_skill: str
    date: str
    time: str
    duration: str = "1 hour"
    status: LessonStatus = "scheduled"


# ---------------------------------------------------------------------------
# Account / profile
# ---------------------------------------------------------------------------


class PersonalizedContent(CamelModel):
    welcome_message: str
    learning_path: list[str] = Field(default_factory=list)
    personalized_greeting: str = ""


class User(CamelModel):
    """Profile of an account as returned by the account service."""

    id: str
    name: str
    email: str
    skills: list[str] = Field(default_factory=list)
    level: Level = "Beginner"
    location: str = "Remote"
    mode: Mode = "Online"
    avatar_color: str = "#A5B5FF"
    bio: str | None = None
    experience: str | None = None
    goals: str | None = None
    personalized_content: PersonalizedContent | None = None
    created_at: str | None = None


@dataclass
class AuthResult:
    """Successful register / login response."""

    user: User
    token: str


class StoredAuth(CamelModel):
    """Signed-in account kept on the device so a session survives restarts."""

    user: User
    token: str


class LearnerProfile(CamelModel):
    """Profile summary handed to the content generator."""

    name: str
    skills: list[str] = Field(default_factory=list)
    level: str = "Beginner"
    location: str = ""
    mode: str = ""
    bio: str = ""
    experience: str = ""
    goals: str = ""

    @classmethod
    def from_user(cls, user: User) -> LearnerProfile:
        return cls(
            name=user.name,
            skills=list(user.skills),
            level=user.level,
            location=user.location,
            mode=user.mode,
            bio=user.bio or "",
            experience=user.experience or "",
            goals=user.goals or "",
        )


class ProfileDetails(CamelModel):
    """Detailed profile collected by the onboarding wizard."""

    skills: list[str]
    level: Level = "Beginner"
    location: str = "Remote"
    mode: Mode = "Online"
    bio: str = ""
    experience: str = ""
    goals: str = ""


class ClassSuggestion(CamelModel):
    id: str
    title: str
    instructor: str
    duration: str
    level: str
    skill: str
