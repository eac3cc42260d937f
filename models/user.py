"""User profile models — role, learning preferences and study memory.

Profiles are owned by the relational store and consumed read-only by the
prompt assembler.  Rows are decoded exactly once, at the store boundary, by
:func:`user_from_row`; every field has a default so a partially populated
row never leaks ``None`` into prompt building.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import Field, field_validator

from models.base import CamelModel

UserRole = Literal["student", "professor"]
LearningStyle = Literal["visual", "auditory", "reading", "kinesthetic"]
ResponseStyle = Literal["concise", "detailed", "step-by-step"]
Tone = Literal["formal", "casual", "encouraging"]

DEFAULT_LEARNING_STYLE: LearningStyle = "reading"
DEFAULT_ACADEMIC_LEVEL = "sophomore"
DEFAULT_RESPONSE_STYLE: ResponseStyle = "detailed"
DEFAULT_TONE: Tone = "encouraging"
DEFAULT_LANGUAGE = "English"


def _known_or_none(value: Any, literal: Any) -> Any:
    """Map values outside a Literal's choices to None instead of failing."""
    if value in get_args(literal):
        return value
    return None


class UserPreferences(CamelModel):
    """How a student likes to be taught.  Unknown enum values decode to None."""

    learning_style: LearningStyle | None = None
    academic_level: str = ""
    major: str = ""
    preferred_language: str = DEFAULT_LANGUAGE
    response_style: ResponseStyle | None = None
    tone: Tone | None = None

    @field_validator("learning_style", mode="before")
    @classmethod
    def _coerce_learning_style(cls, v: Any) -> Any:
        return _known_or_none(v, LearningStyle)

    @field_validator("response_style", mode="before")
    @classmethod
    def _coerce_response_style(cls, v: Any) -> Any:
        return _known_or_none(v, ResponseStyle)

    @field_validator("tone", mode="before")
    @classmethod
    def _coerce_tone(cls, v: Any) -> Any:
        return _known_or_none(v, Tone)


class UserMemory(CamelModel):
    """What the assistant remembers about a student between sessions."""

    topics: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recent_questions: list[str] = Field(default_factory=list)
    notes: str = ""
    last_updated: datetime | None = None


class UserProfile(CamelModel):
    """A signed-in user as seen by the chat pipeline."""

    id: str = ""
    name: str = ""
    email: str = ""
    role: UserRole = "student"
    preferences: UserPreferences | None = None
    memory: UserMemory | None = None

    @property
    def is_professor(self) -> bool:
        return self.role == "professor"


def _list_of_str(value: Any) -> list[str]:
    if not value:
        return []
    return [str(v) for v in value]


def user_from_row(row: Mapping[str, Any]) -> UserProfile:
    """Decode a ``users`` table row into a :class:`UserProfile`.

    Column names follow the store's snake_case schema; absent or null
    columns fall back to the defaults new accounts are created with.
    """
    role = row.get("role")
    return UserProfile(
        id=str(row.get("id") or ""),
        name=row.get("name") or "",
        email=row.get("email") or "",
        role=role if role in get_args(UserRole) else "student",
        preferences=UserPreferences(
            learning_style=row.get("learning_style") or DEFAULT_LEARNING_STYLE,
            academic_level=row.get("academic_level") or DEFAULT_ACADEMIC_LEVEL,
            major=row.get("major") or "",
            preferred_language=row.get("preferred_language") or DEFAULT_LANGUAGE,
            response_style=row.get("response_style") or DEFAULT_RESPONSE_STYLE,
            tone=row.get("tone") or DEFAULT_TONE,
        ),
        memory=UserMemory(
            topics=_list_of_str(row.get("memory_topics")),
            strengths=_list_of_str(row.get("memory_strengths")),
            weaknesses=_list_of_str(row.get("memory_weaknesses")),
            recent_questions=_list_of_str(row.get("recent_questions")),
            notes=row.get("memory_notes") or "",
            last_updated=row.get("memory_last_updated"),
        ),
    )
