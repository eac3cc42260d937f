"""Chat request and stream event models."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field

from models.base import CamelModel
from models.user import UserProfile

MessageRole = Literal["system", "user", "assistant"]


class ChatMessage(CamelModel):
    role: MessageRole
    content: str


class ChatRequest(CamelModel):
    """Body of ``POST /api/chat``."""

    message: str = ""
    conversation_history: list[ChatMessage] = Field(default_factory=list)
    user: UserProfile | None = None
    course_id: str | None = None
    file_ids: list[str] = Field(default_factory=list)
    session_id: str | None = None
    model: str | None = None


class StreamEventType(str, Enum):
    CONTENT = "content"
    ERROR = "error"
    DONE = "done"


class StreamEvent(CamelModel):
    """One increment of a completion stream as relayed to the client."""

    type: StreamEventType
    text: str = ""

    @classmethod
    def content(cls, text: str) -> StreamEvent:
        return cls(type=StreamEventType.CONTENT, text=text)

    @classmethod
    def error(cls, text: str) -> StreamEvent:
        return cls(type=StreamEventType.ERROR, text=text)

    @classmethod
    def done(cls) -> StreamEvent:
        return cls(type=StreamEventType.DONE)
