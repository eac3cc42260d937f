"""Explicit session identity passed to every operation that needs it."""

from __future__ import annotations

from models.base import CamelModel
from models.user import UserProfile, UserRole


class SessionContext(CamelModel):
    """Who is asking.  Anonymous callers are treated as students."""

    user_id: str = ""
    role: UserRole = "student"
    name: str = ""

    @property
    def is_professor(self) -> bool:
        return self.role == "professor"

    @classmethod
    def from_user(cls, user: UserProfile | None) -> SessionContext:
        if user is None:
            return cls()
        return cls(user_id=user.id, role=user.role, name=user.name)
