"""Per-user session state — selected course and role, namespaced by user id.

State lives under typed keys scoped by user id (``selected-course:<id>``),
so one user's selection is never visible to another.

Migration shim: earlier clients stored the selected course under a single
unscoped key.  :meth:`SessionStateStore.clear_selected_course` and
:meth:`SessionStateStore.sign_out` also delete that legacy key.  Nothing
writes it any more; do not build on it.
"""

from __future__ import annotations

import logging

from models.session import SessionContext

logger = logging.getLogger(__name__)

SELECTED_COURSE_PREFIX = "selected-course"
ROLE_PREFIX = "user-role"
SESSION_PREFIX = "session"
LEGACY_SELECTED_COURSE_KEY = SELECTED_COURSE_PREFIX


def selected_course_key(user_id: str) -> str:
    if not user_id:
        raise ValueError("user_id is required for a scoped session key")
    return f"{SELECTED_COURSE_PREFIX}:{user_id}"


def role_key(user_id: str) -> str:
    return f"{ROLE_PREFIX}:{user_id}"


def session_key(user_id: str) -> str:
    return f"{SESSION_PREFIX}:{user_id}"


class SessionStateStore:
    """In-process key/value store for session state."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    # Raw access, used by the legacy-key shim and tests.

    def get_raw(self, key: str) -> str | None:
        return self._values.get(key)

    def set_raw(self, key: str, value: str) -> None:
        self._values[key] = value

    # Session

    def start(self, ctx: SessionContext) -> None:
        self._values[session_key(ctx.user_id)] = ctx.model_dump_json()
        self._values[role_key(ctx.user_id)] = ctx.role

    def get_session(self, user_id: str) -> SessionContext | None:
        raw = self._values.get(session_key(user_id))
        return SessionContext.model_validate_json(raw) if raw else None

    # Selected course

    def get_selected_course(self, ctx: SessionContext) -> str | None:
        return self._values.get(selected_course_key(ctx.user_id))

    def set_selected_course(self, ctx: SessionContext, course_id: str | None) -> None:
        key = selected_course_key(ctx.user_id)
        if course_id:
            self._values[key] = course_id
        else:
            self._values.pop(key, None)

    def clear_selected_course(self, ctx: SessionContext) -> None:
        self._values.pop(selected_course_key(ctx.user_id), None)
        if self._values.pop(LEGACY_SELECTED_COURSE_KEY, None) is not None:
            logger.info("Cleared legacy unscoped selected-course key")

    def sign_out(self, ctx: SessionContext) -> None:
        self._values.pop(session_key(ctx.user_id), None)
        self._values.pop(role_key(ctx.user_id), None)
        self.clear_selected_course(ctx)
        logger.info("Signed out user %s", ctx.user_id)


_state_store: SessionStateStore | None = None


def get_session_state_store() -> SessionStateStore:
    global _state_store
    if _state_store is None:
        _state_store = SessionStateStore()
    return _state_store
