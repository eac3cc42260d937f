"""Course visibility and ownership checks.

All checks fail closed: a course that does not exist and a course the
caller may not use produce the same outcome.
"""

from __future__ import annotations

import logging

from course_rag.store import CourseStore
from errors.exceptions import NotFoundError
from models.course import Course, CourseAccessContext
from models.session import SessionContext

logger = logging.getLogger(__name__)


def access_context(course: Course, session: SessionContext) -> CourseAccessContext:
    return CourseAccessContext(
        course_id=course.id,
        professor_id=course.professor_id,
        is_visible=course.is_visible,
        requesting_user_id=session.user_id,
        requesting_user_role=session.role,
    )


async def resolve_chat_course(
    store: CourseStore,
    course_id: str | None,
    session: SessionContext,
) -> Course | None:
    """Return the course whose materials may back this chat turn, or None.

    A missing course, or a hidden course asked about by anyone but its
    owning professor, drops the course context entirely.
    """
    if not course_id:
        return None

    try:
        course = await store.get_course(course_id)
    except Exception as exc:
        logger.warning("Course lookup failed for %s: %s", course_id, exc)
        return None
    if course is None:
        logger.info("Course %s not found — proceeding without course context", course_id)
        return None

    if not access_context(course, session).materials_allowed:
        logger.info(
            "Course %s is hidden — access denied for user %s (%s)",
            course_id, session.user_id or "anonymous", session.role,
        )
        return None
    return course


async def require_owned_course(
    store: CourseStore,
    course_id: str,
    user_id: str,
) -> Course:
    """Return the course if *user_id* is its professor.

    Raises:
        NotFoundError: the course does not exist or is owned by someone else.
    """
    course = await store.get_course(course_id) if course_id else None
    if course is None or not user_id or course.professor_id != user_id:
        raise NotFoundError("course", course_id)
    return course
