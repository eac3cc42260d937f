"""Tests for course visibility and ownership checks."""

import pytest

from course_rag.access import require_owned_course, resolve_chat_course
from errors.exceptions import NotFoundError
from models.course import CourseAccessContext
from models.session import SessionContext

STUDENT = SessionContext(user_id="s-1", role="student")
OWNER = SessionContext(user_id="p-1", role="professor")
OTHER_PROF = SessionContext(user_id="p-2", role="professor")
ANONYMOUS = SessionContext()


def test_access_context_owner_requires_professor_role():
    ctx = CourseAccessContext(
        course_id="c", professor_id="p-1", is_visible=False,
        requesting_user_id="p-1", requesting_user_role="student",
    )
    assert not ctx.is_owner
    assert not ctx.materials_allowed


def test_access_context_empty_ids_never_match():
    ctx = CourseAccessContext(
        course_id="c", professor_id="", is_visible=False,
        requesting_user_id="", requesting_user_role="professor",
    )
    assert not ctx.is_owner


@pytest.mark.asyncio
@pytest.mark.parametrize("session", [STUDENT, OWNER, OTHER_PROF, ANONYMOUS])
async def test_visible_course_open_to_everyone(memory_store, session):
    course = await resolve_chat_course(memory_store, "c-bio", session)
    assert course is not None
    assert course.id == "c-bio"


@pytest.mark.asyncio
@pytest.mark.parametrize("session", [STUDENT, OTHER_PROF, ANONYMOUS])
async def test_hidden_course_dropped_for_non_owners(memory_store, session):
    assert await resolve_chat_course(memory_store, "c-hidden", session) is None


@pytest.mark.asyncio
async def test_hidden_course_kept_for_owner(memory_store):
    course = await resolve_chat_course(memory_store, "c-hidden", OWNER)
    assert course.name == "Draft Course"


@pytest.mark.asyncio
async def test_missing_or_empty_course(memory_store):
    assert await resolve_chat_course(memory_store, None, STUDENT) is None
    assert await resolve_chat_course(memory_store, "", STUDENT) is None
    assert await resolve_chat_course(memory_store, "nope", OWNER) is None


@pytest.mark.asyncio
async def test_require_owned_course(memory_store):
    course = await require_owned_course(memory_store, "c-bio", "p-1")
    assert course.id == "c-bio"

    for course_id, user_id in (("c-bio", "p-2"), ("c-bio", ""), ("nope", "p-1"), ("", "p-1")):
        with pytest.raises(NotFoundError):
            await require_owned_course(memory_store, course_id, user_id)


@pytest.mark.asyncio
async def test_course_lookup_failure_drops_course(memory_store, monkeypatch):
    async def broken_get_course(course_id):
        raise RuntimeError("connection pool closed")

    monkeypatch.setattr(memory_store, "get_course", broken_get_course)

    assert await resolve_chat_course(memory_store, "c-bio", STUDENT) is None
