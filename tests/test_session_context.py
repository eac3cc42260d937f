"""Tests for user-scoped session state."""

import pytest

from models.session import SessionContext
from models.user import user_from_row
from services.session_context import (
    LEGACY_SELECTED_COURSE_KEY,
    SessionStateStore,
    role_key,
    selected_course_key,
)

ALICE = SessionContext(user_id="u-alice", role="student", name="Alice")
BOB = SessionContext(user_id="u-bob", role="professor", name="Bob")


def test_keys_are_scoped():
    assert selected_course_key("u-1") == "selected-course:u-1"
    assert role_key("u-1") == "user-role:u-1"


def test_scoped_key_requires_user_id():
    with pytest.raises(ValueError):
        selected_course_key("")


def test_selection_not_shared_between_users():
    store = SessionStateStore()

    store.set_selected_course(ALICE, "c-bio")

    assert store.get_selected_course(ALICE) == "c-bio"
    assert store.get_selected_course(BOB) is None


def test_set_none_clears_selection():
    store = SessionStateStore()
    store.set_selected_course(ALICE, "c-bio")
    store.set_selected_course(ALICE, None)
    assert store.get_selected_course(ALICE) is None


def test_start_and_get_session():
    store = SessionStateStore()
    store.start(BOB)

    assert store.get_session("u-bob") == BOB
    assert store.get_raw(role_key("u-bob")) == "professor"
    assert store.get_session("u-alice") is None


def test_sign_out_clears_scoped_and_legacy_keys():
    store = SessionStateStore()
    store.start(ALICE)
    store.start(BOB)
    store.set_selected_course(ALICE, "c-bio")
    store.set_selected_course(BOB, "c-chem")
    store.set_raw(LEGACY_SELECTED_COURSE_KEY, "c-stale")

    store.sign_out(ALICE)

    assert store.get_session("u-alice") is None
    assert store.get_selected_course(ALICE) is None
    assert store.get_raw(LEGACY_SELECTED_COURSE_KEY) is None
    assert store.get_selected_course(BOB) == "c-chem"
    assert store.get_session("u-bob") == BOB


def test_session_from_user():
    user = user_from_row({"id": "p-9", "name": "Grace", "role": "professor"})
    ctx = SessionContext.from_user(user)
    assert ctx.is_professor
    assert ctx.user_id == "p-9"
    assert SessionContext.from_user(None) == SessionContext()
