"""Session state endpoints — per-user selected course and sign-out."""

from __future__ import annotations

from fastapi import APIRouter

from models.base import CamelModel
from models.session import SessionContext
from services.session_context import get_session_state_store

router = APIRouter(prefix="/api/session", tags=["session"])


class SelectedCourseBody(CamelModel):
    course_id: str | None = None


@router.get("/{user_id}/selected-course")
async def get_selected_course(user_id: str):
    ctx = SessionContext(user_id=user_id)
    return {"courseId": get_session_state_store().get_selected_course(ctx)}


@router.put("/{user_id}/selected-course")
async def set_selected_course(user_id: str, body: SelectedCourseBody):
    ctx = SessionContext(user_id=user_id)
    get_session_state_store().set_selected_course(ctx, body.course_id)
    return {"courseId": body.course_id}


@router.post("/{user_id}/sign-out")
async def sign_out(user_id: str):
    get_session_state_store().sign_out(SessionContext(user_id=user_id))
    return {"success": True}
