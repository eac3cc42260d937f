"""Chat endpoint — retrieval-augmented answers streamed as SSE.

Per turn: course access check → retrieval → prompt assembly → streamed
completion.  Each response is a ``text/event-stream`` of
``data: {"content": ...}`` lines, at most one ``data: {"error": ...}`` line,
and always a final ``data: [DONE]``.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import APIRouter, BackgroundTasks, Request
from starlette.responses import StreamingResponse

from config.llm_config import LLMConfig
from config.settings import get_settings
from course_rag.access import resolve_chat_course
from course_rag.retriever import get_course_retriever
from course_rag.store import CourseStore, get_course_store
from errors.exceptions import RequestValidationError
from models.chat import ChatRequest
from models.session import SessionContext
from services.completion_gateway import get_completion_gateway
from services.datastream import SSE_HEADERS, ChatStreamEncoder
from services.prompt_builder import assemble_messages, context_text
from services.session_context import get_session_state_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


async def track_question(
    store: CourseStore,
    *,
    question: str,
    course_id: str,
    course_name: str,
    session_id: str,
    user_id: str | None,
) -> None:
    """Record a student question for course analytics.  Failures are ignored."""
    try:
        await store.record_question(
            question=question,
            course_id=course_id,
            course_name=course_name,
            session_id=session_id,
            user_id=user_id,
        )
    except Exception as exc:
        logger.debug("Question tracking failed for course %s: %s", course_id, exc)


@router.post("/chat")
async def chat(req: ChatRequest, request: Request, background_tasks: BackgroundTasks):
    """Answer one chat turn as a server-sent event stream."""
    if not req.message.strip():
        raise RequestValidationError("Message is required", field="message")

    settings = get_settings()
    store = get_course_store()
    session = SessionContext.from_user(req.user)
    request_id = getattr(request.state, "request_id", "")
    if session.user_id:
        get_session_state_store().start(session)

    logger.info(
        "Chat: user=%s role=%s course=%s history=%d model=%s",
        session.name or "Guest", session.role, req.course_id or "-",
        len(req.conversation_history), req.model or settings.ai_model,
    )

    course = await resolve_chat_course(store, req.course_id, session)

    retrieval = None
    if course is not None:
        retrieval = await get_course_retriever().retrieve(req.message, course.id)
        logger.info("Retrieval status=%s chunks=%d files=%d",
                    retrieval.status.value, retrieval.chunk_count, retrieval.file_count)
    logger.info("Context ready: %d chars", len(context_text(retrieval)))

    if course is not None and not session.is_professor:
        background_tasks.add_task(
            track_question,
            store,
            question=req.message,
            course_id=course.id,
            course_name=course.name,
            session_id=req.session_id or request_id,
            user_id=session.user_id or None,
        )

    messages = assemble_messages(
        message=req.message,
        session=session,
        user=req.user,
        retrieval=retrieval,
        history=req.conversation_history,
        max_history=settings.history_max_turns,
    )
    config = settings.get_completion_config().merge(LLMConfig(model=req.model))

    return StreamingResponse(
        _chat_stream([m.model_dump() for m in messages], config),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def _chat_stream(messages: list[dict], config: LLMConfig) -> AsyncGenerator[str, None]:
    enc = ChatStreamEncoder()
    async for event in get_completion_gateway().stream_completion(messages, config):
        yield enc.encode(event)
