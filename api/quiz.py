"""Quiz generation from a course's indexed materials."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from config.llm_config import LLMConfig
from config.prompts.quiz import QUIZ_SYSTEM_PROMPT, build_quiz_prompt
from config.settings import get_settings
from course_rag.retriever import CHUNK_SEPARATOR
from course_rag.store import get_course_store
from errors.exceptions import RequestValidationError
from models.quiz import Quiz, QuizQuestion, QuizRequest
from services.llm_service import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["quiz"])


def _parse_questions(raw: object) -> list[QuizQuestion]:
    questions: list[QuizQuestion] = []
    for item in raw if isinstance(raw, list) else []:
        try:
            questions.append(QuizQuestion.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed quiz question: %s", exc.errors()[:1])
    return questions


@router.post("/generate-quiz")
async def generate_quiz(req: QuizRequest):
    """Generate multiple-choice questions grounded in the course's first chunks."""
    if not req.course_id:
        raise RequestValidationError("courseId is required", field="courseId")

    settings = get_settings()
    chunks = await get_course_store().list_course_chunks(
        req.course_id, req.selected_file_ids or None, settings.quiz_chunk_limit,
    )
    if not chunks:
        raise RequestValidationError(
            "No course materials found. Please upload materials first.",
        )

    context = CHUNK_SEPARATOR.join(
        f"[{c.file_name}, section {c.chunk_index + 1}]\n{c.content}" for c in chunks
    )
    course_name = req.course_name or "Course"
    messages = [
        {"role": "system", "content": QUIZ_SYSTEM_PROMPT},
        {"role": "user", "content": build_quiz_prompt(
            course_name=course_name,
            context=context,
            num_questions=req.num_questions,
            difficulty=req.difficulty,
            topic=req.topic,
        )},
    ]

    service = LLMService(LLMConfig(model=req.model or settings.quiz_model))
    try:
        data = await service.complete_json(messages)
    except ValueError:
        return JSONResponse({"error": "Failed to parse quiz response"}, status_code=500)

    topic = (req.topic or "").strip()
    quiz = Quiz(
        title=data.get("title") or (f"Quiz: {topic}" if topic else f"{course_name} Quiz"),
        questions=_parse_questions(data.get("questions")),
        course_id=req.course_id,
        course_name=course_name,
        created_at=datetime.now(timezone.utc),
    )
    logger.info("Generated quiz with %d questions for course %s",
                len(quiz.questions), req.course_id)
    return {"quiz": quiz.model_dump(by_alias=True, mode="json")}
