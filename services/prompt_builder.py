"""Prompt assembler — role-aware system prompt plus a materials-gated user turn.

Policy (caller role × material availability):

- professor, any materials: unrestricted; materials are optional context.
- student, materials retrieved: materials are the primary source; topics
  absent from them are refused and referred to the professor.
- student, no materials (still processing / no match / error / no course):
  the model may only reply with a fixed refusal sentence.
"""

from __future__ import annotations

from config.prompts.chat import (
    CONTEXT_NO_COURSE,
    CONTEXT_NO_MATCH,
    CONTEXT_RETRIEVAL_ERROR,
    CONTEXT_STILL_PROCESSING,
    LEARNING_STYLE_INSTRUCTIONS,
    MATERIALS_BLOCK,
    NO_MATERIALS_REFUSAL,
    OFF_MATERIAL_REFUSAL,
    PERSONALIZATION_END,
    PROFESSOR_SYSTEM_PROMPT,
    PROFESSOR_TURN,
    RESPONSE_STYLE_INSTRUCTIONS,
    STUDENT_SYSTEM_PROMPT,
    STUDENT_TURN_NO_MATERIALS,
    STUDENT_TURN_WITH_MATERIALS,
    TONE_INSTRUCTIONS,
)
from models.chat import ChatMessage
from models.chunk import RetrievalResult, RetrievalStatus
from models.session import SessionContext
from models.user import UserMemory, UserProfile

MAX_HISTORY_TURNS = 10
MAX_MEMORY_TOPICS = 10
MAX_RECENT_QUESTIONS = 5
RECENT_QUESTION_CHARS = 50

_FALLBACK_CONTEXT = {
    RetrievalStatus.NO_EMBEDDINGS: CONTEXT_STILL_PROCESSING,
    RetrievalStatus.NO_MATCH: CONTEXT_NO_MATCH,
    RetrievalStatus.ERROR: CONTEXT_RETRIEVAL_ERROR,
}


def context_text(retrieval: RetrievalResult | None) -> str:
    """The text standing in for course materials in the user turn.

    ``None`` means no (accessible) course was selected.
    """
    if retrieval is None:
        return CONTEXT_NO_COURSE
    if retrieval.status == RetrievalStatus.OK:
        return retrieval.text
    return _FALLBACK_CONTEXT[retrieval.status]


# ── System prompt ────────────────────────────────────────────


def _memory_lines(name: str, memory: UserMemory) -> str:
    out = ""
    if memory.topics:
        recent = ", ".join(memory.topics[-MAX_MEMORY_TOPICS:])
        out += (f"\nTopics {name} has recently studied: {recent}. "
                "You can reference these and build upon prior knowledge.\n")
    if memory.strengths:
        out += (f"Their strengths: {', '.join(memory.strengths)}. "
                "You can reference these when relevant.\n")
    if memory.weaknesses:
        out += (f"They need extra help with: {', '.join(memory.weaknesses)}. "
                "Provide more detailed explanations for these topics.\n")
    if memory.recent_questions:
        quoted = "; ".join(
            f'"{q[:RECENT_QUESTION_CHARS]}..."'
            for q in memory.recent_questions[:MAX_RECENT_QUESTIONS]
        )
        out += f"\nRecent questions {name} asked: {quoted}. Consider this context when answering.\n"
    if memory.notes:
        out += f"\nAdditional notes about the student: {memory.notes}\n"
    return out


def build_system_prompt(user: UserProfile | None, session: SessionContext) -> str:
    """Role description plus personalization for the signed-in user."""
    if session.is_professor:
        name = (user.name if user else "") or session.name or "User"
        return (
            f"{PROFESSOR_SYSTEM_PROMPT}\n\n"
            f"--- PERSONALIZATION FOR PROFESSOR {name.upper()} ---\n"
            f"You are speaking with Professor {name}.\n"
            f"{PERSONALIZATION_END}"
        )

    if user is None:
        return STUDENT_SYSTEM_PROMPT

    name = user.name or "User"
    prompt = f"{STUDENT_SYSTEM_PROMPT}\n\n--- PERSONALIZATION FOR {name.upper()} ---\n"

    prefs = user.preferences
    prompt += f"You are speaking with {name}"
    if prefs and prefs.academic_level:
        prompt += f", a {prefs.academic_level} student"
    if prefs and prefs.major:
        prompt += f" majoring in {prefs.major}"
    prompt += ".\n"

    if prefs:
        if prefs.learning_style:
            prompt += LEARNING_STYLE_INSTRUCTIONS[prefs.learning_style] + "\n"
        if prefs.response_style:
            prompt += RESPONSE_STYLE_INSTRUCTIONS[prefs.response_style] + "\n"
        if prefs.tone:
            prompt += TONE_INSTRUCTIONS[prefs.tone] + "\n"

    if user.memory:
        prompt += _memory_lines(name, user.memory)

    return prompt + PERSONALIZATION_END


# ── User turn ────────────────────────────────────────────────


def build_user_turn(
    message: str,
    session: SessionContext,
    retrieval: RetrievalResult | None,
) -> str:
    has_materials = retrieval is not None and retrieval.has_materials

    if session.is_professor:
        materials = ""
        if has_materials:
            materials = MATERIALS_BLOCK.format(
                file_count=retrieval.file_count,
                file_names=", ".join(retrieval.file_names),
                context=retrieval.text,
            )
        return PROFESSOR_TURN.format(materials=materials, message=message)

    if has_materials:
        return STUDENT_TURN_WITH_MATERIALS.format(
            file_count=retrieval.file_count,
            file_names=", ".join(retrieval.file_names),
            context=retrieval.text,
            message=message,
            refusal=OFF_MATERIAL_REFUSAL,
        )

    return STUDENT_TURN_NO_MATERIALS.format(
        context=context_text(retrieval),
        message=message,
        refusal=NO_MATERIALS_REFUSAL,
    )


def assemble_messages(
    *,
    message: str,
    session: SessionContext,
    user: UserProfile | None,
    retrieval: RetrievalResult | None,
    history: list[ChatMessage] | None = None,
    max_history: int = MAX_HISTORY_TURNS,
) -> list[ChatMessage]:
    """System message, the last *max_history* prior turns, then the new user turn."""
    messages = [ChatMessage(role="system", content=build_system_prompt(user, session))]
    if history and max_history > 0:
        messages.extend(
            ChatMessage(role=m.role, content=m.content) for m in history[-max_history:]
        )
    messages.append(ChatMessage(role="user", content=build_user_turn(message, session, retrieval)))
    return messages
