"""Tests for role-aware prompt assembly."""

import pytest

from config.prompts.chat import (
    CONTEXT_NO_COURSE,
    CONTEXT_NO_MATCH,
    CONTEXT_RETRIEVAL_ERROR,
    CONTEXT_STILL_PROCESSING,
    NO_MATERIALS_REFUSAL,
    OFF_MATERIAL_REFUSAL,
    PROFESSOR_SYSTEM_PROMPT,
    STUDENT_SYSTEM_PROMPT,
)
from models.chat import ChatMessage
from models.chunk import RetrievalResult, RetrievalStatus
from models.session import SessionContext
from models.user import user_from_row
from services.prompt_builder import (
    assemble_messages,
    build_system_prompt,
    build_user_turn,
    context_text,
)

STUDENT = SessionContext(user_id="s-1", role="student", name="Sam")
PROFESSOR = SessionContext(user_id="p-1", role="professor", name="Ada")

MATERIALS = RetrievalResult(
    text="[Source: cells.pdf, section 1]\nCells are small.",
    file_count=1,
    file_names=["cells.pdf"],
    chunk_count=1,
    status=RetrievalStatus.OK,
)


def _status(status: RetrievalStatus) -> RetrievalResult:
    return RetrievalResult(status=status)


# ── Context text ─────────────────────────────────────────────


@pytest.mark.parametrize(("retrieval", "expected"), [
    (None, CONTEXT_NO_COURSE),
    (_status(RetrievalStatus.NO_EMBEDDINGS), CONTEXT_STILL_PROCESSING),
    (_status(RetrievalStatus.NO_MATCH), CONTEXT_NO_MATCH),
    (_status(RetrievalStatus.ERROR), CONTEXT_RETRIEVAL_ERROR),
    (MATERIALS, MATERIALS.text),
])
def test_context_text(retrieval, expected):
    assert context_text(retrieval) == expected


# ── Student turns ────────────────────────────────────────────


def test_student_with_materials_gets_off_material_refusal():
    turn = build_user_turn("What is a cell?", STUDENT, MATERIALS)

    assert "=== COURSE MATERIALS (1 files: cells.pdf) ===" in turn
    assert "Cells are small." in turn
    assert "Student Question: What is a cell?" in turn
    assert OFF_MATERIAL_REFUSAL in turn
    assert NO_MATERIALS_REFUSAL not in turn


@pytest.mark.parametrize("retrieval", [
    None,
    _status(RetrievalStatus.NO_EMBEDDINGS),
    _status(RetrievalStatus.NO_MATCH),
    _status(RetrievalStatus.ERROR),
])
def test_student_without_materials_may_only_refuse(retrieval):
    turn = build_user_turn("What is a cell?", STUDENT, retrieval)

    assert turn.startswith(f"Note: {context_text(retrieval)}")
    assert f'You MUST ONLY respond with: "{NO_MATERIALS_REFUSAL}"' in turn
    assert "COURSE MATERIALS (" not in turn


# ── Professor turns ──────────────────────────────────────────


def test_professor_with_materials_is_unrestricted():
    turn = build_user_turn("Draft a quiz", PROFESSOR, MATERIALS)

    assert turn.startswith("=== COURSE MATERIALS (1 files: cells.pdf) ===")
    assert "Professor Question: Draft a quiz" in turn
    assert "full unrestricted access" in turn
    assert NO_MATERIALS_REFUSAL not in turn
    assert OFF_MATERIAL_REFUSAL not in turn


@pytest.mark.parametrize("retrieval", [None, _status(RetrievalStatus.NO_EMBEDDINGS)])
def test_professor_without_materials_is_never_refused(retrieval):
    turn = build_user_turn("Explain entropy", PROFESSOR, retrieval)

    assert turn.startswith("Professor Question: Explain entropy")
    assert NO_MATERIALS_REFUSAL not in turn
    assert "COURSE MATERIALS" not in turn


# ── System prompt ────────────────────────────────────────────


def test_student_personalization():
    user = user_from_row({
        "id": "s-1", "name": "Sam", "role": "student", "major": "Biology",
        "learning_style": "visual", "response_style": "step-by-step", "tone": "casual",
        "memory_topics": ["cells", "enzymes"],
        "memory_weaknesses": ["osmosis"],
        "recent_questions": ["What happens during glycolysis in the cytoplasm of a cell?"],
    })

    prompt = build_system_prompt(user, STUDENT)

    assert prompt.startswith(STUDENT_SYSTEM_PROMPT)
    assert "--- PERSONALIZATION FOR SAM ---" in prompt
    assert "You are speaking with Sam, a sophomore student majoring in Biology." in prompt
    assert "diagrams, charts" in prompt
    assert "numbered steps" in prompt
    assert "friendly, conversational tone" in prompt
    assert "recently studied: cells, enzymes" in prompt
    assert "extra help with: osmosis" in prompt
    assert '"What happens during glycolysis in the cytoplasm of..."' in prompt
    assert prompt.endswith("--- END PERSONALIZATION ---\n")


def test_anonymous_student_gets_base_prompt():
    assert build_system_prompt(None, SessionContext()) == STUDENT_SYSTEM_PROMPT


def test_professor_system_prompt():
    prompt = build_system_prompt(None, PROFESSOR)

    assert prompt.startswith(PROFESSOR_SYSTEM_PROMPT)
    assert "You are speaking with Professor Ada." in prompt
    assert "PERSONALIZATION FOR PROFESSOR ADA" in prompt


# ── Message assembly ─────────────────────────────────────────


def test_history_window_keeps_last_ten():
    history = [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(14)
    ]

    messages = assemble_messages(
        message="latest", session=STUDENT, user=None, retrieval=MATERIALS, history=history,
    )

    assert len(messages) == 12
    assert messages[0].role == "system"
    assert [m.content for m in messages[1:-1]] == [f"turn {i}" for i in range(4, 14)]
    assert messages[-1].role == "user"
    assert "Student Question: latest" in messages[-1].content


def test_no_history():
    messages = assemble_messages(
        message="hi", session=PROFESSOR, user=None, retrieval=None, history=None,
    )
    assert [m.role for m in messages] == ["system", "user"]
