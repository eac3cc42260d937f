"""Quiz generation request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from models.base import CamelModel


class QuizRequest(CamelModel):
    """Body of ``POST /api/generate-quiz``."""

    course_id: str = ""
    course_name: str = ""
    topic: str | None = None
    num_questions: int = Field(default=10, ge=1, le=50)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    selected_file_ids: list[str] = Field(default_factory=list)
    model: str | None = None


class QuizQuestion(CamelModel):
    question: str
    options: list[str] = Field(default_factory=list)
    correct_answer: int = 0
    explanation: str = ""


class Quiz(CamelModel):
    title: str
    questions: list[QuizQuestion] = Field(default_factory=list)
    course_id: str
    course_name: str = "Course"
    created_at: datetime
