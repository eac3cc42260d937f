"""Quiz generation prompts — multiple-choice questions grounded in course chunks."""

from __future__ import annotations

QUIZ_SYSTEM_PROMPT = (
    "You are an expert academic quiz generator. Always respond with valid JSON only, "
    "no markdown fences. Base questions strictly on provided materials."
)

QUIZ_USER_PROMPT = """\
Generate a quiz with {num_questions} {difficulty}-difficulty multiple-choice questions for the course "{course_name}".

{topic_clause}

COURSE MATERIALS:
{context}

CRITICAL: Base every question STRICTLY on the course materials above. Do not use external knowledge.

Format your response as JSON:
{{
  "title": "Quiz Title",
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Brief explanation citing the source section"
    }}
  ]
}}"""


def build_quiz_prompt(
    *,
    course_name: str,
    context: str,
    num_questions: int = 10,
    difficulty: str = "medium",
    topic: str | None = None,
) -> str:
    """Build the user prompt for quiz generation.

    Args:
        course_name: Display name of the course.
        context: Rendered course chunks.
        num_questions: How many questions to ask for.
        difficulty: easy / medium / hard.
        topic: Optional focus topic; when blank the quiz covers the breadth
            of the materials.
    """
    topic = (topic or "").strip()
    if topic:
        topic_clause = (
            f'Focus specifically on the topic: "{topic}". '
            "Only generate questions about this topic if it appears in the materials."
        )
    else:
        topic_clause = "Generate questions that cover the breadth of the materials provided."
    return QUIZ_USER_PROMPT.format(
        num_questions=num_questions,
        difficulty=difficulty,
        course_name=course_name,
        topic_clause=topic_clause,
        context=context,
    )
