# pdf_tutor/domain/services/mcq.py
# Pure domain services: parsing and deterministic fallbacks for MCQ content.
from __future__ import annotations

import json
from typing import Any

from pdf_tutor.domain.errors import ParseError
from pdf_tutor.domain.models import McqQuestion

DEFAULT_OPTIONS = ("A", "B", "C", "D")
OPTION_COUNT = 4

_decoder = json.JSONDecoder()


def extract_json_array(text: str) -> list[Any]:
    """Return the first top-level JSON array embedded in ``text``.

    Tolerates surrounding prose and markdown fences; each ``[`` is tried as the
    start of a JSON value until one decodes to a list.
    """
    idx = text.find("[")
    while idx != -1:
        try:
            value, _end = _decoder.raw_decode(text, idx)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        idx = text.find("[", idx + 1)
    raise ParseError("no JSON array found in response")


def _correct_index(item: dict[str, Any]) -> int:
    raw = item.get("correct_option_index", item.get("correct"))
    if isinstance(raw, bool) or not isinstance(raw, int):
        return 0
    return raw if 0 <= raw < OPTION_COUNT else 0


def _options(item: dict[str, Any]) -> tuple[str, str, str, str] | None:
    raw = item.get("options")
    if raw is None:
        return DEFAULT_OPTIONS
    if not isinstance(raw, list) or len(raw) != OPTION_COUNT:
        return None
    a, b, c, d = (str(o) for o in raw)
    return a, b, c, d


def parse_mcq_response(text: str, page: int) -> list[McqQuestion]:
    """Validate generated MCQs; items without a usable 4-option list are dropped."""
    questions: list[McqQuestion] = []
    for item in extract_json_array(text):
        if not isinstance(item, dict):
            continue
        options = _options(item)
        if options is None:
            continue
        question = item.get("question")
        if not isinstance(question, str) or not question.strip():
            question = f"Question {len(questions) + 1}"
        explanation = item.get("explanation")
        if not isinstance(explanation, str) or not explanation:
            explanation = "No explanation provided"
        questions.append(
            McqQuestion(
                id=len(questions),
                page=page,
                question=question,
                options=options,
                correct=_correct_index(item),
                explanation=explanation,
            )
        )
    if not questions:
        raise ParseError("JSON array contained no valid questions")
    return questions


def fallback_mcqs(page: int) -> list[McqQuestion]:
    return [
        McqQuestion(
            id=0,
            page=page,
            question=f"What is the main topic discussed on page {page}?",
            options=(
                "Educational content",
                "Technical concepts",
                "Research findings",
                "All of the above",
            ),
            correct=3,
            explanation="This page covers various educational and technical topics.",
        ),
        McqQuestion(
            id=1,
            page=page,
            question=f"Which statement best describes the content on page {page}?",
            options=(
                "It provides theoretical knowledge",
                "It contains practical examples",
                "It discusses research methodologies",
                "Content requires detailed analysis",
            ),
            correct=3,
            explanation="The content requires proper PDF parsing for accurate assessment.",
        ),
    ]
