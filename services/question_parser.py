"""
Turns a raw language-model completion into a NormalizedQuestion.

Steps, in order: reject HTML error pages, extract the first balanced JSON
object, parse it, validate the question shape, normalize difficulty.
Each failure raises its own ResponseFormatError/ProviderErrorPage subclass.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from models.lms_models import Difficulty, DraftChoice, NormalizedQuestion
from utils.exceptions import (
    MalformedJSONError,
    NoJSONFoundError,
    ProviderErrorPage,
    QuestionShapeError,
)

logger = logging.getLogger(__name__)

HTML_MARKERS = ("<!doctype", "<html")

DIFFICULTY_MAP = {
    "easy": Difficulty.EASY,
    "medium": Difficulty.MEDIUM,
    "hard": Difficulty.HARD,
}


def looks_like_error_page(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in HTML_MARKERS)


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} substring of text, or None.

    Braces inside JSON string literals (and escaped quotes within them) do
    not count towards nesting, so nested objects come back whole.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    # Every later brace sits inside this unclosed one
    return None


def map_difficulty(label: Any) -> Difficulty:
    """easy/medium/hard (any case) -> 1/2/3. Anything else maps to EASY."""
    if isinstance(label, str):
        return DIFFICULTY_MAP.get(label.strip().lower(), Difficulty.EASY)
    return Difficulty.EASY


def _require_question_text(data: Dict[str, Any]) -> str:
    question = data.get("question")
    if not isinstance(question, str) or not question.strip():
        raise QuestionShapeError("missing question text")
    return question.strip()


def _require_distinct(texts: List[str]) -> None:
    if len(set(texts)) != len(texts):
        raise QuestionShapeError("options must be distinct")


def _choices_from_options(data: Dict[str, Any]) -> List[DraftChoice]:
    options = data.get("options")
    if not isinstance(options, list) or len(options) < 2:
        raise QuestionShapeError("at least two options are required")
    if not all(isinstance(o, str) and o.strip() for o in options):
        raise QuestionShapeError("every option must be non-empty text")
    _require_distinct(options)

    answer = data.get("answer")
    if not isinstance(answer, str) or answer not in options:
        raise QuestionShapeError("answer must match one of the options")

    return [DraftChoice(text=o, is_correct=(o == answer)) for o in options]


def _choices_from_flags(data: Dict[str, Any]) -> List[DraftChoice]:
    choices = data.get("choices")
    if not isinstance(choices, list) or len(choices) < 2:
        raise QuestionShapeError("at least two choices are required")

    drafts = []
    for entry in choices:
        if not isinstance(entry, dict):
            raise QuestionShapeError("every choice must be an object")
        text = entry.get("choice")
        if not isinstance(text, str) or not text.strip():
            raise QuestionShapeError("every choice must have non-empty text")
        drafts.append(DraftChoice(text=text, is_correct=entry.get("is_correct") is True))

    _require_distinct([d.text for d in drafts])
    correct = sum(1 for d in drafts if d.is_correct)
    if correct != 1:
        raise QuestionShapeError(
            "must have exactly one correct choice",
            context={"correct_count": correct},
        )
    return drafts


def normalize_question(data: Any) -> NormalizedQuestion:
    """Validate a parsed object of either contract and build the normalized record."""
    if not isinstance(data, dict):
        raise QuestionShapeError("top-level JSON value must be an object")

    content = _require_question_text(data)
    if "choices" in data:
        choices = _choices_from_flags(data)
    else:
        choices = _choices_from_options(data)

    explanation = data.get("explanation")
    related = data.get("related_learning_objectives")
    return NormalizedQuestion(
        content=content,
        choices=choices,
        explanation=explanation if isinstance(explanation, str) else "",
        difficulty=map_difficulty(data.get("difficulty")),
        related_learning_objectives=[r for r in related if isinstance(r, str)] if isinstance(related, list) else [],
    )


def parse_completion(text: str) -> NormalizedQuestion:
    """
    Full parse of an accumulated completion buffer.

    Raises:
        ProviderErrorPage: the buffer is an HTML page
        NoJSONFoundError: no balanced brace-delimited object
        MalformedJSONError: the object does not parse
        QuestionShapeError: the object is not a usable question
    """
    if looks_like_error_page(text):
        logger.error(f"Received HTML error page instead of JSON: {text[:300]}")
        raise ProviderErrorPage(context={"preview": text[:200]})

    candidate = extract_json_object(text)
    if candidate is None:
        logger.error(f"No JSON found in response: {text[:300]}")
        raise NoJSONFoundError(context={"preview": text[:200]})

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON response: {e}")
        raise MalformedJSONError(e.msg, context={"preview": candidate[:200]})

    return normalize_question(data)
