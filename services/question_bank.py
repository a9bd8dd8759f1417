"""
Lecturer question bank: manual questions, accepted AI drafts, deletion.
"""

import logging
from typing import Any, Dict, List, Optional

from clients.supabase_client import (
    get_questions_by_creator,
    get_choices_for_questions,
    get_mappings_for_questions,
    upsert_question,
    replace_choices,
    replace_question_mappings,
    delete_question_cascade,
)
from models.lms_models import NormalizedQuestion, QuestionRequest
from services.quiz_service import build_questions
from utils.exceptions import ValidationError
from utils.file_storage import generate_uuid

logger = logging.getLogger(__name__)

OPTION_LETTERS = "ABCD"


class QuestionBank:
    """Persist questions together with their choices and objective mappings"""

    def list_questions(self, user_id: str) -> List[Dict[str, Any]]:
        rows = get_questions_by_creator(user_id)
        ids = [r["id"] for r in rows]
        questions = build_questions(rows, get_choices_for_questions(ids))

        los_by_question: Dict[str, List[str]] = {}
        for mapping in get_mappings_for_questions(ids):
            los_by_question.setdefault(mapping["question_id"], []).append(mapping["lo_id"])

        return [
            {**q.model_dump(), "selected_los": los_by_question.get(q.id, [])}
            for q in questions
        ]

    def save_question(
        self,
        user_id: str,
        request: QuestionRequest,
        question_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create or update a question from the lettered-option form."""
        if not request.content.strip():
            raise ValidationError("Please enter the question content")
        if not request.selected_los:
            raise ValidationError("Please select at least one learning objective")
        if not 2 <= len(request.options) <= len(OPTION_LETTERS):
            raise ValidationError("A question needs between two and four options", error_code="INVALID_OPTIONS")
        letters = list(OPTION_LETTERS[:len(request.options)])
        if request.answer not in letters:
            raise ValidationError("Please select the correct answer", error_code="MISSING_ANSWER")
        for letter, option in zip(letters, request.options):
            if not option.strip():
                raise ValidationError(f"Option {letter} cannot be empty", error_code="EMPTY_OPTION")
        if len(set(request.options)) != len(request.options):
            raise ValidationError("Options must be distinct", error_code="DUPLICATE_OPTIONS")

        choices = [
            (option, letter == request.answer)
            for letter, option in zip(letters, request.options)
        ]
        return self._write(
            user_id=user_id,
            question_id=question_id,
            content=request.content,
            explanation=request.explanation,
            difficulty=request.difficulty,
            choices=choices,
            lo_ids=request.selected_los,
        )

    def save_draft(self, user_id: str, draft: NormalizedQuestion, lo_ids: List[str]) -> Dict[str, Any]:
        """Persist an accepted generation result as a new question."""
        if not lo_ids:
            raise ValidationError("Please select at least one learning objective")
        if not draft.content.strip():
            raise ValidationError("Please enter the question content")
        texts = [c.text for c in draft.choices]
        if not all(t.strip() for t in texts):
            raise ValidationError("Choices cannot be empty", error_code="EMPTY_OPTION")
        if len(set(texts)) != len(texts):
            raise ValidationError("Options must be distinct", error_code="DUPLICATE_OPTIONS")
        if sum(1 for c in draft.choices if c.is_correct) != 1:
            raise ValidationError("Exactly one choice must be marked correct", error_code="MISSING_ANSWER")
        return self._write(
            user_id=user_id,
            question_id=None,
            content=draft.content,
            explanation=draft.explanation,
            difficulty=int(draft.difficulty),
            choices=[(c.text, c.is_correct) for c in draft.choices],
            lo_ids=lo_ids,
        )

    def delete_question(self, question_id: str) -> None:
        delete_question_cascade(question_id)
        logger.info(f"Deleted question {question_id}")

    def _write(
        self,
        user_id: str,
        question_id: Optional[str],
        content: str,
        explanation: str,
        difficulty: int,
        choices: List[tuple],
        lo_ids: List[str],
    ) -> Dict[str, Any]:
        question_id = question_id or generate_uuid()
        question = upsert_question({
            "id": question_id,
            "content": content,
            "explanation": explanation,
            "difficulty": difficulty,
            "created_by": user_id,
        })
        choice_rows = replace_choices(question_id, [
            {
                "id": generate_uuid(),
                "question_id": question_id,
                "choice": text,
                "is_correct": is_correct,
            }
            for text, is_correct in choices
        ])
        mapping_rows = replace_question_mappings(question_id, [
            {"id": generate_uuid(), "question_id": question_id, "lo_id": lo_id}
            for lo_id in dict.fromkeys(lo_ids)
        ])
        logger.info(f"Saved question {question_id} with {len(choice_rows)} choices")
        return {
            **question,
            "choices": choice_rows,
            "selected_los": [m["lo_id"] for m in mapping_rows],
        }
