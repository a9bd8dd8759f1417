"""
Scoring and persistence of test attempts.

Answers are compared to the correct choice by exact text. The assessment
row is written first and its id is the foreign key of the result rows.
Ids are fixed before the first write and rows are upserted, so a submit
that fails halfway can be repeated without duplicating anything.
"""

import uuid
import logging
from datetime import datetime
from typing import Dict, List, Optional

from clients.supabase_client import (
    upsert_assessment,
    upsert_assessment_results,
    get_assessments_for_student,
    get_results_for_assessment,
)
from models.lms_models import AnswerOutcome, Question, QuizResult
from services.quiz_service import QuizSession
from utils.exceptions import ValidationError
from utils.file_storage import generate_uuid

logger = logging.getLogger(__name__)


def score_answers(questions: List[Question], answers: Dict[str, str]) -> QuizResult:
    """Score every question; a missing answer is simply incorrect."""
    outcomes = []
    for question in questions:
        selected = answers.get(question.id)
        correct = question.correct_choice
        is_correct = selected is not None and correct is not None and selected == correct.choice
        outcomes.append(AnswerOutcome(
            question_id=question.id,
            selected_answer=selected,
            is_correct=is_correct,
        ))

    return QuizResult(
        score=sum(1 for o in outcomes if o.is_correct),
        total=len(questions),
        answers=outcomes,
    )


def result_row_id(assessment_id: str, question_id: str) -> str:
    """Stable id for one result row of one assessment."""
    return str(uuid.uuid5(uuid.UUID(assessment_id), question_id))


class AssessmentService:
    """Persist scored attempts and read them back"""

    def persist(
        self,
        student_id: str,
        course_id: str,
        questions: List[Question],
        result: QuizResult,
        assessment_id: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> QuizResult:
        assessment_id = assessment_id or generate_uuid()

        assessment = upsert_assessment({
            "id": assessment_id,
            "student_id": student_id,
            "course_id": course_id,
            "created_at": created_at or datetime.now().isoformat(),
        })
        logger.info(f"Created assessment {assessment['id']} for student {student_id}")

        difficulty_by_question = {q.id: q.difficulty for q in questions}
        rows = [
            {
                "id": result_row_id(assessment_id, outcome.question_id),
                "assessment_id": assessment_id,
                "question_id": outcome.question_id,
                "student_id": student_id,
                "is_correct": outcome.is_correct,
                "difficulty_level": difficulty_by_question.get(outcome.question_id),
            }
            for outcome in result.answers
        ]
        upsert_assessment_results(rows)

        return result.model_copy(update={"assessment_id": assessment_id})

    def submit_session(self, session: QuizSession) -> QuizResult:
        """
        Score and persist a session. On a storage failure the session stays
        in progress, keeping its pending assessment id and timestamp for the retry.
        """
        if not session.can_submit:
            raise ValidationError(
                "The test can only be submitted from the last question",
                error_code="SUBMIT_NOT_ALLOWED",
            )

        result = score_answers(session.questions, session.answers)
        if session.pending_assessment_id is None:
            session.pending_assessment_id = generate_uuid()
            session.pending_created_at = datetime.now().isoformat()

        try:
            saved = self.persist(
                student_id=session.student_id,
                course_id=session.course_id,
                questions=session.questions,
                result=result,
                assessment_id=session.pending_assessment_id,
                created_at=session.pending_created_at,
            )
        except Exception as e:
            logger.error(f"Error submitting test session {session.id}: {e}")
            raise

        session.mark_submitted(saved)
        logger.info(f"Session {session.id} scored {saved.score}/{saved.total}")
        return saved

    def list_history(self, student_id: str, course_id: Optional[str] = None) -> List[Dict]:
        """Past assessments with score totals rebuilt from their result rows"""
        history = []
        for assessment in get_assessments_for_student(student_id, course_id):
            rows = get_results_for_assessment(assessment["id"])
            history.append({
                **assessment,
                "score": sum(1 for r in rows if r.get("is_correct")),
                "total": len(rows),
                "results": rows,
            })
        return history
