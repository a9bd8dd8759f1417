"""
Test assembly and the one-question-at-a-time session flow.

Assembly walks course -> chapters -> learning objectives -> question
mappings -> questions -> choices, drops questions that cannot be scored,
and samples a fixed number of them. An empty join at any stage yields an
empty AssembledQuiz carrying the stage that came back empty.
"""

import os
import random
import logging
from typing import Dict, List, Optional

from dotenv import load_dotenv

from clients.supabase_client import (
    get_course_by_id,
    get_chapters_by_course,
    get_learning_objectives_by_chapters,
    get_question_ids_for_objectives,
    get_questions_by_ids,
    get_choices_for_questions,
)
from models.lms_models import (
    AssembledQuiz,
    Choice,
    EmptyQuizReason,
    Question,
    SessionStatus,
)
from utils.exceptions import NotFoundError, ValidationError
from utils.file_storage import generate_uuid

load_dotenv()

logger = logging.getLogger(__name__)

QUIZ_SIZE = int(os.getenv("QUIZ_SIZE", "5"))


def build_questions(question_rows: List[Dict], choice_rows: List[Dict]) -> List[Question]:
    """Attach choice rows to their question rows, keeping question order."""
    choices_by_question: Dict[str, List[Choice]] = {}
    for row in choice_rows:
        choices_by_question.setdefault(row["question_id"], []).append(
            Choice(
                id=row["id"],
                question_id=row["question_id"],
                choice=row.get("choice") or "",
                is_correct=bool(row.get("is_correct")),
            )
        )

    return [
        Question(
            id=row["id"],
            content=row.get("content") or "",
            explanation=row.get("explanation") or "",
            difficulty=int(row.get("difficulty") or 1),
            created_by=row.get("created_by"),
            choices=choices_by_question.get(row["id"], []),
        )
        for row in question_rows
    ]


class QuizAssembler:
    """Fetch, filter and sample the questions for one test attempt"""

    def __init__(self, quiz_size: int = QUIZ_SIZE, rng: Optional[random.Random] = None):
        self.quiz_size = quiz_size
        self.rng = rng or random.Random()

    def fetch_questions(self, course_id: str) -> AssembledQuiz:
        course = get_course_by_id(course_id)
        if not course:
            raise NotFoundError(f"Course {course_id} not found", error_code="COURSE_NOT_FOUND")

        chapters = get_chapters_by_course(course_id)
        if not chapters:
            logger.warning(f"No chapters found for course {course_id}")
            return AssembledQuiz(course_id=course_id, empty_reason=EmptyQuizReason.NO_CHAPTERS)

        objectives = get_learning_objectives_by_chapters([c["id"] for c in chapters])
        if not objectives:
            logger.warning(f"No learning objectives found for course {course_id}")
            return AssembledQuiz(course_id=course_id, empty_reason=EmptyQuizReason.NO_OBJECTIVES)

        question_ids = get_question_ids_for_objectives([lo["id"] for lo in objectives])
        question_rows = get_questions_by_ids(question_ids)
        if not question_rows:
            logger.warning(f"No questions found for course {course_id}")
            return AssembledQuiz(course_id=course_id, empty_reason=EmptyQuizReason.NO_QUESTIONS)

        choice_rows = get_choices_for_questions([q["id"] for q in question_rows])
        questions = build_questions(question_rows, choice_rows)

        eligible = [q for q in questions if q.is_eligible]
        dropped = len(questions) - len(eligible)
        if dropped:
            logger.warning(f"Skipping {dropped} question(s) without choices or a single correct choice")
        if not eligible:
            return AssembledQuiz(course_id=course_id, empty_reason=EmptyQuizReason.NO_ELIGIBLE_QUESTIONS)

        selected = self.sample(eligible)
        logger.info(f"Assembled {len(selected)} of {len(eligible)} eligible questions for course {course_id}")
        return AssembledQuiz(course_id=course_id, questions=selected, eligible_count=len(eligible))

    def sample(self, questions: List[Question]) -> List[Question]:
        """Shuffle a copy and take the first quiz_size."""
        shuffled = list(questions)
        self.rng.shuffle(shuffled)
        return shuffled[:self.quiz_size]


class QuizSession:
    """
    Navigation state for one test attempt.

    The index only moves through next()/previous(); answers are a plain
    question_id -> choice text mapping that can be overwritten until submit.
    """

    def __init__(self, course_id: str, student_id: str, questions: List[Question], session_id: Optional[str] = None):
        if not questions:
            raise ValidationError("Cannot start a test without questions", error_code="EMPTY_QUIZ")
        self.id = session_id or generate_uuid()
        self.course_id = course_id
        self.student_id = student_id
        self.questions = questions
        self.current_index = 0
        self.answers: Dict[str, str] = {}
        self.status = SessionStatus.IN_PROGRESS
        # Set before the first write so a retried submit rewrites the same rows unchanged
        self.pending_assessment_id: Optional[str] = None
        self.pending_created_at: Optional[str] = None
        self.result = None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def can_go_next(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS and self.current_index < self.total - 1

    @property
    def can_go_previous(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS and self.current_index > 0

    @property
    def can_submit(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS and self.current_index == self.total - 1

    def next(self) -> bool:
        if not self.can_go_next:
            return False
        self.current_index += 1
        return True

    def previous(self) -> bool:
        if not self.can_go_previous:
            return False
        self.current_index -= 1
        return True

    def select_answer(self, question_id: str, answer: str) -> None:
        if self.status != SessionStatus.IN_PROGRESS:
            raise ValidationError("This test has already been submitted", error_code="TEST_SUBMITTED")
        if question_id not in {q.id for q in self.questions}:
            raise ValidationError(
                f"Question {question_id} is not part of this test",
                error_code="UNKNOWN_QUESTION",
            )
        self.answers[question_id] = answer

    def mark_submitted(self, result) -> None:
        self.result = result
        self.status = SessionStatus.SUBMITTED

    def to_view(self) -> Dict:
        """Student-facing state; correctness flags stay on the server."""
        return {
            "session_id": self.id,
            "course_id": self.course_id,
            "status": self.status.value,
            "current_index": self.current_index,
            "total": self.total,
            "can_go_next": self.can_go_next,
            "can_go_previous": self.can_go_previous,
            "can_submit": self.can_submit,
            "answers": dict(self.answers),
            "questions": [
                {
                    "id": q.id,
                    "content": q.content,
                    "difficulty": q.difficulty,
                    "choices": [{"id": c.id, "choice": c.choice} for c in q.choices],
                }
                for q in self.questions
            ],
            "result": self.result.model_dump() if self.result else None,
        }


class QuizSessionStore:
    """In-process registry of test sessions"""

    def __init__(self):
        self._sessions: Dict[str, QuizSession] = {}

    def add(self, session: QuizSession) -> QuizSession:
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> QuizSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Test session {session_id} not found", error_code="SESSION_NOT_FOUND")
        return session

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
