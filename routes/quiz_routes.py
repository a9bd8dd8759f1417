"""
FastAPI routes for taking a course test.

  POST /api/v1/courses/{course_id}/tests       start a session (or report why none can start)
  GET  /api/v1/tests/{session_id}              current session state
  PUT  /api/v1/tests/{session_id}/answers      select or change an answer
  POST /api/v1/tests/{session_id}/next         move forward one question
  POST /api/v1/tests/{session_id}/previous     move back one question
  POST /api/v1/tests/{session_id}/submit       score and persist, last question only
"""

from fastapi import APIRouter
from typing import Optional
import logging

from services.quiz_service import QuizAssembler, QuizSession, QuizSessionStore
from services.assessment_service import AssessmentService
from models.lms_models import AnswerRequest, StartQuizRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["tests"])

# Initialize services
quiz_assembler = QuizAssembler()
session_store = QuizSessionStore()
assessment_service = AssessmentService()


@router.get("/courses/{course_id}/questions/sample")
async def sample_course_questions(course_id: str):
    """
    Sampled eligible questions for a course, without starting a session.

    A course with no chapters, objectives or usable questions is not an error:
    `questions` is empty and `empty_reason` names the stage that came back
    empty. Only a course id that does not exist answers 404.
    """
    quiz = quiz_assembler.fetch_questions(course_id)
    return {
        "course_id": course_id,
        "questions": [q.model_dump() for q in quiz.questions],
        "eligible_count": quiz.eligible_count,
        "empty_reason": quiz.empty_reason.value if quiz.empty_reason else None,
    }


@router.post("/courses/{course_id}/tests")
async def start_test(course_id: str, request: StartQuizRequest):
    """
    Assemble a test and open a session for the student.

    When the course has nothing to ask, no session is created and
    `empty_reason` names the stage that came back empty (200, not an error).
    An unknown course id answers 404 COURSE_NOT_FOUND.
    """
    quiz = quiz_assembler.fetch_questions(course_id)
    if quiz.is_empty:
        logger.info(f"No test for course {course_id}: {quiz.empty_reason.value}")
        return {"started": False, "empty_reason": quiz.empty_reason.value}

    session = session_store.add(QuizSession(course_id, request.student_id, quiz.questions))
    logger.info(f"Started test session {session.id} for student {request.student_id}")
    return {"started": True, "session": session.to_view()}


@router.get("/tests/{session_id}")
async def get_test(session_id: str):
    return {"session": session_store.get(session_id).to_view()}


@router.put("/tests/{session_id}/answers")
async def select_answer(session_id: str, request: AnswerRequest):
    session = session_store.get(session_id)
    session.select_answer(request.question_id, request.answer)
    return {"session": session.to_view()}


@router.post("/tests/{session_id}/next")
async def next_question(session_id: str):
    """Advance one question. At the last question this is a no-op and `moved` is false."""
    session = session_store.get(session_id)
    moved = session.next()
    return {"moved": moved, "session": session.to_view()}


@router.post("/tests/{session_id}/previous")
async def previous_question(session_id: str):
    session = session_store.get(session_id)
    moved = session.previous()
    return {"moved": moved, "session": session.to_view()}


@router.post("/tests/{session_id}/submit")
async def submit_test(session_id: str):
    """
    Score the session and save the assessment with one result row per question.

    A failed save leaves the session open; submitting again reuses the same ids.
    """
    session = session_store.get(session_id)
    result = assessment_service.submit_session(session)
    return {"success": True, "result": result.model_dump()}


@router.get("/students/{student_id}/assessments")
async def list_assessments(student_id: str, course_id: Optional[str] = None):
    """Past assessments for a student, optionally limited to one course"""
    history = assessment_service.list_history(student_id, course_id)
    return {"assessments": history, "total": len(history)}
