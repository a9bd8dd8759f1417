"""
FastAPI routes for the lecturer question bank.
"""

from fastapi import APIRouter
import logging

from services.question_bank import QuestionBank
from models.lms_models import QuestionRequest, SaveDraftRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["questions"])

question_bank = QuestionBank()


@router.get("/lecturers/{user_id}/questions")
async def list_questions(user_id: str):
    """Questions authored by a lecturer, with their choices and mapped learning objectives"""
    questions = question_bank.list_questions(user_id)
    return {"questions": questions, "total": len(questions)}


@router.post("/lecturers/{user_id}/questions", status_code=201)
async def create_question(user_id: str, request: QuestionRequest):
    """
    Create a question from the lettered-option form.

    - options: two to four non-empty, distinct option texts
    - answer: the letter (A-D) of the correct option
    - selected_los: at least one learning objective id
    """
    question = question_bank.save_question(user_id, request)
    return {"success": True, "question": question}


@router.put("/lecturers/{user_id}/questions/{question_id}")
async def update_question(user_id: str, question_id: str, request: QuestionRequest):
    """Update a question; its choices and objective mappings are replaced."""
    question = question_bank.save_question(user_id, request, question_id=question_id)
    return {"success": True, "question": question}


@router.post("/lecturers/{user_id}/questions/drafts", status_code=201)
async def save_generated_draft(user_id: str, request: SaveDraftRequest):
    """Accept a generated question and store it in the bank."""
    question = question_bank.save_draft(user_id, request.draft, request.selected_los)
    return {"success": True, "question": question}


@router.delete("/questions/{question_id}")
async def delete_question(question_id: str):
    question_bank.delete_question(question_id)
    return {"success": True}
