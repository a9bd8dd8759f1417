"""
FastAPI routes for AI question generation.

  POST /api/generate-question
      "choices" contract: {question, choices: [{choice, is_correct}], explanation, difficulty}

  POST /api/auto-generate-question
      "options" contract: {question, options, answer, explanation, difficulty,
        related_learning_objectives}

Failures are raised as LmsError subclasses and rendered as {error, error_code}
by the application's exception handler.
"""

import logging
from typing import Optional

from fastapi import APIRouter

from models.lms_models import GenerateQuestionRequest, ResponseContract
from services.question_generator import QuestionGenerator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["generation"])

question_generator = QuestionGenerator()


async def _generate(request: Optional[GenerateQuestionRequest], contract: ResponseContract):
    # A missing body is treated as an empty form so the key and field checks still run
    request = request or GenerateQuestionRequest()
    return await question_generator.generate(
        course=request.course,
        chapter=request.chapter,
        learning_objective=request.learningObjective,
        difficulty=request.difficulty,
        contract=contract,
        form_id=request.form_id,
        model=request.model,
    )


@router.post("/generate-question")
async def generate_question(request: Optional[GenerateQuestionRequest] = None):
    """Generate one question with four flagged choices, exactly one correct."""
    question = await _generate(request, ResponseContract.CHOICES)
    return question.to_choices_payload()


@router.post("/auto-generate-question")
async def auto_generate_question(request: Optional[GenerateQuestionRequest] = None):
    """Generate one question with four options and the text of the answer."""
    question = await _generate(request, ResponseContract.OPTIONS)
    return question.to_options_payload()
