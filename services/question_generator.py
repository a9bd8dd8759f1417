"""
AI question generation service.
Builds the prompt, accumulates the provider stream, parses the completion
and logs every run. No automatic retries: a failed run is retried by the
user asking again.
"""

import time
import logging
from typing import Any, Callable, Dict, Optional, Set

from clients import llm_client
from models.lms_models import NormalizedQuestion, ResponseContract
from prompts.question_prompts import (
    QUESTION_SYSTEM_PROMPT,
    build_choices_question_prompt,
    build_options_question_prompt,
)
from services.question_parser import parse_completion
from utils.exceptions import ConflictError, LmsError, ValidationError
from utils.file_storage import GenerationLogger
from utils.model_config import ModelConfig

logger = logging.getLogger(__name__)

PROMPT_BUILDERS = {
    ResponseContract.OPTIONS: build_options_question_prompt,
    ResponseContract.CHOICES: build_choices_question_prompt,
}


class QuestionGenerator:
    """Generate one multiple-choice question for a course/chapter/objective"""

    def __init__(
        self,
        stream_fn: Optional[Callable] = None,
        generation_logger: Optional[GenerationLogger] = None,
    ):
        self.stream_fn = stream_fn or llm_client.stream_completion
        self.logger = generation_logger or GenerationLogger()
        # Form ids with a generation outstanding. Only touched from the event loop.
        self._in_flight: Set[str] = set()

    async def generate(
        self,
        course: Optional[str],
        chapter: Optional[str],
        learning_objective: Optional[str],
        difficulty: Any = None,
        contract: ResponseContract = ResponseContract.CHOICES,
        form_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> NormalizedQuestion:
        """
        Run one generation and return the normalized record.

        The API key is checked before the inputs and before any network call,
        so a misconfigured deployment fails the same way for every request.
        """
        model_config = ModelConfig.get_config(model)
        api_key = ModelConfig.get_api_key(model_config)

        missing = [
            name for name, value in (
                ("course", course),
                ("chapter", chapter),
                ("learning objective", learning_objective),
            )
            if not value or not str(value).strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                context={"missing": missing},
            )

        if form_id is not None:
            if form_id in self._in_flight:
                raise ConflictError(
                    "A question is already being generated for this form. Please wait for it to finish.",
                    context={"form_id": form_id},
                )
            self._in_flight.add(form_id)

        start_time = time.time()
        try:
            prompt = PROMPT_BUILDERS[contract](course, chapter, learning_objective, difficulty)
            text = await self._collect(prompt, model_config, api_key)
            question = parse_completion(text)
        except LmsError as e:
            self.logger.log_generation({
                "type": "question",
                "contract": contract.value,
                "course": course,
                "chapter": chapter,
                "learning_objective": learning_objective,
                "model": model_config["model"],
                "status": "error",
                "error_code": e.error_code,
                "error": e.message,
                "generation_time": round(time.time() - start_time, 2),
            })
            raise
        finally:
            if form_id is not None:
                self._in_flight.discard(form_id)

        if not question.related_learning_objectives:
            question.related_learning_objectives = [learning_objective]

        generation_time = round(time.time() - start_time, 2)
        logger.info(f"Generated question for '{learning_objective}' in {generation_time}s")
        self.logger.log_generation({
            "type": "question",
            "contract": contract.value,
            "course": course,
            "chapter": chapter,
            "learning_objective": learning_objective,
            "model": model_config["model"],
            "status": "success",
            "difficulty": int(question.difficulty),
            "generation_time": generation_time,
        })
        return question

    async def _collect(self, prompt: str, model_config: Dict[str, Any], api_key: str) -> str:
        """Await the whole stream; nothing is surfaced until it ends."""
        fragments = []
        async for fragment in self.stream_fn(prompt, QUESTION_SYSTEM_PROMPT, model_config, api_key):
            fragments.append(fragment)
        text = "".join(fragments)
        logger.debug(f"Full response ({len(text)} chars): {text[:500]}")
        return text

    def is_generating(self, form_id: str) -> bool:
        return form_id in self._in_flight
