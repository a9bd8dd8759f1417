# Prompts module initialization

# Question Generation Prompts
from .question_prompts import (
    build_options_question_prompt,
    build_choices_question_prompt,
    difficulty_label,
    QUESTION_SYSTEM_PROMPT
)

__all__ = [
    'build_options_question_prompt',
    'build_choices_question_prompt',
    'difficulty_label',
    'QUESTION_SYSTEM_PROMPT'
]
