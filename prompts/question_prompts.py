"""
Prompt templates for multiple-choice question generation.
One template per response contract; both ask for a bare JSON object.
"""

from typing import Optional


QUESTION_SYSTEM_PROMPT = (
    "You are a helpful assistant that creates educational questions. "
    "You must always respond with ONLY a valid JSON object."
)

DIFFICULTY_LABELS = {1: "easy", 2: "medium", 3: "hard"}


def difficulty_label(difficulty) -> Optional[str]:
    """Label for a target difficulty given as 1-3 or as a label, else None."""
    if difficulty is None or isinstance(difficulty, bool):
        return None
    if isinstance(difficulty, int):
        return DIFFICULTY_LABELS.get(difficulty)
    text = str(difficulty).strip().lower()
    if text.isdigit():
        return DIFFICULTY_LABELS.get(int(text))
    return text if text in DIFFICULTY_LABELS.values() else None


def _context_section(course: str, chapter: str, learning_objective: str, target: Optional[str]) -> str:
    difficulty_line = f'\nTarget difficulty: "{target}"' if target else ""
    return f"""Create 1 multiple choice question for the following context:

Course: "{course}"
Chapter: "{chapter}"
Learning Objective: "{learning_objective}"{difficulty_line}

IMPORTANT: You must respond with ONLY a valid JSON object. Do not include any additional text, explanations, or markdown formatting.
"""


def build_options_question_prompt(
    course: str,
    chapter: str,
    learning_objective: str,
    difficulty=None
) -> str:
    """Prompt asking for four option strings plus the exact text of the answer"""
    target = difficulty_label(difficulty)
    return _context_section(course, chapter, learning_objective, target) + f"""
The JSON object must have exactly these fields:
{{
  "question": "Your question text here",
  "options": ["Option A", "Option B", "Option C", "Option D"],
  "answer": "The correct option text",
  "explanation": "Explain why the correct answer is correct",
  "difficulty": "{target or 'easy'}",
  "related_learning_objectives": ["{learning_objective}"]
}}

Constraints:
- The question must be related specifically to the learning objective.
- Only one correct option.
- The other three should be plausible but incorrect.
- All four options must be distinct.
- "difficulty" must be one of "easy", "medium" or "hard".
- Your response must be ONLY the JSON object, with no additional text.
- The answer must be the exact text of one of the options, not just a letter.
"""


def build_choices_question_prompt(
    course: str,
    chapter: str,
    learning_objective: str,
    difficulty=None
) -> str:
    """Prompt asking for four choice objects each carrying an is_correct flag"""
    target = difficulty_label(difficulty)
    return _context_section(course, chapter, learning_objective, target) + f"""
The JSON object must have exactly these fields:
{{
  "question": "Your question text here",
  "choices": [
    {{"choice": "Option A text", "is_correct": true}},
    {{"choice": "Option B text", "is_correct": false}},
    {{"choice": "Option C text", "is_correct": false}},
    {{"choice": "Option D text", "is_correct": false}}
  ],
  "explanation": "Explain why the correct answer is correct",
  "difficulty": "{target or 'easy'}"
}}

Constraints:
- The question must be related specifically to the learning objective.
- Only one choice should have "is_correct": true.
- The other three choices should be plausible but incorrect.
- "difficulty" must be one of "easy", "medium" or "hard".
- Your response must be ONLY the JSON object, with no additional text.
- Each choice must be a complete, grammatically correct statement.
- The choices should be clearly distinct from each other.
"""
