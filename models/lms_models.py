"""
Pydantic models for courses, question authoring and assessments.
Row models mirror the Supabase tables; request models back the API routes.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Union
from enum import Enum, IntEnum


class Difficulty(IntEnum):
    EASY = 1
    MEDIUM = 2
    HARD = 3


class ResponseContract(str, Enum):
    """Shape of the JSON the generator asks the model for and returns to callers."""
    CHOICES = "choices"
    OPTIONS = "options"


class EmptyQuizReason(str, Enum):
    NO_CHAPTERS = "no_chapters"
    NO_OBJECTIVES = "no_objectives"
    NO_QUESTIONS = "no_questions"
    NO_ELIGIBLE_QUESTIONS = "no_eligible_questions"


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


# Question Models
class Choice(BaseModel):
    id: str
    question_id: str
    choice: str
    is_correct: bool = False


class Question(BaseModel):
    """Question row together with its choices"""
    id: str
    content: str
    explanation: Optional[str] = ""
    difficulty: int = Field(1, ge=1, le=3)
    created_by: Optional[str] = None
    choices: List[Choice] = []

    @property
    def correct_choices(self) -> List[Choice]:
        return [c for c in self.choices if c.is_correct]

    @property
    def is_eligible(self) -> bool:
        """Usable in a test: at least one choice and exactly one marked correct."""
        return len(self.choices) > 0 and len(self.correct_choices) == 1

    @property
    def correct_choice(self) -> Optional[Choice]:
        correct = self.correct_choices
        return correct[0] if len(correct) == 1 else None


class DraftChoice(BaseModel):
    text: str
    is_correct: bool


class NormalizedQuestion(BaseModel):
    """
    Generator output after parsing and validation.
    Both external response contracts are rendered from this one record.
    """
    content: str
    choices: List[DraftChoice] = Field(..., min_length=2)
    explanation: str = ""
    difficulty: Difficulty = Difficulty.EASY
    related_learning_objectives: List[str] = []

    @property
    def answer(self) -> Optional[str]:
        return next((c.text for c in self.choices if c.is_correct), None)

    def to_choices_payload(self) -> Dict:
        return {
            "question": self.content,
            "choices": [{"choice": c.text, "is_correct": c.is_correct} for c in self.choices],
            "explanation": self.explanation,
            "difficulty": int(self.difficulty),
        }

    def to_options_payload(self) -> Dict:
        return {
            "question": self.content,
            "options": [c.text for c in self.choices],
            "answer": self.answer,
            "explanation": self.explanation,
            "difficulty": int(self.difficulty),
            "related_learning_objectives": self.related_learning_objectives,
        }


# Assessment Models
class AssembledQuiz(BaseModel):
    """Result of quiz assembly: sampled questions or an explicit empty signal"""
    course_id: str
    questions: List[Question] = []
    eligible_count: int = 0
    empty_reason: Optional[EmptyQuizReason] = None

    @property
    def is_empty(self) -> bool:
        return len(self.questions) == 0


class AnswerOutcome(BaseModel):
    question_id: str
    selected_answer: Optional[str] = None
    is_correct: bool


class QuizResult(BaseModel):
    score: int
    total: int
    answers: List[AnswerOutcome]
    assessment_id: Optional[str] = None


# Request Models
class GenerateQuestionRequest(BaseModel):
    """
    Body of the generation endpoints. Fields are optional here so the route
    can answer missing ones with a 400 instead of a schema error.
    """
    course: Optional[str] = None
    chapter: Optional[str] = None
    learningObjective: Optional[str] = None
    difficulty: Optional[Union[int, str]] = None
    form_id: Optional[str] = None
    model: Optional[str] = None


class CourseRequest(BaseModel):
    name: str = ""
    code: str = ""
    description: str = ""


class ChapterRequest(BaseModel):
    title: str = ""
    order_num: int = 1


class MaterialRequest(BaseModel):
    type: str = ""
    url: str = ""


class LearningObjectiveRequest(BaseModel):
    title: str = ""
    description: str = ""
    lo_code: str = ""
    materials: List[MaterialRequest] = []


class QuestionRequest(BaseModel):
    """Manual question form: four lettered options and the correct letter"""
    content: str = ""
    options: List[str] = Field(default_factory=lambda: ["", "", "", ""])
    answer: str = ""
    explanation: str = ""
    difficulty: int = Field(1, ge=1, le=3)
    selected_los: List[str] = []


class SaveDraftRequest(BaseModel):
    draft: NormalizedQuestion
    selected_los: List[str] = Field(..., min_length=1)


class EnrollRequest(BaseModel):
    student_id: str


class StartQuizRequest(BaseModel):
    student_id: str


class AnswerRequest(BaseModel):
    question_id: str
    answer: str
