from services.course_service import CourseService
from services.question_bank import QuestionBank
from services.question_generator import QuestionGenerator
from services.quiz_service import QuizAssembler, QuizSession, QuizSessionStore
from services.assessment_service import AssessmentService

__all__ = [
    'CourseService',
    'QuestionBank',
    'QuestionGenerator',
    'QuizAssembler',
    'QuizSession',
    'QuizSessionStore',
    'AssessmentService'
]
