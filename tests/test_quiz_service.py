import random
import unittest

from fakes import SupabaseTestCase, cs101_tables
from models.lms_models import Choice, EmptyQuizReason, Question, SessionStatus
from services.assessment_service import score_answers
from services.quiz_service import QuizAssembler, QuizSession, QuizSessionStore
from utils.exceptions import NotFoundError, StorageError, ValidationError


def _question(qid, correct="A", texts=("A", "B", "C", "D"), difficulty=1):
    return Question(
        id=qid,
        content=f"Question {qid}",
        difficulty=difficulty,
        choices=[
            Choice(id=f"{qid}-{t}", question_id=qid, choice=t, is_correct=(t == correct))
            for t in texts
        ],
    )


class TestQuizAssembler(SupabaseTestCase):
    tables = staticmethod(cs101_tables)

    def test_cs101_end_to_end(self):
        quiz = QuizAssembler(rng=random.Random(1)).fetch_questions("course-cs101")

        self.assertFalse(quiz.is_empty)
        self.assertEqual(quiz.eligible_count, 2)
        self.assertEqual({q.id for q in quiz.questions}, {"q-1", "q-2"})
        for question in quiz.questions:
            self.assertEqual(len(question.choices), 4)

        answers = {q.id: q.correct_choice.choice for q in quiz.questions}
        result = score_answers(quiz.questions, answers)
        self.assertEqual((result.score, result.total), (2, 2))

    def test_question_without_choices_is_excluded(self):
        self.db.tables["questions"].append(
            {"id": "q-3", "content": "Orphan", "explanation": "", "difficulty": 1, "created_by": "lect-1"}
        )
        self.db.tables["question_lo"].append({"id": "m-3", "question_id": "q-3", "lo_id": "lo-1"})

        quiz = QuizAssembler().fetch_questions("course-cs101")
        self.assertNotIn("q-3", [q.id for q in quiz.questions])
        self.assertEqual(quiz.eligible_count, 2)

    def test_question_with_two_correct_choices_is_excluded(self):
        for row in self.db.tables["choices"]:
            if row["question_id"] == "q-2":
                row["is_correct"] = True

        quiz = QuizAssembler().fetch_questions("course-cs101")
        self.assertEqual([q.id for q in quiz.questions], ["q-1"])

    def test_sample_size_capped(self):
        for i in range(3, 10):
            qid = f"q-{i}"
            self.db.tables["questions"].append({"id": qid, "content": qid, "difficulty": 1})
            self.db.tables["question_lo"].append({"id": f"m-{i}", "question_id": qid, "lo_id": "lo-1"})
            self.db.tables["choices"].extend([
                {"id": f"{qid}-a", "question_id": qid, "choice": "yes", "is_correct": True},
                {"id": f"{qid}-b", "question_id": qid, "choice": "no", "is_correct": False},
            ])

        quiz = QuizAssembler(quiz_size=5).fetch_questions("course-cs101")
        self.assertEqual(quiz.eligible_count, 9)
        self.assertEqual(len(quiz.questions), 5)
        self.assertEqual(len({q.id for q in quiz.questions}), 5)

    def test_unknown_course(self):
        with self.assertRaises(NotFoundError) as ctx:
            QuizAssembler().fetch_questions("missing")
        self.assertEqual(ctx.exception.error_code, "COURSE_NOT_FOUND")

    def test_empty_stages(self):
        self.db.tables["choices"] = []
        self.assertEqual(
            QuizAssembler().fetch_questions("course-cs101").empty_reason,
            EmptyQuizReason.NO_ELIGIBLE_QUESTIONS,
        )

        self.db.tables["question_lo"] = []
        self.assertEqual(
            QuizAssembler().fetch_questions("course-cs101").empty_reason,
            EmptyQuizReason.NO_QUESTIONS,
        )

        self.db.tables["learning_objectives"] = []
        self.assertEqual(
            QuizAssembler().fetch_questions("course-cs101").empty_reason,
            EmptyQuizReason.NO_OBJECTIVES,
        )

        self.db.tables["chapters"] = []
        quiz = QuizAssembler().fetch_questions("course-cs101")
        self.assertEqual(quiz.empty_reason, EmptyQuizReason.NO_CHAPTERS)
        self.assertTrue(quiz.is_empty)

    def test_storage_failure_surfaces(self):
        self.db.fail_once("chapters", "select")
        with self.assertRaises(StorageError):
            QuizAssembler().fetch_questions("course-cs101")


class TestSample(unittest.TestCase):
    def test_fewer_than_quiz_size_returns_all(self):
        questions = [_question("a"), _question("b")]
        self.assertEqual(len(QuizAssembler(quiz_size=5).sample(questions)), 2)

    def test_does_not_reorder_input(self):
        questions = [_question(str(i)) for i in range(10)]
        QuizAssembler(rng=random.Random(3)).sample(questions)
        self.assertEqual([q.id for q in questions], [str(i) for i in range(10)])


class TestQuizSession(unittest.TestCase):
    def setUp(self):
        self.questions = [_question("q1"), _question("q2"), _question("q3")]
        self.session = QuizSession("course-1", "student-1", self.questions)

    def test_empty_session_rejected(self):
        with self.assertRaises(ValidationError):
            QuizSession("course-1", "student-1", [])

    def test_navigation_bounds(self):
        s = self.session
        self.assertFalse(s.can_go_previous)
        self.assertFalse(s.previous())
        self.assertEqual(s.current_index, 0)

        self.assertTrue(s.next())
        self.assertTrue(s.next())
        self.assertEqual(s.current_index, 2)
        self.assertFalse(s.can_go_next)
        self.assertFalse(s.next())
        self.assertEqual(s.current_index, 2)
        self.assertTrue(s.can_submit)

    def test_submit_only_on_last_question(self):
        self.assertFalse(self.session.can_submit)
        self.session.next()
        self.assertFalse(self.session.can_submit)

    def test_single_question_session_can_submit_immediately(self):
        session = QuizSession("course-1", "student-1", [_question("only")])
        self.assertTrue(session.can_submit)
        self.assertFalse(session.can_go_next)

    def test_answers_can_change(self):
        self.session.select_answer("q1", "B")
        self.session.select_answer("q1", "A")
        self.assertEqual(self.session.answers, {"q1": "A"})

    def test_unknown_question_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.session.select_answer("nope", "A")
        self.assertEqual(ctx.exception.error_code, "UNKNOWN_QUESTION")

    def test_no_changes_after_submit(self):
        self.session.mark_submitted(None)
        self.assertEqual(self.session.status, SessionStatus.SUBMITTED)
        self.assertFalse(self.session.can_go_next)
        with self.assertRaises(ValidationError) as ctx:
            self.session.select_answer("q1", "A")
        self.assertEqual(ctx.exception.error_code, "TEST_SUBMITTED")

    def test_view_hides_correct_flags(self):
        view = self.session.to_view()
        self.assertEqual(view["total"], 3)
        for question in view["questions"]:
            for choice in question["choices"]:
                self.assertNotIn("is_correct", choice)


class TestQuizSessionStore(unittest.TestCase):
    def test_add_get_discard(self):
        store = QuizSessionStore()
        session = store.add(QuizSession("c", "s", [_question("q1")]))
        self.assertIs(store.get(session.id), session)

        store.discard(session.id)
        with self.assertRaises(NotFoundError):
            store.get(session.id)


if __name__ == "__main__":
    unittest.main()
