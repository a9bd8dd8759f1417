import unittest

from fastapi.testclient import TestClient

from fakes import SupabaseTestCase, cs101_tables
from main import app


class TestQuizRoutes(SupabaseTestCase):
    tables = staticmethod(cs101_tables)

    def setUp(self):
        super().setUp()
        self.client = TestClient(app)

    def _start(self):
        response = self.client.post("/api/v1/courses/course-cs101/tests", json={"student_id": "student-1"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["started"])
        return body["session"]

    def test_full_attempt(self):
        session = self._start()
        session_id = session["session_id"]
        self.assertEqual(session["total"], 2)
        self.assertFalse(session["can_submit"])

        correct = {
            "What is 1 + 1 in binary?": "10",
            "How many bits in a byte?": "8",
        }
        for question in session["questions"]:
            response = self.client.put(
                f"/api/v1/tests/{session_id}/answers",
                json={"question_id": question["id"], "answer": correct[question["content"]]},
            )
            self.assertEqual(response.status_code, 200)

        early = self.client.post(f"/api/v1/tests/{session_id}/submit")
        self.assertEqual(early.status_code, 400)
        self.assertEqual(early.json()["error_code"], "SUBMIT_NOT_ALLOWED")

        moved = self.client.post(f"/api/v1/tests/{session_id}/next").json()
        self.assertTrue(moved["moved"])
        self.assertTrue(moved["session"]["can_submit"])
        self.assertFalse(self.client.post(f"/api/v1/tests/{session_id}/next").json()["moved"])

        response = self.client.post(f"/api/v1/tests/{session_id}/submit")
        self.assertEqual(response.status_code, 200)
        result = response.json()["result"]
        self.assertEqual((result["score"], result["total"]), (2, 2))

        history = self.client.get("/api/v1/students/student-1/assessments").json()
        self.assertEqual(history["total"], 1)
        self.assertEqual(history["assessments"][0]["id"], result["assessment_id"])

    def test_previous_at_first_question(self):
        session = self._start()
        response = self.client.post(f"/api/v1/tests/{session['session_id']}/previous")
        self.assertFalse(response.json()["moved"])
        self.assertEqual(response.json()["session"]["current_index"], 0)

    def test_course_without_questions(self):
        self.db.tables["question_lo"] = []
        response = self.client.post("/api/v1/courses/course-cs101/tests", json={"student_id": "student-1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"started": False, "empty_reason": "no_questions"})

    def test_empty_sample_is_not_an_error(self):
        self.db.tables["question_lo"] = []
        response = self.client.get("/api/v1/courses/course-cs101/questions/sample")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["questions"], [])
        self.assertEqual(response.json()["empty_reason"], "no_questions")

    def test_unknown_course_is_404(self):
        response = self.client.post("/api/v1/courses/missing/tests", json={"student_id": "student-1"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error_code"], "COURSE_NOT_FOUND")

        sample = self.client.get("/api/v1/courses/missing/questions/sample")
        self.assertEqual(sample.status_code, 404)

    def test_unknown_session_is_404(self):
        response = self.client.get("/api/v1/tests/does-not-exist")
        self.assertEqual(response.status_code, 404)

    def test_storage_failure_is_500(self):
        self.db.fail_once("courses", "select")
        response = self.client.get("/api/v1/courses/course-cs101/questions/sample")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error_code"], "STORAGE_ERROR")


class TestCatalogRoutes(SupabaseTestCase):
    tables = staticmethod(cs101_tables)

    def setUp(self):
        super().setUp()
        self.client = TestClient(app)

    def test_author_course_to_question(self):
        course = self.client.post(
            "/api/v1/lecturers/lect-1/courses",
            json={"name": "Databases", "code": "CS301"},
        )
        self.assertEqual(course.status_code, 201)
        course_id = course.json()["course"]["id"]

        chapter = self.client.post(
            f"/api/v1/courses/{course_id}/chapters?user_id=lect-1",
            json={"title": "Normal forms", "order_num": 1},
        )
        self.assertEqual(chapter.status_code, 201)
        chapter_id = chapter.json()["chapter"]["id"]

        objective = self.client.post(
            f"/api/v1/chapters/{chapter_id}/objectives?user_id=lect-1",
            json={"title": "Explain 3NF", "lo_code": "LO1"},
        )
        self.assertEqual(objective.status_code, 201)
        lo_id = objective.json()["learning_objective"]["id"]

        question = self.client.post(
            "/api/v1/lecturers/lect-1/questions",
            json={
                "content": "Which normal form removes transitive dependencies?",
                "options": ["1NF", "2NF", "3NF", "BCNF"],
                "answer": "C",
                "selected_los": [lo_id],
            },
        )
        self.assertEqual(question.status_code, 201)

        sample = self.client.get(f"/api/v1/courses/{course_id}/questions/sample").json()
        self.assertEqual(sample["eligible_count"], 1)

        outline = self.client.get(f"/api/v1/courses/{course_id}/outline").json()
        self.assertEqual(outline["chapters"][0]["learning_objectives"][0]["id"], lo_id)

    def test_invalid_question_is_400(self):
        response = self.client.post(
            "/api/v1/lecturers/lect-1/questions",
            json={"content": "Q", "options": ["a", "b", "c", "d"], "answer": "", "selected_los": ["lo-1"]},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_code"], "MISSING_ANSWER")

    def test_invalid_draft_is_400(self):
        response = self.client.post(
            "/api/v1/lecturers/lect-1/questions/drafts",
            json={
                "draft": {
                    "content": "Q",
                    "choices": [{"text": "a", "is_correct": False}, {"text": "a", "is_correct": False}],
                },
                "selected_los": ["lo-1"],
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_code"], "DUPLICATE_OPTIONS")
        self.assertEqual(len(self.db.rows("questions")), 2)

    def test_enroll_and_list(self):
        response = self.client.post("/api/v1/courses/course-cs101/enrollments", json={"student_id": "student-9"})
        self.assertEqual(response.status_code, 201)

        courses = self.client.get("/api/v1/students/student-9/courses").json()
        self.assertEqual([c["code"] for c in courses["courses"]], ["CS101"])

    def test_search(self):
        data = self.client.get("/api/v1/courses", params={"search": "intro"}).json()
        self.assertEqual(data["total"], 1)

    def test_upload_material(self):
        response = self.client.post(
            "/api/v1/materials/upload",
            files={"file": ("slides.pdf", b"%PDF-1.4 slides", "application/pdf")},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["material"]["type"], "pdf")

    def test_delete_question(self):
        response = self.client.delete("/api/v1/questions/q-1")
        self.assertEqual(response.json(), {"success": True})
        self.assertNotIn("q-1", [q["id"] for q in self.db.rows("questions")])


if __name__ == "__main__":
    unittest.main()
