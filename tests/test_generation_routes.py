import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from fakes import fake_stream
from main import app
from services.question_generator import QuestionGenerator
from utils.file_storage import GenerationLogger

OPTIONS_COMPLETION = json.dumps({
    "question": "Which data structure is FIFO?",
    "options": ["Stack", "Queue", "Tree", "Graph"],
    "answer": "Queue",
    "explanation": "A queue removes items in insertion order.",
    "difficulty": "easy",
    "related_learning_objectives": ["Compare linear data structures"],
})

CHOICES_COMPLETION = json.dumps({
    "question": "Which data structure is LIFO?",
    "choices": [
        {"choice": "Stack", "is_correct": True},
        {"choice": "Queue", "is_correct": False},
        {"choice": "Heap", "is_correct": False},
        {"choice": "Graph", "is_correct": False},
    ],
    "explanation": "The last item pushed is the first popped.",
    "difficulty": "Hard",
})

BODY = {
    "course": "Data Structures",
    "chapter": "Linear structures",
    "learningObjective": "Compare linear data structures",
    "difficulty": 1,
    "model": "llama-4-scout",
}


class TestGenerationRoutes(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {"GROQ_API_KEY": "test-key"})
        self.env.start()
        self.client = TestClient(app)

    def tearDown(self):
        self.env.stop()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def _use_stream(self, *fragments):
        generator = QuestionGenerator(
            stream_fn=fake_stream(*fragments),
            generation_logger=GenerationLogger(filepath=Path(self.tmp_dir) / "logs.json"),
        )
        patcher = patch("routes.generation_routes.question_generator", generator)
        patcher.start()
        self.addCleanup(patcher.stop)
        return generator

    def test_choices_contract(self):
        self._use_stream(CHOICES_COMPLETION)
        response = self.client.post("/api/generate-question", json=BODY)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["question"], "Which data structure is LIFO?")
        self.assertEqual(sum(1 for c in data["choices"] if c["is_correct"]), 1)
        self.assertEqual(data["difficulty"], 3)

    def test_options_contract(self):
        self._use_stream("Here is your question:\n", OPTIONS_COMPLETION)
        response = self.client.post("/api/auto-generate-question", json=BODY)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["options"], ["Stack", "Queue", "Tree", "Graph"])
        self.assertEqual(data["answer"], "Queue")
        self.assertEqual(data["difficulty"], 1)
        self.assertEqual(data["related_learning_objectives"], ["Compare linear data structures"])

    def test_missing_fields_is_400(self):
        self._use_stream(OPTIONS_COMPLETION)
        response = self.client.post("/api/generate-question", json={"course": "Data Structures", "model": "llama-4-scout"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("Missing required fields", response.json()["error"])

    def test_wrong_method_is_405(self):
        response = self.client.get("/api/generate-question")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json()["error"], "Method not allowed")

    def test_missing_api_key_is_500(self):
        self._use_stream(OPTIONS_COMPLETION)
        with patch.dict(os.environ, {"GROQ_API_KEY": ""}):
            response = self.client.post("/api/generate-question", json=BODY)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error_code"], "API_KEY_MISSING")

    def test_error_page_is_500(self):
        self._use_stream("<!DOCTYPE html><html><body>Bad Gateway</body></html>")
        response = self.client.post("/api/generate-question", json=BODY)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error_code"], "PROVIDER_ERROR_PAGE")

    def test_bad_shape_is_500(self):
        self._use_stream(json.dumps({"question": "Q", "options": ["a", "b"], "answer": "c"}))
        response = self.client.post("/api/auto-generate-question", json=BODY)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error_code"], "INVALID_QUESTION_STRUCTURE")

    def test_missing_body_is_400(self):
        self._use_stream(OPTIONS_COMPLETION)
        response = self.client.post("/api/generate-question")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_code"], "MISSING_FIELDS")
        self.assertIn("error", response.json())

    def test_missing_body_still_checks_api_key(self):
        self._use_stream(OPTIONS_COMPLETION)
        with patch.dict(os.environ, {"GROQ_API_KEY": "", "OPENAI_API_KEY": ""}):
            response = self.client.post("/api/auto-generate-question")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error_code"], "API_KEY_MISSING")

    def test_non_object_body_is_400(self):
        self._use_stream(OPTIONS_COMPLETION)
        response = self.client.post("/api/auto-generate-question", json=["not", "a", "form"])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"error": "Missing required fields", "error_code": "MISSING_FIELDS"},
        )

    def test_in_flight_form_is_409(self):
        generator = self._use_stream(OPTIONS_COMPLETION)
        generator._in_flight.add("form-7")

        response = self.client.post("/api/generate-question", json={**BODY, "form_id": "form-7"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error_code"], "REQUEST_IN_PROGRESS")


if __name__ == "__main__":
    unittest.main()
