import sys
from pathlib import Path

import pytest


def _ensure_app_on_path():
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


_ensure_app_on_path()

from exam_engine.models.exam_model import Exam
from exam_engine.models.result_model import SaveOutcome


def make_exam_payload(duration=60, questions=None):
    """백엔드 GET /exams/{id} 응답 형태의 시험 데이터."""
    if questions is None:
        questions = [
            {
                "_id": "q1",
                "questionText": "d/dx (x^2) = ?",
                "questionType": "mcq",
                "options": [{"text": "2x", "_id": "o1"}, {"text": "x", "_id": "o2"}],
                "correctAnswer": {"text": "2x", "_id": "o1"},
                "marks": 4,
                "negativeMarks": 1,
                "subject": "maths",
            },
            {
                "_id": "q2",
                "questionText": "Select the noble gases",
                "questionType": "multiple",
                "options": ["A", "B", "C", "D"],
                "correctAnswer": ["A", "C"],
                "marks": 4,
                "negativeMarks": 1,
                "subject": "chemistry",
            },
            {
                "_id": "q3",
                "questionText": "3 + 4 = ?",
                "questionType": "integer",
                "correctAnswer": 7,
                "marks": 4,
                "negativeMarks": 1,
                "subject": "physics",
            },
        ]
    return {
        "_id": "exam-1",
        "title": "Weekend Test 1",
        "examType": "mains",
        "duration": duration,
        "questions": questions,
    }


class FakeBackend:
    """fetch_exam / save_result 호출을 기록하는 테스트용 백엔드."""

    def __init__(self, exam_payload=None, fetch_error=None, save_outcome=None):
        self.exam_payload = exam_payload if exam_payload is not None else make_exam_payload()
        self.fetch_error = fetch_error
        self.save_outcome = save_outcome or SaveOutcome(saved=True, status_code=201)
        self.saved = []

    def fetch_exam(self, exam_id):
        if self.fetch_error is not None:
            raise self.fetch_error
        return Exam.model_validate(self.exam_payload)

    def save_result(self, result):
        self.saved.append(result)
        return self.save_outcome


@pytest.fixture
def exam_payload():
    return make_exam_payload()


@pytest.fixture
def exam(exam_payload):
    return Exam.model_validate(exam_payload)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def make_payload():
    return make_exam_payload
