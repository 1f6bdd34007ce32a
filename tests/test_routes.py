import pytest
from fastapi.testclient import TestClient

import api.session as session
from api.app import SESSION_COOKIE, create_app
from api.routes import get_backend_client
from exam_engine.models.result_model import SaveOutcome
from exam_engine.services.backend_client import ExamLoadError


@pytest.fixture
def make_client():
    clients = []

    def _make(backend):
        app = create_app()
        app.dependency_overrides[get_backend_client] = lambda: backend
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        sid = client.cookies.get(SESSION_COOKIE)
        if sid:
            session.reset(sid)
        client.close()


@pytest.fixture
def started(make_client, backend):
    client = make_client(backend)
    r = client.post("/api/start-exam", json={"exam_id": "exam-1"})
    assert r.status_code == 200
    return client


def test_start_exam(make_client, backend):
    client = make_client(backend)
    r = client.post("/api/start-exam", json={"exam_id": "exam-1"})

    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["title"] == "Weekend Test 1"
    assert client.cookies.get(SESSION_COOKIE)


def test_start_exam_not_found(make_client, make_backend):
    client = make_client(make_backend(fetch_error=ExamLoadError("Exam not found")))
    r = client.post("/api/start-exam", json={"exam_id": "nope"})

    assert r.status_code == 404
    assert r.json()["detail"] == "Exam not found"
    assert client.get("/api/exam-state").json()["status"] == "error"


def test_no_session_yet(make_client, backend):
    client = make_client(backend)
    assert client.get("/api/exam-state").status_code == 404


def test_question_view_hides_correct_answer(started):
    r = started.get("/api/question/0")

    assert r.status_code == 200
    body = r.json()
    assert body["id"] == "q1"
    assert body["type"] == "single-choice"
    assert [o["label"] for o in body["options"]] == ["2x", "x"]
    assert "correct_answer" not in body
    assert body["saved_answer"] is None

    assert started.get("/api/question/3").status_code == 404


def test_answer_flag_navigate(started):
    assert started.post("/api/save-answer", json={"question_id": "q2", "answer": ["C", "A"]}).json()["answered_count"] == 1
    assert started.post("/api/toggle-flag", json={"index": 1}).json()["flagged"] is True
    assert started.post("/api/navigate", json={"index": 99}).json()["index"] == 2

    state = started.get("/api/exam-state").json()
    assert state["status"] == "in_progress"
    assert state["current_quest_index"] == 2
    assert state["user_answers"] == {"q2": ["C", "A"]}
    assert state["flagged"] == [1]
    assert state["remaining_display"] in ("01:00:00", "00:59:59", "00:59:58")
    assert state["time_warning"] is False

    assert started.get("/api/question/1").json()["saved_answer"] == ["C", "A"]


def test_unknown_question_is_404(started):
    r = started.post("/api/save-answer", json={"question_id": "zzz", "answer": "A"})
    assert r.status_code == 404


def test_submit_and_results(started, backend):
    started.post("/api/save-answer", json={"question_id": "q1", "answer": "2x"})
    started.post("/api/save-answer", json={"question_id": "q2", "answer": ["C", "A"]})
    started.post("/api/save-answer", json={"question_id": "q3", "answer": "8"})

    r = started.post("/api/submit-exam")
    assert r.status_code == 200
    assert r.json()["percentage"] == 58.33
    assert r.json()["saved"] is True

    again = started.post("/api/submit-exam").json()
    assert again["already_submitted"] is True
    assert len(backend.saved) == 1

    results = started.get("/api/results").json()
    assert results["result"]["obtainedMarks"] == 7
    assert results["result"]["wrongAnswers"] == 1
    assert results["summary"]["grade"] == "C+"
    assert results["save_warning"] is None
    assert [q["id"] for q in results["incorrect_questions"]] == ["q3"]
    assert results["incorrect_questions"][0]["correct_answer"] == "7"

    r = started.post("/api/save-answer", json={"question_id": "q1", "answer": "x"})
    assert r.status_code == 400


def test_results_before_submit(started):
    assert started.get("/api/results").status_code == 400


def test_save_failure_surfaces_warning(make_client, make_backend):
    backend = make_backend(save_outcome=SaveOutcome(saved=False, status_code=503, message="down"))
    client = make_client(backend)
    client.post("/api/start-exam", json={"exam_id": "exam-1"})

    assert client.post("/api/submit-exam").json()["saved"] is False
    results = client.get("/api/results").json()
    assert results["saved"] is False
    assert results["save_warning"]
    assert results["result"]["unattempted"] == 3


def test_exit_exam(started, backend):
    r = started.post("/api/exit-exam").json()
    assert r == {"ok": True, "exited": True, "status": "exited"}

    assert started.post("/api/submit-exam").status_code == 400
    assert backend.saved == []


def test_reset_exits_running_exam(started, backend):
    state_before = started.get("/api/exam-state").json()
    assert state_before["status"] == "in_progress"

    assert started.post("/api/reset").json() == {"ok": True}
    assert started.get("/api/exam-state").status_code == 404
    assert backend.saved == []


def test_next_previous_and_start_time(started):
    assert started.post("/api/next").json() == {"index": 1, "ok": True}
    assert started.post("/api/next").json()["index"] == 2
    assert started.post("/api/next").json()["index"] == 2
    assert started.post("/api/previous").json()["index"] == 1

    state = started.get("/api/exam-state").json()
    assert state["current_quest_index"] == 1
    assert isinstance(state["start_time"], float)


def test_navigation_after_exit_is_400(started):
    started.post("/api/exit-exam")
    assert started.post("/api/next").status_code == 400
    assert started.post("/api/previous").status_code == 400


def test_reset_during_load_is_conflict(make_client, make_backend):
    backend = make_backend()
    original_fetch = backend.fetch_exam
    client = make_client(backend)
    client.get("/api/exam-state")
    sid = client.cookies.get(SESSION_COOKIE)

    def _fetch(exam_id):
        session.reset(sid)
        return original_fetch(exam_id)

    backend.fetch_exam = _fetch
    r = client.post("/api/start-exam", json={"exam_id": "exam-1"})

    assert r.status_code == 409
    assert backend.saved == []
