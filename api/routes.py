"""
api/routes.py — FastAPI 엔드포인트

브라우저 세션마다 ExamSession 하나를 두고 응시 조작을 JSON API로 노출한다.
정답(correct_answer)은 결과 화면 외에는 내려보내지 않는다.
"""

import asyncio
import threading
from typing import Any, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

import api.session as session
from exam_engine.models.question_model import Question
from exam_engine.models.result_model import ExamResult
from exam_engine.models.session_state import SessionStatus
from exam_engine.services.backend_client import ExamBackendClient
from exam_engine.services.countdown import format_time
from exam_engine.services.exam_service import get_incorrect_questions, summarize_result
from exam_engine.services.session_controller import (
    ExamBackend, ExamSession, SessionStateError, UnknownQuestionError
)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartExamBody(BaseModel):
    exam_id: str

class SaveAnswerBody(BaseModel):
    question_id: str
    answer: Union[str, int, float, list[str], None] = None

class IndexBody(BaseModel):
    index: int = 0


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

_client: ExamBackendClient | None = None
_client_lock = threading.Lock()


def get_backend_client() -> ExamBackend:
    """프로세스 전체에서 공유하는 백엔드 클라이언트 (시험 세션보다 오래 살아야 함)."""
    global _client
    with _client_lock:
        if _client is None:
            _client = ExamBackendClient()
        return _client


def close_backend_client() -> None:
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
            _client = None


def _sid(request: Request) -> str:
    return request.state.session_id


def _exam_session(request: Request) -> ExamSession:
    exam_session: ExamSession | None = session.get(_sid(request), "exam_session")
    if exam_session is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return exam_session


def _question_to_dict(q: Question) -> dict:
    return {
        "id": q.id,
        "subject": q.subject,
        "type": q.type.value,
        "text": q.text,
        "image": q.image,
        "options": [o.model_dump() for o in q.options],
        "marks": q.marks,
        "negative_marks": q.negative_marks,
    }


def _review_to_dict(q: Question, user_answer: Any) -> dict:
    d = _question_to_dict(q)
    d.update({
        "correct_answer": q.correct_answer,
        "explanation": q.explanation,
        "user_answer": user_answer,
    })
    return d


def _run(action, *args):
    try:
        return action(*args)
    except UnknownQuestionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.post("/api/start-exam")
async def start_exam(
    body: StartExamBody,
    request: Request,
    client: ExamBackend = Depends(get_backend_client),
):
    sid = _sid(request)
    previous: ExamSession | None = session.get(sid, "exam_session")
    if previous is not None:
        previous.exit()

    def _on_complete(result: ExamResult) -> None:
        # 타이머 만료로 늦게 끝난 이전 시험이 새 결과를 덮어쓰지 않도록
        if session.get(sid, "exam_session") is exam_session:
            session.put(sid, "final_result", result)

    exam_session = ExamSession(body.exam_id, client, on_complete=_on_complete)
    session.put(sid, "exam_session", exam_session)
    session.put(sid, "final_result", None)

    status = await asyncio.to_thread(exam_session.load)
    if status is SessionStatus.ERROR:
        raise HTTPException(status_code=404, detail=exam_session.state.error)
    if status is SessionStatus.EXITED or exam_session.exam is None:
        # 로드 중 초기화/재시작으로 종료된 세션
        raise HTTPException(status_code=409, detail="시험이 시작되기 전에 종료되었습니다.")

    exam = exam_session.exam
    return {
        "ok": True,
        "exam_id": exam.id,
        "title": exam.title,
        "instructions": exam.instructions,
        "total": len(exam.questions),
        "duration_minutes": exam.duration_minutes,
    }


@router.get("/api/question/{index}")
async def get_question(index: int, request: Request):
    exam_session = _exam_session(request)
    questions = exam_session.questions
    if not questions or not (0 <= index < len(questions)):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")

    q = questions[index]
    d = _question_to_dict(q)
    d.update({
        "saved_answer": exam_session.state.user_answers.get(q.id),
        "flagged": index in exam_session.state.flagged,
        "index": index,
        "total": len(questions),
    })
    return d


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    exam_session = _exam_session(request)
    state = exam_session.state
    return {
        "status": state.status.value,
        "error": state.error,
        "current_quest_index": state.current_quest_index,
        "user_answers": state.user_answers,
        "flagged": sorted(state.flagged),
        "is_submitted": state.is_submitted,
        "remaining_seconds": state.remaining_seconds,
        "start_time": state.start_time,
        "remaining_display": format_time(state.remaining_seconds),
        "time_warning": exam_session.time_warning,
        "progress": exam_session.progress,
        "total": len(exam_session.questions),
        "answered_count": exam_session.answered_count,
        "question_ids": [q.id for q in exam_session.questions],
    }


@router.post("/api/save-answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    exam_session = _exam_session(request)
    _run(exam_session.set_answer, body.question_id, body.answer)
    return {"ok": True, "answered_count": exam_session.answered_count}


@router.post("/api/toggle-flag")
async def toggle_flag(body: IndexBody, request: Request):
    exam_session = _exam_session(request)
    flagged = _run(exam_session.toggle_flag, body.index)
    return {"ok": True, "index": body.index, "flagged": flagged}


@router.post("/api/navigate")
async def navigate(body: IndexBody, request: Request):
    exam_session = _exam_session(request)
    idx = _run(exam_session.go_to, body.index)
    return {"index": idx, "ok": True}


@router.post("/api/next")
async def next_question(request: Request):
    exam_session = _exam_session(request)
    return {"index": _run(exam_session.next), "ok": True}


@router.post("/api/previous")
async def previous_question(request: Request):
    exam_session = _exam_session(request)
    return {"index": _run(exam_session.previous), "ok": True}


@router.post("/api/submit-exam")
async def submit_exam(request: Request):
    exam_session = _exam_session(request)
    if exam_session.status in (SessionStatus.LOADING, SessionStatus.ERROR, SessionStatus.EXITED):
        raise HTTPException(status_code=400, detail="제출할 수 있는 시험이 없습니다.")

    result = await asyncio.to_thread(exam_session.submit)
    outcome = exam_session.save_outcome
    return {
        "ok": True,
        "already_submitted": result is None,
        "percentage": exam_session.result.percentage if exam_session.result else None,
        "saved": outcome.saved if outcome else None,
    }


@router.post("/api/exit-exam")
async def exit_exam(request: Request):
    exam_session = _exam_session(request)
    exited = exam_session.exit()
    return {"ok": True, "exited": exited, "status": exam_session.status.value}


@router.get("/api/results")
async def get_results(request: Request):
    exam_session = _exam_session(request)
    result: ExamResult | None = session.get(_sid(request), "final_result")
    if exam_session.status is not SessionStatus.DONE or result is None:
        raise HTTPException(status_code=400, detail="시험이 아직 제출되지 않았습니다.")

    answers = exam_session.state.user_answers
    outcome = exam_session.save_outcome
    review = [
        _review_to_dict(q, answers.get(q.id))
        for q in get_incorrect_questions(exam_session.exam, answers)
    ]
    return {
        "result": result.to_payload(),
        "summary": summarize_result(result),
        "saved": outcome.saved if outcome else False,
        "save_warning": (
            None if outcome and outcome.saved
            else "시험 결과가 저장되지 않았을 수 있습니다. 연결 상태를 확인해 주세요."
        ),
        "incorrect_questions": review,
    }


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(_sid(request))
    return {"ok": True}
