"""
services/session_controller.py

시험 응시 세션 컨트롤러.

상태 전이:
  loading ──(문제 1개 이상 로드)──▶ in_progress ──(제출 / 시간 종료)──▶ submitting ──▶ done
     └──(로드 실패 / 문제 없음)──▶ error
  done 이전 어느 때나 exit() ──▶ exited (자동 제출 없음)

세션 상태는 이 객체 하나만 소유한다. 타이머 스레드와 사용자 요청이 동시에
submit()을 호출해도 결과 계산과 on_complete 호출은 정확히 한 번만 일어난다.
"""

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from config import TICK_SECONDS, TIME_WARNING_SECONDS
from exam_engine.models.exam_model import Exam
from exam_engine.models.question_model import Question
from exam_engine.models.result_model import ExamResult, SaveOutcome
from exam_engine.models.session_state import ExamState, SessionStatus
from exam_engine.services.backend_client import ExamLoadError
from exam_engine.services.countdown import Countdown
from exam_engine.services.exam_service import calculate_result
from exam_engine.services.normalizer import is_blank

logger = logging.getLogger(__name__)


class SessionStateError(ValueError):
    """현재 세션 상태에서 허용되지 않는 조작."""


class UnknownQuestionError(SessionStateError):
    """시험에 없는 문제 ID."""


class ExamBackend(Protocol):
    def fetch_exam(self, exam_id: str) -> Exam: ...

    def save_result(self, result: ExamResult) -> SaveOutcome: ...


class ExamSession:
    def __init__(
        self,
        exam_id: str,
        client: ExamBackend,
        on_complete: Optional[Callable[[ExamResult], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
        tick_interval: float = TICK_SECONDS,
    ):
        self.exam_id = exam_id
        self.state = ExamState()
        self.exam: Optional[Exam] = None
        self.result: Optional[ExamResult] = None
        self.save_outcome: Optional[SaveOutcome] = None
        self.countdown: Optional[Countdown] = None

        self._client = client
        self._on_complete = on_complete
        self._on_exit = on_exit
        self._tick_interval = tick_interval
        self._lock = threading.RLock()

    # ── 조회 ─────────────────────────────────────────────────────────────────

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    @property
    def questions(self) -> list[Question]:
        return self.exam.questions if self.exam else []

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.state.current_quest_index]

    @property
    def answered_count(self) -> int:
        return sum(1 for v in self.state.user_answers.values() if not is_blank(v))

    @property
    def progress(self) -> float:
        """현재 위치 기준 진행률 (%)"""
        if not self.questions:
            return 0.0
        return round((self.state.current_quest_index + 1) / len(self.questions) * 100, 1)

    @property
    def time_warning(self) -> bool:
        return (
            self.state.status is SessionStatus.IN_PROGRESS
            and self.state.remaining_seconds < TIME_WARNING_SECONDS
        )

    # ── 로드 ─────────────────────────────────────────────────────────────────

    def load(self) -> SessionStatus:
        """시험을 받아와 in_progress로 전환하고 타이머를 시작한다."""
        with self._lock:
            if self.state.status is not SessionStatus.LOADING:
                return self.state.status

        try:
            exam = self._client.fetch_exam(self.exam_id)
        except ExamLoadError as e:
            return self._fail(str(e))

        if not exam.questions:
            logger.warning(f"시험 {self.exam_id}: 문제가 없습니다.")
            return self._fail("이 시험에는 문제가 없습니다.")

        with self._lock:
            # 로드 도중 exit()된 경우
            if self.state.status is not SessionStatus.LOADING:
                return self.state.status
            self.exam = exam
            self.state.remaining_seconds = exam.duration_seconds
            self.state.status = SessionStatus.IN_PROGRESS
            self.countdown = Countdown(
                exam.duration_seconds,
                on_tick=self._on_tick,
                on_expire=self._on_expire,
                interval=self._tick_interval,
            )

        logger.info(
            f"시험 시작: '{exam.title}' ({len(exam.questions)}문제, {exam.duration_minutes}분)"
        )
        self.countdown.start()
        return self.state.status

    def _fail(self, message: str) -> SessionStatus:
        with self._lock:
            if self.state.status is SessionStatus.LOADING:
                self.state.status = SessionStatus.ERROR
                self.state.error = message
                logger.error(f"시험 {self.exam_id} 로드 실패: {message}")
            return self.state.status

    # ── 응시 중 조작 ─────────────────────────────────────────────────────────

    def _require_in_progress(self) -> None:
        if self.state.status is not SessionStatus.IN_PROGRESS:
            raise SessionStateError(
                f"진행 중인 시험이 아닙니다 (상태: {self.state.status.value})."
            )

    def set_answer(self, question_id: str, value: Any) -> None:
        """답을 저장(덮어쓰기)한다. 채점은 제출 시점에 한 번만 한다."""
        with self._lock:
            self._require_in_progress()
            if question_id not in self.exam.question_by_id():
                raise UnknownQuestionError(f"문제를 찾을 수 없습니다: {question_id}")
            self.state.user_answers[question_id] = value

    def toggle_flag(self, index: int) -> bool:
        """검토 표시 토글. 표시된 상태면 True 반환."""
        with self._lock:
            self._require_in_progress()
            if not 0 <= index < len(self.questions):
                raise SessionStateError(f"잘못된 문제 번호입니다: {index}")
            if index in self.state.flagged:
                self.state.flagged.discard(index)
                return False
            self.state.flagged.add(index)
            return True

    def go_to(self, index: int) -> int:
        """문제 이동. 범위를 벗어나면 처음/마지막 문제로 보정."""
        with self._lock:
            self._require_in_progress()
            idx = max(0, min(index, len(self.questions) - 1))
            self.state.current_quest_index = idx
            return idx

    def next(self) -> int:
        return self.go_to(self.state.current_quest_index + 1)

    def previous(self) -> int:
        return self.go_to(self.state.current_quest_index - 1)

    # ── 제출 / 종료 ──────────────────────────────────────────────────────────

    def submit(self) -> Optional[ExamResult]:
        """
        채점 후 결과를 백엔드에 저장하고 on_complete를 호출한다.
        이미 제출 중이거나 끝난 세션이면 아무것도 하지 않고 None 반환.
        """
        with self._lock:
            if self.state.status is not SessionStatus.IN_PROGRESS:
                logger.debug(f"submit 무시 (상태: {self.state.status.value})")
                return None
            self.state.status = SessionStatus.SUBMITTING
            self.state.is_submitted = True
            if self.countdown:
                self.state.remaining_seconds = self.countdown.stop()

            time_taken = self.exam.duration_seconds - self.state.remaining_seconds
            result = calculate_result(self.exam, self.state.user_answers, time_taken)
            self.result = result

        logger.info(
            f"제출: 정답 {result.correct_answers} / 오답 {result.wrong_answers} / "
            f"미응답 {result.unattempted}, {result.obtained_marks}/{result.total_marks}점"
        )

        # 저장 실패는 알리기만 하고 완료를 막지 않는다
        try:
            outcome = self._client.save_result(result)
        except Exception as e:
            logger.exception("결과 저장 중 예외 발생")
            outcome = SaveOutcome(saved=False, message=str(e) or type(e).__name__)
        if not outcome.saved:
            logger.warning(f"결과가 저장되지 않았을 수 있습니다: {outcome.message}")

        with self._lock:
            self.save_outcome = outcome

        # on_complete가 결과를 받은 뒤에 done으로 전환
        try:
            if self._on_complete:
                self._on_complete(result)
        finally:
            with self._lock:
                self.state.status = SessionStatus.DONE
        return result

    def exit(self) -> bool:
        """
        응시 포기. 타이머를 멈추고 자동 제출 없이 종료한다.
        done/exited 상태이거나 제출이 진행 중이면 False.
        """
        with self._lock:
            if self.state.status in (
                SessionStatus.SUBMITTING,
                SessionStatus.DONE,
                SessionStatus.EXITED,
            ):
                return False
            if self.countdown:
                self.countdown.stop()
            self.state.status = SessionStatus.EXITED

        logger.info(f"시험 {self.exam_id} 응시 종료 (미제출)")
        if self._on_exit:
            self._on_exit()
        return True

    # ── 타이머 콜백 ──────────────────────────────────────────────────────────

    def _on_tick(self, remaining: int) -> None:
        with self._lock:
            if self.state.status is SessionStatus.IN_PROGRESS:
                self.state.remaining_seconds = remaining

    def _on_expire(self) -> None:
        logger.info(f"시험 {self.exam_id}: 시간 종료, 자동 제출")
        self.submit()
