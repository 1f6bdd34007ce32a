"""
services/backend_client.py

시험 백엔드 REST API 클라이언트 (httpx).
Public API:
  - fetch_exam(exam_id) -> Exam          : GET  /api/student/exams/{id}
  - save_result(result) -> SaveOutcome   : POST /api/student/exam-results

fetch 실패는 ExamLoadError로 올리고, 결과 저장 실패는 예외 대신
SaveOutcome(saved=False)로 돌려준다 (시험 완료를 막지 않음).
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from config import API_BASE_URL, AUTH_TOKEN, EXAM_ENDPOINT, REQUEST_TIMEOUT, RESULTS_ENDPOINT
from exam_engine.models.exam_model import Exam
from exam_engine.models.result_model import ExamResult, SaveOutcome

logger = logging.getLogger(__name__)


class ExamLoadError(RuntimeError):
    """시험을 불러오지 못함 (없음, 네트워크 오류, 잘못된 응답)."""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class ExamBackendClient:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: str = AUTH_TOKEN,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "ExamBackendClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_exam(self, exam_id: str) -> Exam:
        """
        시험(문제 포함)을 가져온다.
        응답이 {"success": ..., "data": {...}} 형태면 data를 꺼내 쓴다.
        """
        path = EXAM_ENDPOINT.format(exam_id=exam_id)
        try:
            response = self._client.get(path)
        except httpx.HTTPError as e:
            logger.error(f"fetch_exam: 요청 실패 - {e}")
            raise ExamLoadError("시험 정보를 불러오지 못했습니다. 네트워크를 확인해 주세요.") from e

        if response.is_error:
            logger.error(f"fetch_exam: HTTP {response.status_code} (exam_id={exam_id})")
            raise ExamLoadError(_error_message(response))

        try:
            body: Any = response.json()
        except ValueError as e:
            raise ExamLoadError("시험 응답이 올바른 JSON이 아닙니다.") from e

        if isinstance(body, dict) and body.get("success") is False:
            raise ExamLoadError(body.get("message") or "시험 정보를 불러오지 못했습니다.")

        data = (body.get("data") or body) if isinstance(body, dict) else body
        try:
            exam = Exam.model_validate(data)
        except ValidationError as e:
            logger.error(f"fetch_exam: 시험 데이터 검증 실패 - {e}")
            raise ExamLoadError("시험 데이터 형식이 올바르지 않습니다.") from e

        logger.info(f"fetch_exam: '{exam.title}' 문제 {len(exam.questions)}개 로드")
        return exam

    def save_result(self, result: ExamResult) -> SaveOutcome:
        """결과 저장 (best-effort). 실패해도 예외를 던지지 않는다."""
        try:
            response = self._client.post(RESULTS_ENDPOINT, json=result.to_payload())
        except httpx.HTTPError as e:
            logger.error(f"save_result: 요청 실패 - {e}")
            return SaveOutcome(saved=False, message=str(e) or type(e).__name__)

        if response.is_error:
            message = _error_message(response)
            logger.error(f"save_result: HTTP {response.status_code} - {message}")
            return SaveOutcome(saved=False, status_code=response.status_code, message=message)

        logger.info(f"save_result: 결과 저장 완료 (exam_id={result.exam_id})")
        return SaveOutcome(saved=True, status_code=response.status_code)
