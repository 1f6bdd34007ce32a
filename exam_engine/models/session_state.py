"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
상태 전이는 services/session_controller.py가 담당한다.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    DONE = "done"
    ERROR = "error"
    EXITED = "exited"


class ExamState(BaseModel):
    """
    사용자의 시험 세션 전체 상태를 표현하는 모델.

    Attributes:
        status:              세션 상태 (loading → in_progress → submitting → done).
        current_quest_index: 현재 풀고 있는 문제의 인덱스 (0-based).
        user_answers:        사용자 답안지. {question.id: 입력한 답 (문자열 또는 문자열 리스트)}
                             덮어쓰기만 하고 삭제하지 않는다.
        flagged:             검토 표시한 문제 인덱스. 채점과 무관.
        remaining_seconds:   남은 시간 (초).
        is_submitted:        최종 제출 여부. False → True 한 번만 바뀐다.
        start_time:          세션 생성 시각 (Unix timestamp).
        error:               error 상태일 때 사용자에게 보여줄 메시지.
    """

    status: SessionStatus = Field(
        default=SessionStatus.LOADING,
        description="세션 상태"
    )
    current_quest_index: int = Field(
        default=0,
        ge=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )
    user_answers: Dict[str, Any] = Field(
        default_factory=dict,
        description="사용자 답안지. key: question.id"
    )
    flagged: Set[int] = Field(
        default_factory=set,
        description="검토 표시한 문제 인덱스"
    )
    remaining_seconds: int = Field(
        default=0,
        ge=0,
        description="남은 시간 (초)"
    )
    is_submitted: bool = Field(
        default=False,
        description="최종 제출 완료 여부"
    )
    start_time: float = Field(
        default_factory=time.time,
        description="세션 생성 시각 (Unix timestamp, time.time() 기준)"
    )
    error: Optional[str] = Field(
        default=None,
        description="오류 메시지"
    )
