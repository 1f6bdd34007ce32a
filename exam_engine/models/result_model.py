"""
models/result_model.py

채점 결과 모델.
- Evaluation : 문제 하나의 채점 결과
- SubjectScore / ExamResult : 시험 전체 결과 (백엔드 전송 형식은 camelCase)
- SaveOutcome : 결과 저장 요청의 성공/실패
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Evaluation(BaseModel):
    model_config = ConfigDict(frozen=True)

    correct: bool
    attempted: bool
    marks_delta: float


class SubjectScore(BaseModel):
    correct: int = 0
    total: int = 0
    marks: float = 0


class ExamResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    exam_id: str
    exam_title: str = ""
    total_questions: int
    correct_answers: int
    wrong_answers: int
    unattempted: int
    total_marks: float
    obtained_marks: float
    percentage: float
    time_taken: int = Field(..., ge=0, description="소요 시간 (초)")
    subject_wise_score: Dict[str, SubjectScore]
    answers: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """POST /exam-results 요청 본문."""
        return self.model_dump(by_alias=True, mode="json")


class SaveOutcome(BaseModel):
    """결과 저장 결과. saved=False여도 시험 완료는 막지 않는다."""

    saved: bool
    status_code: Optional[int] = None
    message: str = ""
