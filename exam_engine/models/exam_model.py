from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from exam_engine.models.question_model import Question
from exam_engine.services.normalizer import normalize


class Exam(BaseModel):
    """
    시험 모델. 세션 시작 시 한 번 받아오고 세션 동안 변경하지 않는다.
    questions의 순서가 곧 표시/이동 순서.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    description: str = ""
    exam_type: Optional[str] = Field(None, validation_alias=AliasChoices("examType", "exam_type"))
    duration_minutes: float = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("duration", "durationMinutes", "duration_minutes"),
        description="제한 시간 (분)"
    )
    instructions: str = ""
    questions: List[Question] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return normalize(v)

    @field_validator("title", "description", "instructions", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else v

    @property
    def duration_seconds(self) -> int:
        return int(self.duration_minutes * 60)

    @property
    def total_marks(self) -> float:
        return sum(q.marks for q in self.questions)

    def question_by_id(self) -> Dict[str, Question]:
        return {q.id: q for q in self.questions}
