from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from config import SUBJECTS
from exam_engine.services.normalizer import normalize, normalize_set


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    INTEGER = "integer"


# 백엔드가 쓰는 문제 유형 이름
_TYPE_ALIASES = {
    "mcq": QuestionType.SINGLE_CHOICE,
    "single": QuestionType.SINGLE_CHOICE,
    "multiple": QuestionType.MULTI_CHOICE,
    "multi": QuestionType.MULTI_CHOICE,
    "numeric": QuestionType.INTEGER,
}


class Option(BaseModel):
    """보기 하나. label은 표시용, value는 채점 비교용 정규화 문자열."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str

    @classmethod
    def from_raw(cls, raw: Any) -> "Option":
        if isinstance(raw, Option):
            return raw
        value = normalize(raw)
        label = value
        if isinstance(raw, dict):
            label = normalize(raw.get("text")) or normalize(raw.get("label")) or value
        return cls(label=label, value=value)


class Question(BaseModel):
    """
    시험 문제 모델
    Pydantic v2 적용. 백엔드 필드명(_id, questionText, correctAnswer 등)을 그대로 받는다.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        description="문제 식별자 (시험 내 고유)"
    )
    text: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("questionText", "text"),
        description="발문"
    )
    image: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("questionImage", "image"),
        description="문제 이미지 경로/URL"
    )
    type: QuestionType = Field(
        ...,
        validation_alias=AliasChoices("questionType", "type"),
        description="single-choice / multi-choice / integer"
    )
    options: List[Option] = Field(
        default_factory=list,
        description="보기 리스트 (정수형 문제는 비어 있음)"
    )
    correct_answer: Union[str, List[str]] = Field(
        ...,
        validation_alias=AliasChoices("correctAnswer", "correct_answer"),
        description="정답. 단일/정수형은 문자열, 복수 선택형은 정렬된 문자열 리스트"
    )
    marks: float = Field(
        ...,
        gt=0,
        description="정답 시 배점"
    )
    negative_marks: float = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("negativeMarks", "negative_marks"),
        description="오답 시 감점"
    )
    explanation: Optional[str] = Field(
        None,
        description="해설"
    )
    subject: str = Field(
        ...,
        description=f"과목 ({', '.join(SUBJECTS)})"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return normalize(v)

    @field_validator("type", mode="before")
    @classmethod
    def resolve_type_alias(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _TYPE_ALIASES.get(v.strip().lower(), v.strip().lower())
        return v

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> List[Option]:
        if v is None:
            return []
        return [Option.from_raw(item) for item in v]

    @field_validator("correct_answer", mode="before")
    @classmethod
    def keep_raw_answer(cls, v: Any) -> Any:
        # 모양 정리는 유형을 알아야 하므로 model_validator에서 처리
        if isinstance(v, (list, tuple, set, frozenset)):
            return [normalize(item) for item in v]
        return normalize(v)

    @field_validator("subject", mode="before")
    @classmethod
    def validate_subject(cls, v: Any) -> str:
        subject = normalize(v).lower()
        if subject not in SUBJECTS:
            raise ValueError(f"알 수 없는 과목입니다: {v!r} (허용: {', '.join(SUBJECTS)})")
        return subject

    @model_validator(mode="after")
    def canonicalize_correct_answer(self) -> "Question":
        """
        검증 로직: 정답은 유형에 맞는 표현 하나여야 한다.
        - multi-choice: 정렬된 중복 없는 리스트 (단일 값이면 리스트로 감싼다)
        - single-choice / integer: 문자열 (원소 1개짜리 리스트는 풀어낸다)
        """
        answer = self.correct_answer
        if self.type is QuestionType.MULTI_CHOICE:
            answers = sorted(normalize_set(answer))
            if not answers:
                raise ValueError(f"문제 {self.id}: 정답이 비어 있습니다.")
            self.correct_answer = answers
            return self

        if isinstance(answer, list):
            if len(answer) != 1:
                raise ValueError(
                    f"문제 {self.id}: {self.type.value} 유형은 정답이 하나여야 합니다 ({answer})."
                )
            answer = answer[0]
        if not answer:
            raise ValueError(f"문제 {self.id}: 정답이 비어 있습니다.")
        self.correct_answer = answer
        return self
