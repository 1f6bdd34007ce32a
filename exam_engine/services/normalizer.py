"""
services/normalizer.py

보기/답안 표현 정규화.
백엔드가 보내는 보기와 정답은 문자열, {text, label, _id} 객체, 배열 등
모양이 제각각이므로 비교 가능한 문자열 형태로 환원한다.
순수 함수이며 예외를 던지지 않는다.
"""

import json
from collections.abc import Mapping
from typing import Any, FrozenSet

from pydantic import BaseModel

# 객체형 보기에서 표시 문자열을 찾는 우선순위
_OBJECT_KEYS = ("text", "label", "value", "_id", "id")


def _normalize_number(value) -> str:
    # JSON의 7.0과 사용자 입력 "7"을 같은 문자열로 맞춘다
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def _serialize(value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def normalize(value: Any) -> str:
    """
    보기/답안 하나를 정규화된 문자열로 변환한다.

    Args:
        value: 문자열, 숫자, 객체(dict/pydantic 모델), 배열 또는 None.

    Returns:
        None → "",
        문자열 → 앞뒤 공백 제거,
        객체 → text, label, value, _id, id 중 처음으로 비어 있지 않은 값
               (모두 없으면 키 정렬 JSON 직렬화),
        배열 → 각 원소 정규화 결과를 쉼표로 연결.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _normalize_number(value)
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if isinstance(value, Mapping):
        for key in _OBJECT_KEYS:
            resolved = normalize(value.get(key))
            if resolved:
                return resolved
        return _serialize(value)
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(normalize(v) for v in value))
    if isinstance(value, (list, tuple)):
        return ",".join(normalize(v) for v in value)
    return str(value).strip()


def normalize_set(value: Any) -> FrozenSet[str]:
    """배열형 답안을 정규화 문자열 집합으로 변환 (빈 원소 제외, 중복 제거)."""
    if isinstance(value, (list, tuple, set, frozenset)):
        items = (normalize(v) for v in value)
    else:
        items = (normalize(value),)
    return frozenset(item for item in items if item)


def is_blank(value: Any) -> bool:
    """정규화 후 남는 답이 없으면 True (미응답 판정용)."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return not normalize_set(value)
    return not normalize(value)
