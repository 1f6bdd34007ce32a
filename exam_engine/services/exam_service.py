"""
services/exam_service.py

시험 채점 및 결과 분석 비즈니스 로직.
순수 Python 함수로 구성 — UI 코드, 전역 상태 변경 없음.
"""

from typing import Any, Dict, List, Mapping

from config import SUBJECTS
from exam_engine.models.exam_model import Exam
from exam_engine.models.question_model import Question, QuestionType
from exam_engine.models.result_model import Evaluation, ExamResult, SubjectScore
from exam_engine.services.countdown import format_time
from exam_engine.services.normalizer import is_blank, normalize, normalize_set

_UNATTEMPTED = Evaluation(correct=False, attempted=False, marks_delta=0)

# (하한 퍼센트, 등급), 위에서부터 검사
_GRADE_TABLE = (
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
)


def _is_correct(question: Question, user_answer: Any) -> bool:
    if question.type is QuestionType.MULTI_CHOICE:
        expected = question.correct_answer
        given = normalize_set(user_answer)
        if len(given) != len(expected):
            return False
        return given == frozenset(expected)

    # single-choice / integer: 정규화 문자열 완전 일치 (대소문자 구분, "42" != "42.0")
    return normalize(user_answer) == question.correct_answer


def evaluate(question: Question, user_answer: Any) -> Evaluation:
    """
    문제 하나를 채점한다.

    Args:
        question:    채점 대상 Question.
        user_answer: 사용자 답 (없으면 None).

    Returns:
        Evaluation(correct, attempted, marks_delta)
        - 미응답(정규화 후 빈 값): marks_delta = 0
        - 정답: +marks
        - 오답: -negative_marks
    """
    if is_blank(user_answer):
        return _UNATTEMPTED

    if _is_correct(question, user_answer):
        return Evaluation(correct=True, attempted=True, marks_delta=question.marks)
    return Evaluation(correct=False, attempted=True, marks_delta=-question.negative_marks)


def calculate_result(
    exam: Exam,
    user_answers: Mapping[str, Any],
    time_taken: int,
) -> ExamResult:
    """
    시험 전체를 채점하여 ExamResult를 만든다.

    percentage는 obtained_marks / total_marks * 100 (소수점 둘째 자리 반올림).
    감점으로 음수가 될 수 있으며 별도로 0~100 범위로 자르지 않는다.
    total_marks가 0이면 0.0.
    subject_wise_score[과목].marks는 그 과목 문제들의 marks_delta 합계로,
    오답 감점(-negative_marks)이 포함되므로 음수일 수 있다.
    """
    subject_scores: Dict[str, SubjectScore] = {s: SubjectScore() for s in SUBJECTS}
    correct_count = 0
    wrong_count = 0
    obtained = 0.0
    total_marks = 0.0

    for q in exam.questions:
        result = evaluate(q, user_answers.get(q.id))
        bucket = subject_scores.setdefault(q.subject, SubjectScore())
        bucket.total += 1
        bucket.marks += result.marks_delta
        total_marks += q.marks
        obtained += result.marks_delta

        if result.correct:
            correct_count += 1
            bucket.correct += 1
        elif result.attempted:
            wrong_count += 1

    total = len(exam.questions)
    percentage = round(obtained / total_marks * 100, 2) if total_marks else 0.0

    return ExamResult(
        exam_id=exam.id,
        exam_title=exam.title,
        total_questions=total,
        correct_answers=correct_count,
        wrong_answers=wrong_count,
        unattempted=total - correct_count - wrong_count,
        total_marks=total_marks,
        obtained_marks=obtained,
        percentage=percentage,
        time_taken=max(0, time_taken),
        subject_wise_score=subject_scores,
        answers=dict(user_answers),
    )


def get_incorrect_questions(
    exam: Exam,
    user_answers: Mapping[str, Any],
) -> List[Question]:
    """
    정답을 맞히지 못한 문제 리스트를 반환한다 (오답 노트용).
    오답과 미응답을 모두 포함하며 시험 순서를 유지한다.
    """
    return [q for q in exam.questions if not evaluate(q, user_answers.get(q.id)).correct]


def get_grade(percentage: float) -> str:
    for floor, grade in _GRADE_TABLE:
        if percentage >= floor:
            return grade
    return "D"


def summarize_result(result: ExamResult) -> Dict[str, object]:
    """
    결과 화면용 요약 지표.

    Returns:
        {"grade": str, "accuracy": float, "attempt_rate": float,
         "time_per_question": int, "time_taken_display": str}
        accuracy는 응답한 문제 중 정답 비율, attempt_rate는 전체 중 응답 비율 (%).
    """
    attempted = result.correct_answers + result.wrong_answers
    accuracy = round(result.correct_answers / attempted * 100, 1) if attempted else 0.0
    attempt_rate = (
        round(attempted / result.total_questions * 100, 1) if result.total_questions else 0.0
    )
    per_question = result.time_taken // result.total_questions if result.total_questions else 0
    return {
        "grade": get_grade(result.percentage),
        "accuracy": accuracy,
        "attempt_rate": attempt_rate,
        "time_per_question": per_question,
        "time_taken_display": format_time(result.time_taken),
    }
