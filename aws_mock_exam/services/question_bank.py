"""
services/question_bank.py

문제은행 조회 + 행(row) 정규화.
저장소에 JSON 문자열로 들어있는 options / answer 를 여기서 한 번만 해석하고,
이후에는 Question 모델(단일/복수 정답 variant)만 다룬다.
"""

import json
import logging
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from aws_mock_exam.backends.base import QuestionStore
from aws_mock_exam.data.sample_questions import SAMPLE_QUESTIONS
from aws_mock_exam.errors import InputValidationError
from aws_mock_exam.models.question_model import Question, answer_from_raw

logger = logging.getLogger(__name__)


def _parse_options(raw: Any) -> Dict[str, str]:
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, dict):
        raise ValueError(f"options 형식 오류: {type(raw).__name__}")
    return {str(k).strip(): str(v) for k, v in raw.items()}


def _parse_answer(raw: Any):
    # '[' 로 시작하는 문자열만 JSON 배열로 해석, 나머지 문자열은 단일 정답 문자
    if isinstance(raw, str) and raw.strip().startswith("["):
        raw = json.loads(raw)
    return answer_from_raw(raw)


def row_to_question(row: Dict[str, Any]) -> Question:
    """
    저장소 행 → Question.

    Raises:
        ValueError: JSON 파싱 실패 또는 모델 검증 실패 (pydantic.ValidationError 포함).
    """
    return Question(
        id=str(row["id"]),
        question_text=row.get("question_text") or "",
        options=_parse_options(row.get("options")),
        answer=_parse_answer(row.get("answer")),
        explanation=row.get("explanation"),
        category=row.get("category") or "SAA",
        difficulty=row.get("difficulty") or "medium",
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def question_to_row(question: Question) -> Dict[str, Any]:
    """Question → 저장소 행. 복수 정답은 JSON 배열 문자열로 저장."""
    answer = question.answer.to_raw()
    return {
        "question_text": question.question_text,
        "options": question.options,
        "answer": json.dumps(answer) if isinstance(answer, list) else answer,
        "explanation": question.explanation or "",
        "category": question.category,
        "difficulty": question.difficulty.value,
    }


def validate_question_payload(payload: Dict[str, Any], question_id: str = "new") -> Question:
    """
    관리자 입력 검증. 문제/보기/정답이 모두 있어야 하고, Question 불변식을 만족해야 한다.
    """
    if not str(payload.get("question_text") or "").strip():
        raise InputValidationError("문제 내용을 입력해주세요.")
    if not payload.get("options"):
        raise InputValidationError("보기를 입력해주세요.")
    if payload.get("answer") in (None, "", []):
        raise InputValidationError("정답을 입력해주세요.")
    try:
        return row_to_question({**payload, "id": question_id})
    except (ValidationError, ValueError) as e:
        raise InputValidationError(f"문제 형식이 올바르지 않습니다: {e}") from e


def rows_to_questions(rows: List[Dict[str, Any]]) -> List[Question]:
    """변환 실패 행은 건너뛴다 (전체 중단 없음)."""
    questions: List[Question] = []
    for row in rows:
        try:
            questions.append(row_to_question(row))
        except (ValidationError, ValueError, KeyError) as e:
            logger.warning(f"문제 행 변환 실패 - 건너뜀 (id={row.get('id')}): {e}")
    return questions


def load_all(store: QuestionStore) -> List[Question]:
    """
    전체 문제를 created_at 오름차순으로 가져온다.
    백엔드 오류(BackendError)는 그대로 전파한다 (재시도 없음).
    """
    questions = rows_to_questions(store.list_questions())
    logger.info(f"문제은행 로드 완료: {len(questions)}개")
    return questions


def load_bank(store: QuestionStore) -> Tuple[List[Question], bool]:
    """
    출제용 문제은행. 비어 있으면 내장 문제로 대체한다 (오류 아님).

    Returns:
        (문제 리스트, 내장 문제 사용 여부)
    """
    questions = load_all(store)
    if questions:
        return questions, False
    logger.warning(f"문제은행이 비어 있음 → 내장 문제 {len(SAMPLE_QUESTIONS)}개 사용")
    return list(SAMPLE_QUESTIONS), True
