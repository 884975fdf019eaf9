"""
services/shuffle.py

출제용 셔플과 모드별 출제 정책.
"""

import random
from typing import List, Optional, Sequence, Tuple, TypeVar

import config
from aws_mock_exam.models.question_model import Question
from aws_mock_exam.models.session_state import ExamLength, ExamMode

T = TypeVar("T")


def shuffle(seq: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Fisher–Yates 셔플. 입력은 건드리지 않고 새 리스트를 반환한다.

    마지막 인덱스 i 부터 1 까지, 0..i 중 균등하게 고른 j 와 자리를 바꾼다.
    """
    rng = rng or random
    items = list(seq)
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def draw_questions(
    bank: Sequence[Question],
    mode: ExamMode,
    length: ExamLength,
    rng: Optional[random.Random] = None,
) -> Tuple[List[Question], Optional[int]]:
    """
    모드/분량에 맞춰 문제를 뽑는다.

    Returns:
        (출제 문제 리스트, 제한 시간 초 — 연습 모드는 None)

    정책:
        practice/short : 무작위 65문제 (문제은행이 작으면 전체)
        practice/full  : 문제은행 전체, 저장 순서 그대로 (이어풀기 안정성)
        exam/full      : 무작위 65문제, 130분
        exam/short     : 무작위 20문제, 20분
    """
    if mode == ExamMode.practice:
        if length == ExamLength.full:
            return list(bank), None
        return shuffle(bank, rng)[:config.PRACTICE_SHORT_COUNT], None

    if length == ExamLength.full:
        return shuffle(bank, rng)[:config.EXAM_FULL_COUNT], config.EXAM_FULL_SECONDS
    return shuffle(bank, rng)[:config.EXAM_SHORT_COUNT], config.EXAM_SHORT_SECONDS
