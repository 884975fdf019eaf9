"""
services/exam_service.py

시험 진행(상태 전이) 및 채점 비즈니스 로직.
순수 Python 함수로 구성 — HTTP, 저장소 접근 없음.
세션 객체(ExamSession)를 받아 제자리에서 변경한다.

상태:
    awaiting_start ──confirm_start──▶ in_progress ──finish──▶ completed
    (실전 모드만 awaiting_start 를 거친다)
"""

import logging
import random
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

import config
from aws_mock_exam.errors import ExamStateError, InputValidationError
from aws_mock_exam.models.question_model import Answer, MultipleAnswer, Question, SingleAnswer
from aws_mock_exam.models.session_state import (
    ExamLength, ExamMode, ExamOutcome, ExamSession, ExamStatus, QuestionResult,
)
from aws_mock_exam.services.shuffle import draw_questions

logger = logging.getLogger(__name__)

_GRADE_TABLE = [
    (95, "A+"), (90, "A"), (85, "B+"), (80, "B"),
    (75, "C+"), (70, "C"), (65, "D+"), (60, "D"),
]


# ══════════════════════════════════════════════════════════════════════════════
# 채점
# ══════════════════════════════════════════════════════════════════════════════

def is_correct(question: Question, user_answer: Optional[Answer]) -> bool:
    """
    정답 판정.
    - 복수 정답: 선택 집합과 정답 집합이 정확히 같아야 한다 (개수 포함).
    - 단일 정답: 문자가 같아야 한다.
    - 미응답(None)은 항상 오답.
    """
    if user_answer is None:
        return False
    if isinstance(question.answer, MultipleAnswer):
        if not isinstance(user_answer, MultipleAnswer):
            return False
        chosen = user_answer.letters
        return len(chosen) == len(question.answer.letters) and all(
            x in question.answer.letters for x in chosen
        )
    return isinstance(user_answer, SingleAnswer) and user_answer.letter == question.answer.letter


def calculate_score(correct_count: int, total: int) -> int:
    """
    1000점 만점 환산 점수. round(correct / total * 1000), .5 는 올림.
    total 이 0 이면 0.
    """
    if total <= 0:
        return 0
    return (correct_count * config.SCORE_SCALE * 2 + total) // (total * 2)


def is_passed(score: int, pass_score: int = config.PASS_SCORE) -> bool:
    """
    합격 여부를 반환한다.

    Args:
        score:      calculate_score()가 반환한 점수 (0 ~ 1000).
        pass_score: 합격 기준 점수 (기본값 720점).
    """
    return score >= pass_score


def get_grade(percentage: int) -> str:
    """백분율 → 등급 (A+ ~ F)."""
    for threshold, grade in _GRADE_TABLE:
        if percentage >= threshold:
            return grade
    return "F"


def calculate_group_scores(
    results: Sequence[QuestionResult],
    key: Callable[[Question], str],
) -> List[Dict[str, object]]:
    """
    분류별(카테고리/난이도) 점수를 계산하여 반환한다.

    Returns:
        [{"name": str, "total": int, "correct": int,
          "incorrect": int, "unanswered": int, "score": float}, ...]
        이름 기준 정렬.
    """
    buckets: Dict[str, Dict[str, int]] = defaultdict(
        lambda: {"total": 0, "correct": 0, "incorrect": 0, "unanswered": 0}
    )

    for r in results:
        name = key(r.question) or "기타"
        buckets[name]["total"] += 1
        if r.user_answer is None:
            buckets[name]["unanswered"] += 1
        elif r.is_correct:
            buckets[name]["correct"] += 1
        else:
            buckets[name]["incorrect"] += 1

    out = []
    for name in sorted(buckets):
        b = buckets[name]
        score = round(b["correct"] / b["total"] * 100, 1) if b["total"] else 0.0
        out.append({"name": name, **b, "score": score})
    return out


def get_incorrect_questions(session: ExamSession) -> List[Question]:
    """오답(미응답 포함) 문제 리스트. 원본 순서 유지 (오답 노트용)."""
    return [
        q for q, a in zip(session.questions, session.answers)
        if not is_correct(q, a)
    ]


def elapsed_seconds(session: ExamSession, now: Optional[float] = None) -> int:
    """실전 모드는 제한시간 − 남은시간, 연습 모드는 시작 후 경과 시간."""
    if session.is_timed and session.time_limit is not None:
        return session.time_limit - (session.time_remaining or 0)
    now = time.time() if now is None else now
    return max(0, int(now - session.start_time))


# ══════════════════════════════════════════════════════════════════════════════
# 상태 전이
# ══════════════════════════════════════════════════════════════════════════════

def start_exam(
    bank: Sequence[Question],
    mode: ExamMode,
    length: ExamLength,
    now: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> ExamSession:
    """
    새 시험 세션 생성.

    Raises:
        ExamStateError: 문제은행이 비어 있음.
    """
    if not bank:
        raise ExamStateError("문제를 불러오는 중입니다. 잠시 후 다시 시도해주세요.")

    now = time.time() if now is None else now
    questions, time_limit = draw_questions(bank, mode, length, rng)
    session = ExamSession(
        mode=mode,
        length=length,
        status=ExamStatus.awaiting_start if mode == ExamMode.exam else ExamStatus.in_progress,
        questions=questions,
        time_limit=time_limit,
        time_remaining=time_limit,
        start_time=now,
        last_tick_at=now,
    )
    logger.info(f"시험 시작: mode={mode.value}, length={length.value}, 문제 {len(questions)}개, 제한시간={time_limit}")
    return session


def confirm_start(session: ExamSession, now: Optional[float] = None) -> ExamSession:
    """실전 모드 시작 확인 → 타이머 가동. 이미 진행 중이면 아무것도 하지 않는다."""
    if session.status == ExamStatus.completed:
        raise ExamStateError("이미 제출된 시험입니다.")
    if session.status == ExamStatus.awaiting_start:
        now = time.time() if now is None else now
        session.status = ExamStatus.in_progress
        session.start_time = now
        session.last_tick_at = now
    return session


def _require_in_progress(session: ExamSession) -> None:
    if session.status == ExamStatus.completed:
        raise ExamStateError("이미 제출된 시험입니다.")
    if session.status == ExamStatus.awaiting_start:
        raise ExamStateError("시험 시작 확인이 필요합니다.")


def select_answer(session: ExamSession, letter: str) -> Optional[Answer]:
    """
    현재 문제에 답 선택.

    - 단일 정답 문제: 슬롯 값을 교체.
    - 복수 정답 문제: letter 포함 여부를 토글. 비게 되면 None (미응답) 으로 되돌린다.
    - 연습 모드: 단일 정답은 선택 즉시, 복수 정답은 정답 개수만큼 고르면 정답 공개.
      공개 후에는 선택할 수 없다.

    Returns:
        변경된 답안 슬롯.
    """
    _require_in_progress(session)
    question = session.current_question
    letter = (letter or "").strip().upper()
    if letter not in question.options:
        raise InputValidationError(f"보기에 없는 선택입니다: {letter!r}")
    if session.mode == ExamMode.practice and session.show_current_answer:
        raise ExamStateError("정답이 공개된 문제는 답을 바꿀 수 없습니다.")

    pos = session.position
    if isinstance(question.answer, MultipleAnswer):
        current = session.answers[pos]
        chosen = set(current.letters) if isinstance(current, MultipleAnswer) else set()
        chosen ^= {letter}
        session.answers[pos] = MultipleAnswer(letters=tuple(chosen)) if chosen else None
        if (
            session.mode == ExamMode.practice
            and len(chosen) == len(question.answer.letters)
        ):
            session.show_current_answer = True
    else:
        session.answers[pos] = SingleAnswer(letter=letter)
        if session.mode == ExamMode.practice:
            session.show_current_answer = True

    return session.answers[pos]


def reveal_answer(session: ExamSession) -> ExamSession:
    """연습 모드 '정답 확인' — 답을 하나 이상 골라야 한다."""
    _require_in_progress(session)
    if session.mode != ExamMode.practice:
        raise ExamStateError("실전 모드에서는 제출 전까지 정답을 볼 수 없습니다.")
    if session.current_answer is None:
        raise ExamStateError("답을 먼저 선택해주세요.")
    session.show_current_answer = True
    return session


def next_question(session: ExamSession, now: Optional[float] = None) -> ExamSession:
    """다음 문제로. 마지막 문제에서 호출하면 finish()."""
    _require_in_progress(session)
    if session.position >= session.total - 1:
        finish(session, now)
        return session
    session.position += 1
    session.show_current_answer = False
    return session


def previous_question(session: ExamSession) -> ExamSession:
    _require_in_progress(session)
    session.position = max(0, session.position - 1)
    session.show_current_answer = False
    return session


def go_to_question(session: ExamSession, index: int) -> ExamSession:
    """문제 번호 네비게이터. 범위를 벗어나면 양 끝으로 맞춘다."""
    _require_in_progress(session)
    target = max(0, min(index, session.total - 1))
    if target != session.position:
        session.position = target
        session.show_current_answer = False
    return session


def finish(session: ExamSession, now: Optional[float] = None) -> ExamOutcome:
    """
    채점 후 completed 로 전이. 두 번째 호출부터는 저장된 결과를 그대로 반환한다
    (타이머 만료와 수동 제출이 겹쳐도 한 번만 채점).
    """
    if session.outcome is not None:
        return session.outcome
    if session.status == ExamStatus.awaiting_start:
        raise ExamStateError("시험 시작 확인이 필요합니다.")

    results: List[QuestionResult] = []
    for idx, (q, a) in enumerate(zip(session.questions, session.answers)):
        results.append(QuestionResult(
            index=idx,
            question=q,
            user_answer=a,
            correct_answer=q.answer,
            is_correct=is_correct(q, a),
        ))

    correct_count = sum(1 for r in results if r.is_correct)
    score = calculate_score(correct_count, session.total)
    percentage = (correct_count * 200 + session.total) // (session.total * 2)

    session.status = ExamStatus.completed
    session.show_current_answer = False
    session.outcome = ExamOutcome(
        results=results,
        correct_count=correct_count,
        total=session.total,
        score=score,
        passed=is_passed(score),
        grade=get_grade(percentage),
        elapsed_seconds=elapsed_seconds(session, now),
        category_scores=calculate_group_scores(results, lambda q: q.category),
        difficulty_scores=calculate_group_scores(results, lambda q: q.difficulty.value),
        completed_at=time.time() if now is None else now,
    )
    logger.info(f"시험 채점 완료: {correct_count}/{session.total}, score={score}")
    return session.outcome


def tick(session: ExamSession, seconds: int = 1, now: Optional[float] = None) -> ExamSession:
    """
    실전 모드 카운트다운을 seconds 초 진행. 0 이 되면 자동 제출.
    진행 중이 아니거나 연습 모드면 아무것도 하지 않는다.
    """
    if not session.is_timed or session.status != ExamStatus.in_progress:
        return session
    session.time_remaining = max(0, (session.time_remaining or 0) - seconds)
    if session.time_remaining == 0:
        logger.info("제한 시간 종료 → 자동 제출")
        finish(session, now)
    return session


def sync_timer(session: ExamSession, now: Optional[float] = None) -> ExamSession:
    """마지막 반영 이후 지난 '초' 단위만큼 tick() 을 적용한다."""
    if not session.is_timed or session.status != ExamStatus.in_progress:
        return session
    now = time.time() if now is None else now
    elapsed = int(now - session.last_tick_at)
    if elapsed > 0:
        session.last_tick_at += elapsed
        tick(session, elapsed, now)
    return session


def retry_exam(session: ExamSession, now: Optional[float] = None) -> ExamSession:
    """같은 문제 세트, 같은 모드로 처음부터 다시."""
    now = time.time() if now is None else now
    return ExamSession(
        mode=session.mode,
        length=session.length,
        status=ExamStatus.awaiting_start if session.is_timed else ExamStatus.in_progress,
        questions=list(session.questions),
        time_limit=session.time_limit,
        time_remaining=session.time_limit,
        start_time=now,
        last_tick_at=now,
    )


def cancel(session: ExamSession) -> None:
    """시험 중단. 세션은 호출자가 버린다 (이어풀기 스냅샷은 그대로)."""
    logger.info(f"시험 취소: mode={session.mode.value}, length={session.length.value}, position={session.position}")
