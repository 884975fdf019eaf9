"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
상태 전이 로직은 services/exam_service.py 에 있다.
"""

import time
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from aws_mock_exam.models.question_model import Answer, Question


class ExamMode(str, Enum):
    practice = "practice"   # 문제별 즉시 채점, 시간 제한 없음
    exam = "exam"           # 시간 제한, 제출 후 일괄 채점


class ExamLength(str, Enum):
    short = "short"
    full = "full"


class ExamStatus(str, Enum):
    awaiting_start = "awaiting_start"   # 실전 모드: 시작 확인 대기
    in_progress = "in_progress"
    completed = "completed"


class QuestionResult(BaseModel):
    """문제 한 개의 채점 결과."""
    index: int
    question: Question
    user_answer: Optional[Answer] = None
    correct_answer: Answer
    is_correct: bool


class ExamOutcome(BaseModel):
    """
    finish() 결과. 세션에 캐시되어 두 번째 호출부터는 그대로 반환된다.

    Attributes:
        correct_count:   정답 수.
        total:           전체 문제 수.
        score:           1000점 만점 환산 점수.
        passed:          score >= PASS_SCORE.
        grade:           백분율 기준 등급 (A+ ~ F).
        elapsed_seconds: 소요 시간 (초).
    """
    results: List[QuestionResult]
    correct_count: int
    total: int
    score: int
    passed: bool
    grade: str
    elapsed_seconds: int
    category_scores: List[Dict[str, object]] = Field(default_factory=list)
    difficulty_scores: List[Dict[str, object]] = Field(default_factory=list)
    completed_at: float = Field(default_factory=time.time)

    @property
    def incorrect_results(self) -> List[QuestionResult]:
        return [r for r in self.results if not r.is_correct]


class ExamSession(BaseModel):
    """
    사용자의 시험 세션 전체 상태를 표현하는 모델.

    Attributes:
        mode / length:        시험 모드와 분량.
        status:               awaiting_start → in_progress → completed.
        questions:            출제된 문제 (출제 후 순서 고정).
        position:             현재 문제 인덱스 (0-based).
        answers:              위치별 답안 슬롯. None / SingleAnswer / MultipleAnswer.
        time_limit:           제한 시간 (초). 연습 모드는 None.
        time_remaining:       남은 시간 (초). 연습 모드는 None.
        start_time:           시험 시작 시각 (Unix timestamp).
        last_tick_at:         타이머가 마지막으로 반영된 시각.
        show_current_answer:  연습 모드에서 현재 문제 정답 공개 여부.
        outcome:              채점 결과 (완료 후).
        result_saved:         결과 저장 시도 여부 (중복 저장 방지).
    """

    mode: ExamMode
    length: ExamLength
    status: ExamStatus = ExamStatus.in_progress
    questions: List[Question] = Field(..., min_length=1)
    position: int = Field(default=0, ge=0)
    answers: List[Optional[Answer]] = Field(default_factory=list)
    time_limit: Optional[int] = None
    time_remaining: Optional[int] = None
    start_time: float = Field(default_factory=time.time)
    last_tick_at: float = Field(default_factory=time.time)
    show_current_answer: bool = False
    outcome: Optional[ExamOutcome] = None
    result_saved: bool = False

    @model_validator(mode="after")
    def fill_answer_slots(self) -> "ExamSession":
        if not self.answers:
            self.answers = [None] * len(self.questions)
        if len(self.answers) != len(self.questions):
            raise ValueError("답안 슬롯 수와 문제 수가 다릅니다.")
        if self.position >= len(self.questions):
            raise ValueError("현재 위치가 문제 범위를 벗어났습니다.")
        return self

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.position]

    @property
    def current_answer(self) -> Optional[Answer]:
        return self.answers[self.position]

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.answers if a is not None)

    @property
    def is_timed(self) -> bool:
        return self.mode == ExamMode.exam

    @property
    def is_completed(self) -> bool:
        return self.status == ExamStatus.completed

    @property
    def is_full_practice(self) -> bool:
        return self.mode == ExamMode.practice and self.length == ExamLength.full


class ResumeSnapshot(BaseModel):
    """
    전체 연습(practice/full) 이어풀기 스냅샷. 사용자당 하나.

    answers 는 저장소 원본 형태 (None / "A" / ["A", "C"]).
    """
    question_ids: List[str] = Field(..., min_length=1)
    position: int = Field(..., ge=1)
    answers: List[Optional[Union[str, List[str]]]] = Field(default_factory=list)
    start_time: float
    saved_at: float = Field(default_factory=time.time)
