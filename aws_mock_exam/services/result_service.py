"""
services/result_service.py

응시 결과 저장 및 기록 조회.
로그인하지 않은 사용자의 결과는 화면에만 보여주고 저장하지 않는다.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from aws_mock_exam.backends.base import ResultStore
from aws_mock_exam.errors import BackendError
from aws_mock_exam.models.result_model import ExamResultRecord, HistoryStats, QuestionResultRecord
from aws_mock_exam.models.session_state import ExamOutcome, ExamSession
from aws_mock_exam.models.user_model import User

logger = logging.getLogger(__name__)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _raw(answer, multiple: bool):
    if answer is None:
        return [] if multiple else ""
    return answer.to_raw()


def build_question_results(outcome: ExamOutcome) -> List[QuestionResultRecord]:
    records = []
    for r in outcome.results:
        multiple = r.question.is_multiple
        records.append(QuestionResultRecord(
            question_index=r.index,
            question_text=r.question.question_text,
            user_answer=_raw(r.user_answer, multiple),
            correct_answer=r.correct_answer.to_raw(),
            is_correct=r.is_correct,
        ))
    return records


def summarize(history: Sequence[ExamResultRecord]) -> HistoryStats:
    """응시 기록 통계. 저장하지 않고 매번 목록에서 계산한다. 평균은 .5 올림."""
    if not history:
        return HistoryStats()
    scores = [h.score for h in history]
    return HistoryStats(
        total_exams=len(history),
        average_score=(sum(scores) * 2 + len(scores)) // (len(scores) * 2),
        best_score=max(scores),
        total_time=sum(h.time_taken or 0 for h in history),
    )


class ResultService:
    def __init__(self, results: ResultStore):
        self.results = results

    def persist_result(
        self,
        user: Optional[User],
        session: ExamSession,
        outcome: ExamOutcome,
    ) -> Optional[str]:
        """
        결과 저장. 비로그인이면 저장하지 않고 None.
        문제별 상세 저장 실패는 로그만 남긴다 (본 결과는 이미 저장됨).

        Returns:
            저장된 quiz_result id.
        """
        if user is None:
            logger.info("비로그인 응시 → 결과 저장 생략")
            return None

        record = ExamResultRecord(
            user_id=user.id,
            quiz_mode=session.mode.value,
            quiz_length=session.length.value,
            total_questions=outcome.total,
            correct_answers=outcome.correct_count,
            score=outcome.score,
            time_taken=outcome.elapsed_seconds,
            started_at=_iso(session.start_time),
            completed_at=_iso(outcome.completed_at),
        )
        saved = self.results.insert_result(record.model_dump(exclude={"id", "username"}))
        result_id = str(saved["id"])

        details = [
            {**d.model_dump(), "quiz_result_id": result_id}
            for d in build_question_results(outcome)
        ]
        try:
            self.results.insert_question_results(details)
        except BackendError as e:
            logger.error(f"문제별 결과 저장 오류 (결과 {result_id}): {e}")

        logger.info(f"퀴즈 결과 저장 완료: {result_id} (user={user.id}, score={outcome.score})")
        return result_id

    def history(self, user_id: str) -> List[ExamResultRecord]:
        """최신순 응시 기록."""
        rows = self.results.list_results(user_id)
        return [ExamResultRecord.model_validate(r) for r in rows]
