"""
services/resume_service.py

전체 연습(practice/full) 이어풀기.

- 저장 조건: 전체 연습 + 진행 중 + position >= 1.
  첫 문제에서 창을 닫은 사용자는 다음에 처음부터 시작한다.
- 저장 시점: 네비게이션 라우트가 save_progress() 를 명시적으로 호출한다.
- 복원: 저장된 문제 id 를 현재 문제은행에서 다시 찾고, 하나라도 없으면
  현재 문제은행 전체(저장 순서)로 대체한다. 위치는 최소 1.
"""

import logging
import time
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from aws_mock_exam.backends.base import LocalStorage
from aws_mock_exam.models.question_model import MultipleAnswer, Question, answer_from_raw
from aws_mock_exam.models.session_state import ExamLength, ExamMode, ExamSession, ExamStatus, ResumeSnapshot

logger = logging.getLogger(__name__)


def snapshot_key(user_id: str) -> str:
    return f"resume:{user_id}:practice_full"


def _slot_from_raw(question: Question, raw: Any):
    """저장된 답을 현재 문제 형태에 맞춰 복원. 형태가 다르면 None."""
    if raw is None or raw == [] or raw == "":
        return None
    wants_multiple = isinstance(question.answer, MultipleAnswer)
    if wants_multiple != isinstance(raw, list):
        return None
    try:
        slot = answer_from_raw(raw)
    except ValidationError:
        return None
    if any(x not in question.options for x in slot.letters):
        return None
    return slot


class ResumeService:
    def __init__(self, storage: LocalStorage):
        self.storage = storage

    @staticmethod
    def qualifies(session: ExamSession) -> bool:
        return (
            session.is_full_practice
            and session.status == ExamStatus.in_progress
            and session.position >= 1
        )

    def save_progress(self, user_id: Optional[str], session: ExamSession) -> bool:
        """조건을 만족할 때만 저장 (마지막 쓰기 우선). 저장했으면 True."""
        if not user_id or not self.qualifies(session):
            return False
        snapshot = ResumeSnapshot(
            question_ids=[q.id for q in session.questions],
            position=session.position,
            answers=[a.to_raw() if a is not None else None for a in session.answers],
            start_time=session.start_time,
        )
        self.storage.set(snapshot_key(user_id), snapshot.model_dump(mode="json"))
        logger.info(f"이어풀기 저장: user={user_id}, position={session.position}")
        return True

    def load_snapshot(self, user_id: str) -> Optional[ResumeSnapshot]:
        """형식이 맞지 않는 스냅샷은 없는 것으로 본다."""
        raw = self.storage.get(snapshot_key(user_id))
        if not isinstance(raw, dict):
            return None
        try:
            return ResumeSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"이어풀기 스냅샷 형식 오류 → 무시 (user={user_id}): {e.error_count()}개 오류")
            return None

    def clear(self, user_id: str) -> None:
        self.storage.remove(snapshot_key(user_id))

    def restore(
        self,
        snapshot: ResumeSnapshot,
        bank: Sequence[Question],
        now: Optional[float] = None,
    ) -> Optional[ExamSession]:
        """
        스냅샷 → 진행 중 세션. 문제가 2개 미만이라 position >= 1 을 만들 수 없으면 None.
        """
        by_id = {q.id: q for q in bank}
        saved_answers = {
            qid: snapshot.answers[i] if i < len(snapshot.answers) else None
            for i, qid in enumerate(snapshot.question_ids)
        }

        if all(qid in by_id for qid in snapshot.question_ids):
            questions: List[Question] = [by_id[qid] for qid in snapshot.question_ids]
        else:
            logger.warning("이어풀기: 사라진 문제가 있어 현재 문제은행 전체로 대체")
            questions = list(bank)

        if len(questions) < 2:
            return None

        answers = [_slot_from_raw(q, saved_answers.get(q.id)) for q in questions]
        position = min(max(1, snapshot.position), len(questions) - 1)
        return ExamSession(
            mode=ExamMode.practice,
            length=ExamLength.full,
            status=ExamStatus.in_progress,
            questions=questions,
            position=position,
            answers=answers,
            start_time=snapshot.start_time,
            last_tick_at=time.time() if now is None else now,
        )
