"""
services/admin_service.py

관리자 기능: 문제은행 CRUD/검색, 사용자 역할 관리, 전체 응시 기록.
모든 호출에서 role == admin 을 확인한다 (백엔드 권한 정책과 별개의 앱 측 확인).
"""

import logging
from typing import Any, Dict, List, Optional

from aws_mock_exam.backends.base import ProfileStore, QuestionStore, ResultStore
from aws_mock_exam.errors import InputValidationError, NotFoundError, PermissionDeniedError
from aws_mock_exam.models.question_model import MultipleAnswer, Question
from aws_mock_exam.models.result_model import (
    DashboardStats, ExamResultRecord, QuestionPage, QuestionStats,
)
from aws_mock_exam.models.user_model import Role, User
from aws_mock_exam.services.question_bank import (
    question_to_row, row_to_question, rows_to_questions, validate_question_payload,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def require_admin(user: Optional[User]) -> User:
    if user is None or user.role != Role.admin:
        raise PermissionDeniedError()
    return user


class AdminService:
    def __init__(self, questions: QuestionStore, profiles: ProfileStore, results: ResultStore):
        self.questions = questions
        self.profiles = profiles
        self.results = results

    # ── 문제은행 ───────────────────────────────────────────────────────────

    def list_questions(self, user: Optional[User], keyword: str = "", offset: int = 0, limit: int = 20) -> QuestionPage:
        """total 은 백엔드가 센 일치 행 수다. 변환할 수 없는 행도 포함되므로 items 보다 클 수 있다."""
        require_admin(user)
        if offset < 0 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise InputValidationError(f"offset >= 0, 1 <= limit <= {MAX_PAGE_SIZE} 이어야 합니다.")
        rows, total = self.questions.search_questions((keyword or "").strip(), offset, limit)
        items = rows_to_questions(rows)
        if len(items) < len(rows):
            logger.warning(f"문제 목록: 변환 실패 {len(rows) - len(items)}건 제외 (total={total} 은 백엔드 기준)")
        return QuestionPage(items=items, total=total, offset=offset, limit=limit)

    def get_question(self, user: Optional[User], question_id: str) -> Question:
        require_admin(user)
        row = self.questions.get_question(question_id)
        if not row:
            raise NotFoundError("문제를 찾을 수 없습니다.")
        return row_to_question(row)

    def create_question(self, user: Optional[User], payload: Dict[str, Any]) -> Question:
        admin = require_admin(user)
        question = validate_question_payload(payload)
        row = {**question_to_row(question), "created_by": admin.id}
        saved = self.questions.insert_question(row)
        logger.info(f"문제 추가: {saved.get('id')} (by {admin.username})")
        return row_to_question(saved)

    def update_question(self, user: Optional[User], question_id: str, payload: Dict[str, Any]) -> Question:
        admin = require_admin(user)
        question = validate_question_payload(payload, question_id)
        saved = self.questions.update_question(question_id, question_to_row(question))
        if not saved:
            raise NotFoundError("문제를 찾을 수 없습니다.")
        logger.info(f"문제 수정: {question_id} (by {admin.username})")
        return row_to_question(saved)

    def delete_question(self, user: Optional[User], question_id: str) -> None:
        admin = require_admin(user)
        self.questions.delete_question(question_id)
        logger.info(f"문제 삭제: {question_id} (by {admin.username})")

    def question_stats(self, user: Optional[User]) -> QuestionStats:
        require_admin(user)
        questions = rows_to_questions(self.questions.list_questions())
        return QuestionStats(
            total=len(questions),
            four_options=sum(1 for q in questions if len(q.options) == 4),
            five_options=sum(1 for q in questions if len(q.options) == 5),
            multiple_answer=sum(1 for q in questions if isinstance(q.answer, MultipleAnswer)),
        )

    # ── 사용자 / 기록 ──────────────────────────────────────────────────────

    def list_users(self, user: Optional[User]) -> List[User]:
        require_admin(user)
        return [User.model_validate(r) for r in self.profiles.list_profiles()]

    def update_user_role(self, user: Optional[User], user_id: str, role: Role) -> None:
        admin = require_admin(user)
        if not self.profiles.update_role(user_id, Role(role).value):
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        logger.info(f"사용자 역할 업데이트 완료: {user_id} → {Role(role).value} (by {admin.username})")

    def list_all_results(self, user: Optional[User]) -> List[ExamResultRecord]:
        require_admin(user)
        return [ExamResultRecord.model_validate(r) for r in self.results.list_all_results()]

    def dashboard_stats(self, user: Optional[User]) -> DashboardStats:
        require_admin(user)
        users = self.profiles.list_profiles()
        results = self.results.list_all_results()
        total_quizzes = len(results)
        score_sum = sum(r["score"] for r in results)
        average = (score_sum * 2 + total_quizzes) // (total_quizzes * 2) if total_quizzes else 0
        active_ids = {r["user_id"] for r in results}
        return DashboardStats(
            total_users=len(users),
            total_quizzes=total_quizzes,
            average_score=average,
            active_users=sum(1 for u in users if u["id"] in active_ids),
        )
