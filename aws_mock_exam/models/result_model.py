"""
models/result_model.py

백엔드에 저장되는 응시 기록 모델과 조회용 요약 모델.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from aws_mock_exam.models.question_model import Question


class ExamResultRecord(BaseModel):
    """quiz_results 테이블 한 행. 생성 후 변경하지 않는다."""
    id: Optional[str] = None
    user_id: str
    quiz_mode: str
    quiz_length: str
    total_questions: int
    correct_answers: int
    score: int = Field(..., ge=0, le=1000)
    time_taken: Optional[int] = None
    started_at: str
    completed_at: Optional[str] = None
    username: Optional[str] = None


class QuestionResultRecord(BaseModel):
    """quiz_question_results 테이블 한 행 (문제별 채점 상세)."""
    quiz_result_id: Optional[str] = None
    question_index: int
    question_text: str
    user_answer: Union[str, List[str]]
    correct_answer: Union[str, List[str]]
    is_correct: bool


class HistoryStats(BaseModel):
    """응시 기록 목록에서 계산한 통계 (별도 저장하지 않음)."""
    total_exams: int = 0
    average_score: int = 0
    best_score: int = 0
    total_time: int = 0


class QuestionPage(BaseModel):
    """관리자 문제 목록 페이지."""
    items: List[Question]
    total: int
    offset: int
    limit: int


class DashboardStats(BaseModel):
    total_users: int = 0
    total_quizzes: int = 0
    average_score: int = 0
    active_users: int = 0


class QuestionStats(BaseModel):
    total: int = 0
    four_options: int = 0
    five_options: int = 0
    multiple_answer: int = 0
