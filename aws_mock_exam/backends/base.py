"""
backends/base.py

백엔드 포트 정의. 서비스 계층은 이 인터페이스만 알고,
Supabase / 인메모리 구현은 교체 가능하다.

저장소는 원본 행(dict)을 주고받는다. 행 → 모델 변환(JSON 문자열 파싱 등)은
services/question_bank.py 가 한 곳에서 담당한다.
어댑터는 통신/DB 오류를 BackendError 로 감싸서 올린다.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from aws_mock_exam.models.user_model import AuthSession, AuthTokens, AuthUser

Row = Dict[str, Any]
AuthListener = Callable[[str, Optional[AuthUser]], None]


class QuestionStore(Protocol):
    def list_questions(self) -> List[Row]:
        """전체 문제. created_at 오름차순."""
        ...

    def search_questions(self, keyword: str, offset: int, limit: int) -> Tuple[List[Row], int]:
        """question_text 부분 일치 검색 + 페이지. (행 목록, 전체 건수)"""
        ...

    def get_question(self, question_id: str) -> Optional[Row]: ...

    def insert_question(self, row: Row) -> Row: ...

    def update_question(self, question_id: str, row: Row) -> Optional[Row]: ...

    def delete_question(self, question_id: str) -> None: ...


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> Optional[Row]: ...

    def find_profile_by_username(self, username: str) -> Optional[Row]: ...

    def insert_profile(self, row: Row) -> Row: ...

    def update_role(self, user_id: str, role: str) -> bool: ...

    def list_profiles(self) -> List[Row]:
        """created_at 내림차순."""
        ...


class ResultStore(Protocol):
    def insert_result(self, row: Row) -> Row: ...

    def insert_question_results(self, rows: List[Row]) -> None: ...

    def list_results(self, user_id: str) -> List[Row]:
        """해당 사용자 기록. completed_at 내림차순."""
        ...

    def list_all_results(self) -> List[Row]:
        """전체 기록 + username. completed_at 내림차순."""
        ...


class IdentityProvider(Protocol):
    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> AuthSession: ...

    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_out(self, tokens: AuthTokens) -> None: ...

    def get_user(self, tokens: AuthTokens) -> Optional[AuthUser]:
        """토큰에 해당하는 살아있는 세션의 사용자. 없으면 None."""
        ...

    def on_auth_state_change(self, listener: AuthListener) -> None:
        """SIGNED_IN / SIGNED_OUT 이벤트 구독."""
        ...


class LocalStorage(Protocol):
    """기기 로컬 key-value 저장소 (값은 JSON 직렬화 가능한 객체)."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...
