"""Supabase 백엔드. 테이블 CRUD + Auth."""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from supabase import AuthError, Client, create_client

from aws_mock_exam.errors import BackendError, InvalidCredentialsError, UsernameTakenError
from aws_mock_exam.models.user_model import AuthSession, AuthTokens, AuthUser

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def make_client_factory(url: str, key: str) -> Callable[[], Client]:
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")

    def factory() -> Client:
        return create_client(url, key)

    return factory


def _execute(query, what: str):
    """쿼리 실행. 실패 시 BackendError (재시도 없음)."""
    try:
        return query.execute()
    except Exception as e:
        logger.error(f"{what} 실패: {e}")
        raise BackendError() from e


def _first(resp) -> Optional[Row]:
    data = resp.data or []
    return data[0] if data else None


# --- Questions ---

class SupabaseQuestionStore:
    def __init__(self, client: Client):
        self.client = client

    def list_questions(self) -> List[Row]:
        q = self.client.table("questions").select("*").order("created_at", desc=False)
        return _execute(q, "문제 조회").data or []

    def search_questions(self, keyword: str, offset: int, limit: int) -> Tuple[List[Row], int]:
        q = self.client.table("questions").select("*", count="exact")
        if keyword:
            q = q.ilike("question_text", f"%{keyword}%")
        q = q.order("created_at", desc=False).range(offset, offset + limit - 1)
        resp = _execute(q, "문제 검색")
        data = resp.data or []
        return data, getattr(resp, "count", None) or len(data)

    def get_question(self, question_id: str) -> Optional[Row]:
        q = self.client.table("questions").select("*").eq("id", question_id).limit(1)
        return _first(_execute(q, "문제 단건 조회"))

    def insert_question(self, row: Row) -> Row:
        resp = _execute(self.client.table("questions").insert(row), "문제 추가")
        return _first(resp) or row

    def update_question(self, question_id: str, row: Row) -> Optional[Row]:
        q = self.client.table("questions").update(row).eq("id", question_id)
        return _first(_execute(q, "문제 수정"))

    def delete_question(self, question_id: str) -> None:
        _execute(self.client.table("questions").delete().eq("id", question_id), "문제 삭제")


# --- User profiles ---

class SupabaseProfileStore:
    def __init__(self, client: Client):
        self.client = client

    def get_profile(self, user_id: str) -> Optional[Row]:
        q = self.client.table("user_profiles").select("*").eq("id", user_id).limit(1)
        return _first(_execute(q, "프로필 조회"))

    def find_profile_by_username(self, username: str) -> Optional[Row]:
        q = self.client.table("user_profiles").select("*").eq("username", username).limit(1)
        return _first(_execute(q, "아이디 중복 확인"))

    def insert_profile(self, row: Row) -> Row:
        resp = _execute(self.client.table("user_profiles").insert(row), "프로필 생성")
        return _first(resp) or row

    def update_role(self, user_id: str, role: str) -> bool:
        q = self.client.table("user_profiles").update({"role": role}).eq("id", user_id)
        return bool(_execute(q, "사용자 역할 업데이트").data)

    def list_profiles(self) -> List[Row]:
        q = self.client.table("user_profiles").select("*").order("created_at", desc=True)
        return _execute(q, "사용자 목록 조회").data or []


# --- Quiz results ---

class SupabaseResultStore:
    def __init__(self, client: Client):
        self.client = client

    def insert_result(self, row: Row) -> Row:
        resp = _execute(self.client.table("quiz_results").insert(row), "퀴즈 결과 저장")
        saved = _first(resp)
        if not saved:
            raise BackendError("퀴즈 결과 저장에 실패했습니다.")
        return saved

    def insert_question_results(self, rows: List[Row]) -> None:
        if rows:
            _execute(self.client.table("quiz_question_results").insert(rows), "문제별 결과 저장")

    def list_results(self, user_id: str) -> List[Row]:
        q = (
            self.client.table("quiz_results")
            .select("*")
            .eq("user_id", user_id)
            .order("completed_at", desc=True)
        )
        return _execute(q, "퀴즈 기록 조회").data or []

    def list_all_results(self) -> List[Row]:
        q = (
            self.client.table("quiz_results")
            .select("*, user_profiles:user_id (username)")
            .order("completed_at", desc=True)
        )
        rows = _execute(q, "전체 퀴즈 결과 조회").data or []
        for row in rows:
            profile = row.pop("user_profiles", None) or {}
            row["username"] = profile.get("username")
        return rows


# --- Auth ---

def _to_auth_user(user) -> AuthUser:
    metadata = getattr(user, "user_metadata", None) or {}
    created_at = getattr(user, "created_at", None)
    return AuthUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        username=metadata.get("username"),
        created_at=created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
    )


def _to_tokens(session) -> Optional[AuthTokens]:
    if session is None:
        return None
    return AuthTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=getattr(session, "expires_at", None),
    )


class SupabaseIdentityProvider:
    """
    Supabase Auth 어댑터.
    클라이언트 하나가 세션 하나를 들고 있으므로 인증 호출마다 새 클라이언트를 만든다.
    """

    def __init__(self, client_factory: Callable[[], Client]):
        self._client_factory = client_factory
        self._listeners = []

    def _emit(self, event: str, user: Optional[AuthUser]) -> None:
        for listener in list(self._listeners):
            listener(event, user)

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> AuthSession:
        client = self._client_factory()
        try:
            resp = client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata},
            })
        except AuthError as e:
            logger.error(f"Supabase Auth 가입 오류: {e}")
            if "already registered" in str(e):
                raise UsernameTakenError("이미 등록된 계정입니다.") from e
            raise BackendError("회원가입 중 오류가 발생했습니다.") from e
        except Exception as e:
            logger.error(f"Supabase Auth 가입 예외: {e}")
            raise BackendError() from e

        if not resp.user:
            raise BackendError("사용자 생성에 실패했습니다.")
        session = AuthSession(user=_to_auth_user(resp.user), tokens=_to_tokens(resp.session))
        self._emit("SIGNED_IN", session.user)
        return session

    def sign_in(self, email: str, password: str) -> AuthSession:
        client = self._client_factory()
        try:
            resp = client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            logger.error(f"Supabase 로그인 오류: {e}")
            if "Invalid login credentials" in str(e):
                raise InvalidCredentialsError() from e
            raise BackendError("로그인 중 오류가 발생했습니다.") from e
        except Exception as e:
            logger.error(f"Supabase 로그인 예외: {e}")
            raise BackendError() from e

        if not resp.user:
            raise InvalidCredentialsError("로그인에 실패했습니다.")
        session = AuthSession(user=_to_auth_user(resp.user), tokens=_to_tokens(resp.session))
        self._emit("SIGNED_IN", session.user)
        return session

    def sign_out(self, tokens: AuthTokens) -> None:
        client = self._client_factory()
        try:
            client.auth.set_session(tokens.access_token, tokens.refresh_token or "")
            client.auth.sign_out()
        except Exception as e:
            logger.error(f"Supabase 로그아웃 오류: {e}")
            raise BackendError() from e
        finally:
            self._emit("SIGNED_OUT", None)

    def get_user(self, tokens: AuthTokens) -> Optional[AuthUser]:
        client = self._client_factory()
        try:
            resp = client.auth.get_user(tokens.access_token)
        except AuthError as e:
            # 만료/폐기된 토큰 → 살아있는 세션 없음
            logger.info(f"Supabase 세션 없음: {e}")
            return None
        except Exception as e:
            logger.error(f"Supabase 세션 조회 오류: {e}")
            raise BackendError() from e
        if resp is None or not resp.user:
            return None
        return _to_auth_user(resp.user)

    def on_auth_state_change(self, listener) -> None:
        self._listeners.append(listener)


def build_supabase_backend(url: str, key: str):
    """(questions, profiles, results, identity) 튜플 생성."""
    factory = make_client_factory(url, key)
    client = factory()
    return (
        SupabaseQuestionStore(client),
        SupabaseProfileStore(client),
        SupabaseResultStore(client),
        SupabaseIdentityProvider(factory),
    )
