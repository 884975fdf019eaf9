"""
services/auth_service.py

인증 세션 관리.

AuthSessionManager 는 기기 단위로 만들어지는 평범한 서비스 객체다.
전역 상태 없이, 넘겨받은 기기 저장소(LocalStorage)에만 캐시를 쓴다.

기기 저장소 키:
    user                 {id, username, role, created_at}
    session_created_at   로그인 시각 (Unix timestamp)
    auth_tokens          백엔드 토큰

restore_session() 은 백엔드 세션이 살아 있어도 로그인 후 7일이 지나면
강제로 로그아웃시킨다 (백엔드 토큰 갱신과는 별개의 앱 정책).
"""

import logging
import re
import time
from typing import Callable, Optional

import config
from aws_mock_exam.backends.base import IdentityProvider, LocalStorage, ProfileStore
from aws_mock_exam.errors import BackendError, InputValidationError, UsernameTakenError
from aws_mock_exam.models.user_model import AuthSession, AuthTokens, AuthUser, Role, User

logger = logging.getLogger(__name__)

_USERNAME_RE = re.compile(r"^[A-Za-z0-9]+$")

USER_KEY = "user"
SESSION_CREATED_KEY = "session_created_at"
TOKENS_KEY = "auth_tokens"


def email_for(username: str) -> str:
    return f"{username}@{config.EMAIL_DOMAIN}"


def validate_username(username: str) -> None:
    if not username or not _USERNAME_RE.match(username):
        raise InputValidationError("아이디는 영문과 숫자만 사용 가능합니다.")
    if not config.USERNAME_MIN_LENGTH <= len(username) <= config.USERNAME_MAX_LENGTH:
        raise InputValidationError(
            f"아이디는 {config.USERNAME_MIN_LENGTH}-{config.USERNAME_MAX_LENGTH}자 사이여야 합니다."
        )


def validate_password(password: str) -> None:
    if len(password or "") < config.PASSWORD_MIN_LENGTH:
        raise InputValidationError(f"비밀번호는 {config.PASSWORD_MIN_LENGTH}자 이상이어야 합니다.")


def session_max_age_seconds() -> int:
    return config.SESSION_MAX_AGE_DAYS * 24 * 3600


class AuthSessionManager:
    def __init__(
        self,
        identity: IdentityProvider,
        profiles: ProfileStore,
        storage: LocalStorage,
        clock: Callable[[], float] = time.time,
    ):
        self.identity = identity
        self.profiles = profiles
        self.storage = storage
        self.clock = clock

    # ── 로컬 캐시 ──────────────────────────────────────────────────────────

    def _write_cache(self, user: User, tokens: Optional[AuthTokens], new_session: bool) -> None:
        self.storage.set(USER_KEY, user.model_dump(mode="json"))
        if tokens is not None:
            self.storage.set(TOKENS_KEY, tokens.model_dump(mode="json"))
        if new_session or not isinstance(self.storage.get(SESSION_CREATED_KEY), (int, float)):
            self.storage.set(SESSION_CREATED_KEY, self.clock())

    def clear_cache(self) -> None:
        for key in (USER_KEY, SESSION_CREATED_KEY, TOKENS_KEY):
            self.storage.remove(key)

    def _tokens(self) -> Optional[AuthTokens]:
        raw = self.storage.get(TOKENS_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return AuthTokens.model_validate(raw)
        except ValueError:
            return None

    def current_user(self) -> Optional[User]:
        """캐시된 사용자 (백엔드 호출 없음)."""
        raw = self.storage.get(USER_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return User.model_validate(raw)
        except ValueError:
            self.storage.remove(USER_KEY)
            return None

    # ── 프로필 ─────────────────────────────────────────────────────────────

    def _user_from_profile(self, auth_user: AuthUser, fallback_username: str) -> User:
        try:
            profile = self.profiles.get_profile(auth_user.id)
        except BackendError as e:
            logger.error(f"프로필 조회 오류 → 인증 메타데이터 사용: {e}")
            profile = None
        if not profile:
            return User(
                id=auth_user.id,
                username=auth_user.username or fallback_username,
                role=Role.user,
                created_at=auth_user.created_at,
            )
        return User(
            id=auth_user.id,
            username=profile.get("username") or fallback_username,
            role=profile.get("role") or Role.user,
            created_at=profile.get("created_at") or auth_user.created_at,
        )

    # ── 공개 API ───────────────────────────────────────────────────────────

    def sign_up(self, username: str, password: str) -> User:
        validate_username(username)
        validate_password(password)

        if self.profiles.find_profile_by_username(username):
            raise UsernameTakenError()

        session: AuthSession = self.identity.sign_up(
            email_for(username), password, {"username": username}
        )
        logger.info(f"회원가입 인증 계정 생성: {session.user.id}")

        profile = self.profiles.get_profile(session.user.id)
        if not profile:
            # 트리거가 프로필을 만들지 않은 경우 직접 생성
            profile = self.profiles.insert_profile({
                "id": session.user.id,
                "username": username,
                "role": Role.user.value,
            })

        user = User(
            id=session.user.id,
            username=username,
            role=profile.get("role") or Role.user,
            created_at=session.user.created_at or profile.get("created_at"),
        )
        self._write_cache(user, session.tokens, new_session=True)
        logger.info(f"회원가입 완료: {user.username}")
        return user

    def sign_in(self, username: str, password: str) -> User:
        try:
            validate_username(username)
        except InputValidationError as e:
            raise InputValidationError("올바른 아이디를 입력해주세요.") from e
        if len(password or "") < config.PASSWORD_MIN_LENGTH:
            raise InputValidationError("올바른 비밀번호를 입력해주세요.")

        session = self.identity.sign_in(email_for(username), password)
        user = self._user_from_profile(session.user, username)
        self._write_cache(user, session.tokens, new_session=True)
        logger.info(f"로그인 완료: {user.username}")
        return user

    def sign_out(self) -> None:
        """백엔드 로그아웃이 실패해도 로컬 캐시는 항상 지운다."""
        tokens = self._tokens()
        try:
            if tokens is not None:
                self.identity.sign_out(tokens)
        except BackendError as e:
            logger.error(f"백엔드 로그아웃 실패 (로컬 캐시는 삭제): {e}")
        finally:
            self.clear_cache()
        logger.info("로그아웃 완료")

    def session_expired(self) -> bool:
        """로그인 시각 기준 SESSION_MAX_AGE_DAYS 초과 여부. 기록이 없으면 False."""
        created_at = self.storage.get(SESSION_CREATED_KEY)
        if not isinstance(created_at, (int, float)):
            return False
        return self.clock() - created_at > session_max_age_seconds()

    def restore_session(self) -> Optional[User]:
        """
        백엔드 세션을 다시 읽어 사용자를 복원한다.

        - 토큰 없음 / 백엔드 세션 없음 → 캐시 삭제, None
        - 로그인 후 SESSION_MAX_AGE_DAYS 초과 → 백엔드 로그아웃 + 캐시 삭제, None
        """
        tokens = self._tokens()
        auth_user = self.identity.get_user(tokens) if tokens else None
        if auth_user is None:
            self.clear_cache()
            return None

        if self.session_expired():
            logger.info(f"세션 {config.SESSION_MAX_AGE_DAYS}일 초과 → 강제 로그아웃: {auth_user.id}")
            self.sign_out()
            return None

        cached = self.current_user()
        user = self._user_from_profile(
            auth_user, cached.username if cached and cached.id == auth_user.id else ""
        )
        if not user.username:
            self.clear_cache()
            return None
        self._write_cache(user, None, new_session=False)
        logger.info(f"세션 복원 완료: {user.username}")
        return user
