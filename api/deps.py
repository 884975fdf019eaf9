"""
api/deps.py — 라우트 공용 의존성 (컨텍스트, 기기 id, 로그인 사용자)
"""

import logging
from typing import Optional

from fastapi import Depends, Request

from aws_mock_exam.context import AppContext
from aws_mock_exam.errors import AuthRequiredError, SessionExpiredError
from aws_mock_exam.models.user_model import User
from aws_mock_exam.services.auth_service import AuthSessionManager

logger = logging.getLogger(__name__)


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


def get_device_id(request: Request) -> str:
    return request.state.session_id


def get_auth(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
) -> AuthSessionManager:
    return ctx.auth_manager(sid)


def _cached_user(auth: AuthSessionManager) -> Optional[User]:
    """
    캐시된 사용자. 로그인 후 7일이 지났으면 로그아웃시키고 SessionExpiredError.
    (백엔드 세션 확인은 /api/auth/session 에서만 한다.)
    """
    user = auth.current_user()
    if user is not None and auth.session_expired():
        logger.info(f"세션 만료 → 로그아웃: {user.username}")
        auth.sign_out()
        raise SessionExpiredError()
    return user


def optional_user(auth: AuthSessionManager = Depends(get_auth)) -> Optional[User]:
    try:
        return _cached_user(auth)
    except SessionExpiredError:
        return None


def require_user(auth: AuthSessionManager = Depends(get_auth)) -> User:
    user = _cached_user(auth)
    if user is None:
        raise AuthRequiredError()
    return user
