from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    user = "user"
    admin = "admin"


class User(BaseModel):
    """기기에 캐시되는 사용자 정보."""
    id: str
    username: str
    role: Role = Role.user
    created_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


class AuthUser(BaseModel):
    """인증 제공자(IdentityProvider)가 돌려주는 계정 정보."""
    id: str
    email: Optional[str] = None
    username: Optional[str] = Field(None, description="가입 시 metadata 에 저장한 아이디")
    created_at: Optional[str] = None


class AuthTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class AuthSession(BaseModel):
    """로그인/가입 성공 시 인증 제공자가 돌려주는 세션."""
    user: AuthUser
    tokens: Optional[AuthTokens] = None
