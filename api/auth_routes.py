"""
api/auth_routes.py — 회원가입 / 로그인 / 로그아웃 / 세션 복원
"""

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import get_auth, optional_user
from aws_mock_exam.services.auth_service import AuthSessionManager

router = APIRouter(prefix="/api/auth")


class CredentialsBody(BaseModel):
    username: str
    password: str


@router.post("/signup")
async def sign_up(body: CredentialsBody, auth: AuthSessionManager = Depends(get_auth)):
    user = await asyncio.to_thread(auth.sign_up, body.username.strip(), body.password)
    return {"user": user.model_dump(mode="json")}


@router.post("/signin")
async def sign_in(body: CredentialsBody, auth: AuthSessionManager = Depends(get_auth)):
    user = await asyncio.to_thread(auth.sign_in, body.username.strip(), body.password)
    return {"user": user.model_dump(mode="json")}


@router.post("/signout")
async def sign_out(auth: AuthSessionManager = Depends(get_auth)):
    await asyncio.to_thread(auth.sign_out)
    return {"ok": True}


@router.get("/me")
async def me(user=Depends(optional_user)):
    """캐시된 사용자 (백엔드 확인 없음)."""
    return {"user": user.model_dump(mode="json") if user else None}


@router.post("/session")
async def restore_session(auth: AuthSessionManager = Depends(get_auth)):
    """앱 시작 시 호출 — 백엔드 세션 확인 + 7일 제한 적용."""
    user = await asyncio.to_thread(auth.restore_session)
    return {"user": user.model_dump(mode="json") if user else None}
