"""
api/app.py — FastAPI 앱 인스턴스 + 기기 쿠키 미들웨어 + 서비스 예외 핸들러
"""

import logging
import threading
import time
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import api.session as session
from api.admin_routes import router as admin_router
from api.auth_routes import router as auth_router
from api.config import ALLOWED_ORIGINS, CLEANUP_INTERVAL, DEVICE_COOKIE, DEVICE_COOKIE_MAX_AGE
from api.routes import router
from aws_mock_exam.context import AppContext, build_context
from aws_mock_exam.errors import ExamAppError

logger = logging.getLogger(__name__)


def create_app(ctx: Optional[AppContext] = None) -> FastAPI:
    app = FastAPI(title="AWS Mock Exam", docs_url=None, redoc_url=None)
    app.state.ctx = ctx or build_context()

    # CORS (프론트엔드 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 기기 쿠키 미들웨어: 쿠키에서 기기 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def device_middleware(request: Request, call_next):
        sid = request.cookies.get(DEVICE_COOKIE) or session.new_device_id()
        session.ensure_session(sid)

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=DEVICE_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=DEVICE_COOKIE_MAX_AGE,
        )
        return response

    # 서비스 예외 → {"detail": 메시지}
    @app.exception_handler(ExamAppError)
    async def exam_app_error_handler(request: Request, exc: ExamAppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} 실패: {exc!r}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    app.include_router(router)
    app.include_router(auth_router)
    app.include_router(admin_router)

    @app.get("/api/health")
    async def health():
        return {"ok": True}

    # 만료된 시험 상태 주기적 정리 (5분마다)
    def _cleanup_loop():
        while True:
            time.sleep(CLEANUP_INTERVAL)
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"만료 세션 {removed}개 정리")

    t = threading.Thread(target=_cleanup_loop, daemon=True)
    t.start()

    return app
