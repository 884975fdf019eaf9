"""
api/admin_routes.py — 관리자 전용 엔드포인트

권한 확인은 AdminService 가 매 호출마다 한다 (비관리자 → 403).
"""

import asyncio
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import get_ctx, require_user
from aws_mock_exam.context import AppContext
from aws_mock_exam.models.question_model import Difficulty
from aws_mock_exam.models.user_model import Role, User

router = APIRouter(prefix="/api/admin")


class QuestionBody(BaseModel):
    question_text: str = ""
    options: Dict[str, str] = {}
    answer: Union[str, List[str], None] = None
    explanation: Optional[str] = None
    category: str = "SAA"
    difficulty: Difficulty = Difficulty.medium


class RoleBody(BaseModel):
    role: Role


# ── 문제은행 ─────────────────────────────────────────────────────────────────

@router.get("/questions")
async def list_questions(
    keyword: str = "",
    offset: int = 0,
    limit: int = 20,
    ctx: AppContext = Depends(get_ctx),
    user: User = Depends(require_user),
):
    page = await asyncio.to_thread(ctx.admin_service.list_questions, user, keyword, offset, limit)
    return page.model_dump(mode="json")


@router.get("/questions/stats")
async def question_stats(ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    stats = await asyncio.to_thread(ctx.admin_service.question_stats, user)
    return stats.model_dump()


@router.get("/questions/{question_id}")
async def get_question(question_id: str, ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    question = await asyncio.to_thread(ctx.admin_service.get_question, user, question_id)
    return question.model_dump(mode="json")


@router.post("/questions", status_code=201)
async def create_question(body: QuestionBody, ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    question = await asyncio.to_thread(ctx.admin_service.create_question, user, body.model_dump(mode="json"))
    return question.model_dump(mode="json")


@router.put("/questions/{question_id}")
async def update_question(
    question_id: str,
    body: QuestionBody,
    ctx: AppContext = Depends(get_ctx),
    user: User = Depends(require_user),
):
    question = await asyncio.to_thread(
        ctx.admin_service.update_question, user, question_id, body.model_dump(mode="json")
    )
    return question.model_dump(mode="json")


@router.delete("/questions/{question_id}")
async def delete_question(question_id: str, ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    await asyncio.to_thread(ctx.admin_service.delete_question, user, question_id)
    return {"ok": True}


# ── 사용자 / 기록 ────────────────────────────────────────────────────────────

@router.get("/users")
async def list_users(ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    users = await asyncio.to_thread(ctx.admin_service.list_users, user)
    return {"items": [u.model_dump(mode="json") for u in users]}


@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: str,
    body: RoleBody,
    ctx: AppContext = Depends(get_ctx),
    user: User = Depends(require_user),
):
    await asyncio.to_thread(ctx.admin_service.update_user_role, user, user_id, body.role)
    return {"ok": True}


@router.get("/results")
async def list_results(ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    results = await asyncio.to_thread(ctx.admin_service.list_all_results, user)
    return {"items": [r.model_dump(mode="json") for r in results]}


@router.get("/stats")
async def dashboard_stats(ctx: AppContext = Depends(get_ctx), user: User = Depends(require_user)):
    stats = await asyncio.to_thread(ctx.admin_service.dashboard_stats, user)
    return stats.model_dump()
