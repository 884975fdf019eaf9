"""
api/routes.py — 시험 진행 / 이어풀기 / 응시 기록 엔드포인트
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

import api.session as session
from api.deps import get_ctx, get_device_id, optional_user, require_user
from aws_mock_exam.context import AppContext
from aws_mock_exam.errors import BackendError, NotFoundError
from aws_mock_exam.models.question_model import Question
from aws_mock_exam.models.session_state import ExamLength, ExamMode, ExamSession
from aws_mock_exam.models.user_model import User
from aws_mock_exam.services import exam_service
from aws_mock_exam.services.result_service import summarize

logger = logging.getLogger(__name__)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartExamBody(BaseModel):
    mode: ExamMode
    length: ExamLength

class SelectAnswerBody(BaseModel):
    letter: str

class NavigateBody(BaseModel):
    index: int = 0


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _question_to_dict(q: Question, reveal: bool) -> dict:
    """정답/해설은 reveal 일 때만 내려준다."""
    d = {
        "id": q.id,
        "question_text": q.question_text,
        "options": q.options,
        "is_multiple": q.is_multiple,
        "answer_count": len(q.answer.letters),
        "category": q.category,
        "difficulty": q.difficulty.value,
    }
    if reveal:
        d["answer"] = q.answer.to_raw()
        d["explanation"] = q.explanation
    return d


def _raw(answer):
    return answer.to_raw() if answer is not None else None


def _state_to_dict(sid: str, exam: ExamSession) -> dict:
    return {
        "mode": exam.mode.value,
        "length": exam.length.value,
        "status": exam.status.value,
        "position": exam.position,
        "total": exam.total,
        "answered_count": exam.answered_count,
        "answers": [_raw(a) for a in exam.answers],
        "time_limit": exam.time_limit,
        "time_remaining": exam.time_remaining,
        "start_time": exam.start_time,
        "show_current_answer": exam.show_current_answer,
        "question": _question_to_dict(
            exam.current_question, exam.show_current_answer or exam.is_completed
        ),
        "current_answer": _raw(exam.current_answer),
        "used_fallback": session.get(sid, "used_fallback", False),
        "result_saved": exam.result_saved,
    }


def _require_exam(sid: str) -> ExamSession:
    exam: Optional[ExamSession] = session.get(sid, "exam")
    if exam is None:
        raise NotFoundError("시험 세션이 없습니다.")
    return exam


async def _persist_if_completed(ctx: AppContext, sid: str, user: Optional[User], exam: ExamSession) -> None:
    """
    완료된 세션의 결과를 한 번만 저장한다.
    result_saved 를 먼저 세운 뒤 저장하므로 타이머 만료와 수동 제출이 겹쳐도 중복 저장되지 않는다.
    저장이 실패하면 result_saved 를 되돌리고 이어풀기 스냅샷도 남겨둔다 (제출 재시도 가능).
    """
    if not exam.is_completed or exam.result_saved:
        return
    exam.result_saved = True

    try:
        result_id = await asyncio.to_thread(
            ctx.result_service.persist_result, user, exam, exam.outcome
        )
    except BackendError as e:
        exam.result_saved = False
        logger.error(f"퀴즈 결과 저장 오류 (재제출 대기): {e}")
        return
    session.put(sid, "result_id", result_id)

    if user is not None and exam.is_full_practice:
        await asyncio.to_thread(ctx.resume_service.clear, user.id)


async def _sync(ctx: AppContext, sid: str, user: Optional[User]) -> ExamSession:
    """타이머를 현재 시각에 맞추고, 이번에 시간이 다 되어 제출되었으면 결과를 저장한다."""
    exam = _require_exam(sid)
    was_completed = exam.is_completed
    exam_service.sync_timer(exam, ctx.clock())
    if not was_completed:
        await _persist_if_completed(ctx, sid, user, exam)
    return exam


async def _save_progress(ctx: AppContext, user: Optional[User], exam: ExamSession) -> None:
    if user is not None:
        await asyncio.to_thread(ctx.resume_service.save_progress, user.id, exam)


# ── 시험 진행 ────────────────────────────────────────────────────────────────

@router.post("/api/exam/start")
async def start_exam(
    body: StartExamBody,
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
):
    bank, used_fallback = await asyncio.to_thread(ctx.load_bank)
    exam = exam_service.start_exam(bank, body.mode, body.length, now=ctx.clock(), rng=ctx.rng)
    session.reset(sid)
    session.put(sid, "exam", exam)
    session.put(sid, "used_fallback", used_fallback)
    return _state_to_dict(sid, exam)


@router.post("/api/exam/confirm")
async def confirm_start(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
):
    exam = _require_exam(sid)
    exam_service.confirm_start(exam, ctx.clock())
    return _state_to_dict(sid, exam)


@router.get("/api/exam/state")
async def get_exam_state(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    return _state_to_dict(sid, exam)


@router.get("/api/exam/question/{index}")
async def get_question(
    index: int,
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    if not (0 <= index < exam.total):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")
    reveal = exam.is_completed or (index == exam.position and exam.show_current_answer)
    d = _question_to_dict(exam.questions[index], reveal)
    d.update({"saved_answer": _raw(exam.answers[index]), "index": index, "total": exam.total})
    return d


@router.post("/api/exam/answer")
async def select_answer(
    body: SelectAnswerBody,
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    exam_service.select_answer(exam, body.letter)
    await _save_progress(ctx, user, exam)
    return _state_to_dict(sid, exam)


@router.post("/api/exam/reveal")
async def reveal_answer(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    exam_service.reveal_answer(exam)
    return _state_to_dict(sid, exam)


@router.post("/api/exam/next")
async def next_question(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    exam_service.next_question(exam, ctx.clock())
    await _persist_if_completed(ctx, sid, user, exam)
    await _save_progress(ctx, user, exam)
    return _state_to_dict(sid, exam)


@router.post("/api/exam/previous")
async def previous_question(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    exam_service.previous_question(exam)
    await _save_progress(ctx, user, exam)
    return _state_to_dict(sid, exam)


@router.post("/api/exam/navigate")
async def navigate(
    body: NavigateBody,
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    exam_service.go_to_question(exam, body.index)
    await _save_progress(ctx, user, exam)
    return _state_to_dict(sid, exam)


@router.post("/api/exam/finish")
async def finish_exam(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    outcome = exam_service.finish(exam, ctx.clock())
    await _persist_if_completed(ctx, sid, user, exam)
    return {
        "score": outcome.score,
        "passed": outcome.passed,
        "result_id": session.get(sid, "result_id"),
        "saved": session.get(sid, "result_id") is not None,
        "ok": True,
    }


@router.post("/api/exam/cancel")
async def cancel_exam(sid: str = Depends(get_device_id)):
    """진행 중 시험을 버린다. 이어풀기 스냅샷은 남겨둔다."""
    exam: Optional[ExamSession] = session.get(sid, "exam")
    if exam is not None:
        exam_service.cancel(exam)
    session.reset(sid)
    return {"ok": True}


@router.post("/api/exam/retry")
async def retry_exam(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
):
    exam = exam_service.retry_exam(_require_exam(sid), ctx.clock())
    session.put(sid, "exam", exam)
    session.put(sid, "result_id", None)
    return _state_to_dict(sid, exam)


@router.get("/api/exam/results")
async def get_results(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: Optional[User] = Depends(optional_user),
):
    exam = await _sync(ctx, sid, user)
    if not exam.is_completed:
        raise HTTPException(status_code=400, detail="시험이 아직 제출되지 않았습니다.")
    outcome = exam.outcome

    incorrect_data = []
    for r in outcome.incorrect_results:
        d = _question_to_dict(r.question, reveal=True)
        d.update({"index": r.index, "user_answer": _raw(r.user_answer)})
        incorrect_data.append(d)

    unanswered = sum(1 for r in outcome.results if r.user_answer is None)
    return {
        "mode": exam.mode.value,
        "length": exam.length.value,
        "score": outcome.score,
        "passed": outcome.passed,
        "grade": outcome.grade,
        "total": outcome.total,
        "correct_count": outcome.correct_count,
        "incorrect_count": outcome.total - outcome.correct_count - unanswered,
        "unanswered_count": unanswered,
        "elapsed_seconds": outcome.elapsed_seconds,
        "category_scores": outcome.category_scores,
        "difficulty_scores": outcome.difficulty_scores,
        "incorrect_questions": incorrect_data,
        "result_id": session.get(sid, "result_id"),
        "saved": session.get(sid, "result_id") is not None,
    }


# ── 이어풀기 (전체 연습) ─────────────────────────────────────────────────────

@router.get("/api/resume")
async def get_resume(
    ctx: AppContext = Depends(get_ctx),
    user: User = Depends(require_user),
):
    snapshot = await asyncio.to_thread(ctx.resume_service.load_snapshot, user.id)
    if snapshot is None:
        return {"available": False}
    return {
        "available": True,
        "position": snapshot.position,
        "total": len(snapshot.question_ids),
        "answered_count": sum(1 for a in snapshot.answers if a not in (None, "", [])),
        "saved_at": snapshot.saved_at,
    }


@router.post("/api/resume")
async def restore_resume(
    ctx: AppContext = Depends(get_ctx),
    sid: str = Depends(get_device_id),
    user: User = Depends(require_user),
):
    snapshot = await asyncio.to_thread(ctx.resume_service.load_snapshot, user.id)
    if snapshot is None:
        raise NotFoundError("이어풀 기록이 없습니다.")
    bank, used_fallback = await asyncio.to_thread(ctx.load_bank)
    exam = ctx.resume_service.restore(snapshot, bank, ctx.clock())
    if exam is None:
        await asyncio.to_thread(ctx.resume_service.clear, user.id)
        raise NotFoundError("이어풀 기록을 복원할 수 없습니다.")
    session.reset(sid)
    session.put(sid, "exam", exam)
    session.put(sid, "used_fallback", used_fallback)
    logger.info(f"이어풀기 복원: user={user.id}, position={exam.position}")
    return _state_to_dict(sid, exam)


@router.delete("/api/resume")
async def discard_resume(
    ctx: AppContext = Depends(get_ctx),
    user: User = Depends(require_user),
):
    await asyncio.to_thread(ctx.resume_service.clear, user.id)
    return {"ok": True}


# ── 응시 기록 ────────────────────────────────────────────────────────────────

@router.get("/api/history")
async def get_history(
    ctx: AppContext = Depends(get_ctx),
    user: User = Depends(require_user),
):
    history = await asyncio.to_thread(ctx.result_service.history, user.id)
    return {
        "items": [h.model_dump(mode="json") for h in history],
        "stats": summarize(history).model_dump(),
    }
