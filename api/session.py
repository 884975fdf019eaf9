"""
api/session.py — 기기별 인메모리 시험 상태 (쿠키 기반)

기기 쿠키(device id)마다 진행 중인 시험 세션을 하나 보관한다.
로그인 정보는 여기 두지 않는다 (기기 저장소의 device:{id}:* 키, auth_service 참고).
TTL(기본 1시간) 동안 접근이 없으면 만료되고, 같은 기기 id 로 빈 상태가 다시 만들어진다.
"""

import threading
import time
import uuid
from typing import Any

from api.config import DEVICE_STATE_TTL

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "exam": None,             # ExamSession
        "used_fallback": False,   # 내장 문제로 출제했는지
        "result_id": None,        # 저장된 결과 id (로그인 응시)
    }


def new_device_id() -> str:
    return uuid.uuid4().hex


def ensure_session(sid: str) -> str:
    """sid 의 상태가 없거나 만료되었으면 새로 만든다. sid 를 그대로 반환."""
    with _lock:
        now = time.time()
        if sid not in _sessions or now - _timestamps[sid] > DEVICE_STATE_TTL:
            _sessions[sid] = _new_state()
        _timestamps[sid] = now
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > DEVICE_STATE_TTL:
            del _sessions[sid]
            del _timestamps[sid]
            return None
        _timestamps[sid] = time.time()  # 접근 시 갱신
        return _sessions[sid]


def get(sid: str, key: str, default=None):
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> None:
    """진행 중 시험 상태 초기화."""
    with _lock:
        if sid in _sessions:
            _sessions[sid] = _new_state()
            _timestamps[sid] = time.time()


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > DEVICE_STATE_TTL]
        for sid in expired:
            del _sessions[sid]
            del _timestamps[sid]
            removed += 1
    return removed
