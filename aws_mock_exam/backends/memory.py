"""
backends/memory.py — 인메모리 백엔드

Supabase 와 같은 포트를 프로세스 메모리로 구현한다.
개발 서버(BACKEND=memory)와 테스트에서 사용.
"""

import hashlib
import itertools
import secrets
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from aws_mock_exam.errors import InvalidCredentialsError, UsernameTakenError
from aws_mock_exam.models.user_model import AuthSession, AuthTokens, AuthUser


Row = Dict[str, Any]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryQuestionStore:
    def __init__(self, rows: Optional[List[Row]] = None):
        self._lock = threading.Lock()
        self._rows: List[Row] = []
        for row in rows or []:
            self.insert_question(row)

    def list_questions(self) -> List[Row]:
        # 삽입 순서 == created_at 오름차순
        with self._lock:
            return [dict(r) for r in self._rows]

    def search_questions(self, keyword: str, offset: int, limit: int) -> Tuple[List[Row], int]:
        needle = (keyword or "").lower()
        with self._lock:
            matched = [dict(r) for r in self._rows if needle in str(r.get("question_text", "")).lower()]
        return matched[offset:offset + limit], len(matched)

    def get_question(self, question_id: str) -> Optional[Row]:
        with self._lock:
            for r in self._rows:
                if r["id"] == question_id:
                    return dict(r)
        return None

    def insert_question(self, row: Row) -> Row:
        now = _now_iso()
        new_row = {**row}
        new_row["id"] = str(new_row.get("id") or uuid.uuid4())
        new_row.setdefault("created_at", now)
        new_row.setdefault("updated_at", now)
        with self._lock:
            self._rows.append(new_row)
        return dict(new_row)

    def update_question(self, question_id: str, row: Row) -> Optional[Row]:
        with self._lock:
            for r in self._rows:
                if r["id"] == question_id:
                    r.update({k: v for k, v in row.items() if k not in ("id", "created_at")})
                    r["updated_at"] = _now_iso()
                    return dict(r)
        return None

    def delete_question(self, question_id: str) -> None:
        with self._lock:
            self._rows = [r for r in self._rows if r["id"] != question_id]


class MemoryProfileStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Dict[str, Row] = {}

    def get_profile(self, user_id: str) -> Optional[Row]:
        with self._lock:
            row = self._rows.get(user_id)
            return dict(row) if row else None

    def find_profile_by_username(self, username: str) -> Optional[Row]:
        with self._lock:
            for row in self._rows.values():
                if row["username"] == username:
                    return dict(row)
        return None

    def insert_profile(self, row: Row) -> Row:
        new_row = {"role": "user", "created_at": _now_iso(), **row}
        with self._lock:
            self._rows[new_row["id"]] = new_row
        return dict(new_row)

    def update_role(self, user_id: str, role: str) -> bool:
        with self._lock:
            if user_id not in self._rows:
                return False
            self._rows[user_id]["role"] = role
            return True

    def list_profiles(self) -> List[Row]:
        with self._lock:
            rows = [dict(r) for r in self._rows.values()]
        return list(reversed(rows))


class MemoryResultStore:
    def __init__(self, profiles: Optional[MemoryProfileStore] = None):
        self._lock = threading.Lock()
        self._results: List[Row] = []
        self._details: List[Row] = []
        self._profiles = profiles

    def insert_result(self, row: Row) -> Row:
        new_row = {**row, "id": str(uuid.uuid4())}
        new_row.setdefault("completed_at", _now_iso())
        new_row.setdefault("created_at", new_row["completed_at"])
        with self._lock:
            self._results.append(new_row)
        return dict(new_row)

    def insert_question_results(self, rows: List[Row]) -> None:
        with self._lock:
            self._details.extend(dict(r) for r in rows)

    def list_results(self, user_id: str) -> List[Row]:
        with self._lock:
            rows = [dict(r) for r in self._results if r["user_id"] == user_id]
        return list(reversed(rows))

    def list_all_results(self) -> List[Row]:
        with self._lock:
            rows = [dict(r) for r in self._results]
        for row in rows:
            profile = self._profiles.get_profile(row["user_id"]) if self._profiles else None
            row["username"] = profile["username"] if profile else None
        return list(reversed(rows))

    def question_results_for(self, quiz_result_id: str) -> List[Row]:
        with self._lock:
            return [dict(r) for r in self._details if r["quiz_result_id"] == quiz_result_id]


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000).hex()


class MemoryIdentityProvider:
    """이메일/비밀번호 계정과 액세스 토큰을 메모리에 보관하는 인증 제공자."""

    def __init__(self):
        self._lock = threading.Lock()
        self._accounts: Dict[str, Row] = {}      # email -> account
        self._tokens: Dict[str, str] = {}        # access_token -> user_id
        self._listeners = []
        self._ids = itertools.count(1)

    def _emit(self, event: str, user: Optional[AuthUser]) -> None:
        for listener in list(self._listeners):
            listener(event, user)

    def _issue(self, account: Row) -> AuthSession:
        token = secrets.token_urlsafe(24)
        with self._lock:
            self._tokens[token] = account["id"]
        return AuthSession(
            user=self._to_user(account),
            tokens=AuthTokens(access_token=token, refresh_token=secrets.token_urlsafe(24)),
        )

    @staticmethod
    def _to_user(account: Row) -> AuthUser:
        return AuthUser(
            id=account["id"],
            email=account["email"],
            username=account["metadata"].get("username"),
            created_at=account["created_at"],
        )

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> AuthSession:
        salt = secrets.token_hex(8)
        with self._lock:
            if email in self._accounts:
                raise UsernameTakenError("이미 등록된 계정입니다.")
            account = {
                "id": f"user-{next(self._ids)}-{uuid.uuid4().hex[:8]}",
                "email": email,
                "salt": salt,
                "password_hash": _hash_password(password, salt),
                "metadata": dict(metadata),
                "created_at": _now_iso(),
            }
            self._accounts[email] = account
        session = self._issue(account)
        self._emit("SIGNED_IN", session.user)
        return session

    def sign_in(self, email: str, password: str) -> AuthSession:
        with self._lock:
            account = self._accounts.get(email)
        if not account or _hash_password(password, account["salt"]) != account["password_hash"]:
            raise InvalidCredentialsError()
        session = self._issue(account)
        self._emit("SIGNED_IN", session.user)
        return session

    def sign_out(self, tokens: AuthTokens) -> None:
        user = self.get_user(tokens)
        with self._lock:
            self._tokens.pop(tokens.access_token, None)
        self._emit("SIGNED_OUT", user)

    def get_user(self, tokens: AuthTokens) -> Optional[AuthUser]:
        with self._lock:
            user_id = self._tokens.get(tokens.access_token)
            if user_id is None:
                return None
            account = next((a for a in self._accounts.values() if a["id"] == user_id), None)
        return self._to_user(account) if account else None

    def on_auth_state_change(self, listener) -> None:
        self._listeners.append(listener)

    def revoke_all(self) -> None:
        """모든 토큰 폐기 (백엔드 측 세션 만료 상황 재현용)."""
        with self._lock:
            self._tokens.clear()
