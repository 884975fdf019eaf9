"""
context.py

앱 전체에서 공유하는 백엔드/서비스 묶음.
전역 싱글턴 대신 create_app(ctx) 에 넘겨서 테스트마다 새로 만든다.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import config
from aws_mock_exam.backends.base import (
    IdentityProvider, LocalStorage, ProfileStore, QuestionStore, ResultStore,
)
from aws_mock_exam.backends.local_storage import JsonFileStorage, MemoryStorage, NamespacedStorage
from aws_mock_exam.backends.memory import (
    MemoryIdentityProvider, MemoryProfileStore, MemoryQuestionStore, MemoryResultStore,
)
from aws_mock_exam.models.question_model import Question
from aws_mock_exam.models.user_model import AuthUser
from aws_mock_exam.services.admin_service import AdminService
from aws_mock_exam.services.auth_service import AuthSessionManager
from aws_mock_exam.services.question_bank import load_bank
from aws_mock_exam.services.result_service import ResultService
from aws_mock_exam.services.resume_service import ResumeService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    questions: QuestionStore
    profiles: ProfileStore
    results: ResultStore
    identity: IdentityProvider
    storage: LocalStorage
    clock: Callable[[], float] = time.time
    rng: Optional[random.Random] = None
    result_service: ResultService = field(init=False)
    resume_service: ResumeService = field(init=False)
    admin_service: AdminService = field(init=False)

    def __post_init__(self):
        self.result_service = ResultService(self.results)
        self.resume_service = ResumeService(self.storage)
        self.admin_service = AdminService(self.questions, self.profiles, self.results)

    def auth_manager(self, device_id: str) -> AuthSessionManager:
        """기기별 인증 관리자. 캐시 키는 device:{device_id}:* 로 분리된다."""
        return AuthSessionManager(
            self.identity,
            self.profiles,
            NamespacedStorage(self.storage, f"device:{device_id}"),
            clock=self.clock,
        )

    def load_bank(self) -> Tuple[List[Question], bool]:
        return load_bank(self.questions)


def _log_auth_event(event: str, user: Optional[AuthUser]) -> None:
    logger.info(f"인증 상태 변경: {event} ({user.id if user else '-'})")


def build_context(backend: str = "", storage_path: str = "") -> AppContext:
    """
    config.BACKEND 에 맞춰 컨텍스트를 만든다.

    - "supabase": SUPABASE_URL / SUPABASE_KEY 필요, 기기 저장소는 JSON 파일
    - "memory":   모든 데이터를 프로세스 메모리에 보관 (개발/테스트용)
    """
    backend = backend or config.BACKEND

    if backend == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise RuntimeError("SUPABASE_URL / SUPABASE_KEY 환경변수가 설정되지 않았습니다.")
        # supabase 패키지는 이 백엔드를 쓸 때만 필요
        from aws_mock_exam.backends.supabase_backend import build_supabase_backend

        questions, profiles, results, identity = build_supabase_backend(
            config.SUPABASE_URL, config.SUPABASE_KEY
        )
        storage = JsonFileStorage(storage_path or config.STORAGE_FILE)
    elif backend == "memory":
        profiles = MemoryProfileStore()
        questions = MemoryQuestionStore()
        results = MemoryResultStore(profiles)
        identity = MemoryIdentityProvider()
        storage = JsonFileStorage(storage_path) if storage_path else MemoryStorage()
    else:
        raise RuntimeError(f"알 수 없는 백엔드: {backend!r}")

    identity.on_auth_state_change(_log_auth_event)
    logger.info(f"백엔드 초기화 완료: {backend}")
    return AppContext(
        questions=questions,
        profiles=profiles,
        results=results,
        identity=identity,
        storage=storage,
    )
