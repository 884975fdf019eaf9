"""
backends/local_storage.py — 기기 로컬 key-value 저장소

키 규칙:
  device:{device_id}:user                 캐시된 사용자 정보
  device:{device_id}:session_created_at   로그인 시각 (7일 제한 기준)
  device:{device_id}:auth_tokens          백엔드 토큰
  resume:{user_id}:practice_full          이어풀기 스냅샷
"""

import json
import logging
import os
import threading
from typing import Any, Dict

logger = logging.getLogger(__name__)


class MemoryStorage:
    """프로세스 메모리 저장소 (테스트/개발용)."""

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        # 저장 시점 값으로 고정 (호출자가 원본을 수정해도 영향 없음)
        frozen = json.loads(json.dumps(value))
        with self._lock:
            self._data[key] = frozen

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStorage:
    """
    JSON 파일 하나에 전체 키를 보관하는 영속 저장소.
    쓰기는 임시 파일 → os.replace 로 원자적으로 교체한다.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"로컬 저장소 읽기 실패, 빈 저장소로 시작 ({self.path}): {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = json.loads(json.dumps(value))
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()


class NamespacedStorage:
    """하위 저장소의 키 앞에 prefix 를 붙여 기기별로 분리한다."""

    def __init__(self, storage, prefix: str):
        self._storage = storage
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> Any:
        return self._storage.get(self._key(key))

    def set(self, key: str, value: Any) -> None:
        self._storage.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self._storage.remove(self._key(key))
