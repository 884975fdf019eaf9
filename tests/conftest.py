import json
import random

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from aws_mock_exam.backends.local_storage import MemoryStorage
from aws_mock_exam.backends.memory import (
    MemoryIdentityProvider, MemoryProfileStore, MemoryQuestionStore, MemoryResultStore,
)
from aws_mock_exam.context import AppContext
from aws_mock_exam.models.question_model import MultipleAnswer, Question, SingleAnswer


class FakeClock:
    """time.time 대용. advance() 로만 흐른다."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _letters(count):
    return "ABCDEF"[:count]


@pytest.fixture
def make_question():
    def factory(n, answer="A", options=4, category="SAA", difficulty="medium", text=None):
        ans = SingleAnswer(letter=answer) if isinstance(answer, str) else MultipleAnswer(letters=tuple(answer))
        return Question(
            id=f"q{n}",
            question_text=text or f"Question {n}",
            options={x: f"option {x}" for x in _letters(options)},
            answer=ans,
            category=category,
            difficulty=difficulty,
        )
    return factory


@pytest.fixture
def make_row():
    """저장소 원본 행 (options / 복수 정답은 JSON 문자열)."""
    def factory(n, answer="A", options=4, text=None):
        return {
            "id": f"q{n}",
            "question_text": text or f"Question {n}",
            "options": json.dumps({x: f"option {x}" for x in _letters(options)}),
            "answer": answer if isinstance(answer, str) else json.dumps(list(answer)),
            "explanation": f"Because {n}",
            "category": "SAA",
            "difficulty": "medium",
        }
    return factory


@pytest.fixture
def bank(make_question):
    return [make_question(i) for i in range(1, 6)]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def ctx(clock, rng):
    profiles = MemoryProfileStore()
    return AppContext(
        questions=MemoryQuestionStore(),
        profiles=profiles,
        results=MemoryResultStore(profiles),
        identity=MemoryIdentityProvider(),
        storage=MemoryStorage(),
        clock=clock,
        rng=rng,
    )


@pytest.fixture
def client(ctx):
    with TestClient(create_app(ctx)) as c:
        yield c


@pytest.fixture
def signup(client):
    def do(username="tester1", password="secret123"):
        resp = client.post("/api/auth/signup", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["user"]
    return do
