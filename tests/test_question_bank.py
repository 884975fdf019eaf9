import json

import pytest
from pydantic import ValidationError

from aws_mock_exam.backends.memory import MemoryQuestionStore
from aws_mock_exam.data.sample_questions import SAMPLE_QUESTIONS
from aws_mock_exam.errors import InputValidationError
from aws_mock_exam.models.question_model import MultipleAnswer, Question, SingleAnswer
from aws_mock_exam.services.question_bank import (
    load_bank, question_to_row, row_to_question, rows_to_questions, validate_question_payload,
)


def test_row_with_json_strings(make_row):
    q = row_to_question(make_row(1, answer=("C", "A"), options=5))

    assert q.answer == MultipleAnswer(letters=("A", "C"))
    assert list(q.options) == ["A", "B", "C", "D", "E"]
    assert q.is_multiple


def test_row_with_single_letter(make_row):
    q = row_to_question(make_row(2, answer="B"))
    assert q.answer == SingleAnswer(letter="B")
    assert not q.is_multiple


def test_question_to_row_encodes_multiple_answer_as_json(make_question):
    row = question_to_row(make_question(1, answer=("A", "B")))
    assert json.loads(row["answer"]) == ["A", "B"]
    assert question_to_row(make_question(2, answer="D"))["answer"] == "D"


def test_question_invariants():
    with pytest.raises(ValidationError):
        Question(id="x", question_text="t", options={"A": "1", "B": "2", "C": "3"}, answer=SingleAnswer(letter="A"))
    with pytest.raises(ValidationError):
        Question(
            id="x", question_text="t",
            options={"A": "1", "B": "2", "C": "3", "G": "4"},
            answer=SingleAnswer(letter="A"),
        )
    with pytest.raises(ValidationError):
        Question(
            id="x", question_text="t",
            options={"A": "1", "B": "2", "C": "3", "D": "4"},
            answer=MultipleAnswer(letters=("A", "E")),
        )


def test_blank_explanation_becomes_none(make_row):
    row = make_row(1)
    row["explanation"] = "   "
    assert row_to_question(row).explanation is None


def test_bad_rows_are_skipped(make_row):
    bad_answer = make_row(2, answer="F")
    broken_json = {**make_row(3), "options": "{not json"}
    questions = rows_to_questions([make_row(1), bad_answer, broken_json, make_row(4)])

    assert [q.id for q in questions] == ["q1", "q4"]


def test_empty_store_falls_back_to_sample_questions():
    questions, used_fallback = load_bank(MemoryQuestionStore())

    assert used_fallback
    assert [q.id for q in questions] == [q.id for q in SAMPLE_QUESTIONS]


def test_store_order_is_kept(make_row):
    store = MemoryQuestionStore([make_row(3), make_row(1), make_row(2)])
    questions, used_fallback = load_bank(store)

    assert not used_fallback
    assert [q.id for q in questions] == ["q3", "q1", "q2"]


@pytest.mark.parametrize("payload", [
    {"question_text": "", "options": {"A": "1", "B": "2", "C": "3", "D": "4"}, "answer": "A"},
    {"question_text": "t", "options": {}, "answer": "A"},
    {"question_text": "t", "options": {"A": "1", "B": "2", "C": "3", "D": "4"}, "answer": []},
    {"question_text": "t", "options": {"A": "1", "B": "2", "C": "3", "D": "4"}, "answer": "E"},
])
def test_invalid_admin_payload(payload):
    with pytest.raises(InputValidationError):
        validate_question_payload(payload)


def test_valid_admin_payload():
    q = validate_question_payload({
        "question_text": "Which services are serverless?",
        "options": {"A": "Lambda", "B": "EC2", "C": "Fargate", "D": "EBS"},
        "answer": ["A", "C"],
        "difficulty": "hard",
    })
    assert q.answer == MultipleAnswer(letters=("A", "C"))
    assert q.difficulty.value == "hard"
