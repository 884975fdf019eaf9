from aws_mock_exam.backends.memory import MemoryResultStore
from aws_mock_exam.errors import BackendError
from aws_mock_exam.models.result_model import ExamResultRecord
from aws_mock_exam.models.session_state import ExamLength, ExamMode
from aws_mock_exam.models.user_model import User
from aws_mock_exam.services import exam_service as es
from aws_mock_exam.services.result_service import ResultService, summarize

USER = User(id="u1", username="alice01")


class DetailFailingStore(MemoryResultStore):
    def insert_question_results(self, rows):
        raise BackendError("detail insert failed")


def _finished(bank, clock, rng, letters):
    session = es.start_exam(bank, ExamMode.exam, ExamLength.short, now=clock(), rng=rng)
    es.confirm_start(session, clock())
    for i, letter in enumerate(letters):
        es.go_to_question(session, i)
        es.select_answer(session, letter)
    clock.advance(100)
    es.sync_timer(session, clock())
    return session, es.finish(session, clock())


def test_anonymous_result_is_not_saved(bank, clock, rng):
    store = MemoryResultStore()
    session, outcome = _finished(bank, clock, rng, "AA")

    assert ResultService(store).persist_result(None, session, outcome) is None
    assert store.list_results("u1") == []


def test_persist_writes_record_and_details(bank, clock, rng):
    store = MemoryResultStore()
    service = ResultService(store)
    session, outcome = _finished(bank, clock, rng, "AAB")

    result_id = service.persist_result(USER, session, outcome)

    [row] = store.list_results("u1")
    assert row["id"] == result_id
    assert row["quiz_mode"] == "exam"
    assert row["quiz_length"] == "short"
    assert row["correct_answers"] == 2
    assert row["total_questions"] == 5
    assert row["score"] == 400
    assert row["time_taken"] == 100

    details = store.question_results_for(result_id)
    assert len(details) == 5
    assert [d["user_answer"] for d in details] == ["A", "A", "B", "", ""]
    assert [d["is_correct"] for d in details] == [True, True, False, False, False]


def test_detail_failure_does_not_lose_result(bank, clock, rng):
    store = DetailFailingStore()
    session, outcome = _finished(bank, clock, rng, "A")

    assert ResultService(store).persist_result(USER, session, outcome) is not None
    assert len(store.list_results("u1")) == 1


def test_history_is_newest_first(bank, clock, rng):
    service = ResultService(MemoryResultStore())
    for letters in ("A", "AAAAA"):
        session, outcome = _finished(bank, clock, rng, letters)
        service.persist_result(USER, session, outcome)

    history = service.history("u1")
    assert [h.score for h in history] == [1000, 200]


def test_summarize():
    def record(score, time_taken):
        return ExamResultRecord(
            user_id="u1", quiz_mode="exam", quiz_length="short", total_questions=20,
            correct_answers=0, score=score, time_taken=time_taken, started_at="2024-01-01T00:00:00+00:00",
        )

    stats = summarize([record(700, 600), record(855, 300), record(1000, None)])
    assert stats.total_exams == 3
    assert stats.average_score == 852
    assert stats.best_score == 1000
    assert stats.total_time == 900

    assert summarize([]).total_exams == 0

    # 726.5 는 짝수 쪽이 아니라 위로 올린다
    assert summarize([record(726, 60), record(727, 60)]).average_score == 727
    assert summarize([record(724, 60), record(725, 60)]).average_score == 725
