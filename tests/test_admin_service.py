import pytest

from aws_mock_exam.backends.memory import MemoryProfileStore, MemoryQuestionStore, MemoryResultStore
from aws_mock_exam.errors import InputValidationError, NotFoundError, PermissionDeniedError
from aws_mock_exam.models.user_model import Role, User
from aws_mock_exam.services.admin_service import AdminService

ADMIN = User(id="admin-1", username="admin01", role=Role.admin)
MEMBER = User(id="user-1", username="member01")

PAYLOAD = {
    "question_text": "Which service stores objects?",
    "options": {"A": "S3", "B": "EBS", "C": "EFS", "D": "RDS"},
    "answer": "A",
    "explanation": "S3 is object storage.",
}


@pytest.fixture
def profiles():
    store = MemoryProfileStore()
    store.insert_profile({"id": ADMIN.id, "username": ADMIN.username, "role": "admin"})
    store.insert_profile({"id": MEMBER.id, "username": MEMBER.username})
    return store


@pytest.fixture
def admin(profiles, make_row):
    rows = [make_row(i, text=f"EC2 question {i}") for i in range(20)]
    rows += [make_row(100 + i, text=f"Amazon S3 bucket question {i}", options=5) for i in range(5)]
    rows.append(make_row(200, answer=("A", "B"), text="Pick two"))
    return AdminService(MemoryQuestionStore(rows), profiles, MemoryResultStore(profiles))


@pytest.mark.parametrize("user", [None, MEMBER])
def test_every_call_requires_admin(admin, user):
    calls = [
        lambda: admin.list_questions(user),
        lambda: admin.get_question(user, "q1"),
        lambda: admin.create_question(user, PAYLOAD),
        lambda: admin.update_question(user, "q1", PAYLOAD),
        lambda: admin.delete_question(user, "q1"),
        lambda: admin.list_users(user),
        lambda: admin.update_user_role(user, MEMBER.id, Role.admin),
        lambda: admin.list_all_results(user),
        lambda: admin.dashboard_stats(user),
        lambda: admin.question_stats(user),
    ]
    for call in calls:
        with pytest.raises(PermissionDeniedError):
            call()


def test_search_is_case_insensitive_substring(admin):
    page = admin.list_questions(ADMIN, keyword="s3", offset=0, limit=10)

    assert page.total == 5
    assert all("S3" in q.question_text for q in page.items)


def test_pagination(admin):
    first = admin.list_questions(ADMIN, offset=0, limit=10)
    last = admin.list_questions(ADMIN, offset=20, limit=10)

    assert first.total == last.total == 26
    assert len(first.items) == 10
    assert len(last.items) == 6
    assert last.items[0].id == "q100"


def test_bad_page_arguments(admin):
    with pytest.raises(InputValidationError):
        admin.list_questions(ADMIN, offset=-1)
    with pytest.raises(InputValidationError):
        admin.list_questions(ADMIN, limit=0)


def test_create_update_delete(admin):
    created = admin.create_question(ADMIN, PAYLOAD)
    assert admin.get_question(ADMIN, created.id).question_text == PAYLOAD["question_text"]

    updated = admin.update_question(ADMIN, created.id, {**PAYLOAD, "answer": ["A", "C"]})
    assert updated.is_multiple
    assert updated.id == created.id

    admin.delete_question(ADMIN, created.id)
    with pytest.raises(NotFoundError):
        admin.get_question(ADMIN, created.id)


def test_invalid_create_is_rejected(admin):
    with pytest.raises(InputValidationError):
        admin.create_question(ADMIN, {**PAYLOAD, "answer": "F"})
    with pytest.raises(NotFoundError):
        admin.update_question(ADMIN, "missing", PAYLOAD)


def test_user_roles(admin, profiles):
    admin.update_user_role(ADMIN, MEMBER.id, Role.admin)
    assert profiles.get_profile(MEMBER.id)["role"] == "admin"

    with pytest.raises(NotFoundError):
        admin.update_user_role(ADMIN, "ghost", Role.user)

    assert {u.username for u in admin.list_users(ADMIN)} == {"admin01", "member01"}


def test_stats(admin):
    admin.results.insert_result({
        "user_id": MEMBER.id, "quiz_mode": "exam", "quiz_length": "short",
        "total_questions": 20, "correct_answers": 16, "score": 800,
        "time_taken": 600, "started_at": "2024-01-01T00:00:00+00:00",
    })
    admin.results.insert_result({
        "user_id": MEMBER.id, "quiz_mode": "exam", "quiz_length": "short",
        "total_questions": 20, "correct_answers": 13, "score": 649,
        "time_taken": 700, "started_at": "2024-01-02T00:00:00+00:00",
    })

    dashboard = admin.dashboard_stats(ADMIN)
    assert dashboard.total_users == 2
    assert dashboard.total_quizzes == 2
    assert dashboard.average_score == 725
    assert dashboard.active_users == 1

    results = admin.list_all_results(ADMIN)
    assert [r.username for r in results] == ["member01", "member01"]

    stats = admin.question_stats(ADMIN)
    assert (stats.total, stats.four_options, stats.five_options, stats.multiple_answer) == (26, 21, 5, 1)


def test_unreadable_rows_are_skipped_but_counted(profiles, make_row, caplog):
    rows = [make_row(1, text="EC2 good"), make_row(2, answer="F", text="EC2 broken"), make_row(3, text="EC2 also good")]
    admin = AdminService(MemoryQuestionStore(rows), profiles, MemoryResultStore(profiles))

    with caplog.at_level("WARNING"):
        page = admin.list_questions(ADMIN, keyword="ec2")

    assert page.total == 3
    assert [q.id for q in page.items] == ["q1", "q3"]
    assert "변환 실패 1건 제외" in caplog.text
