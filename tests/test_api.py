from api.config import DEVICE_COOKIE
from aws_mock_exam.data.sample_questions import SAMPLE_QUESTIONS
from aws_mock_exam.errors import BackendError


def must_200(resp, path):
    assert resp.status_code == 200, f"{path} returned {resp.status_code}: {resp.text}"


def _seed(ctx, make_row, count=5):
    for i in range(count):
        ctx.questions.insert_question(make_row(i))


def test_health_sets_device_cookie(client):
    resp = client.get("/api/health")
    must_200(resp, "/api/health")
    assert DEVICE_COOKIE in resp.cookies


def test_no_exam_is_404(client):
    resp = client.get("/api/exam/state")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "시험 세션이 없습니다."


def test_anonymous_practice_with_fallback_bank(client, ctx):
    resp = client.post("/api/exam/start", json={"mode": "practice", "length": "short"})
    must_200(resp, "/api/exam/start")
    state = resp.json()
    assert state["used_fallback"] is True
    assert state["total"] == len(SAMPLE_QUESTIONS)
    assert state["status"] == "in_progress"
    assert "answer" not in state["question"]

    letter = "A" if not state["question"]["is_multiple"] else None
    if letter:
        state = client.post("/api/exam/answer", json={"letter": letter}).json()
        assert state["show_current_answer"] is True
        assert "answer" in state["question"]

    must_200(client.post("/api/exam/finish"), "/api/exam/finish")
    results = client.get("/api/exam/results").json()
    assert results["saved"] is False
    assert results["total"] == len(SAMPLE_QUESTIONS)
    assert len(results["incorrect_questions"]) == results["total"] - results["correct_count"]


def test_exam_timer_expiry_saves_once(client, ctx, clock, make_row, signup):
    _seed(ctx, make_row)
    user = signup()

    state = client.post("/api/exam/start", json={"mode": "exam", "length": "short"}).json()
    assert state["status"] == "awaiting_start"
    assert state["time_remaining"] == 1200
    assert client.post("/api/exam/answer", json={"letter": "A"}).status_code == 409

    must_200(client.post("/api/exam/confirm"), "/api/exam/confirm")
    client.post("/api/exam/answer", json={"letter": "A"})

    clock.advance(1300)
    state = client.get("/api/exam/state").json()
    assert state["status"] == "completed"
    assert state["time_remaining"] == 0

    finish = client.post("/api/exam/finish").json()
    assert finish["score"] == 200
    assert finish["result_id"] is not None
    client.get("/api/exam/results")

    history = client.get("/api/history").json()
    assert len(history["items"]) == 1
    assert history["items"][0]["user_id"] == user["id"]
    assert history["stats"]["best_score"] == 200


def test_question_endpoint_hides_answer_until_revealed(client, ctx, make_row):
    _seed(ctx, make_row)
    client.post("/api/exam/start", json={"mode": "practice", "length": "full"})

    q = client.get("/api/exam/question/0").json()
    assert q["id"] == "q0"
    assert "answer" not in q
    assert client.get("/api/exam/question/5").status_code == 404

    client.post("/api/exam/answer", json={"letter": "B"})
    q = client.get("/api/exam/question/0").json()
    assert q["answer"] == "A"
    assert q["saved_answer"] == "B"


def test_invalid_start_body(client):
    resp = client.post("/api/exam/start", json={"mode": "speedrun", "length": "short"})
    assert resp.status_code == 422


def test_auth_flow(client, signup):
    user = signup("alice01")
    assert client.get("/api/auth/me").json()["user"]["id"] == user["id"]

    assert client.post("/api/auth/signup", json={"username": "alice01", "password": "secret123"}).status_code == 409

    must_200(client.post("/api/auth/signout"), "/api/auth/signout")
    assert client.get("/api/auth/me").json()["user"] is None

    resp = client.post("/api/auth/signin", json={"username": "alice01", "password": "wrongpass"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "아이디 또는 비밀번호가 올바르지 않습니다."

    resp = client.post("/api/auth/signin", json={"username": "alice01", "password": "secret123"})
    must_200(resp, "/api/auth/signin")
    assert client.post("/api/auth/session").json()["user"]["username"] == "alice01"


def test_history_requires_login(client):
    assert client.get("/api/history").status_code == 401
    assert client.get("/api/resume").status_code == 401


def test_session_older_than_seven_days_is_rejected(client, clock, signup):
    signup()
    clock.advance(8 * 24 * 3600)

    resp = client.get("/api/history")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "세션이 만료되었습니다. 다시 로그인해주세요."
    assert client.get("/api/auth/me").json()["user"] is None


def test_resume_flow(client, ctx, make_row, signup):
    _seed(ctx, make_row)
    signup()

    client.post("/api/exam/start", json={"mode": "practice", "length": "full"})
    client.post("/api/exam/answer", json={"letter": "A"})
    client.post("/api/exam/next")
    client.post("/api/exam/answer", json={"letter": "C"})
    client.post("/api/exam/next")

    resume = client.get("/api/resume").json()
    assert resume["available"] is True
    assert resume["position"] == 2
    assert resume["answered_count"] == 2

    # 취소해도 스냅샷은 남는다
    client.post("/api/exam/cancel")
    assert client.get("/api/exam/state").status_code == 404
    state = client.post("/api/resume").json()
    assert state["position"] == 2
    assert state["answers"][:2] == ["A", "C"]

    client.post("/api/exam/navigate", json={"index": 4})
    client.post("/api/exam/next")
    assert client.get("/api/exam/state").json()["status"] == "completed"
    assert client.get("/api/resume").json()["available"] is False


def test_discard_resume(client, ctx, make_row, signup):
    _seed(ctx, make_row)
    signup()
    client.post("/api/exam/start", json={"mode": "practice", "length": "full"})
    client.post("/api/exam/next")

    must_200(client.delete("/api/resume"), "/api/resume")
    assert client.get("/api/resume").json()["available"] is False
    assert client.post("/api/resume").status_code == 404


def test_admin_routes(client, ctx, signup):
    user = signup("admin01")
    assert client.get("/api/admin/questions").status_code == 403

    ctx.profiles.update_role(user["id"], "admin")
    assert client.post("/api/auth/session").json()["user"]["role"] == "admin"

    payload = {
        "question_text": "Which service provides managed DNS?",
        "options": {"A": "Route 53", "B": "CloudFront", "C": "VPC", "D": "ELB"},
        "answer": "A",
    }
    resp = client.post("/api/admin/questions", json=payload)
    assert resp.status_code == 201
    question_id = resp.json()["id"]

    page = client.get("/api/admin/questions", params={"keyword": "dns"}).json()
    assert page["total"] == 1
    assert page["items"][0]["id"] == question_id

    resp = client.put(f"/api/admin/questions/{question_id}", json={**payload, "answer": "E"})
    assert resp.status_code == 422

    assert client.get("/api/admin/stats").json()["total_users"] == 1
    assert client.get("/api/admin/questions/stats").json()["total"] == 1

    must_200(client.delete(f"/api/admin/questions/{question_id}"), "/api/admin/questions")
    assert client.get(f"/api/admin/questions/{question_id}").status_code == 404


def test_failed_result_write_can_be_resubmitted(client, ctx, make_row, signup, monkeypatch):
    _seed(ctx, make_row)
    signup()
    client.post("/api/exam/start", json={"mode": "practice", "length": "full"})
    client.post("/api/exam/answer", json={"letter": "A"})
    client.post("/api/exam/next")

    def broken_insert(row):
        raise BackendError("insert failed")

    real_insert = ctx.results.insert_result
    monkeypatch.setattr(ctx.results, "insert_result", broken_insert)
    first = client.post("/api/exam/finish").json()
    assert first["saved"] is False
    assert first["result_id"] is None
    assert client.get("/api/resume").json()["available"] is True
    assert client.get("/api/history").json()["items"] == []

    monkeypatch.setattr(ctx.results, "insert_result", real_insert)
    second = client.post("/api/exam/finish").json()
    assert second["saved"] is True
    assert second["score"] == first["score"] == 200
    assert len(client.get("/api/history").json()["items"]) == 1
    assert client.get("/api/resume").json()["available"] is False

    client.post("/api/exam/finish")
    assert len(client.get("/api/history").json()["items"]) == 1
