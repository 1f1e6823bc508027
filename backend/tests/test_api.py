"""Tests for the REST API."""

import time

import pytest
from fastapi.testclient import TestClient

from hireloom.api import main


@pytest.fixture
def email_sender(fake_sender):
    return fake_sender


@pytest.fixture
def client(email_sender):
    for store in (
        main.jobs_db,
        main.candidates_db,
        main.tests_db,
        main.responses_db,
        main.assessments,
        main.exam_sessions,
    ):
        store.clear()
    main.app.dependency_overrides[main.get_email_sender] = lambda: email_sender
    main.app.dependency_overrides[main.get_smtp_sender] = lambda: email_sender
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


def _create_job(client, **overrides):
    payload = {
        "title": "Frontend Developer",
        "description": "Build accessible user interfaces.",
        "skills": ["React", "TypeScript"],
    }
    payload.update(overrides)
    response = client.post("/api/jobs", json=payload)
    assert response.status_code == 200
    return response.json()["job_id"]


def _send_test(client, job_id, email="jane@example.com", duration=30):
    assessment = client.post(f"/api/jobs/{job_id}/assessments", json={"created_by": "recruiter"}).json()
    assessment_id = assessment["assessment_id"]
    generated = client.post(f"/api/assessments/{assessment_id}/questions", json={"question_count": 10})
    assert generated.status_code == 200
    sent = client.post(
        f"/api/assessments/{assessment_id}/send",
        json={"candidate_email": email, "candidate_name": "Jane", "duration": duration},
    )
    return assessment_id, sent


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_job_crud(client):
    job_id = _create_job(client)

    assert client.get(f"/api/jobs/{job_id}").json()["title"] == "Frontend Developer"
    assert len(client.get("/api/jobs").json()["jobs"]) == 1

    updated = client.put(f"/api/jobs/{job_id}", json={"title": "Senior Frontend Developer"})
    assert updated.json()["title"] == "Senior Frontend Developer"
    assert updated.json()["job_id"] == job_id

    assert client.delete(f"/api/jobs/{job_id}").status_code == 200
    assert client.get(f"/api/jobs/{job_id}").status_code == 404


def test_candidates_are_scoped_to_job(client):
    job_id = _create_job(client)
    other_job = _create_job(client, title="Data Analyst")
    client.post(f"/api/jobs/{job_id}/candidates", json={"name": "Jane", "email": "jane@example.com"})
    client.post(f"/api/jobs/{other_job}/candidates", json={"name": "Sam", "email": "sam@example.com"})

    candidates = client.get(f"/api/jobs/{job_id}/candidates").json()["candidates"]

    assert [c["name"] for c in candidates] == ["Jane"]
    assert candidates[0]["status"] == "pending"


def test_candidate_status_update(client):
    job_id = _create_job(client)
    candidate_id = client.post(
        f"/api/jobs/{job_id}/candidates", json={"name": "Jane", "email": "jane@example.com"}
    ).json()["candidate_id"]

    response = client.patch(f"/api/candidates/{candidate_id}/status", json={"status": "contacted"})

    assert response.json()["status"] == "contacted"
    assert client.patch("/api/candidates/nope/status", json={"status": "hired"}).status_code == 404


def test_send_marks_candidate_and_stores_test(client, email_sender):
    job_id = _create_job(client)
    candidate_id = client.post(
        f"/api/jobs/{job_id}/candidates", json={"name": "Jane", "email": "jane@example.com"}
    ).json()["candidate_id"]

    assessment_id, sent = _send_test(client, job_id)

    assert sent.status_code == 200
    body = sent.json()
    assert body["test_link"].endswith(f"/take-test/{body['test_id']}?candidate=jane%40example.com")
    assert body["test_id"] in main.tests_db
    assert main.candidates_db[candidate_id].status.value == "test_sent"
    assert email_sender.sent[0]["to"] == "jane@example.com"
    assert client.get(f"/api/assessments/{assessment_id}").json()["stage"] == "sent"


def test_invalid_assignment_returns_400(client):
    job_id = _create_job(client)
    assessment_id = client.post(f"/api/jobs/{job_id}/assessments", json={}).json()["assessment_id"]

    response = client.post(
        f"/api/assessments/{assessment_id}/assignments",
        json={"title": "", "description": "Build something"},
    )

    assert response.status_code == 400


def test_create_test_rejects_bad_config(client):
    job_id = _create_job(client)
    assessment_id = client.post(f"/api/jobs/{job_id}/assessments", json={}).json()["assessment_id"]
    client.post(f"/api/assessments/{assessment_id}/questions", json={})

    assert client.post(f"/api/assessments/{assessment_id}/test", json={"duration": 0}).status_code == 400
    created = client.post(f"/api/assessments/{assessment_id}/test", json={"duration": 20})
    assert created.status_code == 200
    assert created.json()["duration"] == 20


def test_public_test_hides_answers(client):
    job_id = _create_job(client)
    _, sent = _send_test(client, job_id)
    test_id = sent.json()["test_id"]

    public = client.get(f"/api/take-test/{test_id}").json()

    assert len(public["questions"]) == 5
    assert all("correctAnswer" not in q for q in public["questions"])
    assert client.get("/api/take-test/test_missing").status_code == 404


def test_candidate_takes_test_end_to_end(client):
    job_id = _create_job(client)
    candidate_id = client.post(
        f"/api/jobs/{job_id}/candidates", json={"name": "Jane", "email": "jane@example.com"}
    ).json()["candidate_id"]
    _, sent = _send_test(client, job_id)
    test_id = sent.json()["test_id"]

    opened = client.post(f"/api/take-test/{test_id}/sessions", params={"candidate": "jane@example.com"})
    assert opened.json()["status"] == "ready"
    assert opened.json()["timeRemaining"] == 30 * 60
    session_url = f"/api/take-test/{test_id}/sessions/{opened.json()['session_id']}"

    assert client.post(f"{session_url}/start", json={"candidate_name": ""}).status_code == 400
    started = client.post(f"{session_url}/start", json={"candidate_name": "Jane"})
    assert started.json()["status"] == "in_progress"

    for question in main.tests_db[test_id].questions:
        answer = question.correct_answer if question.is_auto_graded else "My approach would be..."
        client.post(f"{session_url}/answer", json={"question_id": question.id, "answer": answer})

    result = client.post(f"{session_url}/submit").json()

    assert result["status"] == "completed"
    assert result["result"]["percentage"] == 100
    assert result["result"]["passed"] is True
    # Completed sessions are released
    assert client.get(session_url).status_code == 404
    assert not main.exam_sessions

    responses = client.get(f"/api/aptitude-tests/{test_id}/responses").json()["responses"]
    assert len(responses) == 1
    assert responses[0]["candidateEmail"] == "jane@example.com"
    assert responses[0]["percentage"] == 100
    assert main.candidates_db[candidate_id].status.value == "test_completed"


def test_unknown_test_link_opens_error_session(client):
    opened = client.post("/api/take-test/test_missing/sessions", params={"candidate": "a@b.c"})

    assert opened.status_code == 200
    assert opened.json()["status"] == "error"
    assert opened.json()["error"] == "The test link may be invalid or expired."


def _open_started_session(client, job_id):
    _, sent = _send_test(client, job_id, duration=1)
    test_id = sent.json()["test_id"]
    opened = client.post(f"/api/take-test/{test_id}/sessions", params={"candidate": "jane@example.com"})
    session_url = f"/api/take-test/{test_id}/sessions/{opened.json()['session_id']}"
    assert client.post(f"{session_url}/start", json={"candidate_name": "Jane"}).status_code == 200
    return test_id, session_url


def _wait_for(condition, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


def test_closing_a_session_records_nothing(client, monkeypatch):
    monkeypatch.setattr(main, "EXAM_TICK_INTERVAL", 0.001)
    job_id = _create_job(client)
    candidate_id = client.post(
        f"/api/jobs/{job_id}/candidates", json={"name": "Jane", "email": "jane@example.com"}
    ).json()["candidate_id"]
    test_id, session_url = _open_started_session(client, job_id)
    session = next(iter(main.exam_sessions.values()))

    closed = client.delete(session_url)

    assert closed.status_code == 200
    assert not session.timer_running
    assert not main.exam_sessions
    # A one-minute test would have timed out after 60 ticks
    time.sleep(0.3)
    assert main.responses_db.get(test_id) is None
    assert main.candidates_db[candidate_id].status.value == "test_sent"
    assert client.get(session_url).status_code == 404
    assert client.delete(session_url).status_code == 404


def test_timed_out_session_is_recorded_and_released(client, monkeypatch):
    monkeypatch.setattr(main, "EXAM_TICK_INTERVAL", 0.001)
    job_id = _create_job(client)
    test_id, session_url = _open_started_session(client, job_id)

    assert _wait_for(lambda: main.responses_db.get(test_id))

    assert len(main.responses_db[test_id]) == 1
    assert main.responses_db[test_id][0].percentage == 40
    assert not main.exam_sessions
    assert client.get(session_url).status_code == 404


def test_send_test_email_renders_invitation_from_questions(client, email_sender):
    questions = [
        {"id": f"q{n}", "type": "multiple_choice", "question": f"Prompt number {n}?",
         "skill": "React", "difficulty": "medium", "timeLimit": 3}
        for n in range(1, 5)
    ]

    response = client.post("/api/send-test-email", json={
        "to": "jane@example.com",
        "subject": "Aptitude Test Invitation - QA Position",
        "testId": "test_1",
        "jobTitle": "QA Engineer",
        "candidateName": "Jane",
        "questions": questions,
    })

    assert response.json()["success"] is True
    payload = email_sender.sent[0]
    link = f"{main.get_settings().app_base_url}/take-test/test_1?candidate=jane%40example.com"
    assert payload["testLink"] == link
    html = payload["html"]
    assert "QA Engineer" in html
    assert "Hello Jane," in html
    assert all(f"Prompt number {n}?" in html for n in (1, 2, 3))
    assert "Prompt number 4?" not in html
    assert "...and 1 more questions" in html
    assert link in html


def test_send_test_email_keeps_supplied_html(client, email_sender):
    response = client.post("/api/send-test-email", json={
        "to": "jane@example.com",
        "subject": "Aptitude Test Invitation - QA Position",
        "testId": "test_1",
        "jobTitle": "QA",
        "html": "<p>Hi</p>",
    })

    assert response.json()["success"] is True
    assert email_sender.sent[0]["testId"] == "test_1"
    assert email_sender.sent[0]["html"] == "<p>Hi</p>"


def test_send_custom_email_endpoint(client, email_sender):
    response = client.post("/api/send-custom-email", json={
        "to": "jane@example.com",
        "subject": "Next steps",
        "message": "Thanks for applying.",
        "candidateName": "Jane",
    })

    assert response.json()["success"] is True
    assert "Thanks for applying." in email_sender.sent[0]["html"]


class TestDeliveryFailures:
    @pytest.fixture
    def email_sender(self, failing_sender):
        return failing_sender

    def test_failed_send_returns_502_and_keeps_test(self, client):
        job_id = _create_job(client)

        assessment_id, sent = _send_test(client, job_id)

        assert sent.status_code == 502
        summary = client.get(f"/api/assessments/{assessment_id}").json()
        assert summary["stage"] == "test_created"
        assert summary["test"]["id"] in main.tests_db

    def test_email_endpoint_reports_error(self, client):
        response = client.post("/api/send-custom-email", json={
            "to": "jane@example.com",
            "subject": "Hello",
            "message": "Hi",
        })

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "API request failed: 500 - mailbox unavailable",
        }
