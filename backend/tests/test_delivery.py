"""Tests for invitation delivery and the email collaborators."""

import pytest
import requests

from hireloom.agents.question_generator import generate_questions
from hireloom.agents.test_assembler import assemble_test
from hireloom.agents.test_delivery import (
    DeliveryInput,
    TestDeliveryAgent,
    build_test_link,
    send_test,
)
from hireloom.core.errors import DeliveryError, ValidationError
from hireloom.utils.email_templates import (
    invitation_subject,
    render_custom_email,
    render_invitation,
    render_test_invitation,
)
from hireloom.utils.mailer import HttpEmailSender


ORIGIN = "https://hire.example.com"


@pytest.fixture
def frontend_test(sample_job):
    questions = generate_questions(sample_job.title, sample_job.description, sample_job.skills)
    return assemble_test(sample_job, questions, [])


def test_link_encodes_candidate_email():
    link = build_test_link(ORIGIN + "/", "test_abc", "jane+dev@example.com")
    assert link == "https://hire.example.com/take-test/test_abc?candidate=jane%2Bdev%40example.com"


def test_link_leaves_uri_component_marks_unescaped():
    link = build_test_link(ORIGIN, "test_abc", "o'neil!(dev)*@example.com")
    assert link.endswith("?candidate=o'neil!(dev)*%40example.com")


def test_send_test_builds_payload(frontend_test, fake_sender):
    link = send_test(frontend_test, " jane@example.com ", "Jane", fake_sender, ORIGIN)

    assert link == f"{ORIGIN}/take-test/{frontend_test.id}?candidate=jane%40example.com"
    payload = fake_sender.sent[0]
    assert payload["to"] == "jane@example.com"
    assert payload["subject"] == "Aptitude Test Invitation - Frontend Developer Position"
    assert payload["testId"] == frontend_test.id
    assert payload["jobTitle"] == "Frontend Developer"
    assert payload["candidateName"] == "Jane"
    assert payload["testLink"] == link
    assert all("correctAnswer" not in q for q in payload["questions"])
    assert link in payload["html"]


def test_blank_email_is_rejected(frontend_test, fake_sender):
    with pytest.raises(ValidationError):
        send_test(frontend_test, "  ", "Jane", fake_sender, ORIGIN)
    assert fake_sender.sent == []


def test_failed_send_raises_with_status_and_body(frontend_test, failing_sender):
    with pytest.raises(DeliveryError) as exc_info:
        send_test(frontend_test, "jane@example.com", "Jane", failing_sender, ORIGIN)

    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "mailbox unavailable"
    assert "500" in str(exc_info.value)


def test_agent_reports_delivery_failure(frontend_test, failing_sender):
    agent = TestDeliveryAgent(sender=failing_sender, origin=ORIGIN)
    response = agent.run(DeliveryInput(frontend_test, "jane@example.com", "Jane")).response

    assert not response.is_successful()
    assert response.explanation.startswith("Failed to send test")
    assert "mailbox unavailable" in response.error


# =============================================================================
# TEMPLATES
# =============================================================================

def test_invitation_previews_first_three_questions(frontend_test):
    html = render_test_invitation(frontend_test, "Jane", "https://x/take-test/t?candidate=j")

    assert "Hello Jane," in html
    assert "Duration: 30 minutes" in html
    assert "Passing Score: 70%" in html
    assert html.count('class="question-title"') == 3
    assert "...and 2 more questions" in html


def test_preview_omits_time_when_question_has_no_limit():
    questions = [
        {"type": "scenario", "question": "Plan a migration", "skill": "SQL", "difficulty": "hard"},
        {"type": "multiple_choice", "question": "Pick one", "skill": "SQL", "difficulty": "easy", "timeLimit": 3},
    ]

    html = render_invitation("Analyst", "", questions, "https://x")

    assert html.count("Time:") == 1
    assert "Time: 3 minutes | Difficulty: easy" in html
    assert "Difficulty: hard" in html
    assert "Number of Questions: 2" in html
    assert "Duration:" not in html
    assert "Hello Candidate," in html


def test_invitation_escapes_user_text(sample_job):
    sample_job.title = "<script>alert(1)</script>"
    test = assemble_test(sample_job, generate_questions("Analyst", "", ["SQL"]), [])

    html = render_test_invitation(test, "<b>Jane</b>", "https://x")

    assert "<script>" not in html
    assert "&lt;b&gt;Jane&lt;/b&gt;" in html
    assert invitation_subject("QA") == "Aptitude Test Invitation - QA Position"


def test_custom_email_keeps_line_breaks():
    html = render_custom_email("Next steps", "Thanks!\nWe will be in touch.", "Jane", "Frontend Developer")

    assert "Thanks!<br>We will be in touch." in html
    assert "Regarding: Frontend Developer" in html


# =============================================================================
# HTTP COLLABORATOR
# =============================================================================

class StubResponse:
    def __init__(self, status_code, text, data=None):
        self.status_code = status_code
        self.text = text
        self.ok = status_code < 400
        self._data = data

    def json(self):
        if self._data is None:
            raise ValueError("No JSON object could be decoded")
        return self._data


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_http_sender_success():
    session = StubSession(StubResponse(200, '{"success": true}', {"success": True}))
    sender = HttpEmailSender("https://mail.example.com/api/send-test-email", session=session)

    result = sender.send({"to": "jane@example.com"})

    assert result.success
    assert session.calls[0][0] == "https://mail.example.com/api/send-test-email"
    assert session.calls[0][2] == 20.0


def test_http_sender_reports_status_and_body():
    session = StubSession(StubResponse(500, "Internal error"))
    result = HttpEmailSender("https://mail.example.com", session=session).send({"to": "a@b.c"})

    assert not result.success
    assert result.error == "API request failed: 500 - Internal error"
    assert result.status_code == 500
    assert result.body == "Internal error"


def test_http_sender_rejects_non_json_body():
    session = StubSession(StubResponse(200, "<html>ok</html>"))
    result = HttpEmailSender("https://mail.example.com", session=session).send({"to": "a@b.c"})

    assert not result.success
    assert result.body == "<html>ok</html>"


def test_http_sender_reports_unsuccessful_json():
    session = StubSession(StubResponse(200, "{}", {"success": False, "error": "quota exceeded"}))
    result = HttpEmailSender("https://mail.example.com", session=session).send({"to": "a@b.c"})

    assert not result.success
    assert result.error == "quota exceeded"


def test_http_sender_reports_connection_errors():
    session = StubSession(error=requests.ConnectionError("connection refused"))
    result = HttpEmailSender("https://mail.example.com", session=session).send({"to": "a@b.c"})

    assert not result.success
    assert "connection refused" in result.error
