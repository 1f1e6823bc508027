"""Shared fixtures for the assessment test suite."""

import pytest

from hireloom.schemas.assessment import (
    AptitudeTest,
    MultipleChoiceQuestion,
    ScenarioQuestion,
)
from hireloom.schemas.job import JobDescription
from hireloom.utils.mailer import EmailSendResult


SAMPLE_DESCRIPTION = """
Frontend Developer

We are looking for a frontend developer to build accessible, fast user
interfaces for our hiring platform.

Requirements:
- 3+ years of experience with React
- Strong TypeScript skills
- Comfortable writing tests and reviewing code
"""


class RecordingEmailSender:
    """Email collaborator that records payloads instead of sending them."""

    def __init__(self, result=None):
        self.sent = []
        self.result = result or EmailSendResult(success=True, status_code=200)

    def send(self, payload):
        self.sent.append(payload)
        return self.result


@pytest.fixture
def sample_job():
    return JobDescription(
        job_id="job_frontend_001",
        title="Frontend Developer",
        description=SAMPLE_DESCRIPTION,
        skills=["React", "TypeScript"],
    )


@pytest.fixture
def fake_sender():
    return RecordingEmailSender()


@pytest.fixture
def failing_sender():
    return RecordingEmailSender(EmailSendResult(
        success=False,
        error="API request failed: 500 - mailbox unavailable",
        status_code=500,
        body="mailbox unavailable",
    ))


@pytest.fixture
def small_test():
    """Two multiple choice questions and one scenario, one minute long."""
    return AptitudeTest(
        id="test_small",
        job_id="job_frontend_001",
        job_title="Frontend Developer",
        job_description="Build UIs",
        questions=(
            MultipleChoiceQuestion(
                id="q1",
                question="Which hook holds local state?",
                options=("useState", "useMemo", "useRef", "useId"),
                answer_index=0,
                skill="React",
            ),
            MultipleChoiceQuestion(
                id="q2",
                question="Which type accepts any value but forces narrowing?",
                options=("any", "unknown", "never", "void"),
                answer_index=1,
                skill="TypeScript",
            ),
            ScenarioQuestion(
                id="q3",
                question="Describe how you would split a large form into steps.",
                skill="React",
            ),
        ),
        duration=1,
        passing_score=70,
    )
