"""
Exam Runner

The candidate-facing, timed, forward-only question flow.

State lives in an explicit, immutable ExamState record. Every action is
a pure transition function returning a new state, so the machine can be
tested without a live timer. ExamSession adds the one piece of real
concurrency: a cancellable countdown that ticks the state once per
second and submits at zero.

    loading ──resolve──> ready ──start──> in_progress ──submit/timeout──> completed
       └──fail──> error
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlparse

from .countdown import CountdownTimer
from .errors import InvalidTransitionError, TestNotFoundError, ValidationError
from ..agents.scorer import score_test
from ..schemas.assessment import (
    Answer,
    AnswerValue,
    AptitudeTest,
    Question,
    ScoreResult,
    TestResponse,
    TestResponseStatus,
    upsert_answer,
)


logger = logging.getLogger(__name__)


class ExamStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ExamState:
    """
    Everything the exam screen needs, threaded through every transition.

    Attributes:
        test_id: Test id from the link's path
        candidate_email: Candidate identifier from the link's query
        status: Current state machine status
        test: Resolved test definition (None until ready)
        candidate_name: Display name entered before starting
        current_index: Index of the question on screen
        answers: Answers so far, one per question id
        time_remaining: Countdown in seconds
        result: Score once completed
        error: Message shown in the error state
    """
    test_id: str
    candidate_email: str = ""
    status: ExamStatus = ExamStatus.LOADING
    test: Optional[AptitudeTest] = None
    candidate_name: str = ""
    current_index: int = 0
    answers: Tuple[Answer, ...] = ()
    time_remaining: int = 0
    result: Optional[ScoreResult] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def current_question(self) -> Optional[Question]:
        if self.test is None or self.status is not ExamStatus.IN_PROGRESS:
            return None
        return self.test.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.test is not None and self.current_index >= len(self.test.questions) - 1

    def answer_for(self, question_id: str) -> Optional[AnswerValue]:
        return next((a.answer for a in self.answers if a.question_id == question_id), None)

    def to_dict(self) -> Dict[str, Any]:
        question = self.current_question
        return {
            "testId": self.test_id,
            "candidateEmail": self.candidate_email,
            "status": self.status.value,
            "candidateName": self.candidate_name,
            "jobTitle": self.test.job_title if self.test else None,
            "duration": self.test.duration if self.test else None,
            "passingScore": self.test.passing_score if self.test else None,
            "questionCount": len(self.test.questions) if self.test else 0,
            "currentIndex": self.current_index,
            "currentQuestion": question.to_public_dict() if question else None,
            "answers": [a.to_dict() for a in self.answers],
            "timeRemaining": self.time_remaining,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }


def format_time(seconds: int) -> str:
    """MM:SS for the countdown display."""
    minutes, remaining = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{remaining:02d}"


def parse_test_link(url: str) -> Tuple[str, str]:
    """
    Extract (test_id, candidate_email) from a test link.

    Raises:
        TestNotFoundError: If the path is not ``/take-test/<testId>``
    """
    parsed = urlparse(url)
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2 or parts[-2] != "take-test":
        raise TestNotFoundError(f"Not a test link: {url}")
    candidate = parse_qs(parsed.query).get("candidate", [""])[0]
    return unquote(parts[-1]), candidate


def _require(state: ExamState, *allowed: ExamStatus) -> None:
    if state.status not in allowed:
        raise InvalidTransitionError(
            f"Cannot do that while the exam is {state.status.value}"
        )


# =============================================================================
# TRANSITIONS
# =============================================================================

def open_exam(test_id: str, candidate_email: str = "") -> ExamState:
    return ExamState(test_id=test_id, candidate_email=candidate_email)


def resolve(state: ExamState, test: AptitudeTest) -> ExamState:
    """loading -> ready. The countdown is set but not running."""
    _require(state, ExamStatus.LOADING)
    if not test.questions:
        return fail(state, "This test has no questions.")
    return replace(
        state,
        status=ExamStatus.READY,
        test=test,
        time_remaining=test.duration * 60,
    )


def fail(state: ExamState, message: str) -> ExamState:
    """loading -> error. Terminal; a dead link cannot be retried."""
    _require(state, ExamStatus.LOADING)
    return replace(state, status=ExamStatus.ERROR, error=message)


def start(state: ExamState, candidate_name: str) -> ExamState:
    """
    ready -> in_progress.

    Raises:
        ValidationError: If the name is empty or whitespace
    """
    _require(state, ExamStatus.READY)
    name = (candidate_name or "").strip()
    if not name:
        raise ValidationError("Please enter your name to start the test")
    return replace(
        state,
        status=ExamStatus.IN_PROGRESS,
        candidate_name=name,
        started_at=datetime.now(timezone.utc),
    )


def record_answer(state: ExamState, question_id: str, answer: AnswerValue) -> ExamState:
    """Upsert an answer; the last value for a question wins."""
    _require(state, ExamStatus.IN_PROGRESS)
    if state.test.get_question(question_id) is None:
        raise ValidationError(f"Unknown question: {question_id}")
    return replace(state, answers=upsert_answer(state.answers, question_id, answer))


def advance(state: ExamState) -> ExamState:
    """Move to the next question, or submit from the last one."""
    _require(state, ExamStatus.IN_PROGRESS)
    if state.is_last_question:
        return submit(state)
    return replace(state, current_index=state.current_index + 1)


def tick(state: ExamState) -> ExamState:
    """One second passes. Reaching zero submits."""
    _require(state, ExamStatus.IN_PROGRESS)
    if state.time_remaining <= 1:
        return submit(replace(state, time_remaining=0))
    return replace(state, time_remaining=state.time_remaining - 1)


def submit(state: ExamState) -> ExamState:
    """in_progress -> completed, scoring the answers."""
    _require(state, ExamStatus.IN_PROGRESS)
    result = score_test(state.test, state.answers)
    return replace(
        state,
        status=ExamStatus.COMPLETED,
        result=result,
        completed_at=datetime.now(timezone.utc),
    )


def to_test_response(state: ExamState) -> TestResponse:
    """Build the persisted record for a completed exam."""
    _require(state, ExamStatus.COMPLETED)
    elapsed = state.test.duration * 60 - state.time_remaining
    return TestResponse(
        test_id=state.test_id,
        candidate_email=state.candidate_email,
        candidate_name=state.candidate_name,
        answers=list(state.answers),
        score=state.result.score,
        percentage=state.result.percentage,
        passed=state.result.passed,
        status=TestResponseStatus.COMPLETED,
        started_at=state.started_at,
        completed_at=state.completed_at,
        time_spent=(elapsed + 59) // 60,
        breakdown=list(state.result.breakdown),
    )


# =============================================================================
# SESSION
# =============================================================================

class ExamSession:
    """
    One candidate's pass through one test.

    Owns exactly one countdown. The countdown is cancelled on every exit
    from in_progress: manual submit, timeout and close().

    Args:
        test_id: Test id from the link
        candidate_email: Candidate identifier from the link
        loader: Resolves a test id; raises TestNotFoundError if unknown
        on_complete: Called once with the completed state
        tick_interval: Seconds between countdown ticks
    """

    def __init__(
        self,
        test_id: str,
        candidate_email: str,
        loader: Callable[[str], AptitudeTest],
        on_complete: Optional[Callable[[ExamState], None]] = None,
        tick_interval: float = 1.0,
    ):
        self.state = open_exam(test_id, candidate_email)
        self._loader = loader
        self._on_complete = on_complete
        self._timer = CountdownTimer(self._tick, interval=tick_interval)
        self._completion_reported = False

    @property
    def timer_running(self) -> bool:
        return self._timer.running

    def load(self) -> ExamState:
        try:
            test = self._loader(self.state.test_id)
        except TestNotFoundError as e:
            logger.info("Test %s could not be resolved: %s", self.state.test_id, e)
            self.state = fail(self.state, "The test link may be invalid or expired.")
            return self.state
        self.state = resolve(self.state, test)
        return self.state

    def start(self, candidate_name: str) -> ExamState:
        """Start the exam. Must be called from inside a running event loop."""
        self.state = start(self.state, candidate_name)
        self._timer.start()
        return self.state

    def answer(self, question_id: str, answer: AnswerValue) -> ExamState:
        self.state = record_answer(self.state, question_id, answer)
        return self.state

    def next_question(self) -> ExamState:
        self.state = advance(self.state)
        self._after_transition()
        return self.state

    def submit(self) -> ExamState:
        if self.state.status is ExamStatus.COMPLETED:
            return self.state
        self.state = submit(self.state)
        self._after_transition()
        return self.state

    def close(self) -> None:
        """Abandon the session; progress is not persisted."""
        self._timer.cancel()

    async def wait(self) -> None:
        await self._timer.wait()

    def _tick(self) -> None:
        if self.state.status is not ExamStatus.IN_PROGRESS:
            self._timer.cancel()
            return
        self.state = tick(self.state)
        self._after_transition()

    def _after_transition(self) -> None:
        if self.state.status is not ExamStatus.COMPLETED:
            return
        self._timer.cancel()
        if self._completion_reported:
            return
        self._completion_reported = True
        logger.info(
            "Exam %s completed by %s: %s%%",
            self.state.test_id,
            self.state.candidate_email,
            self.state.result.percentage,
        )
        if self._on_complete is not None:
            self._on_complete(self.state)
