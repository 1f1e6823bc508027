"""
Aptitude test schemas.

Questions are modelled as a tagged union keyed on ``type``: each variant
carries only the fields that make sense for it. Serialization uses the
camelCase keys of the candidate-facing wire format.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union
from uuid import uuid4

from ..core.errors import ValidationError


AnswerValue = Union[str, int]


class QuestionType(str, Enum):
    """Kinds of test items."""
    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"
    CODING = "coding"
    SCENARIO = "scenario"
    ASSIGNMENT = "assignment"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class InputMode(str, Enum):
    """How the exam runner collects an answer for a question."""
    SINGLE_SELECT = "single_select"
    LONG_TEXT = "long_text"
    LONG_TEXT_WITH_GUIDANCE = "long_text_with_guidance"


class TestResponseStatus(str, Enum):
    __test__ = False

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# QUESTIONS
# =============================================================================

@dataclass(frozen=True)
class Question:
    """
    Fields shared by every question variant.

    Attributes:
        id: Unique question identifier
        question: Prompt text shown to the candidate
        difficulty: easy, medium or hard
        skill: Free-text skill label (e.g. "React")
        time_limit: Recommended minutes, advisory only
    """
    id: str
    question: str
    difficulty: Difficulty = Difficulty.MEDIUM
    skill: str = ""
    time_limit: Optional[int] = None

    type: ClassVar[QuestionType]
    input_mode: ClassVar[InputMode] = InputMode.LONG_TEXT

    def __post_init__(self) -> None:
        # Accept plain strings for difficulty
        try:
            object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        except ValueError:
            raise ValidationError(f"Unknown difficulty: {self.difficulty!r}") from None

    @property
    def is_auto_graded(self) -> bool:
        return False

    @property
    def correct_answer(self) -> Optional[AnswerValue]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "question": self.question,
            "difficulty": self.difficulty.value,
            "skill": self.skill,
        }
        if self.time_limit is not None:
            data["timeLimit"] = self.time_limit
        return data

    def to_public_dict(self) -> Dict[str, Any]:
        """Candidate-facing view with any answer key removed."""
        data = self.to_dict()
        data.pop("correctAnswer", None)
        data["inputMode"] = self.input_mode.value
        return data


@dataclass(frozen=True)
class MultipleChoiceQuestion(Question):
    options: Tuple[str, ...] = ()
    answer_index: int = 0

    type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE
    input_mode: ClassVar[InputMode] = InputMode.SINGLE_SELECT

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "options", tuple(self.options))
        if not self.options:
            raise ValidationError(f"Multiple choice question {self.id} has no options")
        if (
            isinstance(self.answer_index, bool)
            or not isinstance(self.answer_index, int)
            or not 0 <= self.answer_index < len(self.options)
        ):
            raise ValidationError(
                f"Correct answer {self.answer_index!r} out of range for question {self.id}"
            )

    @property
    def is_auto_graded(self) -> bool:
        return True

    @property
    def correct_answer(self) -> int:
        return self.answer_index

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["options"] = list(self.options)
        data["correctAnswer"] = self.answer_index
        return data


@dataclass(frozen=True)
class ShortAnswerQuestion(Question):
    # Kept for reviewers; short answers are never auto-graded
    expected_answer: Optional[str] = None

    type: ClassVar[QuestionType] = QuestionType.SHORT_ANSWER

    @property
    def correct_answer(self) -> Optional[str]:
        return self.expected_answer

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.expected_answer is not None:
            data["correctAnswer"] = self.expected_answer
        return data


@dataclass(frozen=True)
class CodingQuestion(Question):
    type: ClassVar[QuestionType] = QuestionType.CODING


@dataclass(frozen=True)
class ScenarioQuestion(Question):
    type: ClassVar[QuestionType] = QuestionType.SCENARIO
    input_mode: ClassVar[InputMode] = InputMode.LONG_TEXT_WITH_GUIDANCE


@dataclass(frozen=True)
class AssignmentQuestion(Question):
    """A recruiter-authored open-ended assignment."""
    assignment_title: str = ""
    assignment_description: str = ""
    assignment_requirements: Tuple[str, ...] = ()
    deliverables: Tuple[str, ...] = ()
    resources: Tuple[str, ...] = ()
    evaluation_criteria: Tuple[str, ...] = ()

    type: ClassVar[QuestionType] = QuestionType.ASSIGNMENT
    input_mode: ClassVar[InputMode] = InputMode.LONG_TEXT_WITH_GUIDANCE

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("assignment_requirements", "deliverables", "resources", "evaluation_criteria"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "assignmentTitle": self.assignment_title,
            "assignmentDescription": self.assignment_description,
            "assignmentRequirements": list(self.assignment_requirements),
            "deliverables": list(self.deliverables),
            "resources": list(self.resources),
            "evaluationCriteria": list(self.evaluation_criteria),
        })
        return data


QUESTION_TYPES = {
    cls.type: cls
    for cls in (
        MultipleChoiceQuestion,
        ShortAnswerQuestion,
        CodingQuestion,
        ScenarioQuestion,
        AssignmentQuestion,
    )
}


def question_from_dict(data: Dict[str, Any]) -> Question:
    """
    Build the matching Question variant from its wire representation.

    Raises:
        ValidationError: Unknown type or a malformed multiple choice item
    """
    try:
        qtype = QuestionType(data.get("type"))
    except ValueError:
        raise ValidationError(f"Unknown question type: {data.get('type')!r}") from None

    common = {
        "id": data.get("id") or uuid4().hex,
        "question": data.get("question", ""),
        "difficulty": data.get("difficulty", Difficulty.MEDIUM.value),
        "skill": data.get("skill", ""),
        "time_limit": data.get("timeLimit"),
    }

    if qtype is QuestionType.MULTIPLE_CHOICE:
        return MultipleChoiceQuestion(
            **common,
            options=tuple(data.get("options") or ()),
            answer_index=data.get("correctAnswer", 0),
        )
    if qtype is QuestionType.SHORT_ANSWER:
        return ShortAnswerQuestion(**common, expected_answer=data.get("correctAnswer"))
    if qtype is QuestionType.ASSIGNMENT:
        return AssignmentQuestion(
            **common,
            assignment_title=data.get("assignmentTitle", ""),
            assignment_description=data.get("assignmentDescription", ""),
            assignment_requirements=tuple(data.get("assignmentRequirements") or ()),
            deliverables=tuple(data.get("deliverables") or ()),
            resources=tuple(data.get("resources") or ()),
            evaluation_criteria=tuple(data.get("evaluationCriteria") or ()),
        )
    return QUESTION_TYPES[qtype](**common)


# =============================================================================
# TESTS, ANSWERS AND RESULTS
# =============================================================================

@dataclass(frozen=True)
class AptitudeTest:
    """
    An immutable bundle of questions issued to candidates.

    Question order is presentation order. ``duration`` is the wall-clock
    budget for the whole test in minutes, independent of per-question
    time limits.
    """
    id: str
    job_id: str
    job_title: str
    job_description: str
    questions: Tuple[Question, ...]
    duration: int = 30
    passing_score: int = 70
    created_at: datetime = field(default_factory=_utcnow)
    created_by: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))

    def get_question(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "jobId": self.job_id,
            "jobTitle": self.job_title,
            "jobDescription": self.job_description,
            "questions": [q.to_dict() for q in self.questions],
            "duration": self.duration,
            "passingScore": self.passing_score,
            "createdAt": self.created_at.isoformat(),
            "createdBy": self.created_by,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Candidate-facing view without answer keys."""
        data = self.to_dict()
        data["questions"] = [q.to_public_dict() for q in self.questions]
        return data


@dataclass(frozen=True)
class Answer:
    question_id: str
    answer: AnswerValue

    def to_dict(self) -> Dict[str, Any]:
        return {"questionId": self.question_id, "answer": self.answer}


def upsert_answer(
    answers: Tuple[Answer, ...],
    question_id: str,
    value: AnswerValue,
) -> Tuple[Answer, ...]:
    """Replace the answer for ``question_id`` if present, else append it."""
    if any(a.question_id == question_id for a in answers):
        return tuple(
            Answer(question_id, value) if a.question_id == question_id else a
            for a in answers
        )
    return answers + (Answer(question_id, value),)


@dataclass(frozen=True)
class BreakdownEntry:
    """One line of the scorer's per-question audit trail."""
    question_id: str
    question: str
    user_answer: Optional[AnswerValue]
    correct_answer: Optional[AnswerValue]
    is_correct: bool
    skill: str
    needs_manual_review: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "question": self.question,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
            "skill": self.skill,
            "needsManualReview": self.needs_manual_review,
        }


@dataclass(frozen=True)
class ScoreResult:
    score: int
    percentage: int
    breakdown: Tuple[BreakdownEntry, ...] = ()
    total_questions: int = 0
    graded_questions: int = 0
    graded_correct: int = 0
    passed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "percentage": self.percentage,
            "breakdown": [b.to_dict() for b in self.breakdown],
            "totalQuestions": self.total_questions,
            "gradedQuestions": self.graded_questions,
            "gradedCorrect": self.graded_correct,
            "passed": self.passed,
        }


@dataclass
class TestResponse:
    """A candidate's submitted attempt at one aptitude test."""
    __test__ = False

    test_id: str
    candidate_email: str
    candidate_name: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)
    answers: List[Answer] = field(default_factory=list)
    score: int = 0
    percentage: int = 0
    passed: bool = False
    status: TestResponseStatus = TestResponseStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None  # minutes
    breakdown: List[BreakdownEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "testId": self.test_id,
            "candidateEmail": self.candidate_email,
            "candidateName": self.candidate_name,
            "answers": [a.to_dict() for a in self.answers],
            "score": self.score,
            "percentage": self.percentage,
            "passed": self.passed,
            "status": self.status.value,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "timeSpent": self.time_spent,
            "breakdown": [b.to_dict() for b in self.breakdown],
        }
