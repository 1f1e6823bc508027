"""
Scorer Agent

Responsibility: Score a candidate's answers against a test.
Single purpose: Compute score, percentage and a per-question breakdown.

Only multiple choice questions are graded automatically. Every other
question type currently counts as correct, answered or not, and is
flagged for manual review in the breakdown.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .base import BaseAgent
from ..schemas.assessment import (
    Answer,
    AnswerValue,
    AptitudeTest,
    BreakdownEntry,
    Question,
    ScoreResult,
)


def _is_correct(question: Question, answer: AnswerValue) -> bool:
    if not question.is_auto_graded:
        return True
    # Strict: "0" is not 0, and True is not 1
    return (
        isinstance(answer, int)
        and not isinstance(answer, bool)
        and answer == question.correct_answer
    )


def round_percentage(correct: int, total: int) -> int:
    """Round 100 * correct / total half-up, in integer arithmetic."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def score_test(test: AptitudeTest, answers: Sequence[Answer]) -> ScoreResult:
    """
    Score answers against a test. Pure and idempotent.

    Args:
        test: The aptitude test
        answers: Candidate answers; at most one per question id is used
            (the last one)

    Returns:
        ScoreResult with the per-question breakdown in test order
    """
    answer_map: Dict[str, AnswerValue] = {a.question_id: a.answer for a in answers}

    correct = 0
    graded = 0
    graded_correct = 0
    breakdown: List[BreakdownEntry] = []

    for question in test.questions:
        user_answer = answer_map.get(question.id)
        if question.is_auto_graded:
            graded += 1
            is_correct = question.id in answer_map and _is_correct(question, user_answer)
            if is_correct:
                graded_correct += 1
        else:
            is_correct = True

        if is_correct:
            correct += 1

        breakdown.append(BreakdownEntry(
            question_id=question.id,
            question=question.question,
            user_answer=user_answer,
            correct_answer=question.correct_answer,
            is_correct=is_correct,
            skill=question.skill,
            needs_manual_review=not question.is_auto_graded,
        ))

    percentage = round_percentage(correct, len(test.questions))

    return ScoreResult(
        score=correct,
        percentage=percentage,
        breakdown=tuple(breakdown),
        total_questions=len(test.questions),
        graded_questions=graded,
        graded_correct=graded_correct,
        passed=percentage >= test.passing_score,
    )


@dataclass
class ScoringInput:
    test: AptitudeTest
    answers: List[Answer] = field(default_factory=list)


class ScorerAgent(BaseAgent[ScoringInput, ScoreResult]):
    """
    Scores candidate answers.

    Does NOT:
    - Grade open-ended answers (manual review)
    - Persist results
    """

    name = "scorer"
    description = "Scores aptitude test answers with a per-question breakdown"
    failure_message = "Test scoring failed"

    def _process(self, input_data: ScoringInput) -> Tuple[ScoreResult, float, str]:
        result = score_test(input_data.test, input_data.answers)
        manual = result.total_questions - result.graded_questions
        self.log_reasoning(
            f"Score: {result.score}/{result.total_questions} ({result.percentage}%)"
        )
        explanation = (
            f"Candidate scored {result.score}/{result.total_questions} ({result.percentage}%). "
            f"{result.graded_correct}/{result.graded_questions} multiple choice correct. "
            f"{manual} item(s) need manual review."
        )
        return result, 1.0, explanation
