"""
Assignment Author Agent

Responsibility: Turn a recruiter's custom assignment form into a question.
Single purpose: Validate and normalize one assignment.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from uuid import uuid4

from .base import BaseAgent
from ..core.errors import ValidationError
from ..schemas.assessment import AssignmentQuestion, Difficulty


def _non_blank(items: Optional[List[str]]) -> Tuple[str, ...]:
    return tuple(item.strip() for item in (items or []) if item and item.strip())


def create_custom_assignment(
    title: str,
    description: str,
    skill: str = "",
    difficulty: Difficulty = Difficulty.MEDIUM,
    time_limit: Optional[int] = 60,
    requirements: Optional[List[str]] = None,
    deliverables: Optional[List[str]] = None,
    resources: Optional[List[str]] = None,
    evaluation_criteria: Optional[List[str]] = None,
) -> AssignmentQuestion:
    """
    Build an assignment question from recruiter input.

    Blank entries are dropped from the list fields. Only title and
    description are validated.

    Raises:
        ValidationError: If title or description is empty or whitespace
    """
    if not title or not title.strip():
        raise ValidationError("Assignment title is required")
    if not description or not description.strip():
        raise ValidationError("Assignment description is required")

    return AssignmentQuestion(
        id=f"assignment-{uuid4().hex[:12]}",
        question=title.strip(),
        difficulty=difficulty,
        skill=skill,
        time_limit=time_limit,
        assignment_title=title.strip(),
        assignment_description=description.strip(),
        assignment_requirements=_non_blank(requirements),
        deliverables=_non_blank(deliverables),
        resources=_non_blank(resources),
        evaluation_criteria=_non_blank(evaluation_criteria),
    )


@dataclass
class AssignmentInput:
    """The custom assignment form."""
    title: str
    description: str
    skill: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: Optional[int] = 60
    requirements: List[str] = field(default_factory=list)
    deliverables: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    evaluation_criteria: List[str] = field(default_factory=list)


class AssignmentAuthorAgent(BaseAgent[AssignmentInput, AssignmentQuestion]):
    """Creates recruiter-authored assignment questions."""

    name = "assignment_author"
    description = "Validates and normalizes custom assignments"
    failure_message = "Cannot create assignment"

    def _process(self, input_data: AssignmentInput) -> Tuple[AssignmentQuestion, float, str]:
        assignment = create_custom_assignment(
            title=input_data.title,
            description=input_data.description,
            skill=input_data.skill,
            difficulty=input_data.difficulty,
            time_limit=input_data.time_limit,
            requirements=input_data.requirements,
            deliverables=input_data.deliverables,
            resources=input_data.resources,
            evaluation_criteria=input_data.evaluation_criteria,
        )
        return assignment, 1.0, f"Created assignment '{assignment.assignment_title}'"
