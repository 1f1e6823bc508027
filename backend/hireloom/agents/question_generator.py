"""
Question Generator Agent

Responsibility: Produce aptitude test questions from a job's title,
description and skill list.
Single purpose: Generate questions; never scores or sends them.

The template generator is the reference behavior. When LLM generation is
enabled the same contract holds: at most ``question_count`` items, in
skill order, never padded.
"""

import itertools
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base import BaseAgent
from ..core.config import get_settings
from ..core.errors import GenerationError, ValidationError
from ..core.llm import get_agent_decision
from ..schemas.assessment import (
    Difficulty,
    MultipleChoiceQuestion,
    Question,
    QuestionType,
    ScenarioQuestion,
    question_from_dict,
)


# Process-wide counter so two calls in the same millisecond get distinct ids
_SEED_COUNTER = itertools.count(1)

GENERAL_QUESTION_KEYWORDS = ("developer", "engineer")

GENERATION_SYSTEM_PROMPT = """You are an expert technical interviewer creating aptitude test questions.
Generate questions that:
1. Test practical knowledge, not just memorization
2. Have clear, unambiguous answers for multiple choice items
3. Avoid cultural bias or region-specific references
4. Match the requested difficulty

Return ONLY a JSON object of the form:
{
    "questions": [
        {
            "type": "multiple_choice | short_answer | scenario",
            "question": "prompt text",
            "options": ["four options, multiple_choice only"],
            "correctAnswer": "index of the correct option, multiple_choice only",
            "skill": "the skill this question tests",
            "timeLimit": "recommended minutes"
        }
    ]
}
Order the questions by the order of the skills you were given."""


def _id_seed() -> str:
    return f"{int(time.time() * 1000)}-{next(_SEED_COUNTER)}"


def generate_questions(
    job_title: str,
    job_description: str,
    skills: List[str],
    difficulty: Difficulty = Difficulty.MEDIUM,
    question_count: int = 10,
) -> List[Question]:
    """
    Build questions from the fixed per-skill templates.

    For each skill, in order, emits a multiple choice question and then a
    scenario question while fewer than ``question_count`` items exist.
    Developer and engineer roles get one extra general programming
    question. The result is truncated to ``question_count``.

    Args:
        job_title: Title of the job posting
        job_description: Description text (unused by the templates)
        skills: Skill labels, in priority order
        difficulty: Difficulty stamped on the skill questions
        question_count: Upper bound on the number of questions

    Returns:
        At most ``question_count`` questions

    Raises:
        ValidationError: If ``question_count`` is negative
    """
    if question_count < 0:
        raise ValidationError(f"question_count must be >= 0, got {question_count}")

    difficulty = Difficulty(difficulty)
    seed = _id_seed()
    questions: List[Question] = []

    for skill in skills:
        if len(questions) < question_count:
            questions.append(MultipleChoiceQuestion(
                id=f"q{seed}-{len(questions) + 1}",
                question=f"What is the primary advantage of using {skill} in modern web development?",
                options=(
                    f"{skill} provides better performance optimization",
                    f"{skill} has a smaller learning curve",
                    f"{skill} is only suitable for small projects",
                    f"{skill} doesn't require any configuration",
                ),
                answer_index=0,
                difficulty=difficulty,
                skill=skill,
                time_limit=3,
            ))

        if len(questions) < question_count:
            questions.append(ScenarioQuestion(
                id=f"q{seed}-{len(questions) + 1}",
                question=(
                    f"You're working on a project that requires {skill}. Describe how you "
                    "would approach implementing a complex feature that needs to scale "
                    "for 100,000+ users."
                ),
                difficulty=difficulty,
                skill=skill,
                time_limit=10,
            ))

    title = job_title.lower()
    if any(keyword in title for keyword in GENERAL_QUESTION_KEYWORDS):
        questions.append(MultipleChoiceQuestion(
            id=f"general-{seed}-1",
            question="What is the most important principle in software development?",
            options=(
                "Writing code as fast as possible",
                "Creating maintainable and readable code",
                "Using the latest technologies",
                "Working alone without team input",
            ),
            answer_index=1,
            difficulty=Difficulty.EASY,
            skill="General Programming",
            time_limit=2,
        ))

    return questions[:question_count]


@dataclass
class QuestionGeneratorInput:
    """Input for question generation."""
    job_title: str
    job_description: str = ""
    skills: List[str] = field(default_factory=list)
    difficulty: Difficulty = Difficulty.MEDIUM
    question_count: int = 10
    use_llm: bool = False


class QuestionGeneratorAgent(BaseAgent[QuestionGeneratorInput, List[Question]]):
    """
    Generates aptitude test questions for a job.

    Input: job title, description, skills + difficulty/count
    Output: Ordered list of Question records

    Does NOT:
    - Assemble tests
    - Score answers
    """

    name = "question_generator"
    description = "Generates job-relevant aptitude test questions"
    failure_message = "Failed to generate questions"

    def __init__(
        self,
        agent_id: Optional[str] = None,
        llm: Optional[Callable[[str, str], str]] = None,
    ):
        super().__init__(agent_id)
        self._llm = llm or get_agent_decision

    def _llm_enabled(self, input_data: QuestionGeneratorInput) -> bool:
        if not input_data.use_llm:
            return False
        # An injected client does not need an API key
        return self._llm is not get_agent_decision or bool(get_settings().groq_api_key)

    def _process(
        self,
        input_data: QuestionGeneratorInput,
    ) -> Tuple[List[Question], float, str]:
        self.log_reasoning(
            f"Generating up to {input_data.question_count} questions for "
            f"'{input_data.job_title}' covering {len(input_data.skills)} skills"
        )

        questions: List[Question] = []
        confidence = 1.0
        source = "templates"

        if self._llm_enabled(input_data):
            try:
                questions = self._generate_with_llm(input_data)
                confidence = 0.8
                source = "llm"
                self.log_reasoning(f"LLM generated {len(questions)} questions")
            except Exception as e:
                self.log_reasoning(f"LLM generation failed: {e}, using templates")
                questions = []

        if source == "templates":
            questions = generate_questions(
                input_data.job_title,
                input_data.job_description,
                input_data.skills,
                input_data.difficulty,
                input_data.question_count,
            )

        skills_covered = list(dict.fromkeys(q.skill for q in questions))
        explanation = (
            f"Generated {len(questions)} questions from {source}. "
            f"Covers {len(skills_covered)} skills: {', '.join(skills_covered[:5])}."
        )
        self.log_reasoning(explanation)

        return questions, confidence, explanation

    def _generate_with_llm(self, input_data: QuestionGeneratorInput) -> List[Question]:
        """Ask the LLM for questions and normalize them into Question records."""
        payload = json.dumps({
            "job_title": input_data.job_title,
            "job_description": input_data.job_description,
            "skills": input_data.skills,
            "difficulty": Difficulty(input_data.difficulty).value,
            "question_count": input_data.question_count,
        })
        raw = self._llm(GENERATION_SYSTEM_PROMPT, payload)

        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise GenerationError(f"LLM returned invalid JSON: {e}")

        items = data.get("questions") if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise GenerationError("LLM response has no question list")

        seed = _id_seed()
        questions: List[Question] = []
        for item in items:
            if len(questions) >= input_data.question_count:
                break
            question = self._normalize(item, input_data, f"q{seed}-{len(questions) + 1}")
            if question is not None:
                questions.append(question)

        if not questions and input_data.question_count > 0:
            raise GenerationError("LLM response contained no usable questions")
        return questions

    def _normalize(
        self,
        item: Any,
        input_data: QuestionGeneratorInput,
        question_id: str,
    ) -> Optional[Question]:
        if not isinstance(item, dict) or not item.get("question"):
            self.log_reasoning("Skipping malformed LLM question")
            return None

        data: Dict[str, Any] = dict(item)
        data["id"] = question_id
        data.setdefault("difficulty", Difficulty(input_data.difficulty).value)
        data.setdefault("type", QuestionType.MULTIPLE_CHOICE.value)

        if data["type"] == QuestionType.MULTIPLE_CHOICE.value:
            try:
                data["correctAnswer"] = int(data.get("correctAnswer", 0))
            except (TypeError, ValueError):
                self.log_reasoning(f"Skipping question with bad answer key: {data.get('correctAnswer')!r}")
                return None
        if data["type"] not in (
            QuestionType.MULTIPLE_CHOICE.value,
            QuestionType.SHORT_ANSWER.value,
            QuestionType.SCENARIO.value,
        ):
            self.log_reasoning(f"Skipping unsupported question type {data['type']!r}")
            return None
        if isinstance(data.get("timeLimit"), str):
            data["timeLimit"] = int(data["timeLimit"]) if data["timeLimit"].isdigit() else None

        try:
            return question_from_dict(data)
        except ValueError as e:
            self.log_reasoning(f"Skipping invalid question: {e}")
            return None
