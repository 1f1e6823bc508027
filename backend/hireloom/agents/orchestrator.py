"""
Assessment Orchestrator

Responsibility: Drive the recruiter's create-and-send dialog for one job.
Single purpose: Sequence generation, authoring, assembly and delivery, and
turn every outcome into a user-facing notification.

    setup ──generate──> questions_ready ──create_test──> test_created ──send──> sent

Failures never leave this class as exceptions. A failed generation keeps
the dialog in setup; a failed send keeps the assembled test so only the
send step needs retrying.
"""

import logging
from typing import Any, Dict, List, Optional

from .assignment_author import AssignmentAuthorAgent, AssignmentInput
from .base import AgentResponse, AgentStatus, WorkflowState
from .question_generator import QuestionGeneratorAgent, QuestionGeneratorInput
from .test_assembler import AssemblyInput, TestAssemblerAgent, TestConfig
from .test_delivery import DeliveryInput, TestDeliveryAgent
from ..schemas.assessment import AptitudeTest, AssignmentQuestion, Difficulty, Question
from ..schemas.job import JobDescription
from ..schemas.messages import Notification, NotificationLevel, WorkflowStage


logger = logging.getLogger(__name__)


class AssessmentOrchestrator:
    """
    Coordinator for building and sending one aptitude test.

    The Orchestrator:
    - Holds the generated questions and custom assignments
    - Assembles the test once and reuses it for every send
    - Records notifications for the UI
    - Tracks workflow state through the agents

    NOT responsible for:
    - Scoring (the exam runner does that)
    - Persisting candidates or send history
    """

    def __init__(
        self,
        job: JobDescription,
        delivery: TestDeliveryAgent,
        created_by: str = "",
        generator: Optional[QuestionGeneratorAgent] = None,
        author: Optional[AssignmentAuthorAgent] = None,
        assembler: Optional[TestAssemblerAgent] = None,
    ):
        self.job = job
        self.created_by = created_by
        self.generator = generator or QuestionGeneratorAgent()
        self.author = author or AssignmentAuthorAgent()
        self.assembler = assembler or TestAssemblerAgent()
        self.delivery = delivery

        self.state = WorkflowState(job_id=job.job_id)
        self.generated_questions: List[Question] = []
        self.custom_assignments: List[AssignmentQuestion] = []
        self.test: Optional[AptitudeTest] = None
        self.sent_links: Dict[str, str] = {}  # candidate email -> link
        self.notifications: List[Notification] = []

    @property
    def stage(self) -> WorkflowStage:
        return self.state.current_stage

    @property
    def all_questions(self) -> List[Question]:
        return list(self.generated_questions) + list(self.custom_assignments)

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def generate_questions(
        self,
        difficulty: Difficulty = Difficulty.MEDIUM,
        question_count: int = 10,
        use_llm: bool = False,
    ) -> AgentResponse:
        if self._locked("generate questions"):
            return self._blocked_response(self.generator.name, "Test already created")

        result = self.generator.run(
            QuestionGeneratorInput(
                job_title=self.job.title,
                job_description=self.job.description,
                skills=list(self.job.skills),
                difficulty=difficulty,
                question_count=question_count,
                use_llm=use_llm,
            ),
            self.state,
            stage=WorkflowStage.QUESTIONS_READY,
        )
        self.state = result.state
        response = result.response

        if response.is_successful():
            self.generated_questions = list(response.output)
            self._notify(
                NotificationLevel.SUCCESS,
                "Questions generated successfully!",
                f"Generated {len(self.generated_questions)} questions for the test.",
            )
        else:
            self._notify(
                NotificationLevel.ERROR,
                "Failed to generate questions",
                "Please try again or check your inputs.",
            )
        return response

    def add_custom_assignment(self, assignment: AssignmentInput) -> AgentResponse:
        if self._locked("add assignments"):
            return self._blocked_response(self.author.name, "Test already created")

        result = self.author.run(assignment, self.state)
        self.state = result.state
        response = result.response

        if response.is_successful():
            self.custom_assignments.append(response.output)
            self._notify(
                NotificationLevel.SUCCESS,
                "Custom assignment added",
                f"'{response.output.assignment_title}' was added to the test.",
            )
        else:
            self._notify(NotificationLevel.ERROR, "Cannot add assignment", response.error or "")
        return response

    def remove_custom_assignment(self, assignment_id: str) -> bool:
        if self._locked("remove assignments"):
            return False
        before = len(self.custom_assignments)
        self.custom_assignments = [a for a in self.custom_assignments if a.id != assignment_id]
        return len(self.custom_assignments) < before

    def create_test(self, duration: int = 30, passing_score: int = 70) -> AgentResponse:
        """Assemble the test. Once created it is immutable and reused."""
        if self.test is not None:
            return AgentResponse(
                agent_name=self.assembler.name,
                status=AgentStatus.SUCCESS,
                output=self.test,
                confidence_score=1.0,
                explanation=f"Test {self.test.id} already created",
            )

        result = self.assembler.run(
            AssemblyInput(
                job=self.job,
                generated=self.generated_questions,
                custom_assignments=self.custom_assignments,
                config=TestConfig(duration=duration, passing_score=passing_score),
                created_by=self.created_by,
            ),
            self.state,
            stage=WorkflowStage.TEST_CREATED,
        )
        self.state = result.state
        response = result.response

        if response.is_successful():
            self.test = response.output
            logger.info("Created %s for job %s", self.test.id, self.job.job_id)
        else:
            self._notify(
                NotificationLevel.ERROR,
                "Cannot send test",
                response.error or "Missing job data, candidate information, or questions",
            )
        return response

    def send_to_candidate(
        self,
        candidate_email: str,
        candidate_name: str = "",
        duration: int = 30,
        passing_score: int = 70,
    ) -> AgentResponse:
        """
        Send the test to one candidate, creating it first if needed.

        Resending to the same candidate reuses the same test id.
        """
        if self.test is None:
            created = self.create_test(duration=duration, passing_score=passing_score)
            if not created.is_successful():
                return created

        result = self.delivery.run(
            DeliveryInput(self.test, candidate_email, candidate_name),
            self.state,
            stage=WorkflowStage.SENT,
        )
        self.state = result.state
        response = result.response

        if response.is_successful():
            self.sent_links[candidate_email.strip()] = response.output
            self._notify(
                NotificationLevel.SUCCESS,
                "Test sent successfully!",
                f"Aptitude test sent to {candidate_email}",
            )
        else:
            self._notify(
                NotificationLevel.ERROR,
                "Failed to send test",
                f"Could not send test to {candidate_email}: {response.error}",
            )
        return response

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _locked(self, action: str) -> bool:
        if self.test is None:
            return False
        self._notify(
            NotificationLevel.ERROR,
            f"Cannot {action}",
            f"Test {self.test.id} has already been created and cannot change.",
        )
        return True

    def _blocked_response(self, agent_name: str, reason: str) -> AgentResponse:
        return AgentResponse(
            agent_name=agent_name,
            status=AgentStatus.FAILURE,
            explanation=reason,
            metadata={"error": reason},
        )

    def _notify(self, level: NotificationLevel, title: str, message: str) -> None:
        notification = Notification(level=level, title=title, message=message)
        self.notifications.append(notification)
        log = logger.warning if notification.is_error else logger.info
        log("%s: %s", title, message)

    def get_summary(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.state.workflow_id,
            "job_id": self.job.job_id,
            "stage": self.stage.value,
            "generated_questions": [q.to_dict() for q in self.generated_questions],
            "custom_assignments": [a.to_dict() for a in self.custom_assignments],
            "test": self.test.to_dict() if self.test else None,
            "sent_links": dict(self.sent_links),
            "notifications": [n.to_dict() for n in self.notifications],
            "errors": list(self.state.errors),
        }
